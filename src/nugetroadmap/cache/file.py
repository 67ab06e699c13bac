"""JSON-file-backed metadata cache.

The whole cache lives in one JSON object on disk, loaded lazily on first
access. With ``autoflush`` (the default) the file is rewritten after every
mutation; otherwise writes accumulate until ``flush()``. Writes go to a
sibling temp file that is then renamed over the original, so a crash
mid-write never leaves a truncated cache behind. A file that cannot be
parsed is logged and treated as empty.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from nugetroadmap.cache.base import MetadataCache

logger = logging.getLogger(__name__)


class JsonFileCache(MetadataCache):
    """Persistent cache stored as a single JSON document.

    Args:
        path: Location of the cache file. Parent directories are created
            on first write.
        autoflush: Rewrite the file after every mutation.
        ttl_seconds: Entry lifetime.
        clock: Time source returning epoch seconds.
    """

    def __init__(
        self, path: Path, *args: Any, autoflush: bool = True, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self._path = Path(path)
        self._autoflush = autoflush
        self._entries: dict[str, Any] | None = None
        self._dirty = False

    @property
    def path(self) -> Path:
        return self._path

    def _entries_map(self) -> dict[str, Any]:
        if self._entries is None:
            self._entries = self._read_file()
        return self._entries

    def _read_file(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring cache file %s: top level is not an object", self._path)
            return {}
        return data

    def _mark_dirty(self) -> None:
        self._dirty = True
        if self._autoflush:
            self.flush()

    def flush(self) -> None:
        """Write the in-memory entries to disk if anything changed."""
        if not self._dirty:
            return
        entries = self._entries_map()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=self._path.name, suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh)
            os.replace(tmp_name, self._path)
            self._dirty = False
        except OSError:
            logger.warning("Failed to write cache file %s", self._path, exc_info=True)
            Path(tmp_name).unlink(missing_ok=True)

    def _load(self, key: str) -> Any:
        return self._entries_map().get(key)

    def _store(self, key: str, envelope: dict[str, Any]) -> None:
        self._entries_map()[key] = envelope
        self._mark_dirty()

    def _remove(self, key: str) -> None:
        if self._entries_map().pop(key, None) is not None:
            self._mark_dirty()

    def _raw_keys(self) -> list[str]:
        return list(self._entries_map())

    def _remove_all(self) -> None:
        self._entries = {}
        self._mark_dirty()
