"""In-process metadata cache."""

from __future__ import annotations

from typing import Any

from nugetroadmap.cache.base import MetadataCache


class MemoryCache(MetadataCache):
    """Dict-backed cache; contents last for the lifetime of the object."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._entries: dict[str, Any] = {}

    def _load(self, key: str) -> Any:
        return self._entries.get(key)

    def _store(self, key: str, envelope: dict[str, Any]) -> None:
        self._entries[key] = envelope

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def _raw_keys(self) -> list[str]:
        return list(self._entries)

    def _remove_all(self) -> None:
        self._entries.clear()
