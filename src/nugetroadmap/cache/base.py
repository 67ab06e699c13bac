"""Abstract metadata cache and the shared entry-envelope handling.

Every stored value is wrapped as ``{"data": value, "timestamp": seconds}``.
Concrete caches only provide raw storage of envelopes; expiry and
malformed-entry eviction live here so every backend behaves the same.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Five days, matching how often package metadata realistically changes.
DEFAULT_TTL_SECONDS: float = 5 * 24 * 60 * 60


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of a cache's contents.

    Attributes:
        size: Number of stored entries (including not-yet-evicted stale ones).
        keys: Stored keys, sorted.
    """

    size: int
    keys: list[str]


class MetadataCache(ABC):
    """Key-value store with TTL-based expiry.

    Subclasses implement the raw envelope storage primitives
    (``_load``, ``_store``, ``_remove``, ``_raw_keys``, ``_remove_all``).
    The public ``get``/``set``/``delete``/``clear`` API is shared.

    Args:
        ttl_seconds: Entry lifetime. Expired entries are evicted on read.
        clock: Time source returning epoch seconds; injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    # -- storage primitives -------------------------------------------------

    @abstractmethod
    def _load(self, key: str) -> Any:
        """Return the raw stored envelope for *key*, or None."""

    @abstractmethod
    def _store(self, key: str, envelope: dict[str, Any]) -> None:
        """Persist an envelope under *key*."""

    @abstractmethod
    def _remove(self, key: str) -> None:
        """Remove *key* if present."""

    @abstractmethod
    def _raw_keys(self) -> list[str]:
        """Return every stored key."""

    @abstractmethod
    def _remove_all(self) -> None:
        """Remove every entry."""

    # -- public API ---------------------------------------------------------

    def get(self, key: str) -> Any:
        """Return the cached value for *key*, or None on miss.

        Expired and malformed entries are evicted and reported as a miss.
        """
        envelope = self._load(key)
        if envelope is None:
            return None

        if (
            not isinstance(envelope, dict)
            or "data" not in envelope
            or isinstance(envelope.get("timestamp"), bool)
            or not isinstance(envelope.get("timestamp"), (int, float))
        ):
            logger.debug("Evicting malformed cache entry %s", key)
            self._remove(key)
            return None

        if self._clock() - envelope["timestamp"] > self._ttl:
            logger.debug("Evicting expired cache entry %s", key)
            self._remove(key)
            return None

        return envelope["data"]

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, stamped with the current time."""
        self._store(key, {"data": value, "timestamp": self._clock()})

    def delete(self, key: str) -> None:
        """Remove *key*; a missing key is not an error."""
        self._remove(key)

    def clear(self) -> None:
        """Remove every entry."""
        self._remove_all()

    def keys(self, prefix: str = "") -> list[str]:
        """Return stored keys starting with *prefix*, sorted."""
        return sorted(k for k in self._raw_keys() if k.startswith(prefix))

    def get_all_by_prefix(self, prefix: str) -> dict[str, Any]:
        """Return every live value whose key starts with *prefix*.

        Expired or malformed entries are evicted along the way.
        """
        out: dict[str, Any] = {}
        for key in self.keys(prefix):
            value = self.get(key)
            if value is not None:
                out[key] = value
        return out

    def flush(self) -> None:
        """Persist pending writes. A no-op for caches without durable storage."""

    def stats(self) -> CacheStats:
        keys = self.keys()
        return CacheStats(size=len(keys), keys=keys)
