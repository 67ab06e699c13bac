"""Key-value metadata cache with TTL expiry.

Used by the registry wrapper and the dependency tree loader to avoid
redundant registry calls. Entries older than the TTL, and entries that are
not shaped like cache entries, are evicted when read and reported as misses.

Public API::

    from nugetroadmap.cache import MetadataCache, MemoryCache, JsonFileCache
"""

from __future__ import annotations

from nugetroadmap.cache.base import DEFAULT_TTL_SECONDS, CacheStats, MetadataCache
from nugetroadmap.cache.file import JsonFileCache
from nugetroadmap.cache.memory import MemoryCache

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheStats",
    "JsonFileCache",
    "MemoryCache",
    "MetadataCache",
]
