"""Cache-backed registry wrapper.

``CachedRegistry`` puts a ``MetadataCache`` in front of any
``RegistryClient``. Successful answers are written back under stable keys
so repeated runs can skip the network entirely. In cache-only mode the
inner client is never called: version and details misses raise
``PackageNotFoundError`` and searches are answered by filtering every
cached search page locally.

Cache keys::

    versions:<id>                 list of versions, newest first
    details:<id>:<version>        PackageDetails.to_dict()
    search:<query>:<skip>:<take>  one page of package ids
    migration-prefix:<prefix>     full prefix-search result
"""

from __future__ import annotations

import logging

from nugetroadmap.cache import MetadataCache
from nugetroadmap.exceptions import PackageNotFoundError
from nugetroadmap.registry.base import PackageDetails, RegistryClient

logger = logging.getLogger(__name__)

VERSIONS_PREFIX: str = "versions:"
DETAILS_PREFIX: str = "details:"
SEARCH_PREFIX: str = "search:"
PREFIX_SEARCH_PREFIX: str = "migration-prefix:"


def _is_str_list(value: object) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


class CachedRegistry(RegistryClient):
    """Registry client that consults a cache before its inner client.

    Args:
        inner: The client used on cache misses.
        cache: Shared metadata cache.
        cache_only: Start in cache-only mode.
    """

    def __init__(
        self,
        inner: RegistryClient,
        cache: MetadataCache,
        *,
        cache_only: bool = False,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self.cache_only = cache_only

    @property
    def registry_name(self) -> str:
        suffix = " [cache only]" if self.cache_only else ""
        return f"{self._inner.registry_name}{suffix}"

    @property
    def cache(self) -> MetadataCache:
        return self._cache

    async def aclose(self) -> None:
        await self._inner.aclose()

    def _cached_str_list(self, key: str) -> list[str] | None:
        value = self._cache.get(key)
        if value is None:
            return None
        if not _is_str_list(value):
            logger.debug("Evicting malformed cache entry %s", key)
            self._cache.delete(key)
            return None
        return value

    async def list_versions(self, package_id: str) -> list[str]:
        key = f"{VERSIONS_PREFIX}{package_id.lower()}"
        cached = self._cached_str_list(key)
        if cached is not None:
            return cached
        if self.cache_only:
            raise PackageNotFoundError(f"Versions of {package_id} not in cache")

        versions = await self._inner.list_versions(package_id)
        self._cache.set(key, versions)
        return versions

    async def get_details(self, package_id: str, version: str) -> PackageDetails:
        key = f"{DETAILS_PREFIX}{package_id.lower()}:{version.lower()}"
        cached = self._cache.get(key)
        if cached is not None:
            try:
                return PackageDetails.from_dict(cached)
            except ValueError:
                logger.debug("Evicting malformed cache entry %s", key)
                self._cache.delete(key)
        if self.cache_only:
            raise PackageNotFoundError(f"Package {package_id}@{version} not in cache")

        details = await self._inner.get_details(package_id, version)
        self._cache.set(key, details.to_dict())
        return details

    async def search_page(self, query: str, *, skip: int, take: int) -> list[str]:
        key = f"{SEARCH_PREFIX}{query}:{skip}:{take}"
        cached = self._cached_str_list(key)
        if cached is not None:
            return cached
        if self.cache_only:
            return self._search_cached_pages(query)[skip:skip + take]

        page = await self._inner.search_page(query, skip=skip, take=take)
        self._cache.set(key, page)
        return page

    def _search_cached_pages(self, query: str) -> list[str]:
        """Filter every cached search page for ids containing *query*."""
        needle = query.lower()
        seen: set[str] = set()
        merged: list[str] = []
        for key, page in self._cache.get_all_by_prefix(SEARCH_PREFIX).items():
            if not _is_str_list(page):
                self._cache.delete(key)
                continue
            for package_id in page:
                lowered = package_id.lower()
                if needle in lowered and lowered not in seen:
                    seen.add(lowered)
                    merged.append(package_id)
        return merged

    async def search_by_prefix(self, prefix: str) -> list[str]:
        key = f"{PREFIX_SEARCH_PREFIX}{prefix.lower()}"
        cached = self._cached_str_list(key)
        if cached:
            return cached

        results = await super().search_by_prefix(prefix)
        if results and not self.cache_only:
            self._cache.set(key, results)
        return results
