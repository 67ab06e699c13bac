"""Concurrent dependency tree loader.

Builds the full dependency tree for a set of root packages by recursively
fetching registry metadata. Fetches run as interleaved asyncio tasks, with
at most ``concurrency`` registry fetches in flight.

Guarantees:

- **Deduplication** -- each package id is expanded at most once. Any later
  occurrence becomes a shared-reference stub with no dependencies.
- **In-flight coalescing** -- a branch reaching a package that another
  branch is still loading awaits that load instead of fetching again.
- **Cycle termination** -- a package found among its own ancestors becomes
  a terminal ``is_cyclic`` node with status ``BLOCKED``. The same applies
  when coalescing would make two branches wait on each other.
- **Failure isolation** -- a failed fetch degrades that one package to
  defaulted metadata. The run itself never aborts because of it.

All shared state (``visited``, ``in_flight``, the waits-on edges) is
mutated synchronously between suspension points, which is sufficient
under a single-threaded event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from nugetroadmap.cache import MetadataCache
from nugetroadmap.config import DEFAULT_CONCURRENCY
from nugetroadmap.core.tree.masks import InternalMask
from nugetroadmap.core.tree.models import (
    MAX_AVAILABLE_VERSIONS,
    UNKNOWN_VERSION,
    LoadProgress,
    PackageNode,
    PackageStatus,
)
from nugetroadmap.core.tree.versions import select_version
from nugetroadmap.exceptions import RegistryError
from nugetroadmap.registry.base import Dependency, RegistryClient

logger = logging.getLogger(__name__)

MIGRATION_CACHE_PREFIX: str = "migration:"

ProgressCallback = Callable[[LoadProgress], None]


@dataclass(frozen=True)
class RootRequest:
    """A root package, optionally pinned to a version (e.g. from a .csproj)."""

    package_id: str
    version: str | None = None


@dataclass(frozen=True)
class _PackageData:
    """The cacheable part of a package: everything except its children."""

    id: str
    version: str
    available_versions: tuple[str, ...]
    target_frameworks: tuple[str, ...]
    dependencies: tuple[Dependency, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "availableVersions": list(self.available_versions),
            "targetFrameworks": list(self.target_frameworks),
            "dependencyIds": [{"id": d.id, "range": d.range} for d in self.dependencies],
        }

    @classmethod
    def from_dict(cls, data: Any) -> _PackageData:
        if not isinstance(data, dict):
            raise ValueError("cached package must be an object")
        pkg_id, version = data.get("id"), data.get("version")
        versions = data.get("availableVersions")
        frameworks = data.get("targetFrameworks")
        deps = data.get("dependencyIds")
        if not isinstance(pkg_id, str) or not isinstance(version, str):
            raise ValueError("cached package needs string id and version")
        for value in (versions, frameworks):
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValueError("cached version/framework lists must hold strings")
        if not isinstance(deps, list) or not all(
            isinstance(d, dict) and isinstance(d.get("id"), str) for d in deps
        ):
            raise ValueError("cached dependencyIds must be objects with an id")
        return cls(
            id=pkg_id,
            version=version,
            available_versions=tuple(versions),
            target_frameworks=tuple(frameworks),
            dependencies=tuple(Dependency(d["id"], d.get("range")) for d in deps),
        )


class DependencyTreeLoader:
    """Resolve root packages into fully expanded dependency trees.

    Args:
        registry: Source of version lists and package details.
        cache: Optional cache for per-package metadata. Hits skip the
            registry and the concurrency limiter entirely.
        internal_mask: Mask identifying internal packages.
        dev_version_filter: Token selecting preferred prerelease versions.
        concurrency: Maximum registry fetches in flight.
        on_progress: Called with a ``LoadProgress`` whenever progress changes.
    """

    def __init__(
        self,
        registry: RegistryClient,
        cache: MetadataCache | None = None,
        *,
        internal_mask: str | InternalMask = "",
        dev_version_filter: str = "",
        concurrency: int = DEFAULT_CONCURRENCY,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1 (got {concurrency})")
        self._registry = registry
        self._cache = cache
        self._mask = (
            internal_mask if isinstance(internal_mask, InternalMask)
            else InternalMask(internal_mask)
        )
        self._dev_filter = dev_version_filter
        self._concurrency = concurrency
        self._on_progress = on_progress

    async def load(self, roots: Iterable[str | RootRequest]) -> list[PackageNode]:
        """Load the dependency tree of every root.

        Args:
            roots: Package ids or ``RootRequest`` objects. Duplicate ids
                (case-insensitive) are dropped, first occurrence wins.

        Returns:
            One root ``PackageNode`` per distinct root, in input order.
        """
        requests: list[RootRequest] = []
        seen: set[str] = set()
        for root in roots:
            request = root if isinstance(root, RootRequest) else RootRequest(root)
            if request.package_id.lower() not in seen:
                seen.add(request.package_id.lower())
                requests.append(request)

        build = _TreeBuild(self, [r.package_id.lower() for r in requests])
        return list(await asyncio.gather(*(
            build.load_package(r.package_id, 0, frozenset(), None, r.version)
            for r in requests
        )))

    # -- cache access -------------------------------------------------------

    def _cached_package(self, key: str, requested_version: str | None) -> _PackageData | None:
        if self._cache is None:
            return None
        cache_key = f"{MIGRATION_CACHE_PREFIX}{key}"
        raw = self._cache.get(cache_key)
        if raw is None:
            return None
        try:
            data = _PackageData.from_dict(raw)
        except ValueError:
            logger.debug("Evicting malformed cache entry %s", cache_key)
            self._cache.delete(cache_key)
            return None
        if requested_version and data.version != requested_version:
            return None
        return data

    def _store_package(self, key: str, data: _PackageData) -> None:
        if self._cache is not None:
            self._cache.set(f"{MIGRATION_CACHE_PREFIX}{key}", data.to_dict())

    # -- registry access ----------------------------------------------------

    async def _fetch_package(
        self, package_id: str, requested_version: str | None
    ) -> tuple[_PackageData, bool]:
        """Fetch versions and details; returns the data and whether both succeeded."""
        complete = True
        try:
            versions = await self._registry.list_versions(package_id)
        except RegistryError as exc:
            logger.warning("Failed to list versions for %s: %s", package_id, exc)
            versions = [requested_version] if requested_version else []
            complete = False

        version = requested_version or select_version(versions, self._dev_filter)

        frameworks: list[str] = []
        dependencies: list[Dependency] = []
        if version != UNKNOWN_VERSION:
            try:
                details = await self._registry.get_details(package_id, version)
                frameworks = details.target_frameworks
                dependencies = details.flatten_dependencies()
            except RegistryError as exc:
                logger.warning(
                    "Failed to get details for %s@%s: %s", package_id, version, exc
                )
                complete = False
        else:
            complete = False

        data = _PackageData(
            id=package_id,
            version=version,
            available_versions=tuple(versions[:MAX_AVAILABLE_VERSIONS]),
            target_frameworks=tuple(frameworks),
            dependencies=tuple(dependencies),
        )
        return data, complete


class _TreeBuild:
    """Mutable state for a single ``DependencyTreeLoader.load`` call."""

    def __init__(self, loader: DependencyTreeLoader, root_keys: list[str]) -> None:
        self._loader = loader
        self._semaphore = asyncio.Semaphore(loader._concurrency)
        self._visited: dict[str, PackageNode] = {}
        self._in_flight: dict[str, asyncio.Future[PackageNode]] = {}
        # parent key -> child keys it is currently resolving or waiting on
        self._waits_on: dict[str, set[str]] = {}
        self._discovered: set[str] = set(root_keys)
        self._processed = 0
        self._active: list[str] = []

    # -- progress -----------------------------------------------------------

    def _report(self) -> None:
        callback = self._loader._on_progress
        if callback is not None:
            callback(LoadProgress(
                current=self._processed,
                total=len(self._discovered),
                active_packages=tuple(self._active),
                concurrency=len(self._active),
                phase="loading",
            ))

    # -- cycle handling -----------------------------------------------------

    def _reaches(self, start: str, target: str) -> bool:
        """True if *start* transitively waits on *target*."""
        stack = [start]
        seen: set[str] = set()
        while stack:
            key = stack.pop()
            if key == target:
                return True
            if key in seen:
                continue
            seen.add(key)
            stack.extend(self._waits_on.get(key, ()))
        return False

    def _cyclic_node(
        self, package_id: str, depth: int, requested_version: str | None
    ) -> PackageNode:
        return PackageNode(
            id=package_id,
            version=requested_version or UNKNOWN_VERSION,
            is_internal=self._loader._mask.matches(package_id),
            depth=depth,
            status=PackageStatus.BLOCKED,
            is_cyclic=True,
        )

    # -- resolution ---------------------------------------------------------

    async def load_package(
        self,
        package_id: str,
        depth: int,
        ancestors: frozenset[str],
        parent: str | None,
        requested_version: str | None,
    ) -> PackageNode:
        key = package_id.lower()

        if key in ancestors:
            logger.debug("Cycle: %s is its own ancestor", package_id)
            return self._cyclic_node(package_id, depth, requested_version)

        existing = self._visited.get(key)
        if existing is not None:
            return existing.as_shared_reference(depth)

        pending = self._in_flight.get(key)
        if pending is not None:
            if parent is not None and self._reaches(key, parent):
                logger.debug("Cycle: %s is waiting on %s", package_id, parent)
                return self._cyclic_node(package_id, depth, requested_version)
            node = await asyncio.shield(pending)
            return node.as_shared_reference(depth)

        future: asyncio.Future[PackageNode] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            node = await self._resolve(package_id, key, depth, ancestors | {key}, requested_version)
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved; waiters (if any) still receive the exception.
            future.exception()
            raise
        finally:
            del self._in_flight[key]

        self._visited[key] = node
        future.set_result(node)
        return node

    async def _resolve(
        self,
        package_id: str,
        key: str,
        depth: int,
        ancestors: frozenset[str],
        requested_version: str | None,
    ) -> PackageNode:
        loader = self._loader
        data = loader._cached_package(key, requested_version)
        if data is None:
            async with self._semaphore:
                self._active.append(package_id)
                self._report()
                try:
                    data, complete = await loader._fetch_package(package_id, requested_version)
                finally:
                    self._active.remove(package_id)
            if complete:
                loader._store_package(key, data)
        else:
            logger.debug("Cache hit for %s", package_id)

        self._processed += 1
        self._discovered.update(d.id.lower() for d in data.dependencies)
        self._report()

        self._waits_on[key] = {d.id.lower() for d in data.dependencies}
        try:
            children = await asyncio.gather(*(
                self._load_child(dep.id, depth + 1, ancestors, key)
                for dep in data.dependencies
            ))
        finally:
            del self._waits_on[key]

        return PackageNode(
            id=package_id,
            version=data.version,
            available_versions=data.available_versions,
            is_internal=loader._mask.matches(package_id),
            depth=depth,
            target_frameworks=data.target_frameworks,
            dependencies=tuple(children),
        )

    async def _load_child(
        self, package_id: str, depth: int, ancestors: frozenset[str], parent: str
    ) -> PackageNode:
        node = await self.load_package(package_id, depth, ancestors, parent, None)
        # A child that returned no longer holds its parent up. Cycle markers and
        # stubs return without suspending, so the edge is gone before any
        # other branch checks it.
        waiting = self._waits_on.get(parent)
        if waiting is not None:
            waiting.discard(package_id.lower())
        return node
