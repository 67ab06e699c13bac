"""End-to-end analysis runs.

``MigrationSession`` runs the whole pipeline for one set of settings:

1. Discover roots (prefix search or an explicit list).
2. Load the dependency tree.
3. Analyze migration status.
4. Sort dependencies by blocker count.
5. Compute and assign the migration order.
6. Detect version conflicts.
7. Plan roadmap stages.

When the registry is unreachable during root discovery, the run falls back
to cached data for that run only and the report carries a warning.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from nugetroadmap.cache import JsonFileCache, MetadataCache
from nugetroadmap.config import AnalysisSettings
from nugetroadmap.core.analysis import (
    MigrationAnalyzer,
    MigrationStage,
    assign_migration_order,
    detect_version_conflicts,
    plan_stages,
    sort_by_blockers,
    topological_order,
)
from nugetroadmap.core.tree import (
    DependencyTreeLoader,
    LoadProgress,
    PackageNode,
    PackageStatus,
    RootRequest,
    VersionConflict,
    unique_packages,
)
from nugetroadmap.exceptions import (
    NoPackagesFoundError,
    RegistryUnavailableError,
    ServerUnreachableError,
)
from nugetroadmap.registry import CachedRegistry, RegistryClient
from nugetroadmap.registry.nuget import NuGetClient

logger = logging.getLogger(__name__)

OFFLINE_WARNING: str = (
    "Server unreachable - showing cached data. "
    "Some packages may be missing or outdated."
)

ProgressCallback = Callable[[LoadProgress], None]


@dataclass(frozen=True)
class AnalysisReport:
    """Everything one analysis run produced.

    Attributes:
        packages: Annotated root nodes, heaviest blockers first.
        migration_order: Package ids, dependencies first.
        broken_edges: Edges skipped to break cycles while ordering.
        version_conflicts: Diamond-dependency conflicts.
        stages: Root packages grouped into roadmap stages.
        warning: Set when the run fell back to cached data.
        frameworks: Target followed by the current frameworks.
    """

    packages: tuple[PackageNode, ...]
    migration_order: tuple[str, ...]
    version_conflicts: tuple[VersionConflict, ...]
    stages: tuple[MigrationStage, ...]
    broken_edges: tuple[tuple[str, str], ...] = ()
    warning: str | None = None
    frameworks: tuple[str, ...] = field(default_factory=tuple)

    def status_counts(self) -> dict[PackageStatus, int]:
        """Number of unique packages per status."""
        counts = Counter(node.status for node in unique_packages(self.packages).values())
        return {status: counts.get(status, 0) for status in PackageStatus}

    @property
    def has_blocked(self) -> bool:
        return self.status_counts()[PackageStatus.BLOCKED] > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "frameworks": list(self.frameworks),
            "warning": self.warning,
            "summary": {s.value: n for s, n in self.status_counts().items()},
            "migrationOrder": list(self.migration_order),
            "brokenEdges": [list(edge) for edge in self.broken_edges],
            "versionConflicts": [c.to_dict() for c in self.version_conflicts],
            "stages": [s.to_dict() for s in self.stages],
            "packages": [p.to_dict() for p in self.packages],
        }


class MigrationSession:
    """Run migration analyses against one registry.

    Args:
        registry: The registry to query. Offline fallback needs a
            ``CachedRegistry``; any other client fails fast instead.
        settings: Analysis inputs.
        cache: Cache for the loader's per-package entries. Defaults to the
            ``CachedRegistry`` cache when there is one.
        on_progress: Receives loading and analyzing progress.
    """

    def __init__(
        self,
        registry: RegistryClient,
        settings: AnalysisSettings,
        *,
        cache: MetadataCache | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._registry = registry
        self._settings = settings
        if cache is None and isinstance(registry, CachedRegistry):
            cache = registry.cache
        self._cache = cache
        self._on_progress = on_progress

    @classmethod
    def from_settings(
        cls,
        settings: AnalysisSettings,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> MigrationSession:
        """Build a session on a NuGet feed with the JSON file cache."""
        cache = JsonFileCache(
            settings.cache_path,
            ttl_seconds=settings.cache_ttl_days * 86400,
            autoflush=False,
        )
        registry = CachedRegistry(
            NuGetClient(settings.server_url), cache, cache_only=settings.cache_only
        )
        return cls(registry, settings, cache=cache, on_progress=on_progress)

    @property
    def registry(self) -> RegistryClient:
        return self._registry

    @property
    def settings(self) -> AnalysisSettings:
        return self._settings

    async def aclose(self) -> None:
        """Flush the cache and release the registry's resources."""
        if self._cache is not None:
            self._cache.flush()
        await self._registry.aclose()

    async def __aenter__(self) -> MigrationSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- pipeline -----------------------------------------------------------

    async def run(
        self,
        prefix: str | None = None,
        roots: Sequence[str | RootRequest] | None = None,
    ) -> AnalysisReport:
        """Analyze the packages matching *prefix*, or the explicit *roots*.

        Raises:
            NoPackagesFoundError: The prefix matched nothing.
            ServerUnreachableError: The registry is down and the cache has
                nothing for the prefix.
            ValueError: Neither *prefix* nor *roots* was given.
        """
        if roots is None and prefix is None:
            raise ValueError("either prefix or roots is required")

        registry = self._registry
        fell_back = False
        previous_mode = isinstance(registry, CachedRegistry) and registry.cache_only
        try:
            if roots is None:
                assert prefix is not None
                roots, fell_back = await self._discover(prefix)
            return await self._analyze(list(roots), OFFLINE_WARNING if fell_back else None)
        finally:
            if isinstance(registry, CachedRegistry):
                registry.cache_only = previous_mode

    async def _discover(self, prefix: str) -> tuple[list[str], bool]:
        """Search roots by prefix, falling back to the cache when offline."""
        registry = self._registry
        try:
            ids = await registry.search_by_prefix(prefix)
        except RegistryUnavailableError as exc:
            if not isinstance(registry, CachedRegistry) or registry.cache_only:
                raise ServerUnreachableError(
                    f'Server unreachable and no cached data for "{prefix}"'
                ) from exc
            logger.warning("Registry unreachable (%s); using cached data", exc)
            registry.cache_only = True
            ids = await registry.search_by_prefix(prefix)
            if not ids:
                raise ServerUnreachableError(
                    f'Server unreachable and no cached data for "{prefix}"'
                ) from exc
            return ids, True

        if not ids:
            raise NoPackagesFoundError(f'No packages found matching "{prefix}"')
        logger.info("Found %d package(s) matching %r", len(ids), prefix)
        return ids, False

    async def _analyze(
        self, roots: list[str | RootRequest], warning: str | None
    ) -> AnalysisReport:
        settings = self._settings
        loader = DependencyTreeLoader(
            self._registry,
            self._cache,
            internal_mask=settings.internal_mask,
            dev_version_filter=settings.dev_version_filter,
            concurrency=settings.concurrency,
            on_progress=self._on_progress,
        )
        tree = await loader.load(roots)
        logger.info("Loaded %d unique package(s)", len(unique_packages(tree)))

        analyzer = MigrationAnalyzer(self._registry, on_progress=self._on_progress)
        analyzed = await analyzer.analyze(
            tree, settings.target_framework, settings.current_frameworks
        )

        ordered = sort_by_blockers(analyzed)
        order = topological_order(ordered)
        ranked = assign_migration_order(ordered, order)

        return AnalysisReport(
            packages=tuple(ranked),
            migration_order=order.order,
            broken_edges=order.broken_edges,
            version_conflicts=tuple(detect_version_conflicts(ranked)),
            stages=tuple(plan_stages(ranked, settings.dev_version_filter)),
            warning=warning,
            frameworks=settings.frameworks,
        )
