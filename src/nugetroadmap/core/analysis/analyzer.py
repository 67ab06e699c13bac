"""Migration analyzer.

Annotates a loaded dependency tree with migration status. The pass is
bottom-up: every package's dependencies are analyzed before the package
itself, because a parent's ``PARTIAL`` status and ``blocker_count`` depend
on the final status of its direct children.

Each package is analyzed once. Shared-reference stubs reuse the verdict of
the package's expanded occurrence, wherever that occurrence sits in the
tree. The input tree is not modified; a new annotated tree is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace

from nugetroadmap.core.compatibility import FrameworkCompatibility, check_all
from nugetroadmap.core.tree import (
    LoadProgress,
    PackageNode,
    PackageStatus,
    PerFrameworkVersion,
    unique_packages,
)
from nugetroadmap.exceptions import RegistryError
from nugetroadmap.registry.base import RegistryClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[LoadProgress], None]


def classify(
    compatibility: Sequence[FrameworkCompatibility],
    children: Iterable[PackageNode],
    *,
    is_cyclic: bool = False,
) -> PackageStatus:
    """Status of a package from its verdicts and analyzed children.

    Mixed support is reported as ``BLOCKED`` here; the analyzer upgrades it
    to ``SPLIT`` when a per-framework resolution succeeds.
    """
    if is_cyclic:
        return PackageStatus.BLOCKED
    supported = [c.supported for c in compatibility]
    if not any(supported):
        return PackageStatus.BLOCKED
    if all(supported):
        if any(child.status is PackageStatus.BLOCKED for child in children):
            return PackageStatus.PARTIAL
        return PackageStatus.READY
    return PackageStatus.BLOCKED


class MigrationAnalyzer:
    """Compute status, blocker counts and split versions for a tree.

    Args:
        registry: Used to fetch details of candidate versions during split
            resolution. Without one, mixed support is always ``BLOCKED``.
        on_progress: Called with ``phase="analyzing"`` progress snapshots.
    """

    def __init__(
        self,
        registry: RegistryClient | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._registry = registry
        self._on_progress = on_progress

    async def analyze(
        self,
        roots: Sequence[PackageNode],
        target_framework: str,
        current_frameworks: Iterable[str] = (),
    ) -> list[PackageNode]:
        """Analyze *roots* against the target plus every current framework.

        Args:
            roots: Trees produced by ``DependencyTreeLoader.load``.
            target_framework: The framework being migrated to.
            current_frameworks: Frameworks that must stay supported. More
                than one framework in total enables split resolution.

        Returns:
            New root nodes, in the same order, with every occurrence annotated.
        """
        frameworks = [target_framework]
        for tfm in current_frameworks:
            if tfm not in frameworks:
                frameworks.append(tfm)
        run = _AnalysisRun(self, roots, frameworks)
        return [await run.analyze_node(root) for root in roots]


class _AnalysisRun:
    """State for one ``MigrationAnalyzer.analyze`` call."""

    def __init__(
        self,
        analyzer: MigrationAnalyzer,
        roots: Sequence[PackageNode],
        frameworks: list[str],
    ) -> None:
        self._registry = analyzer._registry
        self._on_progress = analyzer._on_progress
        self._frameworks = frameworks
        self._packages = unique_packages(roots)
        self._analyzed: dict[str, PackageNode] = {}
        self._analyzing: set[str] = set()
        # (package key, version) -> declared frameworks, or None if unavailable
        self._candidate_frameworks: dict[tuple[str, str], tuple[str, ...] | None] = {}

    @property
    def multi_framework(self) -> bool:
        return len(self._frameworks) > 1

    def _report(self) -> None:
        if self._on_progress is not None:
            self._on_progress(LoadProgress(
                current=len(self._analyzed),
                total=len(self._packages),
                phase="analyzing",
            ))

    async def analyze_node(self, node: PackageNode) -> PackageNode:
        if node.is_cyclic:
            compat = tuple(check_all(node.target_frameworks, self._frameworks))
            return replace(
                node,
                status=PackageStatus.BLOCKED,
                blocker_count=0,
                framework_compatibility=compat,
            )

        if node.is_shared_reference:
            full = self._packages.get(node.key)
            if full is not None and full.is_expanded and node.key not in self._analyzing:
                analyzed = await self.analyze_node(full)
                return analyzed.as_shared_reference(node.depth)
            # No expanded occurrence to borrow from: judge the stub alone.
            compat = tuple(check_all(node.target_frameworks, self._frameworks))
            return replace(
                node,
                status=classify(compat, ()),
                blocker_count=0,
                framework_compatibility=compat,
            )

        done = self._analyzed.get(node.key)
        if done is not None:
            return replace(done, depth=node.depth)

        self._analyzing.add(node.key)
        try:
            children = [await self.analyze_node(child) for child in node.dependencies]
        finally:
            self._analyzing.discard(node.key)

        compat = tuple(check_all(node.target_frameworks, self._frameworks))
        status = classify(compat, children)
        per_framework: tuple[PerFrameworkVersion, ...] | None = None

        supported = [c.supported for c in compat]
        if self.multi_framework and any(supported) and not all(supported):
            per_framework = await self._resolve_split(node, compat)
            if per_framework is not None:
                status = PackageStatus.SPLIT
            else:
                logger.debug("No split resolution for %s", node.id)

        result = replace(
            node,
            dependencies=tuple(children),
            status=status,
            blocker_count=sum(1 for c in children if c.status is PackageStatus.BLOCKED),
            framework_compatibility=compat,
            per_framework_versions=per_framework,
        )
        self._analyzed[node.key] = result
        self._report()
        return result

    # -- split resolution ---------------------------------------------------

    async def _resolve_split(
        self,
        node: PackageNode,
        compatibility: Sequence[FrameworkCompatibility],
    ) -> tuple[PerFrameworkVersion, ...] | None:
        """Pick a version per framework, or None if any framework has none."""
        versions: list[PerFrameworkVersion] = []
        for verdict in compatibility:
            if verdict.supported:
                versions.append(PerFrameworkVersion(verdict.framework, node.version))
                continue
            candidate = await self._find_version_for(node, verdict.framework)
            if candidate is None:
                return None
            versions.append(PerFrameworkVersion(verdict.framework, candidate))
        return tuple(versions)

    async def _find_version_for(self, node: PackageNode, framework: str) -> str | None:
        """Newest available version of *node* that supports *framework*."""
        if self._registry is None:
            return None
        for version in node.available_versions:
            if version == node.version:
                continue
            declared = await self._frameworks_of(node, version)
            if declared is None:
                continue
            verdicts = check_all(declared, [framework])
            if verdicts[0].supported:
                logger.debug("Split: %s@%s supports %s", node.id, version, framework)
                return version
        return None

    async def _frameworks_of(self, node: PackageNode, version: str) -> tuple[str, ...] | None:
        cache_key = (node.key, version)
        if cache_key in self._candidate_frameworks:
            return self._candidate_frameworks[cache_key]
        assert self._registry is not None
        declared: tuple[str, ...] | None
        try:
            details = await self._registry.get_details(node.id, version)
            declared = tuple(details.target_frameworks)
        except RegistryError as exc:
            logger.warning("Failed to get details for %s@%s: %s", node.id, version, exc)
            declared = None
        self._candidate_frameworks[cache_key] = declared
        return declared
