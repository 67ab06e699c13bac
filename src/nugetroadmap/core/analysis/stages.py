"""Roadmap stage planning for root packages.

Groups root packages into stages so that every root is placed after all
other roots it depends on, directly or transitively. Roots inside a stage
can be migrated in parallel.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from nugetroadmap.core.compatibility import FrameworkCompatibility
from nugetroadmap.core.tree import (
    UNKNOWN_VERSION,
    PackageNode,
    PackageStatus,
    PerFrameworkVersion,
    select_version,
    unique_packages,
)


@dataclass(frozen=True)
class DependencyInfo:
    """A direct dependency as shown under a root package."""

    id: str
    version: str
    latest_version: str
    status: PackageStatus
    target_frameworks: tuple[str, ...]
    is_cyclic: bool = False
    framework_compatibility: tuple[FrameworkCompatibility, ...] | None = None
    per_framework_versions: tuple[PerFrameworkVersion, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "latestVersion": self.latest_version,
            "status": self.status.value,
            "targetFrameworks": list(self.target_frameworks),
            "isCyclic": self.is_cyclic,
        }


@dataclass(frozen=True)
class RootPackageView:
    """A root package with its direct dependencies split by origin."""

    id: str
    version: str
    latest_version: str
    target_frameworks: tuple[str, ...]
    status: PackageStatus
    blocker_count: int
    internal_dependencies: tuple[DependencyInfo, ...]
    external_dependencies: tuple[DependencyInfo, ...]
    framework_compatibility: tuple[FrameworkCompatibility, ...] | None = None
    per_framework_versions: tuple[PerFrameworkVersion, ...] | None = None

    @property
    def dependency_count(self) -> int:
        return len(self.internal_dependencies) + len(self.external_dependencies)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "version": self.version,
            "latestVersion": self.latest_version,
            "targetFrameworks": list(self.target_frameworks),
            "status": self.status.value,
            "blockerCount": self.blocker_count,
            "internalDependencies": [d.to_dict() for d in self.internal_dependencies],
            "externalDependencies": [d.to_dict() for d in self.external_dependencies],
        }
        if self.per_framework_versions is not None:
            data["perFrameworkVersions"] = [
                {"framework": p.framework, "version": p.version}
                for p in self.per_framework_versions
            ]
        return data


@dataclass(frozen=True)
class MigrationStage:
    """One batch of roots, numbered from 1.

    ``circular`` marks the final catch-all stage holding roots whose
    root-level dependencies form a cycle.
    """

    stage: int
    packages: tuple[RootPackageView, ...]
    circular: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "circular": self.circular,
            "packages": [p.to_dict() for p in self.packages],
        }


def _latest_version(node: PackageNode, dev_version_filter: str) -> str:
    latest = select_version(node.available_versions, dev_version_filter)
    return node.version if latest == UNKNOWN_VERSION else latest


def _dependency_info(node: PackageNode, dev_version_filter: str) -> DependencyInfo:
    return DependencyInfo(
        id=node.id,
        version=node.version,
        latest_version=_latest_version(node, dev_version_filter),
        status=node.status,
        target_frameworks=node.target_frameworks,
        is_cyclic=node.is_cyclic,
        framework_compatibility=node.framework_compatibility,
        per_framework_versions=node.per_framework_versions,
    )


def build_root_view(node: PackageNode, dev_version_filter: str = "") -> RootPackageView:
    """Project a root node into its roadmap view."""
    by_order = sorted(node.dependencies, key=lambda d: d.migration_order)
    return RootPackageView(
        id=node.id,
        version=node.version,
        latest_version=_latest_version(node, dev_version_filter),
        target_frameworks=node.target_frameworks,
        status=node.status,
        blocker_count=node.blocker_count,
        internal_dependencies=tuple(
            _dependency_info(d, dev_version_filter) for d in by_order if d.is_internal
        ),
        external_dependencies=tuple(
            _dependency_info(d, dev_version_filter) for d in by_order if not d.is_internal
        ),
        framework_compatibility=node.framework_compatibility,
        per_framework_versions=node.per_framework_versions,
    )


def _root_dependencies(
    root: PackageNode,
    packages: dict[str, PackageNode],
    root_keys: set[str],
) -> set[str]:
    """Keys of other roots reachable from *root*.

    Each package's subtree is walked once, through its expanded occurrence.
    """
    found: set[str] = set()
    seen: set[str] = {root.key}
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.dependencies:
            if child.key in root_keys:
                found.add(child.key)
            if child.key in seen:
                continue
            seen.add(child.key)
            stack.append(packages.get(child.key, child))
    found.discard(root.key)
    return found


def _batch_key(view: RootPackageView) -> tuple[bool, int]:
    return (view.status is PackageStatus.SPLIT, view.dependency_count)


def plan_stages(
    roots: Sequence[PackageNode],
    dev_version_filter: str = "",
) -> list[MigrationStage]:
    """Group *roots* into dependency-respecting stages (Kahn's algorithm).

    Each stage holds every remaining root whose root-level prerequisites are
    already placed, non-split and simpler packages first. If no root
    qualifies, all remaining roots form one final circular stage.
    """
    packages = unique_packages(roots)
    # A root loaded after another root already expanded it is only a stub.
    expanded = [packages.get(root.key, root) for root in roots]
    root_keys = {root.key for root in roots}

    views = {node.key: build_root_view(node, dev_version_filter) for node in expanded}
    prerequisites = {
        node.key: _root_dependencies(node, packages, root_keys) for node in expanded
    }

    stages: list[MigrationStage] = []
    placed: set[str] = set()
    remaining = [node.key for node in expanded]
    while remaining:
        ready = [key for key in remaining if prerequisites[key] <= placed]
        circular = not ready
        batch = remaining if circular else ready
        stages.append(MigrationStage(
            stage=len(stages) + 1,
            packages=tuple(sorted((views[key] for key in batch), key=_batch_key)),
            circular=circular,
        ))
        placed.update(batch)
        remaining = [key for key in remaining if key not in placed]
    return stages
