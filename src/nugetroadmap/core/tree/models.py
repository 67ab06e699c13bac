"""Dependency tree data models.

- ``PackageStatus`` -- migration readiness of one package.
- ``PackageNode`` -- one occurrence of a package in the dependency tree.
- ``PerFrameworkVersion`` -- version recommendation for a split package.
- ``VersionConflict`` / ``VersionRequest`` -- diamond-dependency conflicts.
- ``LoadProgress`` -- incremental progress of a loading or analysis run.

Nodes are frozen. The tree is owned top-down: a parent exclusively owns
its ``dependencies`` tuple, and a package that appears more than once is
expanded only at one occurrence. Every other occurrence is a
shared-reference stub, i.e. a value copy with no dependencies.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from nugetroadmap.core.compatibility import FrameworkCompatibility

# Stored versions per node, newest first.
MAX_AVAILABLE_VERSIONS: int = 10

UNKNOWN_VERSION: str = "unknown"


class PackageStatus(str, Enum):
    """Migration readiness of a package relative to the selected frameworks.

    - **READY**: supports every framework and no direct dependency is blocked.
    - **PARTIAL**: supports every framework but a direct dependency is blocked.
    - **BLOCKED**: unsupported (or cyclic) and cannot be resolved.
    - **SPLIT**: needs a different version per framework.
    """

    READY = "ready"
    PARTIAL = "partial"
    BLOCKED = "blocked"
    SPLIT = "split"


@dataclass(frozen=True)
class PerFrameworkVersion:
    """The version to use for one framework of a split package."""

    framework: str
    version: str


@dataclass(frozen=True)
class PackageNode:
    """One occurrence of a package in the dependency tree.

    Attributes:
        id: Registry package id (identity is case-insensitive, see ``key``).
        version: Resolved version for this occurrence.
        available_versions: Known versions, newest first, at most
            ``MAX_AVAILABLE_VERSIONS``.
        is_internal: True if the id matches the internal-package mask.
        depth: Distance from the root on this occurrence's path (0 = root).
        target_frameworks: Frameworks declared by the resolved version.
        dependencies: Direct dependencies, unique by id, in declaration order.
        status: Migration status; ``READY`` until analyzed.
        blocker_count: Direct dependencies whose status is ``BLOCKED``.
        migration_order: 1-based topological rank, -1 if unassigned.
        is_cyclic: This occurrence closes a cycle back to an ancestor.
        is_shared_reference: This occurrence reuses an already-loaded node.
        framework_compatibility: Per-framework verdicts, once analyzed.
        per_framework_versions: Per-framework versions when status is ``SPLIT``.
    """

    id: str
    version: str
    available_versions: tuple[str, ...] = ()
    is_internal: bool = False
    depth: int = 0
    target_frameworks: tuple[str, ...] = ()
    dependencies: tuple[PackageNode, ...] = field(default=(), repr=False)
    status: PackageStatus = PackageStatus.READY
    blocker_count: int = 0
    migration_order: int = -1
    is_cyclic: bool = False
    is_shared_reference: bool = False
    framework_compatibility: tuple[FrameworkCompatibility, ...] | None = None
    per_framework_versions: tuple[PerFrameworkVersion, ...] | None = None

    @property
    def key(self) -> str:
        """Case-insensitive identity key."""
        return self.id.lower()

    @property
    def is_expanded(self) -> bool:
        """True for the single occurrence that owns this package's subtree."""
        return not (self.is_shared_reference or self.is_cyclic)

    def as_shared_reference(self, depth: int) -> PackageNode:
        """Return a stub copy for another occurrence at *depth*."""
        return replace(self, depth=depth, dependencies=(), is_shared_reference=True)

    def walk(self) -> Iterator[PackageNode]:
        """Yield this node and every descendant occurrence, pre-order."""
        stack: list[PackageNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.dependencies))

    def to_dict(self) -> dict[str, Any]:
        """Serialize the subtree to JSON-friendly camelCase keys."""
        data: dict[str, Any] = {
            "id": self.id,
            "version": self.version,
            "availableVersions": list(self.available_versions),
            "isInternal": self.is_internal,
            "depth": self.depth,
            "targetFrameworks": list(self.target_frameworks),
            "status": self.status.value,
            "blockerCount": self.blocker_count,
            "migrationOrder": self.migration_order,
            "isCyclic": self.is_cyclic,
            "isSharedReference": self.is_shared_reference,
            "dependencies": [d.to_dict() for d in self.dependencies],
        }
        if self.framework_compatibility is not None:
            data["frameworkCompatibility"] = [
                c.to_dict() for c in self.framework_compatibility
            ]
        if self.per_framework_versions is not None:
            data["perFrameworkVersions"] = [
                {"framework": p.framework, "version": p.version}
                for p in self.per_framework_versions
            ]
        return data


@dataclass(frozen=True)
class VersionRequest:
    """One edge's request for a dependency version."""

    by: str
    version: str


@dataclass(frozen=True)
class VersionConflict:
    """A package requested at two or more distinct versions across the tree.

    Attributes:
        package_id: The dependency's id (as first seen).
        requested_versions: Every (requesting package, version) edge.
    """

    package_id: str
    requested_versions: tuple[VersionRequest, ...]

    @property
    def distinct_versions(self) -> list[str]:
        seen: list[str] = []
        for req in self.requested_versions:
            if req.version not in seen:
                seen.append(req.version)
        return seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "packageId": self.package_id,
            "requestedVersions": [
                {"by": r.by, "version": r.version} for r in self.requested_versions
            ],
        }


@dataclass(frozen=True)
class LoadProgress:
    """Snapshot of a running load or analysis.

    ``total`` grows during loading as new dependencies are discovered.
    """

    current: int
    total: int
    active_packages: tuple[str, ...] = ()
    concurrency: int = 0
    phase: str = "loading"
