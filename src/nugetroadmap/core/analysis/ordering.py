"""Migration order and diamond-dependency conflict detection.

The migration order is a depth-first post-order over the unique packages
of the tree: every package appears after all of its dependencies. Cycles
are tolerated. A back edge to a package still on the DFS stack is skipped
and recorded in ``MigrationOrder.broken_edges``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace

from nugetroadmap.core.tree import (
    PackageNode,
    VersionConflict,
    VersionRequest,
    iter_occurrences,
    unique_packages,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationOrder:
    """Result of ``topological_order``.

    Attributes:
        order: Package ids, dependencies first.
        broken_edges: ``(parent_id, child_id)`` edges skipped to break cycles.
    """

    order: tuple[str, ...]
    broken_edges: tuple[tuple[str, str], ...] = ()

    def rank_of(self) -> dict[str, int]:
        """Map lowercase package id to its 1-based rank."""
        return {pkg_id.lower(): i + 1 for i, pkg_id in enumerate(self.order)}


def topological_order(roots: Sequence[PackageNode]) -> MigrationOrder:
    """Order every unique package so dependencies come before dependents."""
    packages = unique_packages(roots)
    order: list[str] = []
    broken: list[tuple[str, str]] = []
    visited: set[str] = set()
    visiting: set[str] = set()

    def visit(node: PackageNode) -> None:
        visiting.add(node.key)
        for child in node.dependencies:
            if child.key in visited:
                continue
            if child.key in visiting:
                logger.debug("Breaking cycle edge %s -> %s", node.id, child.id)
                broken.append((node.id, child.id))
                continue
            visit(packages.get(child.key, child))
        visiting.discard(node.key)
        visited.add(node.key)
        order.append(node.id)

    for root in roots:
        if root.key not in visited:
            visit(packages.get(root.key, root))
    # Packages only reachable through edges the walk skipped.
    for key, node in packages.items():
        if key not in visited:
            visit(node)

    return MigrationOrder(order=tuple(order), broken_edges=tuple(broken))


def calculate_migration_order(roots: Sequence[PackageNode]) -> list[str]:
    """Package ids in migration order, dependencies first."""
    return list(topological_order(roots).order)


def assign_migration_order(
    roots: Sequence[PackageNode],
    order: MigrationOrder | None = None,
) -> list[PackageNode]:
    """Return a copy of the tree with ``migration_order`` set on every occurrence."""
    ranks = (order or topological_order(roots)).rank_of()

    def assign(node: PackageNode) -> PackageNode:
        return replace(
            node,
            migration_order=ranks.get(node.key, -1),
            dependencies=tuple(assign(child) for child in node.dependencies),
        )

    return [assign(root) for root in roots]


def detect_version_conflicts(roots: Sequence[PackageNode]) -> list[VersionConflict]:
    """Find dependencies requested at two or more distinct versions.

    Every (parent, child) edge counts, including repeated occurrences inside
    shared subtrees. Edges into cycle markers are skipped: their version is a
    placeholder, not a request.
    """
    requests: dict[str, list[VersionRequest]] = {}
    display_ids: dict[str, str] = {}
    for node in iter_occurrences(roots):
        for child in node.dependencies:
            if child.is_cyclic:
                continue
            display_ids.setdefault(child.key, child.id)
            requests.setdefault(child.key, []).append(
                VersionRequest(by=node.id, version=child.version)
            )

    conflicts: list[VersionConflict] = []
    for key, edges in requests.items():
        if len({edge.version for edge in edges}) >= 2:
            conflicts.append(VersionConflict(
                package_id=display_ids[key],
                requested_versions=tuple(edges),
            ))
    return conflicts


def sort_by_blockers(roots: Sequence[PackageNode]) -> list[PackageNode]:
    """Sort roots, and every dependency list below them, by blocker count.

    Heaviest packages come first; ties keep their existing order.
    """
    return [
        replace(node, dependencies=tuple(sort_by_blockers(node.dependencies)))
        for node in sorted(roots, key=lambda node: node.blocker_count, reverse=True)
    ]
