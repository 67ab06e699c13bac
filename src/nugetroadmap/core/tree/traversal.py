"""Helpers for walking a forest of ``PackageNode`` roots."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from nugetroadmap.core.tree.models import PackageNode


def iter_occurrences(roots: Iterable[PackageNode]) -> Iterator[PackageNode]:
    """Yield every node occurrence under *roots*, pre-order."""
    for root in roots:
        yield from root.walk()


def unique_packages(roots: Iterable[PackageNode]) -> dict[str, PackageNode]:
    """Map each package key to its representative occurrence.

    The expanded occurrence (neither a stub nor cyclic) is preferred, so the
    returned node carries the package's real dependency list. A package
    only ever seen as a stub maps to its first stub.
    """
    packages: dict[str, PackageNode] = {}
    for node in iter_occurrences(roots):
        current = packages.get(node.key)
        if current is None or (node.is_expanded and not current.is_expanded):
            packages[node.key] = node
    return packages
