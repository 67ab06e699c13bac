"""Framework compatibility engine.

Classifies whether a package, given the target framework monikers it
declares, can be consumed by a project targeting a given framework.

Rules, in priority order:

1. A package declaring no frameworks is assumed portable and supported.
2. **Direct chain** -- a declared ``net``/``netcoreapp`` moniker matches if
   it has the same family as the target and a version at or below it, or
   if it is ``netcoreapp`` and the target is ``net`` 5 or later (the same
   runtime lineage was renamed at .NET 5). Among direct matches ``net``
   outranks ``netcoreapp`` and higher versions outrank lower ones.
3. **netstandard fallback** -- any declared ``netstandard`` moniker works
   for a ``net``/``netcoreapp`` target of any version. Consulted only when
   no direct match exists.
4. Otherwise the target is unsupported.

Compatibility is forward-only: a ``net9.0``-only package does not run on
``net6.0``.
"""

from __future__ import annotations

from collections.abc import Iterable

from nugetroadmap.core.compatibility.models import (
    FAMILY_NET,
    FAMILY_NETCOREAPP,
    FAMILY_NETSTANDARD,
    CompatibilityMode,
    FrameworkCompatibility,
    FrameworkMoniker,
)
from nugetroadmap.core.compatibility.monikers import parse_moniker

_RUNTIME_FAMILIES: frozenset[str] = frozenset({FAMILY_NET, FAMILY_NETCOREAPP})

# First "net" version that continues the netcoreapp lineage.
_UNIFIED_NET_VERSION: int = 5


def _is_direct_match(declared: FrameworkMoniker, target: FrameworkMoniker) -> bool:
    if declared.family not in _RUNTIME_FAMILIES:
        return False
    if declared.family == target.family and declared.version <= target.version:
        return True
    return (
        declared.family == FAMILY_NETCOREAPP
        and target.family == FAMILY_NET
        and target.version >= _UNIFIED_NET_VERSION
    )


def best_direct_match(
    declared_frameworks: Iterable[str], target_framework: str
) -> FrameworkMoniker | None:
    """Return the highest-precedence declared moniker that directly matches.

    Args:
        declared_frameworks: Monikers declared by the package.
        target_framework: The framework the consumer targets.

    Returns:
        The winning declared moniker, or None if no direct match exists.
    """
    target = parse_moniker(target_framework)
    if target is None:
        return None

    best: FrameworkMoniker | None = None
    for tfm in declared_frameworks:
        declared = parse_moniker(tfm)
        if declared is None or not _is_direct_match(declared, target):
            continue
        if best is None or declared.precedence() > best.precedence():
            best = declared
    return best


def _best_netstandard(
    declared_frameworks: Iterable[str], target_framework: str
) -> FrameworkMoniker | None:
    target = parse_moniker(target_framework)
    if target is None or target.family not in _RUNTIME_FAMILIES:
        return None

    best: FrameworkMoniker | None = None
    for tfm in declared_frameworks:
        declared = parse_moniker(tfm)
        if declared is None or declared.family != FAMILY_NETSTANDARD:
            continue
        if best is None or declared.version > best.version:
            best = declared
    return best


def check_compatibility(
    declared_frameworks: Iterable[str], target_framework: str
) -> FrameworkCompatibility:
    """Classify a package's compatibility with one target framework.

    Args:
        declared_frameworks: Monikers the package declares (may be empty).
        target_framework: The consumer's target framework, e.g. ``net8.0``.

    Returns:
        A ``FrameworkCompatibility`` with the verdict and the mode.
    """
    declared = list(declared_frameworks)
    if not declared:
        return FrameworkCompatibility(
            framework=target_framework,
            supported=True,
            compatibility_mode=CompatibilityMode.PORTABLE,
        )

    direct = best_direct_match(declared, target_framework)
    if direct is not None:
        return FrameworkCompatibility(
            framework=target_framework,
            supported=True,
            compatibility_mode=CompatibilityMode.DIRECT,
            matched_framework=direct.raw,
        )

    standard = _best_netstandard(declared, target_framework)
    if standard is not None:
        return FrameworkCompatibility(
            framework=target_framework,
            supported=True,
            compatibility_mode=CompatibilityMode.NETSTANDARD,
            matched_framework=standard.raw,
        )

    return FrameworkCompatibility(
        framework=target_framework,
        supported=False,
        compatibility_mode=CompatibilityMode.NONE,
    )


def check_all(
    declared_frameworks: Iterable[str], target_frameworks: Iterable[str]
) -> list[FrameworkCompatibility]:
    """Run ``check_compatibility`` for each target, preserving order."""
    declared = list(declared_frameworks)
    return [check_compatibility(declared, tfm) for tfm in target_frameworks]


def is_framework_supported(
    declared_frameworks: Iterable[str], target_framework: str
) -> bool:
    """Shorthand for ``check_compatibility(...).supported``."""
    return check_compatibility(declared_frameworks, target_framework).supported
