"""Version selection policy for packages without a pinned version."""

from __future__ import annotations

from collections.abc import Sequence

from nugetroadmap.core.tree.models import UNKNOWN_VERSION


def is_prerelease(version: str) -> bool:
    """NuGet/SemVer prerelease versions carry a ``-label`` suffix."""
    return "-" in version


def select_version(versions: Sequence[str], dev_version_filter: str = "") -> str:
    """Choose the version to resolve from a newest-first list.

    Preference order:

    1. The newest prerelease whose text contains *dev_version_filter*
       (case-insensitive), when a filter is given.
    2. The newest stable version.
    3. The newest version of any kind.
    4. ``"unknown"`` if *versions* is empty.
    """
    if dev_version_filter:
        token = dev_version_filter.lower()
        for version in versions:
            if is_prerelease(version) and token in version.lower():
                return version
    for version in versions:
        if not is_prerelease(version):
            return version
    return versions[0] if versions else UNKNOWN_VERSION
