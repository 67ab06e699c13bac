"""Dependency tree model and concurrent loader.

Public API::

    from nugetroadmap.core.tree import DependencyTreeLoader, PackageNode

    loader = DependencyTreeLoader(registry, cache, concurrency=6)
    roots = await loader.load(["Contoso.Core", "Contoso.Web"])
"""

from nugetroadmap.core.tree.loader import (
    MIGRATION_CACHE_PREFIX,
    DependencyTreeLoader,
    RootRequest,
)
from nugetroadmap.core.tree.masks import InternalMask
from nugetroadmap.core.tree.models import (
    MAX_AVAILABLE_VERSIONS,
    UNKNOWN_VERSION,
    LoadProgress,
    PackageNode,
    PackageStatus,
    PerFrameworkVersion,
    VersionConflict,
    VersionRequest,
)
from nugetroadmap.core.tree.traversal import iter_occurrences, unique_packages
from nugetroadmap.core.tree.versions import is_prerelease, select_version

__all__ = [
    "MAX_AVAILABLE_VERSIONS",
    "MIGRATION_CACHE_PREFIX",
    "UNKNOWN_VERSION",
    "DependencyTreeLoader",
    "InternalMask",
    "LoadProgress",
    "PackageNode",
    "PackageStatus",
    "PerFrameworkVersion",
    "RootRequest",
    "VersionConflict",
    "VersionRequest",
    "is_prerelease",
    "iter_occurrences",
    "select_version",
    "unique_packages",
]
