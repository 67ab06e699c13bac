"""Package registry access for dependency-tree resolution.

Provides the abstract ``RegistryClient`` contract, a cache-backed wrapper
with an offline (cache-only) mode, and a NuGet V3 client.

Public API::

    from nugetroadmap.registry import RegistryClient, PackageDetails, CachedRegistry
    from nugetroadmap.registry.nuget import NuGetClient
"""

from __future__ import annotations

from nugetroadmap.registry.base import (
    Dependency,
    DependencyGroup,
    PackageDetails,
    RegistryClient,
)
from nugetroadmap.registry.cached import CachedRegistry

__all__ = [
    "CachedRegistry",
    "Dependency",
    "DependencyGroup",
    "PackageDetails",
    "RegistryClient",
]
