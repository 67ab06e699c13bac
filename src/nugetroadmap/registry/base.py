"""Base classes and data models for package registry access.

Defines the ``RegistryClient`` abstract base class that concrete clients
(the NuGet V3 adapter, the caching wrapper, test doubles) implement, along
with the ``PackageDetails`` / ``DependencyGroup`` / ``Dependency`` models
describing a package version's declared dependencies.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Prefix search pagination.
SEARCH_PAGE_SIZE: int = 100
SEARCH_MAX_SKIP: int = 1000


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dependency:
    """A declared dependency on another package.

    Attributes:
        id: Package id of the dependency.
        range: Version range as declared (e.g. ``[1.0.0, )``), if any.
    """

    id: str
    range: str | None = None


@dataclass(frozen=True)
class DependencyGroup:
    """Dependencies declared for one target framework.

    Attributes:
        target_framework: The group's TFM, or None for framework-agnostic groups.
        dependencies: Dependencies in declaration order.
    """

    target_framework: str | None = None
    dependencies: tuple[Dependency, ...] = ()


@dataclass(frozen=True)
class PackageDetails:
    """Metadata for one package version.

    Attributes:
        id: Package id as reported by the registry.
        version: The version described.
        description: Free-text description, if provided.
        dependency_groups: Per-framework dependency groups.
    """

    id: str
    version: str
    description: str | None = None
    dependency_groups: tuple[DependencyGroup, ...] = field(default_factory=tuple)

    @property
    def target_frameworks(self) -> list[str]:
        """Distinct non-empty group frameworks, in declaration order."""
        seen: set[str] = set()
        out: list[str] = []
        for group in self.dependency_groups:
            tfm = group.target_framework
            if tfm and tfm not in seen:
                seen.add(tfm)
                out.append(tfm)
        return out

    def flatten_dependencies(self) -> list[Dependency]:
        """Merge all groups into one list, unique by id (first occurrence wins)."""
        seen: set[str] = set()
        out: list[Dependency] = []
        for group in self.dependency_groups:
            for dep in group.dependencies:
                key = dep.id.lower()
                if key not in seen:
                    seen.add(key)
                    out.append(dep)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "description": self.description,
            "dependencyGroups": [
                {
                    "targetFramework": g.target_framework,
                    "dependencies": [
                        {"id": d.id, "range": d.range} for d in g.dependencies
                    ],
                }
                for g in self.dependency_groups
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PackageDetails:
        """Rebuild details from ``to_dict`` output.

        Raises:
            ValueError: If *data* does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ValueError("package details must be an object")
        pkg_id = data.get("id")
        version = data.get("version")
        if not isinstance(pkg_id, str) or not isinstance(version, str):
            raise ValueError("package details need string 'id' and 'version'")
        groups_raw = data.get("dependencyGroups") or []
        if not isinstance(groups_raw, list):
            raise ValueError("'dependencyGroups' must be a list")

        groups: list[DependencyGroup] = []
        for g in groups_raw:
            if not isinstance(g, dict):
                raise ValueError("dependency group must be an object")
            deps_raw = g.get("dependencies") or []
            if not isinstance(deps_raw, list):
                raise ValueError("'dependencies' must be a list")
            deps = []
            for d in deps_raw:
                if not isinstance(d, dict) or not isinstance(d.get("id"), str):
                    raise ValueError("dependency needs a string 'id'")
                deps.append(Dependency(id=d["id"], range=d.get("range")))
            tfm = g.get("targetFramework")
            groups.append(DependencyGroup(
                target_framework=tfm if isinstance(tfm, str) else None,
                dependencies=tuple(deps),
            ))

        description = data.get("description")
        return cls(
            id=pkg_id,
            version=version,
            description=description if isinstance(description, str) else None,
            dependency_groups=tuple(groups),
        )


# ---------------------------------------------------------------------------
# Abstract base client
# ---------------------------------------------------------------------------


class RegistryClient(ABC):
    """Abstract base class for package registries.

    Subclasses implement ``list_versions``, ``get_details`` and
    ``search_page``. ``search_by_prefix`` is built on ``search_page``.

    Failures are reported with ``PackageNotFoundError`` (no such package or
    version) or ``RegistryUnavailableError`` (anything network-related).
    """

    @property
    @abstractmethod
    def registry_name(self) -> str:
        """Human-readable name of this registry."""

    @abstractmethod
    async def list_versions(self, package_id: str) -> list[str]:
        """Return every published version, newest first."""

    @abstractmethod
    async def get_details(self, package_id: str, version: str) -> PackageDetails:
        """Return metadata, including dependency groups, for one version."""

    @abstractmethod
    async def search_page(self, query: str, *, skip: int, take: int) -> list[str]:
        """Return one page of package ids matching *query*."""

    async def search_by_prefix(self, prefix: str) -> list[str]:
        """Return every package id starting with *prefix* (case-insensitive).

        Walks result pages until a short page is returned or the skip
        limit is reached. Ids are deduplicated, first occurrence wins.

        Args:
            prefix: Package id prefix, e.g. ``Contoso.``.

        Returns:
            Matching package ids in registry order.
        """
        normalized = prefix.lower()
        results: list[str] = []
        seen: set[str] = set()
        skip = 0

        while True:
            page = await self.search_page(prefix, skip=skip, take=SEARCH_PAGE_SIZE)
            for package_id in page:
                key = package_id.lower()
                if key.startswith(normalized) and key not in seen:
                    seen.add(key)
                    results.append(package_id)
            if len(page) < SEARCH_PAGE_SIZE:
                break
            skip += SEARCH_PAGE_SIZE
            if skip > SEARCH_MAX_SKIP:
                logger.warning(
                    "Prefix search for %r truncated after %d results", prefix, skip
                )
                break

        return results

    async def aclose(self) -> None:
        """Release any network resources. The default does nothing."""
