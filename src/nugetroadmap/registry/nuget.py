"""NuGet V3 registry client.

Maps the three registry capabilities onto NuGet V3 resources discovered
from the service index:

- ``SearchQueryService`` -- paged package search.
- ``PackageBaseAddress`` -- the flat container listing every version.
- ``RegistrationsBaseUrl`` -- per-version registration leaves whose
  ``catalogEntry`` carries the dependency groups.

Usage::

    async with NuGetClient("https://api.nuget.org/v3/index.json") as client:
        versions = await client.list_versions("Newtonsoft.Json")
        details = await client.get_details("Newtonsoft.Json", versions[0])
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from nugetroadmap.config import DEFAULT_SERVER_URL
from nugetroadmap.exceptions import PackageNotFoundError, RegistryUnavailableError
from nugetroadmap.registry.base import (
    Dependency,
    DependencyGroup,
    PackageDetails,
    RegistryClient,
)
from nugetroadmap.registry.http_client import DEFAULT_TIMEOUT, create_client, fetch_json

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SEARCH_RESOURCE: str = "SearchQueryService"
REGISTRATION_RESOURCE: str = "RegistrationsBaseUrl"
PACKAGE_BASE_RESOURCE: str = "PackageBaseAddress"


# ---------------------------------------------------------------------------
# NuGet client
# ---------------------------------------------------------------------------


class NuGetClient(RegistryClient):
    """Client for a NuGet V3 feed (nuget.org, Azure Artifacts, BaGet, ...).

    Args:
        service_index_url: URL of the feed's ``index.json``.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport override.
    """

    def __init__(
        self,
        service_index_url: str = DEFAULT_SERVER_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._index_url = service_index_url
        self._client = create_client(timeout=timeout, transport=transport)
        self._services: dict[str, str] | None = None
        self._discovery: asyncio.Future[dict[str, str]] | None = None

    @property
    def registry_name(self) -> str:
        return f"NuGet ({self._index_url})"

    async def __aenter__(self) -> NuGetClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- service discovery --------------------------------------------------

    async def _service(self, resource: str) -> str:
        """Return the base URL of *resource*, discovering services on first use."""
        if self._services is None:
            # Concurrent first calls share one index fetch.
            if self._discovery is None:
                self._discovery = asyncio.ensure_future(self._discover_services())
            discovery = self._discovery
            try:
                self._services = await asyncio.shield(discovery)
            finally:
                if discovery.done() and self._discovery is discovery:
                    self._discovery = None
        url = self._services.get(resource)
        if not url:
            raise RegistryUnavailableError(
                f"Service index {self._index_url} has no {resource} resource"
            )
        return url

    async def _discover_services(self) -> dict[str, str]:
        try:
            index = await fetch_json(self._client, self._index_url)
        except PackageNotFoundError as exc:
            raise RegistryUnavailableError(
                f"No service index at {self._index_url}"
            ) from exc

        resources = index.get("resources") if isinstance(index, dict) else None
        if not isinstance(resources, list):
            raise RegistryUnavailableError(
                f"Invalid service index at {self._index_url}: no resources array"
            )

        services: dict[str, str] = {}
        for resource in resources:
            if not isinstance(resource, dict):
                continue
            rtype = str(resource.get("@type", ""))
            rid = resource.get("@id")
            if not isinstance(rid, str):
                continue
            for name in (SEARCH_RESOURCE, REGISTRATION_RESOURCE, PACKAGE_BASE_RESOURCE):
                if name not in rtype or name in services:
                    continue
                # Base addresses are joined with "<id>/..." paths.
                if name != SEARCH_RESOURCE and not rid.endswith("/"):
                    rid += "/"
                services[name] = rid
                break
        logger.debug("Discovered NuGet services: %s", services)
        return services

    # -- RegistryClient -----------------------------------------------------

    async def search_page(self, query: str, *, skip: int, take: int) -> list[str]:
        url = await self._service(SEARCH_RESOURCE)
        params = {
            "q": query,
            "skip": str(skip),
            "take": str(take),
            "prerelease": "false",
            "semVerLevel": "2.0.0",
        }
        data = await fetch_json(self._client, url, params=params)
        items = data.get("data", []) if isinstance(data, dict) else []
        return [
            str(item["id"])
            for item in items
            if isinstance(item, dict) and item.get("id")
        ]

    async def list_versions(self, package_id: str) -> list[str]:
        base = await self._service(PACKAGE_BASE_RESOURCE)
        data = await fetch_json(self._client, f"{base}{package_id.lower()}/index.json")
        versions = data.get("versions", []) if isinstance(data, dict) else []
        # The flat container lists oldest first.
        return [str(v) for v in reversed(versions)]

    async def get_details(self, package_id: str, version: str) -> PackageDetails:
        base = await self._service(REGISTRATION_RESOURCE)
        leaf_url = f"{base}{package_id.lower()}/{version.lower()}.json"
        leaf = await fetch_json(self._client, leaf_url)

        entry: Any = leaf.get("catalogEntry", leaf) if isinstance(leaf, dict) else None
        if isinstance(entry, str):
            entry = await fetch_json(self._client, entry)
        if not isinstance(entry, dict):
            raise PackageNotFoundError(f"Package {package_id} version {version} not found")

        description = entry.get("description")
        return PackageDetails(
            id=str(entry.get("id") or package_id),
            version=str(entry.get("version") or version),
            description=description if isinstance(description, str) else None,
            dependency_groups=normalize_dependency_groups(entry.get("dependencyGroups")),
        )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _first(mapping: dict[str, Any], *names: str) -> Any:
    for name in names:
        value = mapping.get(name)
        if value is not None:
            return value
    return None


def normalize_dependency_groups(raw: Any) -> tuple[DependencyGroup, ...]:
    """Normalize dependency groups from the various server dialects.

    nuget.org, ProGet, Azure DevOps, BaGet and GitLab disagree on property
    names for the group framework, the dependency id and the version range.
    Dependencies without an id are dropped.
    """
    if not isinstance(raw, list):
        return ()

    groups: list[DependencyGroup] = []
    for group in raw:
        if not isinstance(group, dict):
            continue
        tfm = _first(group, "targetFramework", "targetFrameWork", "framework")
        deps: list[Dependency] = []
        for dep in group.get("dependencies") or []:
            if not isinstance(dep, dict):
                continue
            dep_id = _first(dep, "id", "Id", "name", "packageId")
            if not dep_id:
                continue
            dep_range = _first(dep, "range", "Range", "versionRange", "version")
            deps.append(Dependency(
                id=str(dep_id),
                range=str(dep_range) if dep_range is not None else None,
            ))
        groups.append(DependencyGroup(
            target_framework=str(tfm) if tfm else None,
            dependencies=tuple(deps),
        ))
    return tuple(groups)
