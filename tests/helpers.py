"""Shared test doubles: an in-memory registry and a manual clock.

Imported by ``conftest.py`` for the fixtures, and directly by test modules
that construct their own instances (for example with a fetch delay).
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Iterable

from nugetroadmap.exceptions import PackageNotFoundError, RegistryUnavailableError
from nugetroadmap.registry.base import (
    Dependency,
    DependencyGroup,
    PackageDetails,
    RegistryClient,
)


class FakeRegistry(RegistryClient):
    """In-memory registry double.

    Versions are listed newest first in the reverse order they were added,
    so ``add("A", "1.0")`` followed by ``add("A", "2.0")`` makes 2.0 the
    newest. Every call is counted, and the number of concurrently running
    calls is tracked in ``max_active``.
    """

    def __init__(self, *, delay: float = 0.0) -> None:
        self._versions: dict[str, list[str]] = {}
        self._details: dict[tuple[str, str], PackageDetails] = {}
        self.search_ids: list[str] = []
        self.delay = delay
        self.unreachable = False
        self.fail_versions: set[str] = set()
        self.fail_details: set[str] = set()
        self.version_calls: Counter[str] = Counter()
        self.detail_calls: Counter[tuple[str, str]] = Counter()
        self.search_calls = 0
        self.active = 0
        self.max_active = 0

    @property
    def registry_name(self) -> str:
        return "fake"

    def add(
        self,
        package_id: str,
        version: str,
        frameworks: Iterable[str] = (),
        deps: Iterable[str] = (),
    ) -> FakeRegistry:
        key = package_id.lower()
        self._versions.setdefault(key, []).insert(0, version)
        dependencies = tuple(Dependency(d, f"[{version}, )") for d in deps)
        tfms = list(frameworks)
        if tfms:
            groups = tuple(DependencyGroup(tfm, dependencies) for tfm in tfms)
        elif dependencies:
            groups = (DependencyGroup(None, dependencies),)
        else:
            groups = ()
        self._details[(key, version.lower())] = PackageDetails(
            id=package_id, version=version, dependency_groups=groups
        )
        return self

    async def _enter(self) -> None:
        if self.unreachable:
            raise RegistryUnavailableError("fake registry is down")
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1

    async def list_versions(self, package_id: str) -> list[str]:
        self.version_calls[package_id.lower()] += 1
        await self._enter()
        if package_id.lower() in self.fail_versions:
            raise RegistryUnavailableError(f"versions of {package_id} failed")
        versions = self._versions.get(package_id.lower())
        if versions is None:
            raise PackageNotFoundError(package_id)
        return list(versions)

    async def get_details(self, package_id: str, version: str) -> PackageDetails:
        self.detail_calls[(package_id.lower(), version)] += 1
        await self._enter()
        if package_id.lower() in self.fail_details:
            raise RegistryUnavailableError(f"details of {package_id} failed")
        details = self._details.get((package_id.lower(), version.lower()))
        if details is None:
            raise PackageNotFoundError(f"{package_id}@{version}")
        return details

    async def search_page(self, query: str, *, skip: int, take: int) -> list[str]:
        self.search_calls += 1
        await self._enter()
        matches = [i for i in self.search_ids if query.lower() in i.lower()]
        return matches[skip:skip + take]


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
