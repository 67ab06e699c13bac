"""Shared fixtures for nugetroadmap tests."""

from __future__ import annotations

import pytest

from nugetroadmap.cache import MemoryCache

from tests.helpers import FakeClock, FakeRegistry


@pytest.fixture
def registry() -> FakeRegistry:
    """An empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCache:
    """A memory cache driven by the fake clock."""
    return MemoryCache(clock=clock)
