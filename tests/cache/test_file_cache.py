"""Tests for JsonFileCache persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from nugetroadmap.cache import JsonFileCache

from tests.helpers import FakeClock


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "cache.json"


class TestPersistence:

    def test_entries_survive_reopen(self, cache_path: Path, clock: FakeClock) -> None:
        JsonFileCache(cache_path, clock=clock).set("versions:a", ["1.0"])
        reopened = JsonFileCache(cache_path, clock=clock)
        assert reopened.get("versions:a") == ["1.0"]

    def test_file_holds_envelopes(self, cache_path: Path, clock: FakeClock) -> None:
        JsonFileCache(cache_path, clock=clock).set("k", {"x": 1})
        data = json.loads(cache_path.read_text(encoding="utf-8"))
        assert data == {"k": {"data": {"x": 1}, "timestamp": clock.now}}

    def test_no_autoflush_defers_writes(self, cache_path: Path) -> None:
        cache = JsonFileCache(cache_path, autoflush=False)
        cache.set("k", 1)
        assert not cache_path.exists()
        cache.flush()
        assert JsonFileCache(cache_path).get("k") == 1

    def test_no_temp_files_left(self, cache_path: Path) -> None:
        cache = JsonFileCache(cache_path)
        cache.set("a", 1)
        cache.set("b", 2)
        assert [p.name for p in cache_path.parent.iterdir()] == ["cache.json"]

    def test_clear_persists(self, cache_path: Path) -> None:
        cache = JsonFileCache(cache_path)
        cache.set("a", 1)
        cache.clear()
        assert JsonFileCache(cache_path).stats().size == 0

    def test_expiry_applies_after_reopen(self, cache_path: Path, clock: FakeClock) -> None:
        JsonFileCache(cache_path, ttl_seconds=60, clock=clock).set("k", 1)
        clock.advance(61)
        assert JsonFileCache(cache_path, ttl_seconds=60, clock=clock).get("k") is None


class TestCorruptFiles:

    def test_invalid_json_is_treated_as_empty(
        self, cache_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text("{not json", encoding="utf-8")
        with caplog.at_level("WARNING"):
            cache = JsonFileCache(cache_path)
            assert cache.get("k") is None
        assert "Ignoring unreadable cache file" in caplog.text

    def test_non_object_file_is_treated_as_empty(self, cache_path: Path) -> None:
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text("[1, 2]", encoding="utf-8")
        cache = JsonFileCache(cache_path)
        assert cache.keys() == []
        cache.set("k", 1)
        assert JsonFileCache(cache_path).get("k") == 1

    def test_path_property(self, cache_path: Path) -> None:
        assert JsonFileCache(cache_path).path == cache_path
