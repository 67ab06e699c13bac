"""Tests for AnalysisSettings and YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from nugetroadmap.config import (
    DEFAULT_CONCURRENCY,
    AnalysisSettings,
    load_settings,
)
from nugetroadmap.exceptions import ConfigError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "nugetroadmap.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# AnalysisSettings
# ---------------------------------------------------------------------------


class TestAnalysisSettings:

    def test_defaults(self) -> None:
        settings = AnalysisSettings()
        assert settings.target_framework == "net10.0"
        assert settings.current_frameworks == ()
        assert settings.concurrency == DEFAULT_CONCURRENCY
        assert not settings.multi_framework
        assert settings.frameworks == ("net10.0",)

    def test_target_removed_from_current(self) -> None:
        settings = AnalysisSettings(
            target_framework="net8.0",
            current_frameworks=("NET8.0", "net6.0", "net6.0", "netstandard2.0"),
        )
        assert settings.current_frameworks == ("net6.0", "netstandard2.0")
        assert settings.frameworks == ("net8.0", "net6.0", "netstandard2.0")
        assert settings.multi_framework

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"target_framework": "not-a-framework"},
            {"target_framework": "netstandard2.0"},
            {"current_frameworks": ("net8.0", "bogus")},
            {"concurrency": 0},
            {"cache_ttl_days": 0},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            AnalysisSettings(**kwargs)

    def test_cache_path_expanded(self) -> None:
        settings = AnalysisSettings(cache_path=Path("~/roadmap-cache.json"))
        assert "~" not in str(settings.cache_path)

    def test_overrides_ignore_none(self) -> None:
        settings = AnalysisSettings(concurrency=3)
        updated = settings.with_overrides(concurrency=None, internal_mask="Contoso.*")
        assert updated.concurrency == 3
        assert updated.internal_mask == "Contoso.*"

    def test_override_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="colour"):
            AnalysisSettings().with_overrides(colour="blue")

    def test_override_current_frameworks_list(self) -> None:
        updated = AnalysisSettings().with_overrides(current_frameworks=["net6.0"])
        assert updated.current_frameworks == ("net6.0",)


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------


class TestLoadSettings:

    def test_yaml_values(self, tmp_path: Path) -> None:
        path = _write(tmp_path, (
            "target_framework: net8.0\n"
            "current_frameworks: [net6.0, netstandard2.0]\n"
            "internal_mask: 'Contoso.*'\n"
            "dev_version_filter: dev\n"
            "concurrency: 8\n"
            "cache_ttl_days: 2\n"
            "cache_only: true\n"
        ))
        settings = load_settings(path)
        assert settings.target_framework == "net8.0"
        assert settings.current_frameworks == ("net6.0", "netstandard2.0")
        assert settings.internal_mask == "Contoso.*"
        assert settings.dev_version_filter == "dev"
        assert settings.concurrency == 8
        assert settings.cache_ttl_days == 2.0
        assert settings.cache_only is True

    def test_single_current_framework_string(self, tmp_path: Path) -> None:
        settings = load_settings(_write(tmp_path, "current_frameworks: net6.0\n"))
        assert settings.current_frameworks == ("net6.0",)

    def test_overrides_beat_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "concurrency: 8\ninternal_mask: A\n")
        settings = load_settings(path, concurrency=2, internal_mask=None)
        assert settings.concurrency == 2
        assert settings.internal_mask == "A"

    def test_target_override_keeps_file_current_frameworks(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "target_framework: net8.0\ncurrent_frameworks: [net8.0, net6.0]\n")
        settings = load_settings(path, target_framework="net6.0")
        assert settings.target_framework == "net6.0"
        assert settings.current_frameworks == ("net8.0",)
        assert settings.multi_framework

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_settings(_write(tmp_path, "")) == AnalysisSettings()

    def test_cwd_file_discovered(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write(tmp_path, "internal_mask: Fabrikam.*\n")
        monkeypatch.chdir(tmp_path)
        assert load_settings().internal_mask == "Fabrikam.*"

    def test_no_file_uses_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_settings() == AnalysisSettings()

    @pytest.mark.parametrize(
        "text, message",
        [
            ("colour: blue\n", "unknown key"),
            ("- a\n- b\n", "mapping"),
            ("concurrency: many\n", "concurrency"),
            ("concurrency: true\n", "concurrency"),
            ("cache_ttl_days: soon\n", "cache_ttl_days"),
            ("cache_only: 1\n", "cache_only"),
            ("current_frameworks: [net6.0, 7]\n", "current_frameworks"),
            ("internal_mask: 12\n", "internal_mask"),
            ("target_framework: [", "Invalid YAML"),
        ],
    )
    def test_bad_files(self, tmp_path: Path, text: str, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            load_settings(_write(tmp_path, text))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_settings(tmp_path / "absent.yaml")
