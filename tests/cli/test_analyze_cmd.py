"""Tests for the ``nugetroadmap analyze`` CLI command.

The session factory is patched to run over the in-memory registry, so no
HTTP calls are made and no cache file is written.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from nugetroadmap.cli.main import cli
from nugetroadmap.config import AnalysisSettings
from nugetroadmap.session import MigrationSession

from tests.helpers import FakeRegistry

CSPROJ = """<Project Sdk="Microsoft.NET.Sdk">
  <ItemGroup>
    <PackageReference Include="Contoso.Tools" Version="1.0.0" />
  </ItemGroup>
</Project>
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's nugetroadmap.yaml out of the tests."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def feed(registry: FakeRegistry) -> FakeRegistry:
    registry.add("Contoso.App", "1.0.0", frameworks=["net8.0"], deps=["Legacy"])
    registry.add("Contoso.Tools", "1.0.0", frameworks=["netstandard2.0"])
    registry.add("Legacy", "1.0.0", frameworks=["net9.0"])
    registry.search_ids = ["Contoso.App", "Contoso.Tools"]
    return registry


@pytest.fixture
def sessions(feed: FakeRegistry):
    """Patch the session factory; yields the settings each run received."""
    received: list[AnalysisSettings] = []

    def factory(settings: AnalysisSettings, on_progress=None) -> MigrationSession:
        received.append(settings)
        return MigrationSession(feed, settings, on_progress=on_progress)

    with patch("nugetroadmap.cli.analyze_cmd.create_session", side_effect=factory):
        yield received


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestAnalyzeCommand:

    def test_blocked_package_exits_1(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(cli, ["analyze", "Contoso.", "--target", "net8.0"])
        assert result.exit_code == 1
        assert "Stage 1" in result.output
        assert "Contoso.App" in result.output

    def test_nothing_blocked_exits_0(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(cli, ["analyze", "Contoso.Tools", "--target", "net8.0"])
        assert result.exit_code == 0

    def test_json_output(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(
            cli, ["analyze", "Contoso.", "--target", "net8.0", "--format", "json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["frameworks"] == ["net8.0"]
        assert data["summary"]["blocked"] == 1
        assert data["migrationOrder"].index("Legacy") < data["migrationOrder"].index("Contoso.App")

    def test_options_reach_settings(self, runner: CliRunner, sessions: list) -> None:
        runner.invoke(cli, [
            "analyze", "Contoso.",
            "--target", "net8.0",
            "--current", "net6.0",
            "--internal-mask", "Contoso.*",
            "--dev-filter", "dev",
            "--concurrency", "3",
            "--cache-only",
            "--format", "json",
        ])
        (settings,) = sessions
        assert settings.target_framework == "net8.0"
        assert settings.current_frameworks == ("net6.0",)
        assert settings.internal_mask == "Contoso.*"
        assert settings.dev_version_filter == "dev"
        assert settings.concurrency == 3
        assert settings.cache_only is True

    def test_config_file(self, runner: CliRunner, sessions: list, tmp_path: Path) -> None:
        config = tmp_path / "roadmap.yaml"
        config.write_text("target_framework: net9.0\nconcurrency: 4\n", encoding="utf-8")
        runner.invoke(cli, ["analyze", "Contoso.", "--config", str(config), "--format", "json"])
        (settings,) = sessions
        assert settings.target_framework == "net9.0"
        assert settings.concurrency == 4

    def test_csproj_roots(self, runner: CliRunner, sessions: list, tmp_path: Path) -> None:
        project = tmp_path / "App.csproj"
        project.write_text(CSPROJ, encoding="utf-8")
        result = runner.invoke(
            cli, ["analyze", "--csproj", str(project), "--target", "net8.0", "--format", "json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [p["id"] for p in data["packages"]] == ["Contoso.Tools"]

    def test_empty_csproj_is_an_error(
        self, runner: CliRunner, sessions: list, tmp_path: Path
    ) -> None:
        project = tmp_path / "Empty.csproj"
        project.write_text("<Project />", encoding="utf-8")
        result = runner.invoke(cli, ["analyze", "--csproj", str(project)])
        assert result.exit_code == 2
        assert "no PackageReference" in result.output
        assert sessions == []

    def test_csproj_option_rejects_other_files(
        self, runner: CliRunner, sessions: list, tmp_path: Path
    ) -> None:
        project = tmp_path / "packages.config"
        project.write_text(CSPROJ, encoding="utf-8")
        result = runner.invoke(cli, ["analyze", "--csproj", str(project)])
        assert result.exit_code == 2
        assert "not a .csproj file" in result.output
        assert sessions == []


class TestAnalyzeErrors:

    def test_prefix_and_csproj_are_exclusive(
        self, runner: CliRunner, sessions: list, tmp_path: Path
    ) -> None:
        project = tmp_path / "App.csproj"
        project.write_text(CSPROJ, encoding="utf-8")
        result = runner.invoke(cli, ["analyze", "Contoso.", "--csproj", str(project)])
        assert result.exit_code == 2
        assert "exactly one" in result.output

    def test_missing_roots(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(cli, ["analyze"])
        assert result.exit_code == 2

    def test_unknown_target(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(cli, ["analyze", "Contoso.", "--target", "net472"])
        assert result.exit_code == 2

    def test_bad_concurrency(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(cli, ["analyze", "Contoso.", "--concurrency", "0"])
        assert result.exit_code == 2
        assert "concurrency" in result.output
        assert sessions == []

    def test_no_packages_found(self, runner: CliRunner, sessions: list) -> None:
        result = runner.invoke(cli, ["analyze", "Fabrikam.", "--format", "json"])
        assert result.exit_code == 2
        assert "No packages found" in result.output

    def test_server_unreachable(
        self, runner: CliRunner, sessions: list, feed: FakeRegistry
    ) -> None:
        feed.unreachable = True
        result = runner.invoke(cli, ["analyze", "Contoso.", "--format", "json"])
        assert result.exit_code == 2
        assert "unreachable" in result.output
