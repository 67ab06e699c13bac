"""``nugetroadmap analyze`` -- Build a migration roadmap.

Roots come either from a package id prefix (every package on the feed
whose id starts with it) or from the ``PackageReference`` items of a
``.csproj`` file, in which case their pinned versions are honoured.

Exit codes:
    0 -- no package is blocked
    1 -- at least one package is blocked
    2 -- the analysis could not run (bad settings, nothing found, offline)
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from nugetroadmap.cli.output import err_console, print_json, print_report
from nugetroadmap.config import AnalysisSettings, load_settings
from nugetroadmap.core.compatibility import TARGET_FRAMEWORKS
from nugetroadmap.core.tree import LoadProgress, RootRequest
from nugetroadmap.exceptions import AnalysisError, ConfigError, CsprojError
from nugetroadmap.importers import is_csproj_file, read_csproj
from nugetroadmap.session import AnalysisReport, MigrationSession


def create_session(settings: AnalysisSettings, on_progress=None) -> MigrationSession:
    """Build the session used by the command (patched in tests)."""
    return MigrationSession.from_settings(settings, on_progress=on_progress)


async def _run(
    settings: AnalysisSettings,
    prefix: str | None,
    roots: list[RootRequest] | None,
    on_progress,
) -> AnalysisReport:
    async with create_session(settings, on_progress) as session:
        return await session.run(prefix=prefix, roots=roots)


def _progress_printer(status):
    def update(progress: LoadProgress) -> None:
        active = ", ".join(progress.active_packages[:3])
        message = f"{progress.phase.capitalize()} {progress.current}/{progress.total}"
        if active:
            message += f" [dim]{active}[/dim]"
        status.update(message)
    return update


@click.command("analyze")
@click.argument("prefix", required=False)
@click.option(
    "--csproj", "csproj_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Take root packages from a .csproj file instead of a prefix.",
)
@click.option(
    "--target", type=click.Choice(TARGET_FRAMEWORKS), default=None,
    help="Framework to migrate to (default: net10.0).",
)
@click.option(
    "--current", multiple=True, type=click.Choice(TARGET_FRAMEWORKS),
    help="Framework that must stay supported; repeat for several.",
)
@click.option("--internal-mask", default=None, help='Internal package mask, e.g. "Contoso.*".')
@click.option("--dev-filter", default=None, help="Prefer prereleases containing this token.")
@click.option("--concurrency", type=int, default=None, help="Max concurrent registry fetches.")
@click.option("--server", default=None, help="NuGet V3 service index URL.")
@click.option(
    "--cache-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Metadata cache location.",
)
@click.option("--cache-only", is_flag=True, default=None, help="Never contact the server.")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Settings file (default: ./nugetroadmap.yaml if present).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def analyze_command(
    prefix: str | None,
    csproj_path: Path | None,
    target: str | None,
    current: tuple[str, ...],
    internal_mask: str | None,
    dev_filter: str | None,
    concurrency: int | None,
    server: str | None,
    cache_file: Path | None,
    cache_only: bool | None,
    config_path: Path | None,
    output_format: str,
) -> None:
    """Analyze a package family and print its migration roadmap.

    Examples:

        nugetroadmap analyze Contoso. --target net8.0 --current net6.0

        nugetroadmap analyze --csproj App.csproj --internal-mask "Contoso.*"
    """
    if bool(prefix) == bool(csproj_path):
        raise click.UsageError("Give exactly one of PREFIX or --csproj.")
    if csproj_path is not None and not is_csproj_file(csproj_path):
        raise click.BadParameter(
            f"{csproj_path.name} is not a .csproj file", param_hint="'--csproj'"
        )

    try:
        settings = load_settings(
            config_path,
            target_framework=target,
            current_frameworks=current or None,
            internal_mask=internal_mask,
            dev_version_filter=dev_filter,
            concurrency=concurrency,
            server_url=server,
            cache_path=cache_file,
            cache_only=cache_only,
        )
        roots = None
        if csproj_path is not None:
            roots = [ref.to_root_request() for ref in read_csproj(csproj_path)]
            if not roots:
                raise CsprojError(f"{csproj_path}: no PackageReference items")
    except (ConfigError, CsprojError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    try:
        if output_format == "json":
            report = asyncio.run(_run(settings, prefix, roots, None))
        else:
            with err_console.status("Loading dependency tree...") as status:
                report = asyncio.run(_run(settings, prefix, roots, _progress_printer(status)))
    except AnalysisError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if output_format == "json":
        print_json(report.to_dict())
    else:
        print_report(report)

    sys.exit(1 if report.has_blocked else 0)
