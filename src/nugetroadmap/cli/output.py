"""Rich output formatting helpers for the nugetroadmap CLI.

Status color mapping:
    READY = green, PARTIAL = yellow, SPLIT = cyan, BLOCKED = bold red
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from nugetroadmap.cache import CacheStats
from nugetroadmap.core.analysis import DependencyInfo, MigrationStage
from nugetroadmap.core.compatibility import FrameworkCompatibility
from nugetroadmap.core.tree import PackageStatus, VersionConflict
from nugetroadmap.session import AnalysisReport

_STATUS_STYLES: dict[PackageStatus, str] = {
    PackageStatus.READY: "green",
    PackageStatus.PARTIAL: "yellow",
    PackageStatus.SPLIT: "cyan",
    PackageStatus.BLOCKED: "bold red",
}

console = Console()
err_console = Console(stderr=True)


def status_text(status: PackageStatus) -> Text:
    """Return the status name styled for the terminal."""
    return Text(status.value.upper(), style=_STATUS_STYLES.get(status, "white"))


def format_version(current: str, latest: str) -> str:
    return latest if current == latest else f"{current} -> {latest}"


def _dependency_summary(deps: Sequence[DependencyInfo]) -> Text:
    text = Text()
    for i, dep in enumerate(deps):
        if i:
            text.append(", ")
        text.append(dep.id, style=_STATUS_STYLES.get(dep.status, "white"))
        if dep.is_cyclic:
            text.append(" (cycle)", style="dim")
    return text if deps else Text("-", style="dim")


def print_stages(stages: Sequence[MigrationStage]) -> None:
    """Print one table per roadmap stage."""
    if not stages:
        console.print("[dim]No root packages to plan.[/dim]")
        return

    for stage in stages:
        title = f"Stage {stage.stage}"
        if stage.circular:
            title += " (circular dependencies)"
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Package", style="bold")
        table.add_column("Version")
        table.add_column("Status", justify="center")
        table.add_column("Blockers", justify="right")
        table.add_column("Internal deps")
        table.add_column("External deps")

        for view in stage.packages:
            version = format_version(view.version, view.latest_version)
            if view.per_framework_versions:
                version += "\n" + ", ".join(
                    f"{p.framework}: {p.version}" for p in view.per_framework_versions
                )
            table.add_row(
                view.id,
                version,
                status_text(view.status),
                str(view.blocker_count),
                _dependency_summary(view.internal_dependencies),
                _dependency_summary(view.external_dependencies),
            )
        console.print(table)


def print_conflicts(conflicts: Sequence[VersionConflict]) -> None:
    """Print diamond-dependency version conflicts."""
    if not conflicts:
        return
    table = Table(title="Version Conflicts", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Requested by")
    for conflict in conflicts:
        requests = "\n".join(
            f"{r.by} -> {r.version}" for r in conflict.requested_versions
        )
        table.add_row(conflict.package_id, requests)
    console.print(table)


def print_summary(report: AnalysisReport) -> None:
    """Print a one-line status summary after the stage tables."""
    counts = report.status_counts()
    total = sum(counts.values())
    parts = [f"[bold]{total}[/bold] packages"]
    for status in PackageStatus:
        if counts[status]:
            style = _STATUS_STYLES[status]
            parts.append(f"[{style}]{counts[status]} {status.value}[/{style}]")
    if report.version_conflicts:
        parts.append(f"{len(report.version_conflicts)} conflicts")
    console.print(" | ".join(parts))
    if report.broken_edges:
        edges = ", ".join(f"{a} -> {b}" for a, b in report.broken_edges)
        console.print(f"[dim]Cycles broken at: {edges}[/dim]")


def print_report(report: AnalysisReport) -> None:
    """Print the full text report: warning, stages, conflicts, summary."""
    if report.warning:
        err_console.print(f"[yellow]Warning:[/yellow] {report.warning}")
    console.print(f"Frameworks: [bold]{', '.join(report.frameworks)}[/bold]")
    print_stages(report.stages)
    print_conflicts(report.version_conflicts)
    print_summary(report)


def print_compatibility(declared: Sequence[str], results: Sequence[FrameworkCompatibility]) -> None:
    """Print the compatibility verdict per target framework."""
    table = Table(
        title=f"Compatibility of {', '.join(declared) or '(no frameworks)'}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Target", style="bold")
    table.add_column("Supported", justify="center")
    table.add_column("Mode")
    table.add_column("Matched")
    for result in results:
        supported = (
            Text("yes", style="green") if result.supported else Text("no", style="bold red")
        )
        table.add_row(
            result.framework,
            supported,
            result.compatibility_mode.value,
            result.matched_framework or "-",
        )
    console.print(table)


def print_cache_stats(path: str, stats: CacheStats) -> None:
    """Print entry counts per key prefix."""
    by_prefix: dict[str, int] = {}
    for key in stats.keys:
        prefix = key.split(":", 1)[0]
        by_prefix[prefix] = by_prefix.get(prefix, 0) + 1

    table = Table(title=f"Cache {path}", show_header=True, header_style="bold")
    table.add_column("Kind", style="bold")
    table.add_column("Entries", justify="right")
    for prefix in sorted(by_prefix):
        table.add_row(prefix, str(by_prefix[prefix]))
    console.print(table)
    console.print(f"[bold]{stats.size}[/bold] entries")


def print_json(data: Any) -> None:
    """Print *data* as indented JSON on stdout."""
    click.echo(json.dumps(data, indent=2))
