"""``nugetroadmap cache`` -- Inspect or clear the metadata cache."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from nugetroadmap.cache import JsonFileCache
from nugetroadmap.cli.output import console, print_cache_stats, print_json
from nugetroadmap.config import load_settings
from nugetroadmap.exceptions import ConfigError


def _open_cache(cache_file: Path | None, config_path: Path | None) -> JsonFileCache:
    try:
        settings = load_settings(config_path, cache_path=cache_file)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    return JsonFileCache(settings.cache_path, ttl_seconds=settings.cache_ttl_days * 86400)


_cache_file_option = click.option(
    "--cache-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Metadata cache location.",
)
_config_option = click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Settings file (default: ./nugetroadmap.yaml if present).",
)


@click.group("cache")
def cache_group() -> None:
    """Inspect or clear the metadata cache."""


@cache_group.command("stats")
@_cache_file_option
@_config_option
@click.option("--json", "as_json", is_flag=True, help="Print stats as JSON.")
def cache_stats_command(cache_file: Path | None, config_path: Path | None, as_json: bool) -> None:
    """Show how many entries of each kind the cache holds."""
    cache = _open_cache(cache_file, config_path)
    stats = cache.stats()
    if as_json:
        print_json({"path": str(cache.path), "size": stats.size, "keys": stats.keys})
    else:
        print_cache_stats(str(cache.path), stats)


@cache_group.command("clear")
@_cache_file_option
@_config_option
def cache_clear_command(cache_file: Path | None, config_path: Path | None) -> None:
    """Delete every cached entry."""
    cache = _open_cache(cache_file, config_path)
    size = cache.stats().size
    cache.clear()
    console.print(f"Removed [bold]{size}[/bold] entries from {cache.path}")
