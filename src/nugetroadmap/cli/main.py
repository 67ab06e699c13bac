"""nugetroadmap CLI -- plan .NET framework migrations for NuGet package families.

Entry point for the ``nugetroadmap`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    analyze  -- Load, analyze and stage a package family (or a .csproj).
    compat   -- Check declared TFMs against target frameworks.
    cache    -- Inspect or clear the metadata cache.

Usage::

    nugetroadmap analyze Contoso. --target net8.0 --current net6.0
    nugetroadmap analyze --csproj ./src/App/App.csproj --format json
    nugetroadmap compat netstandard2.0 net462 --target net8.0
    nugetroadmap cache stats
"""

from __future__ import annotations

import logging

import click
from rich.logging import RichHandler

from nugetroadmap import __version__
from nugetroadmap.cli.analyze_cmd import analyze_command
from nugetroadmap.cli.cache_cmd import cache_group
from nugetroadmap.cli.compat_cmd import compat_command
from nugetroadmap.cli.output import err_console


def _configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    level = logging.INFO if verbosity == 1 else logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbosity > 1)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug output).")
def cli(verbose: int) -> None:
    """nugetroadmap: migration roadmaps for NuGet package families.

    Resolves full dependency trees from a NuGet feed, checks every package
    against the target framework, and groups root packages into stages
    that can be migrated in order.
    """
    _configure_logging(verbose)


# Register all subcommands
cli.add_command(analyze_command)
cli.add_command(compat_command)
cli.add_command(cache_group)
