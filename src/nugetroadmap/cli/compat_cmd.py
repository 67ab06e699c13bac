"""``nugetroadmap compat`` -- Check declared TFMs against target frameworks.

Usage::

    nugetroadmap compat netstandard2.0 --target net8.0
    nugetroadmap compat net9.0 netcoreapp3.1          # every supported target
"""

from __future__ import annotations

import sys

import click

from nugetroadmap.cli.output import print_compatibility, print_json
from nugetroadmap.core.compatibility import TARGET_FRAMEWORKS, check_all, normalize_moniker


@click.command("compat")
@click.argument("frameworks", nargs=-1)
@click.option(
    "--target", "targets", multiple=True, type=click.Choice(TARGET_FRAMEWORKS),
    help="Target framework to check; repeat for several (default: all).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def compat_command(frameworks: tuple[str, ...], targets: tuple[str, ...], output_format: str) -> None:
    """Show whether a package declaring FRAMEWORKS runs on each target.

    With no FRAMEWORKS the package is treated as framework-agnostic.
    Exits with 1 if any target is unsupported.
    """
    declared = [normalize_moniker(tfm) for tfm in frameworks]
    results = check_all(declared, targets or TARGET_FRAMEWORKS)

    if output_format == "json":
        print_json({
            "declared": declared,
            "results": [r.to_dict() for r in results],
        })
    else:
        print_compatibility(declared, results)

    sys.exit(0 if all(r.supported for r in results) else 1)
