"""Target framework moniker parsing.

Registries report frameworks in two spellings: the short folder form used
in package layouts (``net8.0``, ``netstandard2.0``) and the long form used
in registration metadata (``.NETStandard2.0``, ``.NETCoreApp3.1``). Both
are normalized to the short form before parsing. Anything outside the
``net``/``netcoreapp``/``netstandard`` families -- .NET Framework
(``net472``), platform-specific TFMs (``net8.0-android``), PCL profiles --
is unparseable and ignored by the compatibility engine.
"""

from __future__ import annotations

import re

from nugetroadmap.core.compatibility.models import (
    FAMILY_NET,
    FAMILY_NETCOREAPP,
    FAMILY_NETSTANDARD,
    FrameworkMoniker,
)

_NET_RE = re.compile(r"^net(\d+)\.(\d+)$")
_NETCOREAPP_RE = re.compile(r"^netcoreapp(\d+)\.(\d+)$")
_NETSTANDARD_RE = re.compile(r"^netstandard(\d+)\.(\d+)$")


def normalize_moniker(tfm: str) -> str:
    """Lower-case a moniker and map long-form names to the short form.

    >>> normalize_moniker(".NETStandard2.0")
    'netstandard2.0'
    """
    value = tfm.strip().lower()
    if value.startswith(".net"):
        value = value[1:]
    return value


def parse_moniker(tfm: str) -> FrameworkMoniker | None:
    """Parse a moniker into ``(family, version)``.

    Args:
        tfm: A target framework moniker such as ``net8.0``.

    Returns:
        The parsed moniker, or None if the string is not a ``net``,
        ``netcoreapp`` or ``netstandard`` moniker.
    """
    value = normalize_moniker(tfm)

    m = _NET_RE.match(value)
    if m:
        return FrameworkMoniker(FAMILY_NET, int(m.group(1)), tfm)

    m = _NETCOREAPP_RE.match(value)
    if m:
        return FrameworkMoniker(FAMILY_NETCOREAPP, int(m.group(1)), tfm)

    m = _NETSTANDARD_RE.match(value)
    if m:
        return FrameworkMoniker(
            FAMILY_NETSTANDARD, int(m.group(1)) * 10 + int(m.group(2)), tfm
        )

    return None
