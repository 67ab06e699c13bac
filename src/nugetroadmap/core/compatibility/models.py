"""Data models for framework compatibility classification.

- ``FrameworkMoniker`` -- a parsed TFM as ``(family, version)``.
- ``CompatibilityMode`` -- how a package reaches a target framework.
- ``FrameworkCompatibility`` -- the engine's verdict for one target.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Migration targets offered to users, newest first.
TARGET_FRAMEWORKS: tuple[str, ...] = (
    "net10.0",
    "net9.0",
    "net8.0",
    "net7.0",
    "net6.0",
)

FAMILY_NET: str = "net"
FAMILY_NETCOREAPP: str = "netcoreapp"
FAMILY_NETSTANDARD: str = "netstandard"


class CompatibilityMode(str, Enum):
    """How a package's declared frameworks satisfy a target framework.

    - **DIRECT**: a ``net``/``netcoreapp`` build at or below the target.
    - **NETSTANDARD**: only a ``netstandard`` build is usable.
    - **PORTABLE**: the package declares no frameworks at all.
    - **NONE**: nothing usable was declared.
    """

    DIRECT = "direct"
    NETSTANDARD = "netstandard"
    PORTABLE = "portable"
    NONE = "none"


@dataclass(frozen=True, order=True)
class FrameworkMoniker:
    """A parsed target framework moniker.

    Attributes:
        family: One of ``net``, ``netcoreapp``, ``netstandard``.
        version: Major version for ``net``/``netcoreapp``; ``major * 10 +
            minor`` for ``netstandard`` (so ``netstandard2.1`` is 21).
        raw: The moniker string as declared by the package.
    """

    family: str
    version: int
    raw: str = ""

    def precedence(self) -> tuple[bool, int]:
        """Sort key for direct matches: ``net`` outranks ``netcoreapp``, then version."""
        return (self.family == FAMILY_NET, self.version)


@dataclass(frozen=True)
class FrameworkCompatibility:
    """Compatibility verdict for one target framework.

    Attributes:
        framework: The target framework moniker that was checked.
        supported: True if the package can be consumed by the target.
        compatibility_mode: How the target is reached.
        matched_framework: The declared moniker that produced the verdict,
            or None for ``PORTABLE`` and ``NONE``.
    """

    framework: str
    supported: bool
    compatibility_mode: CompatibilityMode
    matched_framework: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "framework": self.framework,
            "supported": self.supported,
            "compatibilityMode": self.compatibility_mode.value,
            "matchedFramework": self.matched_framework,
        }
