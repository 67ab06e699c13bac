"""Analysis settings and configuration-file loading.

Settings come from three layers, later layers winning:

1. Defaults declared on ``AnalysisSettings``.
2. An optional YAML file (``nugetroadmap.yaml`` by default).
3. Explicit overrides, typically CLI options.

Example ``nugetroadmap.yaml``::

    target_framework: net8.0
    current_frameworks: [net6.0]
    internal_mask: "Contoso.*"
    dev_version_filter: dev
    concurrency: 8
    cache_ttl_days: 2
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from nugetroadmap.core.compatibility import parse_moniker
from nugetroadmap.core.compatibility.models import FAMILY_NETSTANDARD
from nugetroadmap.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME: str = "nugetroadmap.yaml"
DEFAULT_SERVER_URL: str = "https://api.nuget.org/v3/index.json"
DEFAULT_CACHE_PATH: Path = Path.home() / ".cache" / "nugetroadmap" / "cache.json"
DEFAULT_CONCURRENCY: int = 6
DEFAULT_CACHE_TTL_DAYS: float = 5.0


@dataclass(frozen=True)
class AnalysisSettings:
    """Inputs for one analysis run.

    Attributes:
        target_framework: Framework the packages are migrating to.
        current_frameworks: Frameworks the packages must keep supporting.
            A non-empty list enables multi-framework (split) analysis.
        internal_mask: Glob-like mask identifying internal packages
            (``*`` is the only wildcard; matching is a case-insensitive
            prefix match).
        dev_version_filter: Token selecting preferred prerelease versions.
        concurrency: Maximum concurrent registry fetches.
        server_url: NuGet V3 service index URL.
        cache_path: Location of the JSON metadata cache.
        cache_ttl_days: Cache entry lifetime.
        cache_only: Never contact the registry; misses become "not found".
    """

    target_framework: str = "net10.0"
    current_frameworks: tuple[str, ...] = field(default_factory=tuple)
    internal_mask: str = ""
    dev_version_filter: str = ""
    concurrency: int = DEFAULT_CONCURRENCY
    server_url: str = DEFAULT_SERVER_URL
    cache_path: Path = DEFAULT_CACHE_PATH
    cache_ttl_days: float = DEFAULT_CACHE_TTL_DAYS
    cache_only: bool = False

    def __post_init__(self) -> None:
        target = parse_moniker(self.target_framework)
        if target is None:
            raise ConfigError(
                f"Unrecognised target framework: {self.target_framework!r}"
            )
        if target.family == FAMILY_NETSTANDARD:
            raise ConfigError(
                f"Target framework must be a runtime (netX.Y or netcoreappX.Y), "
                f"not {self.target_framework!r}"
            )
        for tfm in self.current_frameworks:
            if parse_moniker(tfm) is None:
                raise ConfigError(f"Unrecognised current framework: {tfm!r}")
        if self.concurrency < 1:
            raise ConfigError(
                f"concurrency must be at least 1 (got {self.concurrency})"
            )
        if self.cache_ttl_days <= 0:
            raise ConfigError(
                f"cache_ttl_days must be positive (got {self.cache_ttl_days})"
            )

        # The target is never also a "current" framework; keep first occurrences.
        seen: set[str] = {self.target_framework.lower()}
        current: list[str] = []
        for tfm in self.current_frameworks:
            if tfm.lower() not in seen:
                seen.add(tfm.lower())
                current.append(tfm)
        object.__setattr__(self, "current_frameworks", tuple(current))
        object.__setattr__(self, "cache_path", Path(self.cache_path).expanduser())

    @property
    def frameworks(self) -> tuple[str, ...]:
        """Target followed by the current frameworks."""
        return (self.target_framework, *self.current_frameworks)

    @property
    def multi_framework(self) -> bool:
        return bool(self.current_frameworks)

    def with_overrides(self, **overrides: Any) -> AnalysisSettings:
        """Return a copy with every non-None override applied."""
        return replace(self, **_clean_overrides(overrides))


_FIELD_NAMES: frozenset[str] = frozenset(f.name for f in fields(AnalysisSettings))


def _clean_overrides(overrides: dict[str, Any]) -> dict[str, Any]:
    changes = {k: v for k, v in overrides.items() if v is not None}
    unknown = set(changes) - _FIELD_NAMES
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    if "current_frameworks" in changes:
        changes["current_frameworks"] = tuple(changes["current_frameworks"])
    return changes


def _coerce(data: dict[str, Any], source: Path) -> dict[str, Any]:
    """Type-check raw YAML values against the settings fields."""
    unknown = set(data) - _FIELD_NAMES
    if unknown:
        raise ConfigError(
            f"{source}: unknown key(s): {', '.join(sorted(unknown))}"
        )

    out: dict[str, Any] = {}
    for key, value in data.items():
        if key == "current_frameworks":
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{source}: current_frameworks must be a list of strings")
            out[key] = tuple(value)
        elif key == "concurrency":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{source}: concurrency must be an integer")
            out[key] = value
        elif key == "cache_ttl_days":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{source}: cache_ttl_days must be a number")
            out[key] = float(value)
        elif key == "cache_only":
            if not isinstance(value, bool):
                raise ConfigError(f"{source}: cache_only must be true or false")
            out[key] = value
        elif key == "cache_path":
            if not isinstance(value, str):
                raise ConfigError(f"{source}: cache_path must be a string")
            out[key] = Path(value)
        else:
            if not isinstance(value, str):
                raise ConfigError(f"{source}: {key} must be a string")
            out[key] = value
    return out


def load_settings(path: Path | None = None, **overrides: Any) -> AnalysisSettings:
    """Load settings from a YAML file and apply overrides.

    Args:
        path: Explicit config file. When None, ``nugetroadmap.yaml`` in the
            working directory is used if it exists.
        **overrides: Field values that take precedence over the file.
            None values are ignored.

    Returns:
        The merged ``AnalysisSettings``.

    Raises:
        ConfigError: If the file is unreadable, is not a YAML mapping,
            or contains unknown keys or badly typed values.
    """
    if path is None:
        candidate = Path.cwd() / CONFIG_FILENAME
        path = candidate if candidate.is_file() else None

    file_values: dict[str, Any] = {}
    if path is not None:
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        file_values = _coerce(raw, path)
        logger.debug("Loaded %d setting(s) from %s", len(file_values), path)

    # Merge before construction: the target is pruned from current_frameworks
    # only once the final target is known.
    return AnalysisSettings(**{**file_values, **_clean_overrides(overrides)})
