"""nugetroadmap exception hierarchy.

All public exceptions inherit from NuGetRoadmapError, giving callers a single
base class to catch when they want to handle any nugetroadmap-specific failure
without swallowing unrelated errors.
"""


class NuGetRoadmapError(Exception):
    """Base exception for all nugetroadmap errors."""


class RegistryError(NuGetRoadmapError):
    """Raised when the package registry cannot answer a request."""


class PackageNotFoundError(RegistryError):
    """Raised when the registry has no such package or version.

    In cache-only mode every cache miss is reported with this error, so
    callers never see a network failure while working offline.
    """


class RegistryUnavailableError(RegistryError):
    """Raised on network failures, timeouts, server errors, or invalid JSON.

    Never retried automatically.
    """


class ConfigError(NuGetRoadmapError):
    """Raised for invalid settings or a malformed configuration file."""


class CsprojError(NuGetRoadmapError):
    """Raised when a ``.csproj`` file cannot be read or parsed."""


class AnalysisError(NuGetRoadmapError):
    """Raised when an analysis run cannot produce any result.

    Per-package fetch failures never surface as this error; only failures
    of root discovery do.
    """


class NoPackagesFoundError(AnalysisError):
    """Raised when the registry answered but no package matched the prefix."""


class ServerUnreachableError(AnalysisError):
    """Raised when the registry is unreachable and the cache holds nothing usable."""
