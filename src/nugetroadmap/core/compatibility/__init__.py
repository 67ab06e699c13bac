"""Target framework moniker (TFM) parsing and compatibility classification.

Public API::

    from nugetroadmap.core.compatibility import check_compatibility

    result = check_compatibility(["netstandard2.0"], "net8.0")
    assert result.supported
    assert result.compatibility_mode is CompatibilityMode.NETSTANDARD
"""

from nugetroadmap.core.compatibility.engine import (
    best_direct_match,
    check_compatibility,
    check_all,
    is_framework_supported,
)
from nugetroadmap.core.compatibility.models import (
    TARGET_FRAMEWORKS,
    CompatibilityMode,
    FrameworkCompatibility,
    FrameworkMoniker,
)
from nugetroadmap.core.compatibility.monikers import normalize_moniker, parse_moniker

__all__ = [
    "TARGET_FRAMEWORKS",
    "CompatibilityMode",
    "FrameworkCompatibility",
    "FrameworkMoniker",
    "best_direct_match",
    "check_all",
    "check_compatibility",
    "is_framework_supported",
    "normalize_moniker",
    "parse_moniker",
]
