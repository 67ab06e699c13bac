"""Internal-package mask matching.

A mask is a glob-like pattern where ``*`` matches any run of characters
and everything else is literal. Matching is a case-insensitive *prefix*
match, so ``Contoso`` matches ``Contoso.Core``. Several masks can be given
separated by commas or semicolons; a package is internal if any matches.
"""

from __future__ import annotations

import re


class InternalMask:
    """Decide whether a package id belongs to the user's own packages.

    Args:
        pattern: Mask text, e.g. ``"Contoso.*;Fabrikam.*"``. Empty matches nothing.
    """

    def __init__(self, pattern: str = "") -> None:
        self.pattern = pattern
        parts = [p.strip() for p in re.split(r"[;,]", pattern) if p.strip()]
        self._regexes = [
            re.compile("^" + ".*".join(re.escape(s) for s in part.split("*")), re.IGNORECASE)
            for part in parts
        ]

    def matches(self, package_id: str) -> bool:
        return any(rx.match(package_id) for rx in self._regexes)

    def __bool__(self) -> bool:
        return bool(self._regexes)

    def __repr__(self) -> str:
        return f"InternalMask({self.pattern!r})"
