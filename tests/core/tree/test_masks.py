"""Tests for internal-package mask matching."""

from __future__ import annotations

import pytest

from nugetroadmap.core.tree import InternalMask


class TestInternalMask:

    @pytest.mark.parametrize(
        ("pattern", "package_id", "expected"),
        [
            ("Contoso.*", "Contoso.Core", True),
            ("Contoso.*", "contoso.web.api", True),
            ("Contoso.*", "Fabrikam.Core", False),
            ("Contoso", "Contoso.Core", True),  # prefix match
            ("*.Internal", "Contoso.Internal.Tools", True),
            ("Contoso.Core", "ContosoXCore", False),  # '.' is literal
            ("Contoso.*;Fabrikam.*", "Fabrikam.Data", True),
            ("Contoso.*, Fabrikam.*", "Fabrikam.Data", True),
        ],
    )
    def test_matches(self, pattern: str, package_id: str, expected: bool) -> None:
        assert InternalMask(pattern).matches(package_id) is expected

    def test_empty_mask_matches_nothing(self) -> None:
        mask = InternalMask("")
        assert not mask
        assert mask.matches("Anything") is False

    def test_regex_characters_are_literal(self) -> None:
        mask = InternalMask("Lib(v2)+")
        assert mask.matches("Lib(v2)+.Core")
        assert not mask.matches("Libv2")

    def test_repr(self) -> None:
        assert repr(InternalMask("A.*")) == "InternalMask('A.*')"
