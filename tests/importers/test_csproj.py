"""Tests for the .csproj PackageReference importer."""

from __future__ import annotations

from pathlib import Path

import pytest

from nugetroadmap.core.tree import RootRequest
from nugetroadmap.exceptions import CsprojError
from nugetroadmap.importers import (
    PackageReference,
    is_csproj_file,
    parse_csproj,
    read_csproj,
)

SDK_PROJECT = """<?xml version="1.0" encoding="utf-8"?>
<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net6.0</TargetFramework>
  </PropertyGroup>
  <ItemGroup>
    <PackageReference Include="Newtonsoft.Json" Version="13.0.3" />
    <PackageReference Include="Serilog">
      <Version>3.1.1</Version>
    </PackageReference>
    <PackageReference Include="Contoso.Core" />
    <PackageReference Update="Ignored.Package" Version="1.0.0" />
  </ItemGroup>
</Project>
"""

LEGACY_PROJECT = """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <ItemGroup>
    <PackageReference Include="EntityFramework">
      <Version>6.4.4</Version>
    </PackageReference>
  </ItemGroup>
</Project>
"""


class TestParseCsproj:

    def test_sdk_style_project(self) -> None:
        assert parse_csproj(SDK_PROJECT) == [
            PackageReference("Newtonsoft.Json", "13.0.3"),
            PackageReference("Serilog", "3.1.1"),
            PackageReference("Contoso.Core", None),
        ]

    def test_namespaced_project(self) -> None:
        assert parse_csproj(LEGACY_PROJECT) == [PackageReference("EntityFramework", "6.4.4")]

    def test_project_without_references(self) -> None:
        assert parse_csproj("<Project><ItemGroup /></Project>") == []

    def test_invalid_xml(self) -> None:
        with pytest.raises(CsprojError, match="Invalid project XML"):
            parse_csproj("<Project><ItemGroup></Project>")

    def test_entity_declarations_refused(self) -> None:
        text = (
            '<?xml version="1.0"?>\n'
            '<!DOCTYPE Project [<!ENTITY pkg "Evil.Package">]>\n'
            '<Project><ItemGroup><PackageReference Include="&pkg;" /></ItemGroup></Project>'
        )
        with pytest.raises(CsprojError, match="unsafe"):
            parse_csproj(text)

    def test_to_root_request(self) -> None:
        ref = PackageReference("Serilog", "3.1.1")
        assert ref.to_root_request() == RootRequest("Serilog", "3.1.1")


class TestReadCsproj:

    def test_reads_file_with_bom(self, tmp_path: Path) -> None:
        path = tmp_path / "App.csproj"
        path.write_bytes(b"\xef\xbb\xbf" + SDK_PROJECT.encode("utf-8"))
        assert len(read_csproj(path)) == 3

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CsprojError, match="Cannot read"):
            read_csproj(tmp_path / "Missing.csproj")

    def test_parse_errors_name_the_file(self, tmp_path: Path) -> None:
        path = tmp_path / "Broken.csproj"
        path.write_text("<Project>", encoding="utf-8")
        with pytest.raises(CsprojError, match="Broken.csproj"):
            read_csproj(path)

    @pytest.mark.parametrize(
        "name, expected",
        [("App.csproj", True), ("App.CSPROJ", True), ("App.fsproj", False), ("App", False)],
    )
    def test_is_csproj_file(self, name: str, expected: bool) -> None:
        assert is_csproj_file(Path(name)) is expected
