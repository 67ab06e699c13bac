"""Importers that turn project files into analysis roots."""

from nugetroadmap.importers.csproj import (
    PackageReference,
    is_csproj_file,
    parse_csproj,
    read_csproj,
)

__all__ = ["PackageReference", "is_csproj_file", "parse_csproj", "read_csproj"]
