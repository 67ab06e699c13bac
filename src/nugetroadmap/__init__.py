"""nugetroadmap: Dependency-tree resolution and .NET migration planning for NuGet packages."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
