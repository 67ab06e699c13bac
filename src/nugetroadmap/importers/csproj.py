"""Read ``PackageReference`` items from MSBuild project files.

Both SDK-style projects and legacy projects with the MSBuild XML namespace
are accepted. The version may be given as a ``Version`` attribute or as a
``<Version>`` child element; centrally-managed references carry neither.

Example::

    <ItemGroup>
      <PackageReference Include="Newtonsoft.Json" Version="13.0.3" />
      <PackageReference Include="Serilog">
        <Version>3.1.1</Version>
      </PackageReference>
    </ItemGroup>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from xml.etree.ElementTree import Element

import defusedxml
import defusedxml.ElementTree as ET

from nugetroadmap.core.tree import RootRequest
from nugetroadmap.exceptions import CsprojError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageReference:
    """One ``<PackageReference>`` item."""

    package_id: str
    version: str | None = None

    def to_root_request(self) -> RootRequest:
        return RootRequest(self.package_id, self.version)


def _local_name(tag: str) -> str:
    """Strip an ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: Element, name: str) -> str | None:
    for child in element:
        if _local_name(child.tag) == name and child.text and child.text.strip():
            return child.text.strip()
    return None


def parse_csproj(text: str) -> list[PackageReference]:
    """Extract package references from project XML.

    Args:
        text: Contents of a ``.csproj`` file.

    Returns:
        References in document order. Items without ``Include`` are skipped.

    Raises:
        CsprojError: If the text is not well-formed XML or uses forbidden
            constructs such as entity declarations.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise CsprojError(f"Invalid project XML: {exc}") from exc
    except defusedxml.DefusedXmlException as exc:
        raise CsprojError(f"Refusing unsafe project XML: {exc}") from exc

    references: list[PackageReference] = []
    for element in root.iter():
        if _local_name(element.tag) != "PackageReference":
            continue
        package_id = (element.get("Include") or "").strip()
        if not package_id:
            continue
        version = (element.get("Version") or "").strip() or _child_text(element, "Version")
        references.append(PackageReference(package_id, version))

    logger.debug("Parsed %d package reference(s)", len(references))
    return references


def read_csproj(path: Path) -> list[PackageReference]:
    """Read and parse a ``.csproj`` file.

    Raises:
        CsprojError: If the file cannot be read or parsed.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise CsprojError(f"Cannot read {path}: {exc}") from exc
    try:
        return parse_csproj(text)
    except CsprojError as exc:
        raise CsprojError(f"{path}: {exc}") from exc


def is_csproj_file(path: Path) -> bool:
    return Path(path).suffix.lower() == ".csproj"
