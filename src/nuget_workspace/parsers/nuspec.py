"""
NuGet ``.nuspec`` manifest parser.

Extracts the package identity and its dependency groups. Both the grouped
form and the legacy flat form are supported:

    <dependencies>
      <group targetFramework=".NETStandard2.0">
        <dependency id="Newtonsoft.Json" version="[12.0.1, )" />
      </group>
    </dependencies>

    <dependencies>
      <dependency id="Newtonsoft.Json" version="12.0.1" />
    </dependencies>

Flat dependencies and groups without ``targetFramework`` are assigned the
``Any`` framework.
"""

import logging
import xml.etree.ElementTree as ET

from nuget_workspace.core.errors import PackageInputError
from nuget_workspace.models.framework import ANY, Framework, FrameworkParseError
from nuget_workspace.models.package import DependencyGroup, PackageDependency

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip the XML namespace: '{http://...}metadata' -> 'metadata'."""
    return tag.rsplit("}", 1)[-1]


def _children(element, name: str) -> list:
    return [child for child in element if _local_name(child.tag) == name]


def _child(element, name: str):
    children = _children(element, name)
    return children[0] if children else None


def _parse_dependency(element) -> PackageDependency | None:
    dep_id = (element.get("id") or "").strip()
    if not dep_id:
        return None
    version = element.get("version")
    return PackageDependency(dep_id, version.strip() if version else None)


def parse_nuspec(content: str | bytes, source: str | None = None) -> dict:
    """
    Parse nuspec XML content.

    Args:
        content: Raw nuspec document.
        source: Name of the file the content came from, for error messages.

    Returns:
        Dictionary with keys: id, version, dependency_groups.
    """
    label = f"nuspec {source}" if source else "nuspec"
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise PackageInputError(f"Malformed {label}: {e}") from e

    metadata = _child(root, "metadata")
    if metadata is None:
        raise PackageInputError(f"{label} has no <metadata> element")

    id_element = _child(metadata, "id")
    version_element = _child(metadata, "version")
    package_id = (id_element.text or "").strip() if id_element is not None else ""
    version = (version_element.text or "").strip() if version_element is not None else ""
    if not package_id or not version:
        raise PackageInputError(f"{label} is missing <id> or <version>")

    groups: list[DependencyGroup] = []
    dependencies = _child(metadata, "dependencies")
    if dependencies is not None:
        flat = [d for d in (_parse_dependency(e) for e in _children(dependencies, "dependency")) if d]
        if flat:
            groups.append(DependencyGroup(ANY, flat))

        for group in _children(dependencies, "group"):
            moniker = group.get("targetFramework")
            try:
                framework = Framework.parse(moniker) if moniker else ANY
            except FrameworkParseError:
                logger.warning(f"[NUSPEC] {package_id} {version}: skipping group for unsupported framework {moniker!r}")
                continue
            packages = [d for d in (_parse_dependency(e) for e in _children(group, "dependency")) if d]
            groups.append(DependencyGroup(framework, packages))

    return {
        "id": package_id,
        "version": version,
        "dependency_groups": groups,
    }
