"""
JSON package descriptor format.

A descriptor file lists already-resolved packages without their archives:

    {
      "packages": [
        {
          "id": "Newtonsoft.Json",
          "version": "13.0.3",
          "sha256": "",
          "files": ["lib/netstandard2.0/Newtonsoft.Json.dll"],
          "dependencies": {
            "netstandard2.0": [{"id": "System.Runtime", "version": "4.3.0"}]
          }
        }
      ]
    }

Dependencies may also be given as plain id strings.
"""

import json
import logging
from pathlib import Path

from nuget_workspace.core.errors import PackageInputError
from nuget_workspace.models.framework import Framework, FrameworkParseError
from nuget_workspace.models.package import DependencyGroup, PackageDependency, PackageDescriptor

logger = logging.getLogger(__name__)


def _parse_dependency(entry, package_id: str, version: str) -> PackageDependency:
    match entry:
        case str():
            return PackageDependency(entry)
        case {"id": str() as dep_id}:
            range_ = entry.get("version")
            return PackageDependency(dep_id, str(range_) if range_ is not None else None)
        case _:
            raise PackageInputError(f"Malformed dependency: {entry!r}", package_id, version)


def parse_descriptor(data: dict) -> PackageDescriptor:
    """Build one package descriptor from its JSON object."""
    if not isinstance(data, dict):
        raise PackageInputError(f"Package entry must be an object, got {type(data).__name__}")

    package_id = data.get("id")
    version = data.get("version")
    if not isinstance(package_id, str) or not package_id or version is None:
        raise PackageInputError("Package entry needs 'id' and 'version'", package_id or None)
    version = str(version)

    dependencies = data.get("dependencies") or {}
    if not isinstance(dependencies, dict):
        raise PackageInputError("'dependencies' must map frameworks to lists", package_id, version)

    groups = []
    for moniker, entries in dependencies.items():
        try:
            framework = Framework.parse(moniker)
        except FrameworkParseError as e:
            raise PackageInputError(f"Malformed dependency group: {e}", package_id, version) from e
        if not isinstance(entries, list):
            raise PackageInputError(f"Dependency group {moniker!r} must be a list", package_id, version)
        groups.append(DependencyGroup(framework, [_parse_dependency(e, package_id, version) for e in entries]))

    # A missing file list is kept as None; the resolver reports it.
    return PackageDescriptor(
        id=package_id,
        version=version,
        dependency_groups=groups,
        files=data.get("files"),
        checksum=data.get("sha256") or "",
    )


def parse_descriptors(data) -> list[PackageDescriptor]:
    """Parse a descriptor document: ``{"packages": [...]}`` or a bare list."""
    entries = data.get("packages") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise PackageInputError("Descriptor document must contain a 'packages' list")
    return [parse_descriptor(entry) for entry in entries]


def load_descriptors(path: Path | str) -> list[PackageDescriptor]:
    """Load package descriptors from a JSON file."""
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except OSError as e:
        raise PackageInputError(f"Cannot read descriptor file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PackageInputError(f"Descriptor file {path} is not valid JSON: {e}") from e

    descriptors = parse_descriptors(data)
    logger.info(f"[DESCRIPTOR] Loaded {len(descriptors)} packages from {path}")
    return descriptors
