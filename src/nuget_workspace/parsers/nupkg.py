"""
Local package readers.

Builds package descriptors from packages already present on disk:
- ``.nupkg`` archives (zip files with a ``.nuspec`` at the root)
- extracted package folders, as laid out by the NuGet global packages folder
  (``<id>/<version>/`` with the ``.nuspec`` and the package content)

Packaging metadata (OPC parts, signatures, hash markers) is not package
content and is left out of the file listing.
"""

import hashlib
import logging
import zipfile
from pathlib import Path

from nuget_workspace.core.errors import PackageInputError
from nuget_workspace.models.package import PackageDescriptor
from nuget_workspace.parsers.nuspec import parse_nuspec

logger = logging.getLogger(__name__)

ARCHIVE_METADATA_PREFIXES = ("_rels/", "package/")
ARCHIVE_METADATA_FILES = ("[content_types].xml", ".signature.p7s")
FOLDER_METADATA_SUFFIXES = (".nupkg", ".nupkg.sha512", ".nupkg.metadata", ".signature.p7s")


def _is_archive_metadata(name: str) -> bool:
    lowered = name.lower()
    if lowered.startswith(ARCHIVE_METADATA_PREFIXES) or lowered in ARCHIVE_METADATA_FILES:
        return True
    # The manifest lives at the archive root
    return "/" not in lowered and lowered.endswith(".nuspec")


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def read_nupkg(path: Path | str) -> PackageDescriptor:
    """Read a ``.nupkg`` archive into a package descriptor."""
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as archive:
            names = [info.filename for info in archive.infolist() if not info.is_dir()]
            manifests = [n for n in names if "/" not in n and n.lower().endswith(".nuspec")]
            if len(manifests) != 1:
                raise PackageInputError(f"{path.name}: expected one root .nuspec, found {len(manifests)}")
            manifest = parse_nuspec(archive.read(manifests[0]), source=f"{path.name}!{manifests[0]}")
    except (zipfile.BadZipFile, OSError) as e:
        raise PackageInputError(f"Cannot read package archive {path}: {e}") from e

    files = sorted(n for n in names if not _is_archive_metadata(n))
    logger.debug(f"[NUPKG] {path.name}: {manifest['id']} {manifest['version']}, {len(files)} files")

    return PackageDescriptor(
        id=manifest["id"],
        version=manifest["version"],
        dependency_groups=manifest["dependency_groups"],
        files=files,
        checksum=_sha256(path),
    )


def read_package_folder(path: Path | str) -> PackageDescriptor:
    """Read an extracted package folder into a package descriptor."""
    path = Path(path)
    manifests = sorted(path.glob("*.nuspec"))
    if len(manifests) != 1:
        raise PackageInputError(f"{path}: expected one .nuspec, found {len(manifests)}")

    try:
        content = manifests[0].read_bytes()
    except OSError as e:
        raise PackageInputError(f"Cannot read {manifests[0]}: {e}") from e
    manifest = parse_nuspec(content, source=str(manifests[0]))

    files = []
    for file_path in sorted(p for p in path.rglob("*") if p.is_file()):
        relative = file_path.relative_to(path).as_posix()
        lowered = relative.lower()
        if file_path == manifests[0] or lowered.endswith(FOLDER_METADATA_SUFFIXES):
            continue
        files.append(relative)

    logger.debug(f"[NUPKG] {path}: {manifest['id']} {manifest['version']}, {len(files)} files")

    return PackageDescriptor(
        id=manifest["id"],
        version=manifest["version"],
        dependency_groups=manifest["dependency_groups"],
        files=files,
    )


def find_packages(root: Path | str) -> list[Path]:
    """
    Find every package below ``root``, ordered by path.

    A folder holding a ``.nuspec`` is an extracted package (and is not
    searched further); any other ``.nupkg`` file is an archive.
    """
    root = Path(root)
    if not root.is_dir():
        raise PackageInputError(f"Packages directory not found: {root}")

    found: list[Path] = []
    pending = [root]
    while pending:
        folder = pending.pop()
        if folder != root and any(folder.glob("*.nuspec")):
            found.append(folder)
            continue
        for entry in folder.iterdir():
            if entry.is_dir():
                pending.append(entry)
            elif entry.suffix.lower() == ".nupkg":
                found.append(entry)

    return sorted(found)


def read_package(path: Path | str) -> PackageDescriptor:
    """Read an archive or an extracted package folder."""
    path = Path(path)
    if path.is_dir():
        return read_package_folder(path)
    return read_nupkg(path)


def discover_packages(root: Path | str) -> list[PackageDescriptor]:
    """Read every package below ``root``; the first unreadable package raises."""
    descriptors = [read_package(path) for path in find_packages(root)]
    logger.info(f"[NUPKG] Discovered {len(descriptors)} packages under {root}")
    return descriptors
