"""
Starlark Exporter — writes a ``nuget_packages()`` macro for the build workspace.

Output (``nuget_packages.bzl``):

    load("@rules_dotnet//dotnet:defs.bzl", "nuget_package")

    def nuget_packages():
        nuget_package(
            name = "newtonsoft.json",
            package = "newtonsoft.json",
            version = "13.0.3",
            sha256 = "",
            lib = {
                "netstandard2.0": ["lib/netstandard2.0/Newtonsoft.Json.dll"],
            },
        )
"""

import json
import logging
from pathlib import Path

import aiofiles

from nuget_workspace.models.entry import WorkspaceEntry

logger = logging.getLogger(__name__)

DEFAULT_LOAD = 'load("@rules_dotnet//dotnet:defs.bzl", "nuget_package")'
INDENT = "    "


def _string(value: str) -> str:
    return json.dumps(value)


def _label(package_id: str) -> str:
    return f"@{package_id.lower()}//:lib"


def _dict_attr(name: str, mapping: dict[str, list[str]], depth: int = 2) -> list[str]:
    if not mapping:
        return []
    pad = INDENT * depth
    lines = [f"{pad}{name} = {{"]
    for key, values in mapping.items():
        rendered = ", ".join(_string(v) for v in values)
        lines.append(f"{pad}{INDENT}{_string(key)}: [{rendered}],")
    lines.append(f"{pad}}},")
    return lines


def render_entry(entry: WorkspaceEntry) -> str:
    """Render one ``nuget_package(...)`` call."""
    pad = INDENT * 2
    lines = [
        f"{INDENT}nuget_package(",
        f"{pad}name = {_string(entry.display_name.lower())},",
        f"{pad}package = {_string(entry.package_id.lower())},",
        f"{pad}version = {_string(entry.version)},",
        f"{pad}sha256 = {_string(entry.checksum)},",
    ]
    if entry.package_source:
        lines.append(f"{pad}source = {_string(entry.package_source)},")
    if entry.main_file:
        lines.append(f"{pad}main_file = {_string(entry.main_file)},")

    deps = {fw: [_label(d) for d in ids] for fw, ids in entry.dependencies.items()}
    lines.extend(_dict_attr("deps", deps))
    lines.extend(_dict_attr("lib", entry.files))
    lines.extend(_dict_attr("tools", entry.tools))
    lines.append(f"{INDENT})")
    return "\n".join(lines)


class BazelExporter:
    """
    Collects entries and writes them as one Starlark macro file on finalize.
    """

    def __init__(self, output_dir: Path, filename: str = "nuget_packages.bzl", load_statement: str = DEFAULT_LOAD):
        self.output_dir = output_dir
        self.filepath = output_dir / filename
        self.load_statement = load_statement
        self.blocks: list[str] = []
        self.count = 0
        self.owners: dict[str, str] = {}

    async def export(self, entry: WorkspaceEntry) -> None:
        """Render a single entry into the pending macro body."""
        owner = self.owners.setdefault(entry.display_name.lower(), entry.package_id)
        if owner.lower() != entry.package_id.lower():
            logger.warning(f"[BZL] Repository name {entry.display_name} from {entry.package_id} also used by {owner}")
        self.blocks.append(render_entry(entry))
        self.count += 1
        logger.debug(f"[BZL] Rendered {entry.display_name}")

    def render(self) -> str:
        body = "\n\n".join(self.blocks) if self.blocks else f"{INDENT}pass"
        return (
            '"""Generated by nuget-workspace. Do not edit."""\n\n'
            f"{self.load_statement}\n\n"
            "def nuget_packages():\n"
            f"{body}\n"
        )

    async def finalize(self) -> None:
        """Write the macro file."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.filepath, "w") as f:
            await f.write(self.render())
        logger.info(f"[BZL] Export complete: {self.count} entries written to {self.filepath}")
