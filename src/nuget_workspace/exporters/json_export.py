"""
JSON Exporter — Exports workspace entries as individual JSON files.
"""

import json
import logging
from pathlib import Path

import aiofiles

from nuget_workspace.models.entry import WorkspaceEntry

logger = logging.getLogger(__name__)


class JSONExporter:
    """
    Exports WorkspaceEntry objects as one JSON file per entry.

    Files are named after the entry's display name, lowercased, so synthetic
    entries split out of a package get their own file:

        output_dir/
        ├── newtonsoft.json.json
        ├── microsoft.identitymodel.json
        └── microsoft.identitymodel.logging.json

    An entry whose name is already taken by another package is written as
    {package}.{name}.json instead of overwriting the first file.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.count = 0
        self.owners: dict[str, str] = {}

    async def export(self, entry: WorkspaceEntry) -> None:
        """Export a single entry as a JSON file."""
        name = entry.display_name.lower()
        owner = self.owners.setdefault(name, entry.package_id)
        if owner.lower() != entry.package_id.lower():
            # Keep both: the later entry is qualified by its owning package
            logger.warning(f"[JSON] Entry name {entry.display_name} from {entry.package_id} also used by {owner}")
            name = f"{entry.package_id.lower()}.{name}"
        filepath = self.output_dir / f"{name}.json"

        async with aiofiles.open(filepath, "w") as f:
            await f.write(json.dumps(entry.to_dict(), indent=2))

        self.count += 1
        logger.debug(f"[JSON] Exported {entry.display_name}")

    async def finalize(self) -> None:
        """Log export summary."""
        logger.info(f"[JSON] Export complete: {self.count} entries exported to {self.output_dir}")
