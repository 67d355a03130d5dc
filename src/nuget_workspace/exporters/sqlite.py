"""
SQLite Exporter — Exports workspace entries to a SQLite database.

Useful for querying a generated workspace (which packages were split, which
ones come from a private feed) without parsing the Starlark output.
"""

import json
import logging
import sqlite3
from pathlib import Path

from nuget_workspace.models.entry import WorkspaceEntry

logger = logging.getLogger(__name__)


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS entries (
    name TEXT NOT NULL,
    package TEXT NOT NULL,
    version TEXT NOT NULL,
    sha256 TEXT,
    source TEXT,
    main_file TEXT,
    dependencies TEXT,
    files TEXT,
    tools TEXT,
    PRIMARY KEY (name, package)
)
"""

INSERT_SQL = """
INSERT OR REPLACE INTO entries
(name, package, version, sha256, source, main_file, dependencies, files, tools)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class SQLiteExporter:
    """
    Exports WorkspaceEntry objects to a SQLite database.

    Creates an 'entries' table keyed by display name and owning package, so a
    synthetic entry split out of one package never replaces a real package of
    the same name.
    Dict fields are stored as JSON strings.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(db_path))
        self.conn.execute(CREATE_TABLE_SQL)
        self.conn.commit()
        self.count = 0
        self.owners: dict[str, str] = {}

    async def export(self, entry: WorkspaceEntry) -> None:
        """Export a single entry to the SQLite database."""
        owner = self.owners.setdefault(entry.display_name.lower(), entry.package_id)
        if owner.lower() != entry.package_id.lower():
            logger.warning(f"[SQLite] Entry name {entry.display_name} from {entry.package_id} also used by {owner}")
        self.conn.execute(
            INSERT_SQL,
            (
                entry.display_name,
                entry.package_id,
                entry.version,
                entry.checksum,
                entry.package_source,
                entry.main_file,
                json.dumps(entry.dependencies),
                json.dumps(entry.files),
                json.dumps(entry.tools),
            ),
        )
        self.count += 1

        # Commit every 100 items for performance
        if self.count % 100 == 0:
            self.conn.commit()

    async def finalize(self) -> None:
        """Commit remaining changes and close the connection."""
        self.conn.commit()
        self.conn.close()
        logger.info(f"[SQLite] Export complete: {self.count} entries exported to {self.db_path}")
