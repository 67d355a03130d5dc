"""
Exporter Protocol — Base interface for all entry sinks.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from nuget_workspace.models.entry import WorkspaceEntry


@runtime_checkable
class Exporter(Protocol):
    """
    Protocol that all exporters must implement.

    Exporters receive workspace entries in emission order and persist them
    in their respective format (Starlark macro file, JSON, SQLite).
    """

    async def export(self, entry: WorkspaceEntry) -> None:
        """Export a single workspace entry."""
        ...

    async def finalize(self) -> None:
        """Called after all entries have been exported. Use for flushing and cleanup."""
        ...
