"""Export backends for workspace entries."""

from nuget_workspace.exporters.base import Exporter
from nuget_workspace.exporters.bazel import BazelExporter
from nuget_workspace.exporters.json_export import JSONExporter
from nuget_workspace.exporters.sqlite import SQLiteExporter


def get_exporter(format_name: str, output_dir: str) -> Exporter:
    """Factory function to create an exporter by format name."""
    from pathlib import Path

    out = Path(output_dir)
    match format_name:
        case "bzl":
            return BazelExporter(output_dir=out)
        case "json":
            return JSONExporter(output_dir=out)
        case "sqlite":
            return SQLiteExporter(db_path=out / "workspace.db")
        case _:
            raise ValueError(f"Unknown export format: {format_name!r}. Use 'bzl', 'json', or 'sqlite'.")


__all__ = ["Exporter", "BazelExporter", "JSONExporter", "SQLiteExporter", "get_exporter"]
