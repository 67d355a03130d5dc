"""
Workspace entry — one buildable unit in the generated build graph.
"""

from __future__ import annotations

from dataclasses import dataclass

from nuget_workspace.models.package import DependencyGroup, FrameworkSpecificGroup


def _merge_items(groups) -> dict[str, list[str]]:
    """Map framework short name -> ordered distinct items across groups."""
    merged: dict[str, list[str]] = {}
    for group in groups:
        bucket = merged.setdefault(group.target_framework.short_name, [])
        for item in group.items:
            if item not in bucket:
                bucket.append(item)
    return merged


@dataclass(frozen=True)
class WorkspaceEntry:
    """
    A package (or a synthetic part of one) as emitted to the build workspace.

    ``name`` is only set for synthetic entries split out of a package that
    ships several assemblies; it overrides the display name.
    """

    package_id: str
    version: str
    checksum: str = ""
    dependency_groups: tuple[DependencyGroup, ...] = ()
    lib_groups: tuple[FrameworkSpecificGroup, ...] = ()
    tool_groups: tuple[FrameworkSpecificGroup, ...] = ()
    main_file: str | None = None
    package_source: str | None = None
    name: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "dependency_groups", tuple(self.dependency_groups))
        object.__setattr__(self, "lib_groups", tuple(self.lib_groups))
        object.__setattr__(self, "tool_groups", tuple(self.tool_groups))

    @property
    def display_name(self) -> str:
        return self.name or self.package_id

    @property
    def dependencies(self) -> dict[str, list[str]]:
        """Framework short name -> distinct dependency ids."""
        merged: dict[str, list[str]] = {}
        for group in self.dependency_groups:
            bucket = merged.setdefault(group.target_framework.short_name, [])
            for dep in group.packages:
                if dep.id.lower() not in (d.lower() for d in bucket):
                    bucket.append(dep.id)
        return merged

    @property
    def files(self) -> dict[str, list[str]]:
        return _merge_items(self.lib_groups)

    @property
    def tools(self) -> dict[str, list[str]]:
        return _merge_items(self.tool_groups)

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "name": self.display_name,
            "package": self.package_id,
            "version": self.version,
            "sha256": self.checksum,
            "source": self.package_source,
            "main_file": self.main_file,
            "dependencies": self.dependencies,
            "files": self.files,
            "tools": self.tools,
        }
