"""
Package models — descriptors, content groups and resolved packages.

A ``PackageDescriptor`` is the immutable input handed to the resolver: the
identity of a package, its declared dependency groups and the flat list of
files it ships. ``LocalPackageWithGroups`` is the same package annotated with
the content groups picked for every requested target.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nuget_workspace.models.framework import Framework


@dataclass(frozen=True)
class PackageDependency:
    """A reference to another package, optionally with a version range."""

    id: str
    version_range: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "version": self.version_range}


@dataclass(frozen=True)
class DependencyGroup:
    """Dependencies declared for one target framework."""

    target_framework: Framework
    packages: tuple[PackageDependency, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "packages", tuple(self.packages))

    @property
    def package_ids(self) -> list[str]:
        return [p.id for p in self.packages]


@dataclass(frozen=True)
class FrameworkSpecificGroup:
    """Relative file paths selected for one target framework."""

    target_framework: Framework
    items: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class PackageDescriptor:
    """
    A resolved package: identity, declared dependency groups and file listing.

    ``files`` may be ``None`` when a reader could not produce a listing; the
    resolver rejects such descriptors as invalid input.
    """

    id: str
    version: str
    dependency_groups: tuple[DependencyGroup, ...] = ()
    files: tuple[str, ...] | None = ()
    checksum: str = ""

    def __post_init__(self):
        object.__setattr__(self, "dependency_groups", tuple(self.dependency_groups))
        if self.files is not None and not isinstance(self.files, (str, bytes)):
            object.__setattr__(self, "files", tuple(self.files))

    def dependency_group_for(self, framework: Framework) -> DependencyGroup | None:
        """Return the group declared for exactly ``framework`` (no fallback)."""
        for group in self.dependency_groups:
            if group.target_framework == framework:
                return group
        return None

    def to_dict(self) -> dict:
        """Serialize to the JSON descriptor format."""
        return {
            "id": self.id,
            "version": self.version,
            "sha256": self.checksum,
            "files": list(self.files) if self.files is not None else None,
            "dependencies": {
                group.target_framework.short_name: [p.to_dict() for p in group.packages]
                for group in self.dependency_groups
            },
        }

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


@dataclass
class LocalPackageWithGroups:
    """A package descriptor annotated with its compile, runtime and tool groups."""

    descriptor: PackageDescriptor
    lib_groups: list[FrameworkSpecificGroup] = field(default_factory=list)
    runtime_groups: list[FrameworkSpecificGroup] = field(default_factory=list)
    tool_groups: list[FrameworkSpecificGroup] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def has_runtime_content(self) -> bool:
        """True when at least one runtime group carries a file."""
        return any(group.items for group in self.runtime_groups)

    @property
    def has_content(self) -> bool:
        """True when a runtime or library group carries a file."""
        return self.has_runtime_content or any(group.items for group in self.lib_groups)

    @property
    def content_groups(self) -> list[FrameworkSpecificGroup]:
        """Runtime groups, or the library groups when no runtime group carries a file."""
        return self.runtime_groups if self.has_runtime_content else self.lib_groups
