"""
Dependency Closure Pruner — elides content-free packages from dependency groups.

The build workspace only gets entries for packages that carry files, so an
edge to a pass-through package (dependencies but no runtime or library files) is
replaced by that package's own dependencies, recursively.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping

from nuget_workspace.core.errors import DependencyCycleError, PackageInputError
from nuget_workspace.core.policy import DEFAULT_POLICY, WorkspacePolicy
from nuget_workspace.models.framework import Framework
from nuget_workspace.models.package import (
    DependencyGroup,
    LocalPackageWithGroups,
    PackageDependency,
)

logger = logging.getLogger(__name__)


class LocalPackageIndex(Mapping):
    """Read-only, case-insensitive lookup of local packages by id."""

    def __init__(self, packages: Iterable[LocalPackageWithGroups] = ()):
        self._packages: dict[str, LocalPackageWithGroups] = {}
        for package in packages:
            key = package.id.lower()
            if key in self._packages:
                existing = self._packages[key].descriptor
                raise PackageInputError(
                    f"Duplicate local package (already have {existing})",
                    package.id,
                    package.descriptor.version,
                )
            self._packages[key] = package

    def __getitem__(self, package_id: str) -> LocalPackageWithGroups:
        return self._packages[package_id.lower()]

    def __contains__(self, package_id) -> bool:
        return isinstance(package_id, str) and package_id.lower() in self._packages

    def __iter__(self) -> Iterator[str]:
        return (package.id for package in self._packages.values())

    def __len__(self) -> int:
        return len(self._packages)


class DependencyPruner:
    """
    Rewrites dependency groups against a fixed table of local packages.

    For each edge:
    - SDK assemblies are kept
    - packages outside the local table are kept
    - local packages with runtime or library files are kept
    - content-free local packages are replaced by their own dependencies for
      the exact same framework, or dropped when they declare none for it
    """

    def __init__(self, local_packages: Mapping[str, LocalPackageWithGroups], policy: WorkspacePolicy = DEFAULT_POLICY):
        self.local_packages = local_packages
        self.policy = policy

    def prune(self, dependency_groups: Iterable[DependencyGroup], owner_id: str | None = None) -> list[DependencyGroup]:
        """Return ``dependency_groups`` with pass-through packages elided."""
        path = (owner_id,) if owner_id else ()
        return [
            DependencyGroup(group.target_framework, self._prune_edges(group.packages, group.target_framework, path))
            for group in dependency_groups
        ]

    def _prune_edges(
        self, dependencies: Iterable[PackageDependency], framework: Framework, path: tuple[str, ...]
    ) -> list[PackageDependency]:
        kept: list[PackageDependency] = []
        seen: set[str] = set()
        for dependency in dependencies:
            for edge in self._resolve_edge(dependency, framework, path):
                key = edge.id.lower()
                if key not in seen:
                    seen.add(key)
                    kept.append(edge)
        return kept

    def _resolve_edge(
        self, dependency: PackageDependency, framework: Framework, path: tuple[str, ...]
    ) -> list[PackageDependency]:
        if self.policy.is_sdk_assembly(dependency.id):
            return [dependency]

        if dependency.id not in self.local_packages:
            return [dependency]

        local = self.local_packages[dependency.id]
        if local.has_content:
            return [dependency]

        if dependency.id.lower() in (p.lower() for p in path):
            raise DependencyCycleError([*path, dependency.id])

        # Exact framework only: no fallback when expanding a pass-through package
        group = local.descriptor.dependency_group_for(framework)
        if group is None:
            logger.debug(f"[PRUNE] Dropping {dependency.id} for {framework}: no content, no dependencies")
            return []

        logger.debug(f"[PRUNE] Replacing {dependency.id} for {framework} by its dependencies")
        return self._prune_edges(group.packages, framework, (*path, dependency.id))
