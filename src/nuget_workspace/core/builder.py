"""
Workspace Entry Builder — turns resolved packages into workspace entries.

The build rules accept a single compiled assembly per entry. A package whose
content groups contain several assemblies is therefore split: every extra
assembly becomes a synthetic entry named after the assembly, and the entry
for the package itself depends on all of them.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Iterator

from nuget_workspace.core.content import ManagedCodeConventions
from nuget_workspace.core.policy import DEFAULT_POLICY, WorkspacePolicy
from nuget_workspace.core.pruner import DependencyPruner, LocalPackageIndex
from nuget_workspace.core.resolver import ContentGroupResolver
from nuget_workspace.models.entry import WorkspaceEntry
from nuget_workspace.models.framework import Framework, Target
from nuget_workspace.models.package import (
    DependencyGroup,
    FrameworkSpecificGroup,
    LocalPackageWithGroups,
    PackageDependency,
    PackageDescriptor,
)

logger = logging.getLogger(__name__)


def file_stem(path: str) -> str:
    """``lib/net45/Foo.Bar.dll`` -> ``Foo.Bar``."""
    return posixpath.splitext(posixpath.basename(path))[0]


def distinct_stems(groups: Iterable[FrameworkSpecificGroup]) -> list[str]:
    """Distinct file stems across ``groups``, case-insensitive, first spelling wins."""
    stems: list[str] = []
    seen: set[str] = set()
    for group in groups:
        for item in group.items:
            stem = file_stem(item)
            if stem.lower() not in seen:
                seen.add(stem.lower())
                stems.append(stem)
    return stems


def filter_stem(groups: Iterable[FrameworkSpecificGroup], stem: str) -> list[FrameworkSpecificGroup]:
    return [
        FrameworkSpecificGroup(
            group.target_framework,
            [item for item in group.items if file_stem(item).lower() == stem.lower()],
        )
        for group in groups
    ]


class WorkspaceEntryBuilder:
    """
    Builds workspace entries from packages.

    Usage:
        builder = WorkspaceEntryBuilder().with_target(Target.parse("net8.0"))
        resolved = [builder.resolve_groups(d) for d in descriptors]
        builder.with_local_packages(resolved)
        for package in resolved:
            entries.extend(builder.build(package))
    """

    def __init__(
        self,
        conventions: ManagedCodeConventions | None = None,
        main_file: str | None = None,
        policy: WorkspacePolicy = DEFAULT_POLICY,
    ):
        self.main_file = main_file
        self.policy = policy
        self.resolver = ContentGroupResolver(conventions)
        self.local_packages = LocalPackageIndex()

    @property
    def targets(self) -> list[Target]:
        return self.resolver.targets

    def with_target(self, target: Target | Framework | str) -> WorkspaceEntryBuilder:
        if isinstance(target, str):
            target = Target.parse(target)
        elif isinstance(target, Framework):
            target = Target(target)
        self.resolver.add_target(target)
        return self

    def resolve_groups(self, descriptor: PackageDescriptor) -> LocalPackageWithGroups:
        return self.resolver.resolve(descriptor)

    def with_local_packages(self, packages: Iterable[LocalPackageWithGroups]) -> WorkspaceEntryBuilder:
        """Set the table of local packages used for dependency pruning."""
        self.local_packages = LocalPackageIndex(packages)
        return self

    def build(self, package: LocalPackageWithGroups) -> Iterator[WorkspaceEntry]:
        """Yield the entries for ``package``: none, one, or split siblings followed by the main entry."""
        descriptor = package.descriptor
        pruner = DependencyPruner(self.local_packages, self.policy)
        dependency_groups = pruner.prune(descriptor.dependency_groups, owner_id=descriptor.id)

        if not package.has_content and not any(g.packages for g in dependency_groups):
            logger.debug(f"[BUILD] Skipping {descriptor}: no content and no dependencies")
            return

        source = self.policy.resolve_source(descriptor.id)
        version = self.policy.resolve_version(descriptor.id, descriptor.version)
        checksum = descriptor.checksum or ""
        content_groups = package.content_groups
        stems = distinct_stems(content_groups)

        if len(stems) <= 1:
            yield WorkspaceEntry(
                package_id=descriptor.id,
                version=version,
                checksum=checksum,
                dependency_groups=dependency_groups,
                lib_groups=content_groups,
                tool_groups=package.tool_groups,
                main_file=self.main_file,
                package_source=source,
            )
            return

        main_stem = next((s for s in stems if s.lower() == descriptor.id.lower()), stems[0])
        additional = [s for s in stems if s != main_stem]
        logger.info(f"[BUILD] Splitting {descriptor} into {main_stem} + {', '.join(additional)}")

        for stem in additional:
            yield WorkspaceEntry(
                package_id=descriptor.id,
                version=version,
                checksum=checksum,
                lib_groups=filter_stem(content_groups, stem),
                package_source=source,
                name=stem,
            )

        yield WorkspaceEntry(
            package_id=descriptor.id,
            version=version,
            checksum=checksum,
            dependency_groups=self._with_sibling_edges(dependency_groups, package, additional),
            lib_groups=filter_stem(content_groups, main_stem),
            tool_groups=package.tool_groups,
            main_file=self.main_file,
            package_source=source,
        )

    @staticmethod
    def _with_sibling_edges(
        dependency_groups: list[DependencyGroup], package: LocalPackageWithGroups, siblings: list[str]
    ) -> list[DependencyGroup]:
        sibling_edges = [PackageDependency(stem) for stem in siblings]
        if not dependency_groups:
            frameworks: list[Framework] = []
            for group in package.content_groups:
                if group.target_framework not in frameworks:
                    frameworks.append(group.target_framework)
            return [DependencyGroup(framework, sibling_edges) for framework in frameworks]
        return [
            DependencyGroup(group.target_framework, [*group.packages, *sibling_edges])
            for group in dependency_groups
        ]
