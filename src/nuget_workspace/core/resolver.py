"""
Content Group Resolver — picks compile, runtime and tool files per target.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from nuget_workspace.core.content import ContentItemCollection, ManagedCodeConventions
from nuget_workspace.core.errors import PackageInputError
from nuget_workspace.models.framework import Target
from nuget_workspace.models.package import (
    FrameworkSpecificGroup,
    LocalPackageWithGroups,
    PackageDescriptor,
)

logger = logging.getLogger(__name__)


class ContentGroupResolver:
    """
    Resolves the best content groups of a package for a list of targets.

    For every target:
    - compile: reference assemblies (``ref/``) before library assemblies (``lib/``)
    - runtime: runtime assemblies, falling back to the compile group
    - tools: tool files

    A role without a match contributes no group for that target.
    """

    def __init__(self, conventions: ManagedCodeConventions | None = None, targets: Iterable[Target] = ()):
        self.conventions = conventions or ManagedCodeConventions()
        self.targets: list[Target] = list(targets)

    def add_target(self, target: Target) -> None:
        self.targets.append(target)

    def resolve(self, descriptor: PackageDescriptor) -> LocalPackageWithGroups:
        """Resolve the content groups of ``descriptor`` for every configured target."""
        collection = ContentItemCollection(self.conventions)
        collection.load(self._validated_files(descriptor))

        lib_groups: list[FrameworkSpecificGroup] = []
        runtime_groups: list[FrameworkSpecificGroup] = []
        tool_groups: list[FrameworkSpecificGroup] = []

        for target in self.targets:
            criteria = self.conventions.criteria.criteria_for(target)

            best_compile = collection.find_best_item_group(
                criteria,
                self.conventions.compile_ref_assemblies,
                self.conventions.compile_lib_assemblies,
            )
            best_runtime = (
                collection.find_best_item_group(criteria, self.conventions.runtime_assemblies)
                or best_compile
            )
            best_tools = collection.find_best_item_group(criteria, self.conventions.tools_assemblies)

            if best_compile is not None:
                lib_groups.append(FrameworkSpecificGroup(target.framework, best_compile.paths))
            if best_runtime is not None:
                runtime_groups.append(FrameworkSpecificGroup(target.framework, best_runtime.paths))
            if best_tools is not None:
                tool_groups.append(FrameworkSpecificGroup(target.framework, best_tools.paths))

            logger.debug(
                f"[RESOLVE] {descriptor} for {target}: "
                f"compile={_describe(best_compile)}, runtime={_describe(best_runtime)}, "
                f"tools={_describe(best_tools)}"
            )

        return LocalPackageWithGroups(descriptor, lib_groups, runtime_groups, tool_groups)

    @staticmethod
    def _validated_files(descriptor: PackageDescriptor) -> tuple[str, ...]:
        files = descriptor.files
        if files is None:
            raise PackageInputError("Package has no file listing", descriptor.id, descriptor.version)
        if isinstance(files, (str, bytes)):
            raise PackageInputError("File listing must be a list of paths", descriptor.id, descriptor.version)
        for path in files:
            if not isinstance(path, str):
                raise PackageInputError(
                    f"File listing contains a non-path entry: {path!r}", descriptor.id, descriptor.version
                )
        return files


def _describe(group) -> str:
    if group is None:
        return "none"
    runtime = f"/{group.runtime}" if group.runtime else ""
    return f"{group.framework.short_name}{runtime}"
