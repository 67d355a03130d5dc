"""
Content model — file-layout conventions and best-group selection.

Conventions are declared as an ordered table of pattern sets. Each pattern
set is a list of path templates built from literal segments and tokens:

    {tfm}       one segment, parsed as a target framework
    {rid}       one segment, a runtime identifier known to the runtime graph
    {assembly}  the last segment, a .dll/.exe/.winmd file or the ``_._`` placeholder
    {any}       one or more remaining segments

Matching a package's files against a pattern set groups them by
(framework, runtime). Selecting the best group for a target walks the
target's fallback rules and returns the first group any of the requested
pattern sets has for that rule; pattern sets are tried in the order given.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from nuget_workspace.core.criteria import SelectionCriteria, SelectionCriteriaProvider
from nuget_workspace.models.framework import (
    ANY,
    NET_UNVERSIONED,
    Framework,
    FrameworkParseError,
)

logger = logging.getLogger(__name__)

ASSEMBLY_EXTENSIONS = (".dll", ".exe", ".winmd")

# Marks a supported framework folder that intentionally ships no files
EMPTY_FOLDER_PLACEHOLDER = "_._"

TFM_TOKEN = "{tfm}"
RID_TOKEN = "{rid}"
ASSEMBLY_TOKEN = "{assembly}"
ANY_TOKEN = "{any}"


@dataclass(frozen=True)
class PatternDefinition:
    """A path template plus the framework to assume when it has no ``{tfm}``."""

    template: str
    default_framework: Framework | None = None

    @property
    def segments(self) -> list[str]:
        return self.template.split("/")


@dataclass(frozen=True)
class PatternSet:
    name: str
    definitions: tuple[PatternDefinition, ...]


@dataclass(frozen=True)
class ContentItem:
    """A package file matched by a pattern definition."""

    path: str
    framework: Framework
    runtime: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return posixpath.basename(self.path) == EMPTY_FOLDER_PLACEHOLDER


@dataclass
class ContentItemGroup:
    """Items of one pattern set sharing a framework and runtime."""

    framework: Framework
    runtime: str | None
    items: list[ContentItem] = field(default_factory=list)

    @property
    def paths(self) -> tuple[str, ...]:
        """Distinct file paths in load order, placeholders excluded."""
        seen: list[str] = []
        for item in self.items:
            if not item.is_placeholder and item.path not in seen:
                seen.append(item.path)
        return tuple(seen)


COMPILE_REF_ASSEMBLIES = PatternSet(
    "compile_ref",
    (PatternDefinition("ref/{tfm}/{assembly}"),),
)
COMPILE_LIB_ASSEMBLIES = PatternSet(
    "compile_lib",
    (
        PatternDefinition("lib/{tfm}/{assembly}"),
        PatternDefinition("lib/{assembly}", default_framework=NET_UNVERSIONED),
    ),
)
RUNTIME_ASSEMBLIES = PatternSet(
    "runtime",
    (
        PatternDefinition("runtimes/{rid}/lib/{tfm}/{assembly}"),
        PatternDefinition("lib/{tfm}/{assembly}"),
        PatternDefinition("lib/{assembly}", default_framework=NET_UNVERSIONED),
    ),
)
TOOLS_ASSEMBLIES = PatternSet(
    "tools",
    (
        PatternDefinition("tools/{tfm}/{rid}/{any}"),
        PatternDefinition("tools/{tfm}/{any}"),
        PatternDefinition("tools/{any}", default_framework=ANY),
    ),
)


class ManagedCodeConventions:
    """
    The managed-code layout conventions of a package.

    Holds the pattern set table and the criteria provider built from the
    same runtime graph, so ``{rid}`` segments and fallback rules agree.
    """

    def __init__(self, criteria: SelectionCriteriaProvider | None = None):
        self.criteria = criteria or SelectionCriteriaProvider()
        self.compile_ref_assemblies = COMPILE_REF_ASSEMBLIES
        self.compile_lib_assemblies = COMPILE_LIB_ASSEMBLIES
        self.runtime_assemblies = RUNTIME_ASSEMBLIES
        self.tools_assemblies = TOOLS_ASSEMBLIES

    def match(self, path: str, definition: PatternDefinition) -> ContentItem | None:
        """Match one normalized path against a definition, or return None."""
        parts = path.split("/")
        tokens = definition.segments
        framework = definition.default_framework
        runtime = None

        for index, token in enumerate(tokens):
            if token == ANY_TOKEN:
                # Must consume at least one segment
                if index >= len(parts) or not all(parts[index:]):
                    return None
                break
            if index >= len(parts):
                return None
            part = parts[index]
            is_last = index == len(tokens) - 1

            if token == TFM_TOKEN:
                try:
                    framework = Framework.parse(part)
                except FrameworkParseError:
                    logger.debug(f"[CONTENT] Ignoring {path}: unsupported framework folder {part!r}")
                    return None
            elif token == RID_TOKEN:
                if not self.criteria.is_known_runtime(part):
                    return None
                runtime = part.lower()
            elif token == ASSEMBLY_TOKEN:
                if not is_last or index != len(parts) - 1:
                    return None
                if part != EMPTY_FOLDER_PLACEHOLDER and not part.lower().endswith(ASSEMBLY_EXTENSIONS):
                    return None
            elif token.lower() != part.lower():
                return None
        else:
            if len(parts) != len(tokens):
                return None

        if framework is None:
            return None
        return ContentItem(path=path, framework=framework, runtime=runtime)


def normalize_path(path: str) -> str:
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


class ContentItemCollection:
    """The files of one package, queryable by convention."""

    def __init__(self, conventions: ManagedCodeConventions):
        self.conventions = conventions
        self.paths: tuple[str, ...] = ()

    def load(self, paths: Iterable[str]) -> None:
        """Load the package file listing; directory entries are skipped."""
        loaded = []
        for path in paths:
            normalized = normalize_path(path)
            if normalized and not normalized.endswith("/"):
                loaded.append(normalized)
        self.paths = tuple(loaded)

    def find_item_groups(self, pattern_set: PatternSet) -> dict[tuple[Framework, str | None], ContentItemGroup]:
        """Group the files matching ``pattern_set`` by (framework, runtime)."""
        groups: dict[tuple[Framework, str | None], ContentItemGroup] = {}
        for path in self.paths:
            for definition in pattern_set.definitions:
                item = self.conventions.match(path, definition)
                if item is None:
                    continue
                key = (item.framework, item.runtime)
                groups.setdefault(key, ContentItemGroup(item.framework, item.runtime)).items.append(item)
                break
        return groups

    def find_best_item_group(
        self, criteria: SelectionCriteria, *pattern_sets: PatternSet
    ) -> ContentItemGroup | None:
        """
        Return the best group for ``criteria`` across ``pattern_sets``.

        The first rule of the fallback chain with a matching group wins; when
        several pattern sets have a group for that rule, the earliest pattern
        set given wins.
        """
        candidates: Sequence[dict] = [self.find_item_groups(p) for p in pattern_sets]
        if not any(candidates):
            return None

        for rule in criteria:
            for groups in candidates:
                group = groups.get(rule.key)
                if group is not None:
                    return group
        return None
