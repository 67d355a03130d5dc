"""
Selection criteria — ordered fallback rules for one target.

A target framework is compatible with lower versions of its own family, with
the .NET Standard versions it implements and with framework-neutral content.
A runtime identifier is compatible with the identifiers it imports in the
runtime graph. The criteria for a target list every (framework, runtime) pair
that may satisfy it, most specific first; the content layer picks the first
rule for which a package has files.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from nuget_workspace.models.framework import (
    ANY,
    NET_CORE_APP,
    NET_FRAMEWORK,
    NET_STANDARD,
    NET_UNVERSIONED,
    Framework,
    Target,
)


FRAMEWORK_VERSIONS: dict[str, list[tuple[int, ...]]] = {
    NET_FRAMEWORK: [
        (4, 8, 1), (4, 8), (4, 7, 2), (4, 7, 1), (4, 7), (4, 6, 2), (4, 6, 1), (4, 6),
        (4, 5, 2), (4, 5, 1), (4, 5), (4, 0, 3), (4, 0), (3, 5), (3, 0), (2, 0), (1, 1), (1, 0),
    ],
    NET_STANDARD: [
        (2, 1), (2, 0), (1, 6), (1, 5), (1, 4), (1, 3), (1, 2), (1, 1), (1, 0),
    ],
    NET_CORE_APP: [
        (10, 0), (9, 0), (8, 0), (7, 0), (6, 0), (5, 0),
        (3, 1), (3, 0), (2, 2), (2, 1), (2, 0), (1, 1), (1, 0),
    ],
}

# (family, minimum version) -> highest .NET Standard version implemented
NET_STANDARD_SUPPORT: dict[str, list[tuple[tuple[int, ...], tuple[int, ...]]]] = {
    NET_FRAMEWORK: [
        ((4, 6, 1), (2, 0)),
        ((4, 6), (1, 3)),
        ((4, 5, 1), (1, 2)),
        ((4, 5), (1, 1)),
    ],
    NET_CORE_APP: [
        ((3, 0), (2, 1)),
        ((2, 0), (2, 0)),
        ((1, 0), (1, 6)),
    ],
}

DEFAULT_RUNTIME_GRAPH: dict[str, tuple[str, ...]] = {
    "any": (),
    "win": ("any",),
    "win-x86": ("win",),
    "win-x64": ("win",),
    "win-arm64": ("win",),
    "unix": ("any",),
    "linux": ("unix",),
    "linux-x64": ("linux",),
    "linux-arm": ("linux",),
    "linux-arm64": ("linux",),
    "linux-musl": ("linux",),
    "linux-musl-x64": ("linux-musl", "linux-x64"),
    "linux-musl-arm64": ("linux-musl", "linux-arm64"),
    "osx": ("unix",),
    "osx-x64": ("osx",),
    "osx-arm64": ("osx",),
}


@dataclass(frozen=True)
class MatchRule:
    """Match groups for exactly this framework and runtime (``None`` = runtime-neutral)."""

    framework: Framework
    runtime: str | None = None

    @property
    def key(self) -> tuple[Framework, str | None]:
        return (self.framework, self.runtime)


@dataclass(frozen=True)
class SelectionCriteria:
    """Ordered fallback chain of match rules for one target."""

    target: Target
    rules: tuple[MatchRule, ...]

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def compatible_frameworks(target: Framework) -> list[Framework]:
    """
    Frameworks whose assets can be consumed by ``target``, nearest first.

    The chain is: the target, its platform-neutral form, lower versions of the
    same family, the .NET Standard versions it implements, then ``Any``.
    .NET Framework chains include the unversioned ``net`` framework used for
    assemblies placed directly under ``lib/``.
    """
    chain: list[Framework] = [target]
    neutral = target.without_platform()
    chain.append(neutral)

    known = FRAMEWORK_VERSIONS.get(target.identifier)
    if known is not None:
        for version in known:
            candidate = Framework(target.identifier, version)
            if candidate.version <= neutral.version:
                chain.append(candidate)

    if target.identifier == NET_FRAMEWORK:
        chain.append(NET_UNVERSIONED)

    highest_standard = _supported_net_standard(neutral)
    if highest_standard is not None:
        standard = Framework(NET_STANDARD, highest_standard)
        chain.append(standard)
        for version in FRAMEWORK_VERSIONS[NET_STANDARD]:
            candidate = Framework(NET_STANDARD, version)
            if candidate.version <= standard.version:
                chain.append(candidate)

    chain.append(ANY)

    ordered: list[Framework] = []
    for framework in chain:
        if framework not in ordered:
            ordered.append(framework)
    return ordered


def _supported_net_standard(framework: Framework) -> tuple[int, ...] | None:
    if framework.identifier == NET_STANDARD:
        return framework.version
    for minimum, standard in NET_STANDARD_SUPPORT.get(framework.identifier, []):
        if framework.version >= Framework(framework.identifier, minimum).version:
            return standard
    return None


def expand_runtime(runtime: str, graph: Mapping[str, Sequence[str]]) -> list[str]:
    """Breadth-first expansion of a runtime identifier through its imports."""
    ordered = [runtime]
    queue = [runtime]
    while queue:
        current = queue.pop(0)
        for imported in graph.get(current, ()):
            if imported not in ordered:
                ordered.append(imported)
                queue.append(imported)
    if "any" not in ordered:
        ordered.append("any")
    return ordered


class SelectionCriteriaProvider:
    """Builds the fallback chain of match rules for a target."""

    def __init__(self, runtime_graph: Mapping[str, Sequence[str]] | None = None):
        self.runtime_graph = dict(DEFAULT_RUNTIME_GRAPH if runtime_graph is None else runtime_graph)

    def is_known_runtime(self, runtime: str) -> bool:
        return runtime.lower() in self.runtime_graph

    def criteria_for(self, target: Target) -> SelectionCriteria:
        frameworks = compatible_frameworks(target.framework)
        rules: list[MatchRule] = []

        if target.runtime_identifier:
            # Framework nearness outranks runtime nearness
            runtimes = expand_runtime(target.runtime_identifier, self.runtime_graph)
            for framework in frameworks:
                rules.extend(MatchRule(framework, runtime) for runtime in runtimes)
            rules.extend(MatchRule(framework, None) for framework in frameworks)
        else:
            rules.extend(MatchRule(framework, None) for framework in frameworks)
            rules.extend(MatchRule(framework, "any") for framework in frameworks)

        return SelectionCriteria(target=target, rules=tuple(rules))
