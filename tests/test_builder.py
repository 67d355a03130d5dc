"""Tests for the workspace entry builder."""

import pytest

from nuget_workspace.core.builder import WorkspaceEntryBuilder, distinct_stems, file_stem
from nuget_workspace.core.errors import DependencyCycleError
from nuget_workspace.core.policy import SourceRule, WorkspacePolicy
from nuget_workspace.models.framework import Framework, Target
from nuget_workspace.models.package import (
    DependencyGroup,
    FrameworkSpecificGroup,
    PackageDependency,
    PackageDescriptor,
)

NET472 = Framework.parse("net472")


def descriptor(package_id, files=(), deps=None, version="1.0.0"):
    groups = [
        DependencyGroup(Framework.parse(tfm), [PackageDependency(i) for i in ids])
        for tfm, ids in (deps or {}).items()
    ]
    return PackageDescriptor(id=package_id, version=version, dependency_groups=groups, files=list(files))


def build_all(builder, *descriptors):
    """Resolve every descriptor, install them as the local table and build in order."""
    resolved = [builder.resolve_groups(d) for d in descriptors]
    builder.with_local_packages(resolved)
    entries = []
    for package in resolved:
        entries.extend(builder.build(package))
    return entries


@pytest.fixture
def builder():
    return WorkspaceEntryBuilder().with_target("net472")


# ═══════════════════════════════════════════
# Stem Helpers
# ═══════════════════════════════════════════


class TestStems:
    def test_file_stem(self):
        assert file_stem("lib/net45/Foo.Bar.dll") == "Foo.Bar"
        assert file_stem("Foo.exe") == "Foo"

    def test_distinct_stems_case_insensitive(self):
        groups = [
            FrameworkSpecificGroup(NET472, ["lib/net45/Foo.dll", "lib/net45/Bar.dll"]),
            FrameworkSpecificGroup(Framework.parse("net8.0"), ["lib/netstandard2.0/foo.dll"]),
        ]
        assert distinct_stems(groups) == ["Foo", "Bar"]


# ═══════════════════════════════════════════
# Single Entries
# ═══════════════════════════════════════════


class TestSingleEntry:
    def test_simple_package(self, builder):
        entries = build_all(builder, descriptor("Foo", ["lib/net45/Foo.dll"], {"net45": ["Other"]}))
        assert len(entries) == 1
        entry = entries[0]
        assert entry.display_name == "Foo"
        assert entry.version == "1.0.0"
        assert entry.files == {"net472": ["lib/net45/Foo.dll"]}
        assert entry.dependencies == {"net45": ["Other"]}
        assert entry.package_source is None
        assert entry.name is None

    def test_empty_package_dropped(self, builder):
        assert build_all(builder, descriptor("Empty")) == []

    def test_placeholder_only_package_dropped(self, builder):
        assert build_all(builder, descriptor("Facade", ["lib/net45/_._"])) == []

    def test_reference_with_placeholder_runtime_emitted(self, builder):
        files = ["ref/net46/System.Facade.dll", "lib/net46/_._"]
        entries = build_all(builder, descriptor("System.Facade", files))
        assert len(entries) == 1
        assert entries[0].files == {"net472": ["ref/net46/System.Facade.dll"]}

    def test_edges_to_reference_only_package_kept(self, builder):
        entries = build_all(
            builder,
            descriptor("App", ["lib/net45/App.dll"], {"net472": ["System.Facade"]}),
            descriptor("System.Facade", ["ref/net46/System.Facade.dll", "lib/net46/_._"]),
        )
        assert entries[0].dependencies == {"net472": ["System.Facade"]}

    def test_content_free_package_with_dependencies_emitted(self, builder):
        entries = build_all(builder, descriptor("Meta", deps={"net472": ["Outside"]}))
        assert len(entries) == 1
        assert entries[0].files == {}
        assert entries[0].dependencies == {"net472": ["Outside"]}

    def test_pass_through_dependency_pruned(self, builder):
        entries = build_all(
            builder,
            descriptor("A", ["lib/net45/A.dll"], {"net472": ["B"]}),
            descriptor("B", deps={"net472": ["C"]}),
            descriptor("C", ["lib/net45/C.dll"]),
        )
        by_name = {e.display_name: e for e in entries}
        assert by_name["A"].dependencies == {"net472": ["C"]}
        # B is content-free but still carries an edge, so it keeps an entry
        assert by_name["B"].dependencies == {"net472": ["C"]}

    def test_tools_and_main_file(self):
        builder = WorkspaceEntryBuilder(main_file="Foo.Tool.dll").with_target("net8.0")
        entries = build_all(builder, descriptor("Foo.Tool", ["tools/net8.0/any/Foo.Tool.dll"], {"net8.0": ["Dep"]}))
        assert entries[0].tools == {"net8.0": ["tools/net8.0/any/Foo.Tool.dll"]}
        assert entries[0].main_file == "Foo.Tool.dll"

    def test_checksum_carried(self, builder):
        d = PackageDescriptor(id="Foo", version="1.0.0", files=["lib/net45/Foo.dll"], checksum="abc123")
        assert build_all(builder, d)[0].checksum == "abc123"


# ═══════════════════════════════════════════
# Multi-Assembly Split
# ═══════════════════════════════════════════


class TestSplit:
    def test_siblings_before_main_entry(self, builder):
        files = ["lib/net45/Foo.dll", "lib/net45/Bar.dll"]
        entries = build_all(builder, descriptor("Foo", files, {"net472": ["Dep"]}))

        assert [e.display_name for e in entries] == ["Bar", "Foo"]
        bar, foo = entries
        assert bar.package_id == "Foo"
        assert bar.files == {"net472": ["lib/net45/Bar.dll"]}
        assert bar.dependencies == {}
        assert foo.files == {"net472": ["lib/net45/Foo.dll"]}
        assert foo.dependencies == {"net472": ["Dep", "Bar"]}

    def test_main_stem_defaults_to_first(self, builder):
        files = ["lib/net45/Alpha.dll", "lib/net45/Beta.dll"]
        entries = build_all(builder, descriptor("Pkg", files))
        assert [e.display_name for e in entries] == ["Beta", "Pkg"]
        assert entries[1].files == {"net472": ["lib/net45/Alpha.dll"]}

    def test_sibling_edges_without_declared_groups(self, builder):
        files = ["lib/net45/Foo.dll", "lib/net45/Bar.dll", "lib/net45/Baz.dll"]
        entries = build_all(builder, descriptor("Foo", files))
        assert entries[-1].dependencies == {"net472": ["Bar", "Baz"]}

    def test_main_file_only_on_main_entry(self):
        builder = WorkspaceEntryBuilder(main_file="Foo.dll").with_target("net472")
        bar, foo = build_all(builder, descriptor("Foo", ["lib/net45/Foo.dll", "lib/net45/Bar.dll"]))
        assert bar.main_file is None
        assert foo.main_file == "Foo.dll"


# ═══════════════════════════════════════════
# Policy
# ═══════════════════════════════════════════


class TestPolicy:
    def test_source_by_prefix(self):
        policy = WorkspacePolicy(source_rules=(SourceRule("https://feed.example/v2", prefix="contoso."),))
        builder = WorkspaceEntryBuilder(policy=policy).with_target("net472")
        entries = build_all(
            builder,
            descriptor("Contoso.Core", ["lib/net45/Contoso.Core.dll"]),
            descriptor("Other", ["lib/net45/Other.dll"]),
        )
        assert entries[0].package_source == "https://feed.example/v2"
        assert entries[1].package_source is None

    def test_default_version_override(self, builder):
        entries = build_all(
            builder,
            descriptor("Microsoft.AspNetCore.JsonPatch", ["lib/netstandard2.0/Microsoft.AspNetCore.JsonPatch.dll"], version="2.0.0"),
        )
        assert entries[0].version == "2.2.0"

    def test_other_versions_unchanged(self, builder):
        entries = build_all(
            builder,
            descriptor("Microsoft.AspNetCore.JsonPatch", ["lib/netstandard2.0/Microsoft.AspNetCore.JsonPatch.dll"], version="2.1.0"),
        )
        assert entries[0].version == "2.1.0"


# ═══════════════════════════════════════════
# Ordering and Errors
# ═══════════════════════════════════════════


class TestBuild:
    def test_targets(self):
        builder = WorkspaceEntryBuilder().with_target("net472").with_target(Target.parse("net8.0:linux-x64"))
        builder.with_target(Framework.parse("netstandard2.0"))
        assert [str(t) for t in builder.targets] == ["net472", "net8.0:linux-x64", "netstandard2.0"]

    def test_deterministic(self):
        packages = [
            descriptor("A", ["lib/net45/A.dll", "lib/net45/A.Extra.dll"], {"net472": ["B"]}),
            descriptor("B", deps={"net472": ["C"]}),
            descriptor("C", ["lib/netstandard2.0/C.dll"]),
        ]
        first = build_all(WorkspaceEntryBuilder().with_target("net472"), *packages)
        second = build_all(WorkspaceEntryBuilder().with_target("net472"), *packages)
        assert first == second
        assert [e.display_name for e in first] == ["A.Extra", "A", "B", "C"]

    def test_cycle(self, builder):
        with pytest.raises(DependencyCycleError):
            build_all(
                builder,
                descriptor("A", deps={"net472": ["B"]}),
                descriptor("B", deps={"net472": ["A"]}),
            )
