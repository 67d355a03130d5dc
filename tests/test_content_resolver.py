"""Tests for content conventions and the content group resolver."""

import pytest

from nuget_workspace.core.content import (
    COMPILE_LIB_ASSEMBLIES,
    RUNTIME_ASSEMBLIES,
    TOOLS_ASSEMBLIES,
    ContentItemCollection,
    ManagedCodeConventions,
    normalize_path,
)
from nuget_workspace.core.errors import PackageInputError
from nuget_workspace.core.resolver import ContentGroupResolver
from nuget_workspace.models.framework import ANY, NET_UNVERSIONED, Framework, Target
from nuget_workspace.models.package import PackageDescriptor


def fw(moniker):
    return Framework.parse(moniker)


def resolver_for(*targets):
    return ContentGroupResolver(targets=[Target.parse(t) for t in targets])


def descriptor(files, package_id="Foo", version="1.0.0"):
    return PackageDescriptor(id=package_id, version=version, files=files)


@pytest.fixture
def conventions():
    return ManagedCodeConventions()


# ═══════════════════════════════════════════
# Pattern Matching
# ═══════════════════════════════════════════


class TestPatternMatching:
    def test_lib_tfm_assembly(self, conventions):
        item = conventions.match("lib/net45/Foo.dll", COMPILE_LIB_ASSEMBLIES.definitions[0])
        assert item.framework == fw("net45")
        assert item.runtime is None

    def test_lib_root_gets_unversioned_framework(self, conventions):
        collection = ContentItemCollection(conventions)
        collection.load(["lib/Foo.dll"])
        groups = collection.find_item_groups(COMPILE_LIB_ASSEMBLIES)
        assert list(groups) == [(NET_UNVERSIONED, None)]

    def test_non_assembly_ignored(self, conventions):
        collection = ContentItemCollection(conventions)
        collection.load(["lib/net45/Foo.xml", "lib/net45/Foo.pdb"])
        assert collection.find_item_groups(COMPILE_LIB_ASSEMBLIES) == {}

    def test_unknown_framework_folder_ignored(self, conventions):
        collection = ContentItemCollection(conventions)
        collection.load(["lib/monoandroid10/Foo.dll"])
        assert collection.find_item_groups(COMPILE_LIB_ASSEMBLIES) == {}

    def test_runtime_specific(self, conventions):
        collection = ContentItemCollection(conventions)
        collection.load(["runtimes/linux-x64/lib/net8.0/Foo.dll"])
        groups = collection.find_item_groups(RUNTIME_ASSEMBLIES)
        assert list(groups) == [(fw("net8.0"), "linux-x64")]

    def test_unknown_runtime_ignored(self, conventions):
        collection = ContentItemCollection(conventions)
        collection.load(["runtimes/plan9-mips/lib/net8.0/Foo.dll"])
        assert collection.find_item_groups(RUNTIME_ASSEMBLIES) == {}

    def test_tools_without_framework(self, conventions):
        collection = ContentItemCollection(conventions)
        collection.load(["tools/init.ps1"])
        assert list(collection.find_item_groups(TOOLS_ASSEMBLIES)) == [(ANY, None)]

    def test_normalize_path(self):
        assert normalize_path("lib\\net45\\Foo.dll") == "lib/net45/Foo.dll"
        assert normalize_path("./lib/net45/Foo.dll") == "lib/net45/Foo.dll"
        assert normalize_path("/lib/net45/Foo.dll") == "lib/net45/Foo.dll"


# ═══════════════════════════════════════════
# Group Resolution
# ═══════════════════════════════════════════


class TestResolver:
    def test_lib_only_runtime_falls_back_to_compile(self):
        package = resolver_for("net472").resolve(descriptor(["lib/net45/Foo.dll"]))
        assert [g.items for g in package.lib_groups] == [("lib/net45/Foo.dll",)]
        assert package.runtime_groups == package.lib_groups
        assert package.has_runtime_content

    def test_ref_preferred_for_compile(self):
        files = ["ref/netstandard2.0/Foo.dll", "lib/netstandard2.0/Foo.dll"]
        package = resolver_for("net8.0").resolve(descriptor(files))
        assert package.lib_groups[0].items == ("ref/netstandard2.0/Foo.dll",)
        assert package.runtime_groups[0].items == ("lib/netstandard2.0/Foo.dll",)

    def test_ref_only_runtime_uses_reference(self):
        package = resolver_for("net8.0").resolve(descriptor(["ref/net8.0/Foo.dll"]))
        assert package.runtime_groups[0].items == ("ref/net8.0/Foo.dll",)

    def test_nearest_framework_wins(self):
        files = ["lib/net45/Foo.dll", "lib/net461/Foo.dll", "lib/netstandard2.0/Foo.dll"]
        package = resolver_for("net472").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ("lib/net461/Foo.dll",)

    def test_groups_tagged_with_target_framework(self):
        package = resolver_for("net472").resolve(descriptor(["lib/netstandard2.0/Foo.dll"]))
        assert package.lib_groups[0].target_framework == fw("net472")

    def test_runtime_specific_selected_for_runtime_target(self):
        files = ["lib/net8.0/Foo.dll", "runtimes/linux-x64/lib/net8.0/Foo.dll", "runtimes/win/lib/net8.0/Foo.dll"]
        package = resolver_for("net8.0:linux-x64").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ("runtimes/linux-x64/lib/net8.0/Foo.dll",)
        assert package.lib_groups[0].items == ("lib/net8.0/Foo.dll",)

    def test_runtime_neutral_target_ignores_runtime_folders(self):
        files = ["lib/net8.0/Foo.dll", "runtimes/win/lib/net8.0/Foo.dll"]
        package = resolver_for("net8.0").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ("lib/net8.0/Foo.dll",)

    def test_nearer_framework_beats_nearer_runtime(self):
        files = ["runtimes/linux-x64/lib/netstandard2.0/Foo.dll", "runtimes/unix/lib/net8.0/Foo.dll"]
        package = resolver_for("net8.0:linux-x64").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ("runtimes/unix/lib/net8.0/Foo.dll",)

    def test_imported_runtime_fallback(self):
        package = resolver_for("net8.0:win-x64").resolve(descriptor(["runtimes/win/lib/net8.0/Foo.dll"]))
        assert package.runtime_groups[0].items == ("runtimes/win/lib/net8.0/Foo.dll",)

    def test_one_group_per_target(self):
        files = ["lib/net45/Foo.dll", "lib/netstandard2.0/Foo.dll"]
        package = resolver_for("net472", "net8.0").resolve(descriptor(files))
        assert [g.target_framework for g in package.runtime_groups] == [fw("net472"), fw("net8.0")]
        assert [g.items for g in package.runtime_groups] == [
            ("lib/net45/Foo.dll",),
            ("lib/netstandard2.0/Foo.dll",),
        ]

    def test_incompatible_target_has_no_groups(self):
        package = resolver_for("net45").resolve(descriptor(["lib/net8.0/Foo.dll"]))
        assert package.lib_groups == []
        assert package.runtime_groups == []
        assert not package.has_runtime_content

    def test_tools(self):
        files = ["tools/net8.0/any/Foo.Tool.dll", "tools/net8.0/any/Foo.Tool.runtimeconfig.json"]
        package = resolver_for("net8.0").resolve(descriptor(files))
        assert package.tool_groups[0].items == tuple(files)
        assert package.lib_groups == []

    def test_placeholder_marks_framework_without_files(self):
        files = ["lib/net45/_._", "lib/netstandard2.0/Foo.dll"]
        package = resolver_for("net472").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ()
        assert not package.has_runtime_content

    def test_nearer_placeholder_wins_over_farther_reference(self):
        files = ["ref/netstandard1.3/System.Facade.dll", "lib/net46/_._"]
        package = resolver_for("net472").resolve(descriptor(files))
        assert package.lib_groups[0].items == ()
        assert package.runtime_groups[0].items == ()

    def test_same_framework_reference_beside_placeholder(self):
        files = ["ref/net46/System.Facade.dll", "lib/net46/_._"]
        package = resolver_for("net472").resolve(descriptor(files))
        assert package.lib_groups[0].items == ("ref/net46/System.Facade.dll",)
        assert package.runtime_groups[0].items == ()
        assert not package.has_runtime_content
        assert package.has_content
        assert package.content_groups == package.lib_groups

    def test_duplicate_paths_collapsed(self):
        files = ["lib/net45/Foo.dll", "lib\\net45\\Foo.dll"]
        package = resolver_for("net45").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ("lib/net45/Foo.dll",)

    def test_file_order_preserved(self):
        files = ["lib/net45/Foo.dll", "lib/net45/Bar.dll"]
        package = resolver_for("net45").resolve(descriptor(files))
        assert package.runtime_groups[0].items == ("lib/net45/Foo.dll", "lib/net45/Bar.dll")

    def test_no_targets(self):
        package = ContentGroupResolver().resolve(descriptor(["lib/net45/Foo.dll"]))
        assert package.lib_groups == package.runtime_groups == package.tool_groups == []

    def test_deterministic(self):
        files = ["lib/net45/Foo.dll", "runtimes/win/lib/net45/Foo.dll", "tools/install.ps1"]
        resolver = resolver_for("net472", "net472:win-x64")
        assert resolver.resolve(descriptor(files)) == resolver.resolve(descriptor(files))


# ═══════════════════════════════════════════
# Invalid Input
# ═══════════════════════════════════════════


class TestInvalidInput:
    def test_missing_file_list(self):
        with pytest.raises(PackageInputError) as exc_info:
            resolver_for("net45").resolve(descriptor(None))
        assert exc_info.value.package_id == "Foo"
        assert exc_info.value.version == "1.0.0"

    def test_string_file_list(self):
        with pytest.raises(PackageInputError):
            resolver_for("net45").resolve(descriptor("lib/net45/Foo.dll"))

    def test_non_string_entries(self):
        with pytest.raises(PackageInputError):
            resolver_for("net45").resolve(descriptor(["lib/net45/Foo.dll", 42]))
