"""
NuGet Workspace - hermetic build workspace entries from local NuGet packages.

Resolves the content of already-downloaded packages for a set of target
frameworks, prunes pass-through dependencies and emits one workspace entry
per package (or per assembly, for multi-assembly packages).
"""

__version__ = "1.0.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "WorkspaceGenerator":
        from nuget_workspace.core.generator import WorkspaceGenerator

        return WorkspaceGenerator
    if name == "WorkspaceEntryBuilder":
        from nuget_workspace.core.builder import WorkspaceEntryBuilder

        return WorkspaceEntryBuilder
    if name == "PackageDescriptor":
        from nuget_workspace.models.package import PackageDescriptor

        return PackageDescriptor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["WorkspaceGenerator", "WorkspaceEntryBuilder", "PackageDescriptor", "__version__"]
