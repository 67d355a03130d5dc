"""
Error types raised by the workspace core.

Soft absences (no matching content, out-of-closure dependencies, no override)
are never errors; only structurally invalid input and invalid configuration
are.
"""

from __future__ import annotations

from nuget_workspace.models.framework import FrameworkParseError


class WorkspaceError(Exception):
    """Base class for all workspace generation errors."""


class PackageInputError(WorkspaceError):
    """Raised when a package descriptor or package file is structurally invalid."""

    def __init__(self, reason: str, package_id: str | None = None, version: str | None = None):
        self.reason = reason
        self.package_id = package_id
        self.version = version
        if package_id:
            label = f"{package_id} {version}" if version else package_id
            super().__init__(f"[{label}] {reason}")
        else:
            super().__init__(reason)


class DependencyCycleError(WorkspaceError):
    """Raised when pass-through dependency expansion revisits a package."""

    def __init__(self, path: list[str]):
        self.path = list(path)
        super().__init__(f"Dependency cycle while pruning: {' -> '.join(self.path)}")


class PolicyError(WorkspaceError):
    """Raised when a workspace policy configuration is invalid."""


__all__ = [
    "WorkspaceError",
    "PackageInputError",
    "DependencyCycleError",
    "PolicyError",
    "FrameworkParseError",
]
