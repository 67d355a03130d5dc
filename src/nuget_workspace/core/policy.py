"""
Workspace policy — package source rules, version overrides and SDK assemblies.

These tables are configuration, not logic: the builder only asks the policy
for the effective source and version of a package, and the pruner only asks
whether an id is provided by the SDK. A policy can be loaded from JSON:

    {
        "sources": [
            {"prefix": "contoso.", "url": "https://nuget.contoso.com/api/v2/package"},
            {"suffix": ".by.contoso", "url": "https://nuget.contoso.com/api/v2/package"}
        ],
        "version_overrides": [
            {"id": "microsoft.aspnetcore.jsonpatch", "version": "2.0.0", "replacement": "2.2.0"}
        ],
        "sdk_assemblies": ["system.runtime"],
        "replace_sdk_assemblies": false
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path

from nuget_workspace.core.errors import PolicyError

logger = logging.getLogger(__name__)


# Assemblies provided by the .NET SDK / shared framework; edges to them are always kept
SDK_ASSEMBLIES = frozenset(
    {
        "microsoft.csharp",
        "microsoft.visualbasic",
        "microsoft.win32.primitives",
        "microsoft.win32.registry",
        "mscorlib",
        "netstandard",
        "system",
        "system.appcontext",
        "system.buffers",
        "system.collections",
        "system.collections.concurrent",
        "system.collections.immutable",
        "system.collections.nongeneric",
        "system.collections.specialized",
        "system.componentmodel",
        "system.componentmodel.annotations",
        "system.componentmodel.primitives",
        "system.componentmodel.typeconverter",
        "system.console",
        "system.core",
        "system.data",
        "system.diagnostics.debug",
        "system.diagnostics.diagnosticsource",
        "system.diagnostics.process",
        "system.diagnostics.tools",
        "system.diagnostics.tracing",
        "system.drawing",
        "system.dynamic.runtime",
        "system.globalization",
        "system.io",
        "system.io.compression",
        "system.io.filesystem",
        "system.io.filesystem.primitives",
        "system.linq",
        "system.linq.expressions",
        "system.memory",
        "system.net.http",
        "system.net.primitives",
        "system.net.sockets",
        "system.numerics",
        "system.numerics.vectors",
        "system.objectmodel",
        "system.reflection",
        "system.reflection.emit",
        "system.reflection.extensions",
        "system.reflection.metadata",
        "system.reflection.primitives",
        "system.resources.resourcemanager",
        "system.runtime",
        "system.runtime.compilerservices.unsafe",
        "system.runtime.extensions",
        "system.runtime.handles",
        "system.runtime.interopservices",
        "system.runtime.numerics",
        "system.runtime.serialization",
        "system.runtime.serialization.primitives",
        "system.security.cryptography.algorithms",
        "system.security.cryptography.primitives",
        "system.text.encoding",
        "system.text.encoding.extensions",
        "system.text.regularexpressions",
        "system.threading",
        "system.threading.tasks",
        "system.threading.tasks.extensions",
        "system.threading.thread",
        "system.threading.timer",
        "system.valuetuple",
        "system.xml",
        "system.xml.linq",
        "system.xml.readerwriter",
        "system.xml.xdocument",
    }
)


@dataclass(frozen=True)
class SourceRule:
    """Maps package ids with a given prefix or suffix to a package feed URL."""

    url: str
    prefix: str | None = None
    suffix: str | None = None

    def matches(self, package_id: str) -> bool:
        lowered = package_id.lower()
        if self.prefix is not None and lowered.startswith(self.prefix.lower()):
            return True
        if self.suffix is not None and lowered.endswith(self.suffix.lower()):
            return True
        return False


@dataclass(frozen=True)
class VersionOverride:
    """Replaces one known-broken (id, version) with another version."""

    package_id: str
    version: str
    replacement: str

    def matches(self, package_id: str, version: str) -> bool:
        return package_id.lower() == self.package_id.lower() and version.lower() == self.version.lower()


@dataclass(frozen=True)
class WorkspacePolicy:
    source_rules: tuple[SourceRule, ...] = ()
    version_overrides: tuple[VersionOverride, ...] = ()
    sdk_assemblies: frozenset[str] = SDK_ASSEMBLIES

    def resolve_source(self, package_id: str) -> str | None:
        """Return the package feed URL for ``package_id``, or None for the default feed."""
        for rule in self.source_rules:
            if rule.matches(package_id):
                return rule.url
        return None

    def resolve_version(self, package_id: str, version: str) -> str:
        for override in self.version_overrides:
            if override.matches(package_id, version):
                logger.info(f"[POLICY] Overriding {package_id} {version} -> {override.replacement}")
                return override.replacement
        return version

    def is_sdk_assembly(self, package_id: str) -> bool:
        return package_id.lower() in self.sdk_assemblies

    @classmethod
    def from_dict(cls, data: dict) -> WorkspacePolicy:
        """Build a policy from a configuration dictionary; missing keys keep defaults."""
        if not isinstance(data, dict):
            raise PolicyError("Policy must be a JSON object")

        policy = DEFAULT_POLICY
        try:
            if "sources" in data:
                rules = []
                for entry in data["sources"]:
                    if not entry.get("url") or not (entry.get("prefix") or entry.get("suffix")):
                        raise PolicyError(f"Source rule needs 'url' and 'prefix' or 'suffix': {entry!r}")
                    rules.append(SourceRule(url=entry["url"], prefix=entry.get("prefix"), suffix=entry.get("suffix")))
                policy = replace(policy, source_rules=tuple(rules))

            if "version_overrides" in data:
                overrides = tuple(
                    VersionOverride(
                        package_id=entry["id"],
                        version=str(entry["version"]),
                        replacement=str(entry["replacement"]),
                    )
                    for entry in data["version_overrides"]
                )
                policy = replace(policy, version_overrides=overrides)

            if "sdk_assemblies" in data:
                extra = frozenset(str(name).lower() for name in data["sdk_assemblies"])
                if data.get("replace_sdk_assemblies", False):
                    policy = replace(policy, sdk_assemblies=extra)
                else:
                    policy = replace(policy, sdk_assemblies=policy.sdk_assemblies | extra)
        except (KeyError, TypeError, AttributeError) as e:
            raise PolicyError(f"Invalid policy entry: {e}") from e

        return policy


DEFAULT_POLICY = WorkspacePolicy(
    version_overrides=(
        # Packaged with ZIP entries the build tool cannot extract
        VersionOverride("microsoft.aspnetcore.jsonpatch", "2.0.0", "2.2.0"),
    ),
)


def load_policy(path: Path | str | None) -> WorkspacePolicy:
    """Load a policy JSON file, or return the default policy when ``path`` is None."""
    if path is None:
        return DEFAULT_POLICY

    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except OSError as e:
        raise PolicyError(f"Cannot read policy file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PolicyError(f"Policy file {path} is not valid JSON: {e}") from e

    policy = WorkspacePolicy.from_dict(data)
    logger.debug(
        f"[POLICY] Loaded {path}: {len(policy.source_rules)} source rules, "
        f"{len(policy.version_overrides)} version overrides, {len(policy.sdk_assemblies)} SDK assemblies"
    )
    return policy
