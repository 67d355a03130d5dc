"""
Target framework and target models.

Frameworks are parsed from the short folder names used inside packages
(``net472``, ``netstandard2.0``, ``net8.0-windows``) and from the long forms
used in ``.nuspec`` dependency groups (``.NETStandard2.0``,
``.NETFramework,Version=v4.5``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass


NET_FRAMEWORK = ".NETFramework"
NET_STANDARD = ".NETStandard"
NET_CORE_APP = ".NETCoreApp"
ANY_FRAMEWORK = "Any"

_LONG_IDENTIFIERS = {
    ".netframework": NET_FRAMEWORK,
    "netframework": NET_FRAMEWORK,
    ".netstandard": NET_STANDARD,
    "netstandard": NET_STANDARD,
    ".netcoreapp": NET_CORE_APP,
    "netcoreapp": NET_CORE_APP,
}

_SHORT_PATTERN = re.compile(
    r"^(?P<name>netstandard|netcoreapp|net)(?P<version>[\d.]*)(?:-(?P<platform>[a-z]+)[\d.]*)?$"
)
_LONG_PATTERN = re.compile(
    r"^(?P<name>\.?net[a-z]+)\s*(?:,\s*version\s*=\s*v?)?(?P<version>[\d.]*)$"
)


class FrameworkParseError(ValueError):
    """Raised when a framework moniker cannot be understood."""


def _parse_version(text: str, compact: bool) -> tuple[int, ...]:
    if not text:
        return ()
    if "." in text or not compact:
        try:
            return tuple(int(part) for part in text.split(".") if part != "")
        except ValueError:
            raise FrameworkParseError(f"Invalid framework version: {text!r}") from None
    # Compact form: net472 -> 4.7.2, net40 -> 4.0
    return tuple(int(ch) for ch in text)


def _normalize(version: tuple[int, ...]) -> tuple[int, int, int, int]:
    padded = tuple(version[:4]) + (0,) * (4 - len(version[:4]))
    return padded


@dataclass(frozen=True, order=True)
class Framework:
    """A target framework: identifier, four-part version and optional OS platform."""

    identifier: str
    version: tuple[int, int, int, int] = (0, 0, 0, 0)
    platform: str = ""

    def __post_init__(self):
        object.__setattr__(self, "version", _normalize(tuple(self.version)))
        object.__setattr__(self, "platform", self.platform.lower())

    @classmethod
    def parse(cls, moniker: str) -> Framework:
        """Parse a short folder name or a nuspec long-form framework name."""
        if not isinstance(moniker, str) or not moniker.strip():
            raise FrameworkParseError(f"Empty framework moniker: {moniker!r}")

        text = moniker.strip().lower()
        if text in ("any", "anyframework"):
            return ANY

        match = _SHORT_PATTERN.match(text)
        if match:
            name = match.group("name")
            version = _parse_version(match.group("version"), compact=name == "net")
            platform = match.group("platform") or ""
            if name == "net":
                if version and version[0] >= 5:
                    return cls(NET_CORE_APP, version, platform)
                if platform:
                    raise FrameworkParseError(f"Platform suffix on .NET Framework: {moniker!r}")
                return cls(NET_FRAMEWORK, version)
            if platform:
                raise FrameworkParseError(f"Platform suffix not supported: {moniker!r}")
            if not version:
                raise FrameworkParseError(f"Missing version in {moniker!r}")
            identifier = NET_STANDARD if name == "netstandard" else NET_CORE_APP
            return cls(identifier, version)

        match = _LONG_PATTERN.match(text)
        if match and match.group("name") in _LONG_IDENTIFIERS:
            identifier = _LONG_IDENTIFIERS[match.group("name")]
            version = _parse_version(match.group("version"), compact=False)
            return cls(identifier, version)

        raise FrameworkParseError(f"Unsupported framework: {moniker!r}")

    @property
    def is_any(self) -> bool:
        return self.identifier == ANY_FRAMEWORK

    @property
    def short_name(self) -> str:
        """Short folder name, e.g. ``net472``, ``netstandard2.0``, ``net8.0``."""
        major, minor, build, revision = self.version
        if self.is_any:
            return "any"
        if self.identifier == NET_FRAMEWORK:
            digits = [major, minor, build, revision]
            while digits and digits[-1] == 0 and len(digits) > 2:
                digits.pop()
            if digits == [0, 0]:
                return "net"
            return "net" + "".join(str(d) for d in digits)
        if self.identifier == NET_STANDARD:
            return f"netstandard{major}.{minor}"
        if self.identifier == NET_CORE_APP:
            if major >= 5:
                name = f"net{major}.{minor}"
                return f"{name}-{self.platform}" if self.platform else name
            return f"netcoreapp{major}.{minor}"
        return f"{self.identifier}{major}.{minor}"

    def without_platform(self) -> Framework:
        return Framework(self.identifier, self.version) if self.platform else self

    def __str__(self) -> str:
        return self.short_name


ANY = Framework(ANY_FRAMEWORK)

# Framework assigned to assemblies placed directly under lib/
NET_UNVERSIONED = Framework(NET_FRAMEWORK)


@dataclass(frozen=True)
class Target:
    """A framework optionally narrowed by a runtime identifier."""

    framework: Framework
    runtime_identifier: str | None = None

    @classmethod
    def parse(cls, text: str) -> Target:
        """Parse ``tfm`` or ``tfm:rid`` (e.g. ``net8.0:linux-x64``)."""
        framework_text, _, runtime = text.partition(":")
        runtime = runtime.strip().lower() or None
        return cls(Framework.parse(framework_text), runtime)

    def __str__(self) -> str:
        if self.runtime_identifier:
            return f"{self.framework.short_name}:{self.runtime_identifier}"
        return self.framework.short_name
