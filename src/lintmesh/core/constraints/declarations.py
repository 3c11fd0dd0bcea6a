"""Dependency declarations and their compatibility algebra.

A declaration is how one pubspec says where a dependency comes from. The
four kinds form a closed hierarchy:

- ``HostedDeclaration`` -- a version range on a package registry.
- ``PathDeclaration`` -- a local directory.
- ``GitDeclaration`` -- a source-control URL with optional ref and sub-path.
- ``SdkDeclaration`` -- a package shipped with an SDK.

Two declarations of the same dependency are *compatible* when one real
resolution can satisfy both. Declarations of different kinds are never
compatible: a path dependency is never silently replaced by a hosted one.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from lintmesh.core.constraints.versions import ANY, VersionRange


class Declaration(ABC):
    """Base class for the four declaration kinds."""

    @abstractmethod
    def compatible_with(self, other: Declaration) -> bool:
        """Check whether this and *other* can be resolved at the same time.

        For example, "^1.0.0" is not compatible with "^2.0.0", but "^1.0.0"
        is compatible with "^1.1.0" (and vice-versa).
        """

    def intersect(self, other: Declaration) -> Declaration | None:
        """Return the declaration satisfying both, or None if incompatible.

        Non-hosted declarations are single values, so the intersection of
        two compatible ones is the receiver itself.
        """
        if not self.compatible_with(other):
            return None
        return self

    @abstractmethod
    def describe(self) -> str:
        """Build a short human description used in diagnostics."""

    @abstractmethod
    def display_string(self) -> str:
        """Compact rendering used in conflict reports."""

    @abstractmethod
    def to_manifest_value(self, working_directory: Path) -> Any:
        """Return the YAML value declaring this dependency in a pubspec."""


@dataclass(frozen=True)
class HostedDeclaration(Declaration):
    """A dependency resolved from a package registry.

    Attributes:
        version: Allowed versions.
        hosted_name: Package name on a custom registry, if given.
        hosted_url: Custom registry URL. None means the default registry.
    """

    version: VersionRange = ANY
    hosted_name: str | None = None
    hosted_url: str | None = None

    def compatible_with(self, other: Declaration) -> bool:
        return (
            isinstance(other, HostedDeclaration)
            and self.hosted_name == other.hosted_name
            and self.hosted_url == other.hosted_url
            and self.version.allows_any(other.version)
        )

    def intersect(self, other: Declaration) -> Declaration | None:
        if not isinstance(other, HostedDeclaration) or not self.compatible_with(other):
            return None
        return HostedDeclaration(
            version=self.version.intersect(other.version),
            hosted_name=self.hosted_name,
            hosted_url=self.hosted_url,
        )

    def describe(self) -> str:
        return f"Hosted with version constraint: {self.version}"

    def display_string(self) -> str:
        if self.version.is_any:
            return "any"
        return f'"{self.version}"'

    def to_manifest_value(self, working_directory: Path) -> Any:
        if self.hosted_name is None and self.hosted_url is None:
            return str(self.version)
        hosted: Any = self.hosted_url
        if self.hosted_name is not None:
            hosted = {"name": self.hosted_name}
            if self.hosted_url is not None:
                hosted["url"] = self.hosted_url
        return {"hosted": hosted, "version": str(self.version)}


@dataclass(frozen=True)
class PathDeclaration(Declaration):
    """A dependency on a local directory, as written in the pubspec."""

    path: str

    def compatible_with(self, other: Declaration) -> bool:
        return isinstance(other, PathDeclaration) and os.path.normpath(
            self.path
        ) == os.path.normpath(other.path)

    def describe(self) -> str:
        return f"From path {self.path}"

    def display_string(self) -> str:
        return f'"{self.path}"'

    def to_manifest_value(self, working_directory: Path) -> Any:
        absolute = os.path.normpath(os.path.join(str(working_directory), self.path))
        return {"path": Path(absolute).as_posix()}


@dataclass(frozen=True)
class GitDeclaration(Declaration):
    """A dependency fetched from a source-control repository."""

    url: str
    ref: str | None = None
    path: str | None = None

    def compatible_with(self, other: Declaration) -> bool:
        return (
            isinstance(other, GitDeclaration)
            and self.url == other.url
            and self.ref == other.ref
            and self.path == other.path
        )

    def describe(self) -> str:
        description = f"From source-control url {self.url}"
        if self.ref is not None:
            description += f" ref {self.ref}"
        if self.path is not None:
            description += f" path {self.path}"
        return description

    def display_string(self) -> str:
        return f"git: {self.url}"

    def to_manifest_value(self, working_directory: Path) -> Any:
        git: dict[str, str] = {"url": self.url}
        if self.ref is not None:
            git["ref"] = self.ref
        if self.path is not None:
            git["path"] = self.path
        return {"git": git}


@dataclass(frozen=True)
class SdkDeclaration(Declaration):
    """A dependency provided by an SDK (e.g. ``sdk: flutter``)."""

    sdk: str

    def compatible_with(self, other: Declaration) -> bool:
        return isinstance(other, SdkDeclaration) and self.sdk == other.sdk

    def describe(self) -> str:
        return f"From SDK: {self.sdk}"

    def display_string(self) -> str:
        return f"sdk: {self.sdk}"

    def to_manifest_value(self, working_directory: Path) -> Any:
        return {"sdk": self.sdk}


AnyDeclaration = Union[HostedDeclaration, PathDeclaration, GitDeclaration, SdkDeclaration]


# ---------------------------------------------------------------------------
# Parsing from pubspec values
# ---------------------------------------------------------------------------


def parse_declaration(name: str, value: Any) -> AnyDeclaration:
    """Build a declaration from the YAML value of a pubspec dependency.

    Args:
        name: Dependency name, used in error messages.
        value: ``None`` (any version), a constraint string, or a mapping
            with one of ``path``, ``git``, ``sdk``, ``hosted``/``version``.

    Returns:
        The matching declaration.

    Raises:
        ValueError: If the value has an unsupported shape.
    """
    if value is None:
        return HostedDeclaration()
    if isinstance(value, str):
        return HostedDeclaration(version=VersionRange.parse(value))
    if not isinstance(value, dict):
        raise ValueError(f"Invalid declaration for dependency {name!r}: {value!r}")

    if "path" in value:
        return PathDeclaration(path=_require_str(name, "path", value["path"]))
    if "git" in value:
        return _parse_git(name, value["git"])
    if "sdk" in value:
        return SdkDeclaration(sdk=_require_str(name, "sdk", value["sdk"]))
    if "hosted" in value or "version" in value:
        return _parse_hosted(name, value)
    raise ValueError(f"Unknown dependency source for {name!r}: {sorted(value)}")


def _parse_git(name: str, value: Any) -> GitDeclaration:
    if isinstance(value, str):
        return GitDeclaration(url=value)
    if not isinstance(value, dict) or "url" not in value:
        raise ValueError(f"Invalid git declaration for dependency {name!r}: {value!r}")
    ref = value.get("ref")
    path = value.get("path")
    return GitDeclaration(
        url=_require_str(name, "git.url", value["url"]),
        ref=None if ref is None else str(ref),
        path=None if path is None else str(path),
    )


def _parse_hosted(name: str, value: dict[str, Any]) -> HostedDeclaration:
    raw_version = value.get("version")
    version = ANY if raw_version is None else VersionRange.parse(
        _require_str(name, "version", raw_version)
    )
    hosted = value.get("hosted")
    if hosted is None:
        return HostedDeclaration(version=version)
    if isinstance(hosted, str):
        return HostedDeclaration(version=version, hosted_url=hosted)
    if isinstance(hosted, dict):
        hosted_name = hosted.get("name")
        hosted_url = hosted.get("url")
        return HostedDeclaration(
            version=version,
            hosted_name=None if hosted_name is None else str(hosted_name),
            hosted_url=None if hosted_url is None else str(hosted_url),
        )
    raise ValueError(f"Invalid hosted declaration for dependency {name!r}: {hosted!r}")


def _require_str(name: str, key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Expected a string for {key!r} of dependency {name!r}, got {value!r}")
    return value
