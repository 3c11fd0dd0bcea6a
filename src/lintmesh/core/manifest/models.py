"""Manifest and package-index data models.

Pure data holders with no I/O, safe to import from anywhere in the
package without circular-dependency concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lintmesh.core.constraints import AnyDeclaration, VersionRange


@dataclass(frozen=True)
class Manifest:
    """A parsed ``pubspec.yaml``.

    Attributes:
        name: Package name.
        directory: Directory containing the pubspec.
        environment: SDK requirements (e.g. ``{"sdk": ">=3.0.0 <4.0.0"}``),
            or None when the pubspec has no ``environment`` section.
        dependencies: Regular dependencies.
        dev_dependencies: Dependencies only needed during development.
        dependency_overrides: Declarations forced regardless of ranges.
    """

    name: str
    directory: Path
    environment: dict[str, VersionRange] | None = None
    dependencies: dict[str, AnyDeclaration] = field(default_factory=dict)
    dev_dependencies: dict[str, AnyDeclaration] = field(default_factory=dict)
    dependency_overrides: dict[str, AnyDeclaration] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.name, self.directory))


@dataclass(frozen=True)
class PackageLocation:
    """Where the package manager installed one package.

    Attributes:
        name: Package name.
        root: Root directory of the package (contains its pubspec).
        package_uri_root: Directory that ``package:<name>/...`` URIs
            resolve against, usually ``<root>/lib``.
    """

    name: str
    root: Path
    package_uri_root: Path


@dataclass(frozen=True)
class PackageIndex:
    """The resolved ``.dart_tool/package_config.json`` of a project."""

    packages: dict[str, PackageLocation] = field(default_factory=dict)

    def get(self, name: str) -> PackageLocation | None:
        """Return the location of *name*, or None if it is not resolved."""
        return self.packages.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.packages)))
