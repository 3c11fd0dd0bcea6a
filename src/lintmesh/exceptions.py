"""lintmesh exception hierarchy.

All public exceptions inherit from LintMeshError, giving callers a single
base class to catch when they want to handle any lintmesh-specific failure
without swallowing unrelated errors.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class LintMeshError(Exception):
    """Base exception for all lintmesh errors."""


class CyclicIncludeError(LintMeshError):
    """Raised when an ``include`` directive creates a cycle.

    Attributes:
        path: The configuration file that ends up including itself.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cyclic include detected: {path}")


class ManifestParseError(LintMeshError):
    """Raised when a pubspec.yaml cannot be found, read or decoded.

    Attributes:
        path: The directory where the pubspec.yaml file was expected.
        error: The underlying failure.
    """

    def __init__(self, path: str, error: BaseException) -> None:
        self.path = path
        self.error = error
        super().__init__(f"Failed to read pubspec.yaml at {path}:\n{error}")


class PackageIndexParseError(LintMeshError):
    """Raised when .dart_tool/package_config.json cannot be decoded.

    Attributes:
        path: The directory where the package index was expected.
        error: The underlying failure.
    """

    def __init__(self, path: str, error: BaseException) -> None:
        self.path = path
        self.error = error
        super().__init__(
            f"Failed to decode .dart_tool/package_config.json at {path}. "
            f"Make sure to run `pub get` first.\n{error}"
        )


class PluginNotFoundInIndexError(LintMeshError):
    """Raised when a dependency has no entry in the resolved package index.

    This usually means the package manager has not been run yet.

    Attributes:
        name: The dependency name.
        path: The project directory being parsed.
    """

    def __init__(self, name: str, path: str) -> None:
        self.name = name
        self.path = path
        super().__init__(
            f"The plugin {name} was not found in the package config at {path}. "
            "Make sure to run `pub get` first."
        )


class PackageManagerError(LintMeshError):
    """Raised when ``pub get`` exits with a non-zero status.

    Attributes:
        command: The executable that was run (``dart`` or ``flutter``).
        exit_code: The process exit status.
        stdout: Captured standard output, verbatim.
        stderr: Captured standard error, verbatim.
    """

    def __init__(self, command: str, exit_code: int, stdout: str, stderr: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f'Failed to run "{command} pub get" in the client project:\n'
            f"{stdout}\n"
            f"{stderr}"
        )


class ConflictKind(str, Enum):
    """What kind of key two projects disagree on."""

    DEPENDENCY = "dependency"
    ENVIRONMENT = "environment"


@dataclass(frozen=True)
class DependencyConstraintMeta:
    """One side of a constraint conflict and the project that declared it.

    Attributes:
        display: Short rendering of the declaration (e.g. ``"^1.0.0"``).
        project_name: ``name`` from the declaring project's pubspec.
        project_path: Project directory relative to the working directory,
            prefixed with ``./``.
    """

    display: str
    project_name: str
    project_path: str


class IncompatibleDependencyConstraintsError(LintMeshError):
    """Raised when a dependency or environment key cannot be merged.

    Attributes:
        kind: Whether the conflict is on a dependency or an environment key.
        key: The dependency name or environment key.
        conflicts: Every declaration involved, with its owning project.
        file_name: The manifest file the declarations come from.
    """

    def __init__(
        self,
        kind: ConflictKind,
        key: str,
        conflicts: list[DependencyConstraintMeta],
        *,
        file_name: str,
    ) -> None:
        if len(conflicts) < 2:
            raise ValueError("A conflict needs at least 2 declarations")
        self.kind = kind
        self.key = key
        self.conflicts = conflicts
        self.file_name = file_name
        super().__init__(self._render())

    def _render(self) -> str:
        lines = [
            f'The {self.kind.value} "{self.key}" has incompatible version '
            "constraints in the project:"
        ]
        for meta in self.conflicts:
            lines.append(f"- {meta.display}")
            location = os.path.join(meta.project_path, self.file_name)
            lines.append(f'  from "{meta.project_name}" at "{location}".')
        return "\n".join(lines) + "\n"
