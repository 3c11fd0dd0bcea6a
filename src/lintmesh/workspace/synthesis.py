"""Synthesis of the host pubspec shared by every analyzed project.

The host project depends on every enabled plugin once. For each plugin the
declarations of all owners are merged into one: the first declaration is
the accumulator and each following one is intersected into it. When two
declarations cannot be satisfied together, synthesis fails with an
``IncompatibleDependencyConstraintsError`` listing every declaration and
the project it came from.

Dependencies that any owner overrides are declared as ``any`` and the
merged overrides are written to ``dependency_overrides``, where they pin
the real source.

Output is deterministic: dependency names are sorted, so two workspaces
with the same content produce byte-identical manifests.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from lintmesh.config import WorkspaceSettings
from lintmesh.core.constraints import (
    Declaration,
    HostedDeclaration,
    PathDeclaration,
    VersionRange,
)
from lintmesh.core.manifest import MANIFEST_FILE, OVERRIDES_FILE, Manifest
from lintmesh.exceptions import (
    ConflictKind,
    DependencyConstraintMeta,
    IncompatibleDependencyConstraintsError,
)
from lintmesh.workspace.project import Project

logger = logging.getLogger(__name__)

# A declaration paired with the project it was collected for.
Sourced = tuple[Declaration, Project]


def project_path(project: Project, working_directory: Path) -> str:
    """Render the project directory relative to the working directory."""
    relative = os.path.normpath(os.path.relpath(project.directory, working_directory))
    return "." if relative == "." else os.path.join(".", relative)


def anchor_declaration(declaration: Declaration, directory: Path) -> Declaration:
    """Make a relative path declaration absolute against its pubspec's directory.

    Paths in a pubspec are relative to that pubspec: ``../shared`` written in
    two projects may name two different packages.
    """
    if isinstance(declaration, PathDeclaration) and not os.path.isabs(declaration.path):
        return PathDeclaration(os.path.normpath(os.path.join(str(directory), declaration.path)))
    return declaration


def merge_declarations(
    name: str,
    declarations: list[Sourced],
    *,
    working_directory: Path,
    file_name: str,
) -> Declaration:
    """Intersect every declaration of *name* into one.

    Raises:
        IncompatibleDependencyConstraintsError: If the declarations cannot
            all be satisfied by one resolution.
    """
    merged = declarations[0][0]
    for declaration, _ in declarations[1:]:
        intersection = merged.intersect(declaration)
        if intersection is None:
            raise IncompatibleDependencyConstraintsError(
                ConflictKind.DEPENDENCY,
                name,
                [
                    DependencyConstraintMeta(
                        display=decl.describe(),
                        project_name=project.manifest.name,
                        project_path=project_path(project, working_directory),
                    )
                    for decl, project in declarations
                ],
                file_name=file_name,
            )
        merged = intersection
    return merged


def dump_manifest(content: dict[str, Any]) -> str:
    """Serialize a pubspec mapping to YAML, keeping key order."""
    return yaml.safe_dump(content, sort_keys=False, default_flow_style=False)


class HostManifestBuilder:
    """Builds the host pubspec and pubspec_overrides for a set of projects.

    Example::

        builder = HostManifestBuilder(projects, {"my_lints"}, Path.cwd(), settings)
        Path("host/pubspec.yaml").write_text(dump_manifest(builder.to_dict()))
    """

    def __init__(
        self,
        projects: list[Project],
        plugin_names: Iterable[str],
        working_directory: Path,
        settings: WorkspaceSettings,
    ) -> None:
        self._projects = projects
        self._plugin_names = sorted(set(plugin_names))
        self._working_directory = working_directory
        self._settings = settings

    # -- pubspec.yaml ---------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return the host pubspec as a mapping ready for YAML output."""
        content: dict[str, Any] = {
            "name": self._settings.host_name,
            "description": self._settings.host_description,
            "version": self._settings.host_version,
            "publish_to": "none",
        }

        environment = self._environment()
        if environment:
            content["environment"] = environment

        dependencies, overrides = self._dependencies()
        if dependencies:
            content["dependencies"] = dependencies
        if overrides:
            content["dependency_overrides"] = overrides
        return content

    def _environment(self) -> dict[str, str]:
        keys = dict.fromkeys(
            key for project in self._projects for key in (project.manifest.environment or {})
        )
        baseline = VersionRange.parse(self._settings.baseline_environment)

        environment: dict[str, str] = {}
        for key in keys:
            declared = [
                (project, project.manifest.environment[key])
                for project in self._projects
                if project.manifest.environment and key in project.manifest.environment
            ]
            merged = baseline
            for _, constraint in declared:
                merged = merged.intersect(constraint)

            if merged.is_empty:
                if self._settings.enforce_environment:
                    raise self._environment_conflict(key, declared)
                logger.warning(
                    'Environment "%s" has no version compatible with every project; '
                    "writing %s anyway",
                    key,
                    self._settings.baseline_environment,
                )

            if self._settings.enforce_environment:
                environment[key] = str(merged)
            else:
                environment[key] = self._settings.baseline_environment
        return environment

    def _environment_conflict(
        self, key: str, declared: list[tuple[Project, VersionRange]]
    ) -> IncompatibleDependencyConstraintsError:
        conflicts = [
            DependencyConstraintMeta(
                display=HostedDeclaration(version=constraint).display_string(),
                project_name=project.manifest.name,
                project_path=project_path(project, self._working_directory),
            )
            for project, constraint in declared
        ]
        if len(conflicts) < 2:
            conflicts.insert(
                0,
                DependencyConstraintMeta(
                    display=f'"{self._settings.baseline_environment}"',
                    project_name=self._settings.host_name,
                    project_path=".",
                ),
            )
        return IncompatibleDependencyConstraintsError(
            ConflictKind.ENVIRONMENT, key, conflicts, file_name=MANIFEST_FILE
        )

    def _plugin_owners(self) -> list[tuple[Project, Manifest]]:
        """Each (project, owner pubspec) pair once, in project order."""
        owners: list[tuple[Project, Manifest]] = []
        for project in self._projects:
            seen: list[Manifest] = []
            for plugin in project.plugins:
                if not any(plugin.owner_manifest is known for known in seen):
                    seen.append(plugin.owner_manifest)
                    owners.append((project, plugin.owner_manifest))
        return owners

    def _dependencies(self) -> tuple[dict[str, Any], dict[str, Any]]:
        owners = self._plugin_owners()
        dependencies: dict[str, Any] = {}
        overrides: dict[str, Any] = {}

        for name in self._plugin_names:
            declared: list[Sourced] = []
            overridden: list[Sourced] = []
            for project, owner in owners:
                base = owner.directory
                for section in (owner.dependencies, owner.dev_dependencies):
                    if name in section:
                        declared.append((anchor_declaration(section[name], base), project))
                if name in owner.dependency_overrides:
                    override = owner.dependency_overrides[name]
                    overridden.append((anchor_declaration(override, base), project))

            if not declared:
                continue

            if overridden:
                dependencies[name] = HostedDeclaration().to_manifest_value(self._working_directory)
                merged = merge_declarations(
                    name,
                    overridden,
                    working_directory=self._working_directory,
                    file_name=OVERRIDES_FILE,
                )
                overrides[name] = merged.to_manifest_value(self._working_directory)
            else:
                merged = merge_declarations(
                    name,
                    declared,
                    working_directory=self._working_directory,
                    file_name=MANIFEST_FILE,
                )
                dependencies[name] = merged.to_manifest_value(self._working_directory)
        return dependencies, overrides

    # -- pubspec_overrides.yaml -----------------------------------------------

    def overrides_to_dict(self) -> dict[str, Any] | None:
        """Merge the projects' own pubspec_overrides.yaml files.

        Returns:
            A pubspec_overrides mapping, or None when no project has one.
        """
        names = sorted(
            {name for project in self._projects for name in (project.overrides or {})}
        )
        if not names:
            return None

        overrides: dict[str, Any] = {}
        for name in names:
            declared: list[Sourced] = [
                (anchor_declaration(project.overrides[name], project.directory), project)
                for project in self._projects
                if project.overrides and name in project.overrides
            ]
            merged = merge_declarations(
                name,
                declared,
                working_directory=self._working_directory,
                file_name=OVERRIDES_FILE,
            )
            overrides[name] = merged.to_manifest_value(self._working_directory)
        return {"dependency_overrides": overrides}
