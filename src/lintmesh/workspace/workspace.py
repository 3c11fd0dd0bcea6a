"""The workspace: every analyzed project plus the union of their plugins.

``Workspace`` is the terminal aggregate of discovery. Build it once with
``from_paths`` (or ``from_context_roots`` when the roots are already
known), then query it or use it to produce the host project:

    workspace = asyncio.run(Workspace.from_paths(["."], working_directory=cwd))
    asyncio.run(workspace.resolve_plugin_host(Path(".dart_tool/lint_host")))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from lintmesh.config import DEFAULT_SETTINGS, WorkspaceSettings
from lintmesh.core.manifest import (
    MANIFEST_FILE,
    OVERRIDES_FILE,
    ManifestCache,
    PluginCheckerCache,
)
from lintmesh.exceptions import PackageManagerError
from lintmesh.workspace.discovery import discover_context_roots
from lintmesh.workspace.process import ProcessRunner, is_windows, run_process
from lintmesh.workspace.project import ContextRoot, Project, gather_settled
from lintmesh.workspace.synthesis import HostManifestBuilder, dump_manifest

logger = logging.getLogger(__name__)


class Workspace:
    """The holder of the enabled plugins and analyzed projects.

    Attributes:
        projects: Projects whose pubspec lives in the analyzed directory.
        context_roots: Every analyzed directory, root projects or not.
        unique_plugin_names: Names of all plugins enabled anywhere.
        working_directory: Directory the workspace was built from.
        settings: Marker names and synthesis policy.
    """

    def __init__(
        self,
        projects: list[Project],
        context_roots: list[ContextRoot],
        unique_plugin_names: set[str],
        *,
        working_directory: Path,
        settings: WorkspaceSettings = DEFAULT_SETTINGS,
        runner: ProcessRunner = run_process,
        windows: bool | None = None,
    ) -> None:
        self.projects = projects
        self.context_roots = context_roots
        self.unique_plugin_names = unique_plugin_names
        self.working_directory = working_directory
        self.settings = settings
        self._runner = runner
        self._windows = is_windows() if windows is None else windows

    # -- Construction ---------------------------------------------------------

    @classmethod
    async def from_paths(
        cls,
        paths: Iterable[str | Path],
        *,
        working_directory: Path,
        settings: WorkspaceSettings = DEFAULT_SETTINGS,
        runner: ProcessRunner = run_process,
        windows: bool | None = None,
    ) -> Workspace:
        """Discover context roots under *paths* and build the workspace."""
        context_roots = await discover_context_roots(
            paths, working_directory=working_directory, settings=settings
        )
        return await cls.from_context_roots(
            context_roots,
            working_directory=working_directory,
            settings=settings,
            runner=runner,
            windows=windows,
        )

    @classmethod
    async def from_context_roots(
        cls,
        context_roots: list[ContextRoot],
        *,
        working_directory: Path,
        settings: WorkspaceSettings = DEFAULT_SETTINGS,
        runner: ProcessRunner = run_process,
        windows: bool | None = None,
        manifests: ManifestCache | None = None,
    ) -> Workspace:
        """Build every project concurrently and aggregate their plugins.

        Every project is awaited; the first fatal error, in context-root
        order, is then raised.

        Raises:
            ManifestParseError: If a project pubspec cannot be read.
            PackageIndexParseError: If a package index cannot be read.
            PluginNotFoundInIndexError: If a dependency is not resolved.
        """
        manifests = manifests if manifests is not None else ManifestCache()
        checker = PluginCheckerCache(manifests, settings.plugin_marker)
        projects = await gather_settled(
            *(
                Project.parse(root, checker, working_directory, manifests)
                for root in context_roots
            )
        )

        unique_plugin_names = {plugin.name for project in projects for plugin in project.plugins}
        logger.info(
            "Workspace has %d context roots and %d plugins",
            len(context_roots),
            len(unique_plugin_names),
        )

        return cls(
            [project for project in projects if project.is_project_root],
            context_roots,
            unique_plugin_names,
            working_directory=working_directory,
            settings=settings,
            runner=runner,
            windows=windows,
        )

    # -- Queries --------------------------------------------------------------

    @property
    def is_using_framework(self) -> bool:
        """Whether any project resolves the framework package (flutter)."""
        return any(
            self.settings.framework_package in project.package_index for project in self.projects
        )

    # -- Synthesis ------------------------------------------------------------

    def _builder(self) -> HostManifestBuilder:
        return HostManifestBuilder(
            self.projects, self.unique_plugin_names, self.working_directory, self.settings
        )

    def synthesize_manifest_dict(self) -> dict[str, Any]:
        """Return the host pubspec as a mapping."""
        return self._builder().to_dict()

    def synthesize_manifest(self) -> str:
        """Return the host pubspec.yaml combining every project's plugins.

        Raises:
            IncompatibleDependencyConstraintsError: If two projects declare
                a plugin (or, when enforced, an environment key) in ways
                that cannot be satisfied together.
        """
        return dump_manifest(self.synthesize_manifest_dict())

    def synthesize_override_manifest(self) -> str | None:
        """Return the host pubspec_overrides.yaml, or None if not needed."""
        content = self._builder().overrides_to_dict()
        return None if content is None else dump_manifest(content)

    # -- Package manager ------------------------------------------------------

    async def resolve_plugin_host(self, target_directory: Path) -> None:
        """Write the host pubspec into *target_directory* and run ``pub get``."""
        manifest = self.synthesize_manifest()
        overrides = self.synthesize_override_manifest()

        target_directory.mkdir(parents=True, exist_ok=True)
        (target_directory / MANIFEST_FILE).write_text(manifest, encoding="utf-8")
        if overrides is not None:
            (target_directory / OVERRIDES_FILE).write_text(overrides, encoding="utf-8")

        await self.run_package_manager_get(target_directory)

    async def run_package_manager_get(self, target_directory: Path) -> None:
        """Run ``pub get`` in *target_directory*.

        Raises:
            PackageManagerError: If the command exits with a non-zero status.
        """
        command = (
            self.settings.framework_command
            if self.is_using_framework
            else self.settings.default_command
        )
        result = await self._runner(
            command,
            ["pub", "get"],
            working_directory=target_directory,
            run_in_shell=self._windows,
            encoding="utf-8",
        )
        if result.exit_code != 0:
            raise PackageManagerError(command, result.exit_code, result.stdout, result.stderr)
        logger.info("%s pub get succeeded in %s", command, target_directory)
