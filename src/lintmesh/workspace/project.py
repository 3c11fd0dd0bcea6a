"""Projects analyzed by the tool and the lint plugins they enable.

A ``Project`` is built from one ``ContextRoot``: the directory the analyzer
was pointed at. Its pubspec may live in an ancestor directory when the
analysis_options.yaml was found by walking up, in which case the project is
not a *project root* and only contributes to relationship queries.

Plugins are looked up in the pubspec and package index of the *working
directory*, the project from which the tool was invoked.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from lintmesh.core.constraints import AnyDeclaration
from lintmesh.core.manifest import (
    Manifest,
    ManifestCache,
    PackageIndex,
    PackageLocation,
    PluginCheckerCache,
    find_project_directory,
    load_package_index,
    try_parse_override_manifest,
)
from lintmesh.exceptions import PluginNotFoundInIndexError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_settled(*awaitables: Awaitable[T]) -> list[T]:
    """Await every awaitable, then raise the first failure in argument order.

    No sibling is left running and no task exception is left unretrieved
    when one of them fails.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


@dataclass(frozen=True)
class ContextRoot:
    """A directory to analyze, with its relationship to other roots.

    Attributes:
        root: Absolute directory path.
        options_file: The analysis_options.yaml that enabled the tool.
        excluded: Other roots nested inside this one.
        ancestors: Other roots that contain this one.
    """

    root: Path
    options_file: Path | None = None
    excluded: tuple[Path, ...] = ()
    ancestors: tuple[Path, ...] = ()


@dataclass(frozen=True)
class Plugin:
    """A lint plugin and the constraint its owner uses to depend on it.

    Attributes:
        name: Package name of the plugin.
        directory: Plugin sources according to the owner's package index.
        manifest: The plugin's own pubspec.
        package: The plugin's entry in ``owner_package_index``.
        constraint: The declaration in the owner's pubspec.
        owner_manifest: Pubspec of the project depending on the plugin.
        owner_package_index: Package index of that project.
    """

    name: str
    directory: Path
    manifest: Manifest
    package: PackageLocation
    constraint: AnyDeclaration
    owner_manifest: Manifest
    owner_package_index: PackageIndex


@dataclass(frozen=True)
class Project:
    """A project analyzed by the tool, with its enabled plugins.

    Attributes:
        directory: Where the pubspec.yaml is located.
        analysis_directory: The context root the project was built from.
        manifest: The project's pubspec.
        overrides: ``dependency_overrides`` from pubspec_overrides.yaml,
            or None when that file does not exist.
        package_index: The resolved package_config.json.
        plugins: Enabled plugins, in pubspec declaration order.
    """

    directory: Path
    analysis_directory: Path
    manifest: Manifest
    package_index: PackageIndex
    overrides: dict[str, AnyDeclaration] | None = None
    plugins: list[Plugin] = field(default_factory=list)

    @property
    def is_project_root(self) -> bool:
        """True if the pubspec lives in the analyzed directory itself."""
        return self.analysis_directory == self.directory

    @classmethod
    async def parse(
        cls,
        context_root: ContextRoot,
        plugin_checker: PluginCheckerCache,
        working_directory: Path,
        manifests: ManifestCache,
    ) -> Project:
        """Build a project from a context root.

        Args:
            context_root: The analyzed directory.
            plugin_checker: Shared plugin-eligibility cache.
            working_directory: Directory the tool was invoked from.
            manifests: Shared pubspec cache.

        Raises:
            ManifestParseError: If a pubspec is missing or malformed.
            PackageIndexParseError: If a package index is missing or malformed.
            PluginNotFoundInIndexError: If a working-directory dependency is
                absent from its package index.
        """
        directory = context_root.root
        project_directory = find_project_directory(directory)
        manifest = await manifests.get(project_directory)
        overrides = await asyncio.to_thread(try_parse_override_manifest, project_directory)
        package_index = await asyncio.to_thread(load_package_index, project_directory)

        owner_directory = find_project_directory(working_directory)
        owner_manifest = await manifests.get(owner_directory)
        owner_index = await asyncio.to_thread(load_package_index, owner_directory)

        candidates = {**owner_manifest.dependencies, **owner_manifest.dev_dependencies}
        plugins = await gather_settled(
            *(
                _resolve_plugin(
                    name,
                    constraint,
                    directory=directory,
                    owner_manifest=owner_manifest,
                    owner_index=owner_index,
                    plugin_checker=plugin_checker,
                    manifests=manifests,
                )
                for name, constraint in candidates.items()
            )
        )

        return cls(
            directory=project_directory,
            analysis_directory=directory,
            manifest=manifest,
            overrides=overrides,
            package_index=package_index,
            plugins=[plugin for plugin in plugins if plugin is not None],
        )


async def _resolve_plugin(
    name: str,
    constraint: AnyDeclaration,
    *,
    directory: Path,
    owner_manifest: Manifest,
    owner_index: PackageIndex,
    plugin_checker: PluginCheckerCache,
    manifests: ManifestCache,
) -> Plugin | None:
    location = owner_index.get(name)
    if location is None:
        raise PluginNotFoundInIndexError(name, str(directory))

    if not await plugin_checker.is_plugin(location.root):
        logger.debug("%s is not a lint plugin", name)
        return None

    return Plugin(
        name=name,
        directory=location.root,
        manifest=await manifests.get(location.root),
        package=location,
        constraint=constraint,
        owner_manifest=owner_manifest,
        owner_package_index=owner_index,
    )
