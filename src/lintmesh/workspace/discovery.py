"""Finding the directories to analyze.

Discovery Algorithm:
    1. Recursively scan each input path for directories holding a
       pubspec.yaml or an analysis_options.yaml *and* a resolved
       ``.dart_tool/package_config.json``.
    2. For each candidate, require a parseable pubspec at or above it and
       an analysis_options.yaml at or above it whose include chain lists
       the tool under ``analyzer.plugins``. Candidates are checked
       concurrently; the ones failing any check are dropped.
    3. Relate the surviving roots to each other by path containment.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from lintmesh.config import DEFAULT_SETTINGS, WorkspaceSettings
from lintmesh.core.includes import visit_options_and_includes
from lintmesh.core.manifest import (
    MANIFEST_FILE,
    OPTIONS_FILE,
    PACKAGE_INDEX_PATH,
    try_find_project_directory,
    try_parse_manifest,
)
from lintmesh.workspace.project import ContextRoot, gather_settled

logger = logging.getLogger(__name__)


def find_roots(path: Path) -> Iterator[Path]:
    """Yield directories under *path* that look like resolved projects."""
    for dirpath, _dirnames, filenames in os.walk(path):
        if MANIFEST_FILE not in filenames and OPTIONS_FILE not in filenames:
            continue
        directory = Path(dirpath)
        if (directory / PACKAGE_INDEX_PATH).is_file():
            yield directory


def find_options_file(directory: Path) -> Path | None:
    """Return the nearest analysis_options.yaml at or above *directory*."""
    current = directory
    while True:
        candidate = current / OPTIONS_FILE
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def is_tool_enabled(options_file: Path, settings: WorkspaceSettings = DEFAULT_SETTINGS) -> bool:
    """Check whether the include chain of *options_file* enables the tool.

    Only the first document in the chain that defines ``analyzer.plugins``
    counts; later documents cannot re-enable a tool an earlier one omits.

    Raises:
        CyclicIncludeError: If the include chain loops.
    """
    for document in visit_options_and_includes(options_file):
        analyzer = document.get(settings.analyzer_key)
        if not isinstance(analyzer, dict):
            continue
        plugins = analyzer.get("plugins")
        if plugins is None:
            continue
        return isinstance(plugins, list) and settings.tool_name in plugins
    return False


def is_within(parent: Path, child: Path) -> bool:
    """True if *child* is strictly inside *parent*."""
    if parent == child:
        return False
    return os.path.commonpath([str(parent), str(child)]) == str(parent)


async def discover_context_roots(
    paths: Iterable[str | Path],
    *,
    working_directory: Path,
    settings: WorkspaceSettings = DEFAULT_SETTINGS,
) -> list[ContextRoot]:
    """Find every directory under *paths* that has the tool enabled.

    Args:
        paths: Directories to scan, absolute or relative to
            *working_directory*.
        working_directory: Base for relative paths.
        settings: Tool and marker names.

    Returns:
        Context roots sorted by path.

    Raises:
        CyclicIncludeError: If an analysis_options.yaml include chain loops.
    """
    candidates: set[Path] = set()
    for path in paths:
        absolute = Path(os.path.normpath(os.path.join(str(working_directory), str(path))))
        candidates.update(find_roots(absolute))
    roots = sorted(candidates)

    options_files = await gather_settled(*(_check_root(root, settings) for root in roots))
    found = [(root, options) for root, options in zip(roots, options_files) if options is not None]
    logger.debug("%d of %d candidate roots enable %s", len(found), len(roots), settings.tool_name)

    surviving = [root for root, _ in found]
    return [
        ContextRoot(
            root=root,
            options_file=options,
            excluded=tuple(other for other in surviving if is_within(root, other)),
            ancestors=tuple(other for other in surviving if is_within(other, root)),
        )
        for root, options in found
    ]


async def _check_root(root: Path, settings: WorkspaceSettings) -> Path | None:
    """Return the options file enabling the tool for *root*, or None."""
    project_directory = try_find_project_directory(root)
    if project_directory is None:
        return None
    if await asyncio.to_thread(try_parse_manifest, project_directory) is None:
        return None

    options_file = find_options_file(root)
    if options_file is None:
        return None
    if not await asyncio.to_thread(is_tool_enabled, options_file, settings):
        logger.debug("%s does not enable %s", options_file, settings.tool_name)
        return None
    return options_file
