"""Single-flight caches for pubspec parsing and plugin detection.

Both caches store the *pending* ``asyncio.Task`` for a directory, not just
its result: concurrent first lookups of the same directory all await one
task, so each pubspec is read from disk at most once per cache.

The two caches treat failures differently:

- ``ManifestCache`` keeps a failed task and every later lookup re-raises
  the same exception. A broken project pubspec is fatal.
- ``PluginCheckerCache`` reports "not a plugin" when the pubspec cannot be
  parsed. A broken dependency must not abort the whole workspace scan.

Caches are bound to the event loop that first populates them and are meant
to live for one discovery run.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from lintmesh.core.manifest.models import Manifest
from lintmesh.core.manifest.parser import parse_manifest
from lintmesh.exceptions import ManifestParseError

logger = logging.getLogger(__name__)


def _cache_key(directory: Path) -> Path:
    return Path(os.path.abspath(directory))


class ManifestCache:
    """Parses each pubspec once and replays the outcome.

    Example::

        cache = ManifestCache()
        manifest = await cache.get(Path("packages/app"))
    """

    def __init__(self, parser: Callable[[Path], Manifest] = parse_manifest) -> None:
        self._parser = parser
        self._tasks: dict[Path, asyncio.Task[Manifest]] = {}

    async def get(self, directory: Path) -> Manifest:
        """Return the pubspec of *directory*, parsing it on first use.

        Raises:
            ManifestParseError: If parsing failed, on this or any earlier call.
        """
        key = _cache_key(directory)
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.create_task(asyncio.to_thread(self._parser, key))
            self._tasks[key] = task
        return await task

    def __contains__(self, directory: object) -> bool:
        return isinstance(directory, Path) and _cache_key(directory) in self._tasks


class PluginCheckerCache:
    """Decides, once per directory, whether a package is a lint plugin.

    A package is a plugin if its pubspec has a regular dependency on the
    marker package. ``dev_dependencies`` and ``dependency_overrides`` are
    not considered.
    """

    def __init__(self, manifests: ManifestCache, marker: str) -> None:
        self._manifests = manifests
        self._marker = marker
        self._tasks: dict[Path, asyncio.Task[bool]] = {}

    async def is_plugin(self, directory: Path) -> bool:
        """Return True if the package at *directory* is a plugin."""
        key = _cache_key(directory)
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.create_task(self._check(key))
            self._tasks[key] = task
        return await task

    async def _check(self, directory: Path) -> bool:
        try:
            manifest = await self._manifests.get(directory)
        except ManifestParseError:
            logger.warning("Ignoring unreadable package at %s", directory, exc_info=True)
            return False
        return self._marker in manifest.dependencies
