"""Following ``include`` chains across analysis_options.yaml files.

``visit_options_and_includes`` yields the YAML mapping of the starting
file first, then the mapping of each included file in order. It is a plain
generator, so callers that only need the first matching document stop the
walk early and never read the rest of the chain.

The walk ends silently (no error) when a file is missing, is not a YAML
mapping, has no string ``include`` key, or includes a ``package:`` URI
that cannot be resolved. The walk raises ``CyclicIncludeError`` as soon as
a file would be visited twice.

``package:`` URIs resolve through the ``.dart_tool/package_config.json``
next to the *starting* file, loaded at most once per walk and only if a
``package:`` include is actually encountered.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import yaml

from lintmesh.core.manifest import PackageIndex, load_package_index
from lintmesh.exceptions import CyclicIncludeError, PackageIndexParseError

logger = logging.getLogger(__name__)

PACKAGE_SCHEME = "package"


def visit_options_and_includes(
    options_file: Path,
    *,
    load_index: Callable[[Path], PackageIndex] = load_package_index,
) -> Iterator[dict[str, Any]]:
    """Yield the YAML maps reached by following ``include`` from *options_file*.

    Args:
        options_file: The analysis_options.yaml to start from.
        load_index: Loader for the package index of a directory. Swappable
            for tests.

    Yields:
        Each document of the chain, starting with *options_file* itself.

    Raises:
        CyclicIncludeError: If a file in the chain is visited twice.
    """
    visited: set[str] = set()
    loaded: list[PackageIndex | None] = []

    def package_index() -> PackageIndex | None:
        if not loaded:
            try:
                loaded.append(load_index(options_file.parent))
            except PackageIndexParseError:
                logger.debug("No package index next to %s", options_file, exc_info=True)
                loaded.append(None)
        return loaded[0]

    current: Path | None = options_file
    while current is not None:
        path = os.path.normpath(os.path.abspath(current))
        if path in visited:
            raise CyclicIncludeError(path)
        visited.add(path)

        document = _load_mapping(Path(path))
        if document is None:
            return
        yield document

        include = document.get("include")
        if not isinstance(include, str):
            return
        current = resolve_include(include, Path(path), package_index=package_index)


def resolve_include(
    include: str,
    current_file: Path,
    *,
    package_index: Callable[[], PackageIndex | None],
) -> Path | None:
    """Resolve the value of an ``include`` key to a file path.

    Args:
        include: The raw ``include`` value.
        current_file: The file containing the directive.
        package_index: Returns the index used for ``package:`` URIs.

    Returns:
        The path of the included file, or None if it cannot be resolved.
    """
    parsed = urlparse(include)

    if parsed.scheme == PACKAGE_SCHEME:
        segments = [segment for segment in parsed.path.split("/") if segment]
        if not segments:
            return None
        index = package_index()
        location = index.get(segments[0]) if index is not None else None
        if location is None:
            logger.debug("Package %r of include %r is not resolved", segments[0], include)
            return None
        # package:foo/src/a.yaml -> <foo package root>/src/a.yaml
        return Path(os.path.join(str(location.package_uri_root), *segments[1:]))

    if parsed.scheme == "file":
        return Path(os.path.normpath(url2pathname(unquote(parsed.path))))
    # Single-letter "schemes" are Windows drive letters.
    if parsed.scheme and len(parsed.scheme) > 1:
        logger.debug("Unsupported include scheme in %r", include)
        return None

    target = include if len(parsed.scheme) == 1 else unquote(parsed.path)
    return Path(os.path.normpath(os.path.join(str(current_file.parent), target)))


def _load_mapping(path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        logger.debug("Unreadable options file %s", path, exc_info=True)
        return None
    return document if isinstance(document, dict) else None
