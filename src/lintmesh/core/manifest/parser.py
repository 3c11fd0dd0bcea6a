"""Readers for pubspec.yaml, pubspec_overrides.yaml and package_config.json.

Every reader takes a directory and raises a lintmesh exception naming that
directory on failure; the ``try_*`` variants return None instead.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import yaml

from lintmesh.core.constraints import AnyDeclaration, VersionRange, parse_declaration
from lintmesh.core.manifest.models import Manifest, PackageIndex, PackageLocation
from lintmesh.exceptions import ManifestParseError, PackageIndexParseError

logger = logging.getLogger(__name__)

MANIFEST_FILE = "pubspec.yaml"
OVERRIDES_FILE = "pubspec_overrides.yaml"
OPTIONS_FILE = "analysis_options.yaml"
PACKAGE_INDEX_PATH = os.path.join(".dart_tool", "package_config.json")


# ---------------------------------------------------------------------------
# pubspec.yaml
# ---------------------------------------------------------------------------


def parse_manifest(directory: Path) -> Manifest:
    """Parse the pubspec.yaml in *directory*.

    Raises:
        ManifestParseError: If the file is missing, is not valid YAML, or
            does not describe a valid pubspec.
    """
    path = directory / MANIFEST_FILE
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
        return _manifest_from_yaml(directory, content)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        raise ManifestParseError(str(directory), exc) from exc


def try_parse_manifest(directory: Path) -> Manifest | None:
    """Parse the pubspec.yaml in *directory*, returning None on failure."""
    try:
        return parse_manifest(directory)
    except ManifestParseError:
        logger.debug("No readable pubspec.yaml in %s", directory, exc_info=True)
        return None


def _manifest_from_yaml(directory: Path, content: Any) -> Manifest:
    if not isinstance(content, dict):
        raise ValueError("pubspec.yaml must be a YAML mapping")
    name = content.get("name")
    if not isinstance(name, str):
        raise ValueError('pubspec.yaml is missing a string "name" field')

    return Manifest(
        name=name,
        directory=directory,
        environment=_parse_environment(content.get("environment")),
        dependencies=_parse_dependency_map(content.get("dependencies")),
        dev_dependencies=_parse_dependency_map(content.get("dev_dependencies")),
        dependency_overrides=_parse_dependency_map(content.get("dependency_overrides")),
    )


def _parse_environment(value: Any) -> dict[str, VersionRange] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError('"environment" must be a mapping')
    environment: dict[str, VersionRange] = {}
    for key, constraint in value.items():
        if constraint is None:
            continue
        environment[str(key)] = VersionRange.parse(str(constraint))
    return environment


def _parse_dependency_map(value: Any) -> dict[str, AnyDeclaration]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("dependency sections must be mappings")
    return {str(name): parse_declaration(str(name), decl) for name, decl in value.items()}


# ---------------------------------------------------------------------------
# pubspec_overrides.yaml
# ---------------------------------------------------------------------------


def try_parse_override_manifest(directory: Path) -> dict[str, AnyDeclaration] | None:
    """Read ``dependency_overrides`` from pubspec_overrides.yaml, if present.

    Returns:
        The override declarations, or None when the file does not exist.

    Raises:
        ManifestParseError: If the file exists but cannot be decoded.
    """
    path = directory / OVERRIDES_FILE
    if not path.is_file():
        return None
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ValueError("pubspec_overrides.yaml must be a YAML mapping")
        return _parse_dependency_map(content.get("dependency_overrides"))
    except (OSError, yaml.YAMLError, ValueError) as exc:
        raise ManifestParseError(str(directory), exc) from exc


# ---------------------------------------------------------------------------
# .dart_tool/package_config.json
# ---------------------------------------------------------------------------


def load_package_index(directory: Path) -> PackageIndex:
    """Load the package index resolved for the project in *directory*.

    Raises:
        PackageIndexParseError: If the index is missing or malformed.
    """
    path = directory / PACKAGE_INDEX_PATH
    try:
        content = json.loads(path.read_text(encoding="utf-8"))
        return _index_from_json(path, content)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise PackageIndexParseError(str(directory), exc) from exc


def _index_from_json(config_path: Path, content: Any) -> PackageIndex:
    if not isinstance(content, dict) or not isinstance(content.get("packages"), list):
        raise ValueError('package_config.json must contain a "packages" list')

    base = config_path.parent
    packages: dict[str, PackageLocation] = {}
    for entry in content["packages"]:
        name = entry["name"]
        root = _resolve_uri(base, _as_directory_uri(entry["rootUri"]))
        package_uri = entry.get("packageUri")
        package_uri_root = root if not package_uri else _resolve_uri(root, package_uri)
        packages[name] = PackageLocation(name=name, root=root, package_uri_root=package_uri_root)
    return PackageIndex(packages=packages)


def _as_directory_uri(uri: str) -> str:
    return uri if uri.endswith("/") else uri + "/"


def _resolve_uri(base: Path, uri: str) -> Path:
    """Resolve a file URI or URI reference against directory *base*."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(os.path.normpath(url2pathname(unquote(parsed.path))))
    if parsed.scheme:
        raise ValueError(f"Unsupported URI scheme in package_config.json: {uri!r}")
    return Path(os.path.normpath(os.path.join(str(base), url2pathname(unquote(parsed.path)))))


# ---------------------------------------------------------------------------
# Locating projects
# ---------------------------------------------------------------------------


def try_find_project_directory(directory: Path) -> Path | None:
    """Return the nearest directory at or above *directory* with a pubspec.yaml."""
    current = directory
    while True:
        if (current / MANIFEST_FILE).is_file():
            return current
        if current.parent == current:
            return None
        current = current.parent


def find_project_directory(directory: Path) -> Path:
    """Like ``try_find_project_directory`` but fails when none is found.

    Raises:
        ManifestParseError: If no ancestor of *directory* has a pubspec.yaml.
    """
    found = try_find_project_directory(directory)
    if found is None:
        raise ManifestParseError(
            str(directory),
            FileNotFoundError(f"No {MANIFEST_FILE} found in {directory} or its parents"),
        )
    return found
