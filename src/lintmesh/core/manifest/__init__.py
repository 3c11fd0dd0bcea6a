"""Pubspec, override and package-index parsing with per-directory caching."""

from lintmesh.core.manifest.cache import ManifestCache, PluginCheckerCache
from lintmesh.core.manifest.models import Manifest, PackageIndex, PackageLocation
from lintmesh.core.manifest.parser import (
    MANIFEST_FILE,
    OPTIONS_FILE,
    OVERRIDES_FILE,
    PACKAGE_INDEX_PATH,
    find_project_directory,
    load_package_index,
    parse_manifest,
    try_find_project_directory,
    try_parse_manifest,
    try_parse_override_manifest,
)

__all__ = [
    "MANIFEST_FILE",
    "OPTIONS_FILE",
    "OVERRIDES_FILE",
    "PACKAGE_INDEX_PATH",
    "Manifest",
    "ManifestCache",
    "PackageIndex",
    "PackageLocation",
    "PluginCheckerCache",
    "find_project_directory",
    "load_package_index",
    "parse_manifest",
    "try_find_project_directory",
    "try_parse_manifest",
    "try_parse_override_manifest",
]
