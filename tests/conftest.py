"""Shared fixtures for lintmesh tests.

Most tests build a small pub workspace on disk: pubspec.yaml files, a
``.dart_tool/package_config.json`` per resolved project and
analysis_options.yaml files enabling the tool.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any

import pytest
import yaml


class PubFiles:
    """Writes pub metadata files under a temporary directory."""

    def __init__(self, root: pathlib.Path) -> None:
        self.root = root

    def pubspec(self, directory: pathlib.Path, content: dict[str, Any]) -> pathlib.Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "pubspec.yaml"
        path.write_text(yaml.safe_dump(content))
        return path

    def overrides(self, directory: pathlib.Path, content: dict[str, Any]) -> pathlib.Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "pubspec_overrides.yaml"
        path.write_text(yaml.safe_dump({"dependency_overrides": content}))
        return path

    def options(self, directory: pathlib.Path, content: dict[str, Any]) -> pathlib.Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "analysis_options.yaml"
        path.write_text(yaml.safe_dump(content))
        return path

    def package_config(
        self, directory: pathlib.Path, packages: dict[str, pathlib.Path]
    ) -> pathlib.Path:
        """Write a package index mapping each name to an absolute root."""
        dart_tool = directory / ".dart_tool"
        dart_tool.mkdir(parents=True, exist_ok=True)
        path = dart_tool / "package_config.json"
        entries = [
            {
                "name": name,
                "rootUri": root.as_uri(),
                "packageUri": "lib/",
                "languageVersion": "3.0",
            }
            for name, root in packages.items()
        ]
        path.write_text(json.dumps({"configVersion": 2, "packages": entries}))
        return path


@pytest.fixture
def pub(tmp_path: pathlib.Path) -> PubFiles:
    """Helper writing pub metadata files under ``tmp_path``."""
    return PubFiles(tmp_path)


ENABLED_OPTIONS = {"analyzer": {"plugins": ["custom_lint"]}}


@pytest.fixture
def plugin_workspace(tmp_path: pathlib.Path, pub: PubFiles) -> pathlib.Path:
    """A resolved app depending on one lint plugin and one regular package.

    Layout::

        app/                 pubspec, package index, options enabling the tool
        plugins/my_lints/    depends on custom_lint_builder (a plugin)
        plugins/other_pkg/   plain package

    Returns:
        The ``app`` directory.
    """
    app = tmp_path / "app"
    my_lints = tmp_path / "plugins" / "my_lints"
    other_pkg = tmp_path / "plugins" / "other_pkg"

    pub.pubspec(my_lints, {"name": "my_lints", "dependencies": {"custom_lint_builder": "any"}})
    pub.pubspec(other_pkg, {"name": "other_pkg"})
    pub.pubspec(
        app,
        {
            "name": "app",
            "environment": {"sdk": ">=3.0.0 <4.0.0"},
            "dependencies": {"other_pkg": "^2.0.0"},
            "dev_dependencies": {"my_lints": "^1.0.0"},
        },
    )
    pub.package_config(app, {"app": app, "my_lints": my_lints, "other_pkg": other_pkg})
    pub.options(app, ENABLED_OPTIONS)
    return app
