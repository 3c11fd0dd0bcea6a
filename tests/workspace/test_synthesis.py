"""Tests for host pubspec synthesis and constraint merging."""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

import pytest

from lintmesh.config import DEFAULT_SETTINGS
from lintmesh.core.constraints import AnyDeclaration, HostedDeclaration, PathDeclaration, VersionRange
from lintmesh.core.manifest import Manifest, PackageIndex, PackageLocation
from lintmesh.exceptions import ConflictKind, IncompatibleDependencyConstraintsError
from lintmesh.workspace import HostManifestBuilder, Plugin, Project, merge_declarations
from lintmesh.workspace.synthesis import anchor_declaration, dump_manifest, project_path

ENFORCED = dataclasses.replace(DEFAULT_SETTINGS, enforce_environment=True)


def hosted(text: str) -> HostedDeclaration:
    return HostedDeclaration(version=VersionRange.parse(text))


def make_project(
    directory: Path,
    name: str,
    *,
    dependencies: dict[str, AnyDeclaration] | None = None,
    dependency_overrides: dict[str, AnyDeclaration] | None = None,
    environment: dict[str, str] | None = None,
    overrides: dict[str, AnyDeclaration] | None = None,
) -> Project:
    """Build a root project whose own pubspec declares every plugin."""
    manifest = Manifest(
        name=name,
        directory=directory,
        environment=(
            None
            if environment is None
            else {key: VersionRange.parse(value) for key, value in environment.items()}
        ),
        dependencies=dependencies or {},
        dependency_overrides=dependency_overrides or {},
    )
    index = PackageIndex()
    plugins = [
        Plugin(
            name=plugin_name,
            directory=directory / plugin_name,
            manifest=Manifest(name=plugin_name, directory=directory / plugin_name),
            package=PackageLocation(plugin_name, directory / plugin_name, directory / plugin_name),
            constraint=constraint,
            owner_manifest=manifest,
            owner_package_index=index,
        )
        for plugin_name, constraint in manifest.dependencies.items()
    ]
    return Project(
        directory=directory,
        analysis_directory=directory,
        manifest=manifest,
        package_index=index,
        overrides=overrides,
        plugins=plugins,
    )


def build(projects: list[Project], working_directory: Path, settings=DEFAULT_SETTINGS) -> dict:
    names = {plugin.name for project in projects for plugin in project.plugins}
    return HostManifestBuilder(projects, names, working_directory, settings).to_dict()


class TestProjectPath:
    def test_same_directory(self, tmp_path: Path) -> None:
        assert project_path(make_project(tmp_path, "a"), tmp_path) == "."

    def test_nested(self, tmp_path: Path) -> None:
        project = make_project(tmp_path / "packages" / "a", "a")
        assert project_path(project, tmp_path) == os.path.join(".", "packages", "a")


class TestAnchorDeclaration:
    def test_relative_path_is_joined_to_directory(self, tmp_path: Path) -> None:
        anchored = anchor_declaration(PathDeclaration("../shared"), tmp_path / "packages" / "a")
        assert anchored == PathDeclaration(os.path.normpath(tmp_path / "packages" / "shared"))

    def test_other_declarations_are_unchanged(self, tmp_path: Path) -> None:
        declaration = hosted("^1.0.0")
        assert anchor_declaration(declaration, tmp_path) is declaration


class TestMergeDeclarations:
    def test_narrows_hosted_ranges(self, tmp_path: Path) -> None:
        a, b = make_project(tmp_path / "a", "a"), make_project(tmp_path / "b", "b")
        merged = merge_declarations(
            "x", [(hosted("^1.0.0"), a), (hosted("^1.2.0"), b)],
            working_directory=tmp_path, file_name="pubspec.yaml",
        )
        assert merged == hosted("^1.2.0")

    def test_conflict_lists_every_declaration(self, tmp_path: Path) -> None:
        projects = [make_project(tmp_path / n, n) for n in ("a", "b", "c")]
        declarations = [
            (hosted("^1.0.0"), projects[0]),
            (hosted("^1.5.0"), projects[1]),
            (hosted("^2.0.0"), projects[2]),
        ]
        with pytest.raises(IncompatibleDependencyConstraintsError) as excinfo:
            merge_declarations(
                "x", declarations, working_directory=tmp_path, file_name="pubspec.yaml"
            )
        error = excinfo.value
        assert error.kind is ConflictKind.DEPENDENCY
        assert error.key == "x"
        assert [meta.project_name for meta in error.conflicts] == ["a", "b", "c"]
        assert error.conflicts[2].display == "Hosted with version constraint: ^2.0.0"

    def test_error_requires_two_conflicts(self) -> None:
        with pytest.raises(ValueError):
            IncompatibleDependencyConstraintsError(
                ConflictKind.DEPENDENCY, "x", [], file_name="pubspec.yaml"
            )


class TestHostManifest:
    def test_header(self, tmp_path: Path) -> None:
        content = build([make_project(tmp_path, "app")], tmp_path)
        assert list(content)[:4] == ["name", "description", "version", "publish_to"]
        assert content["name"] == "custom_lint_client"
        assert content["description"] == "A client for custom_lint"
        assert content["version"] == "0.0.1"
        assert content["publish_to"] == "none"
        assert "dependencies" not in content

    def test_compatible_constraints_are_merged(self, tmp_path: Path) -> None:
        projects = [
            make_project(tmp_path / "a", "a", dependencies={"my_lints": hosted("^1.0.0")}),
            make_project(tmp_path / "b", "b", dependencies={"my_lints": hosted("^1.2.0")}),
        ]
        assert build(projects, tmp_path)["dependencies"] == {"my_lints": "^1.2.0"}

    def test_incompatible_constraints_raise(self, tmp_path: Path) -> None:
        projects = [
            make_project(tmp_path / "a", "a", dependencies={"my_lints": hosted("^1.0.0")}),
            make_project(tmp_path / "b", "b", dependencies={"my_lints": hosted("^2.0.0")}),
        ]
        with pytest.raises(IncompatibleDependencyConstraintsError) as excinfo:
            build(projects, tmp_path)

        error = excinfo.value
        assert error.kind is ConflictKind.DEPENDENCY
        assert len(error.conflicts) == 2
        assert [meta.project_path for meta in error.conflicts] == [
            os.path.join(".", "a"),
            os.path.join(".", "b"),
        ]
        message = str(error)
        assert message.startswith(
            'The dependency "my_lints" has incompatible version constraints in the project:'
        )
        assert f'from "a" at "{os.path.join(".", "a", "pubspec.yaml")}".' in message

    def test_dependencies_are_sorted(self, tmp_path: Path) -> None:
        project = make_project(
            tmp_path, "app", dependencies={"zeta_lints": hosted("any"), "alpha_lints": hosted("any")}
        )
        assert list(build([project], tmp_path)["dependencies"]) == ["alpha_lints", "zeta_lints"]

    def test_path_dependencies_become_absolute(self, tmp_path: Path) -> None:
        project = make_project(
            tmp_path / "app", "app", dependencies={"my_lints": PathDeclaration("../my_lints")}
        )
        content = build([project], tmp_path / "app")
        expected = Path(os.path.normpath(tmp_path / "my_lints")).as_posix()
        assert content["dependencies"] == {"my_lints": {"path": expected}}

    def test_owner_paths_resolve_from_owner_directory(self, tmp_path: Path) -> None:
        project = make_project(
            tmp_path / "app", "app", dependencies={"my_lints": PathDeclaration("../my_lints")}
        )
        content = build([project], tmp_path / "app" / "lib")
        expected = Path(os.path.normpath(tmp_path / "my_lints")).as_posix()
        assert content["dependencies"] == {"my_lints": {"path": expected}}

    def test_overridden_plugin_is_declared_any(self, tmp_path: Path) -> None:
        project = make_project(
            tmp_path / "app",
            "app",
            dependencies={"my_lints": hosted("^1.0.0")},
            dependency_overrides={"my_lints": PathDeclaration("../my_lints")},
        )
        content = build([project], tmp_path / "app")

        expected = Path(os.path.normpath(tmp_path / "my_lints")).as_posix()
        assert content["dependencies"] == {"my_lints": "any"}
        assert content["dependency_overrides"] == {"my_lints": {"path": expected}}

    def test_conflicting_overrides_name_the_overrides_file(self, tmp_path: Path) -> None:
        projects = [
            make_project(
                tmp_path / name,
                name,
                dependencies={"my_lints": hosted("any")},
                dependency_overrides={"my_lints": PathDeclaration(f"../{name}_lints")},
            )
            for name in ("a", "b")
        ]
        with pytest.raises(IncompatibleDependencyConstraintsError) as excinfo:
            build(projects, tmp_path)
        assert excinfo.value.file_name == "pubspec_overrides.yaml"

    def test_repeated_project_merges_cleanly(self, tmp_path: Path) -> None:
        project = make_project(tmp_path, "app", dependencies={"my_lints": hosted("^1.0.0")})
        assert build([project, project], tmp_path)["dependencies"] == {"my_lints": "^1.0.0"}


class TestEnvironment:
    def test_absent_without_declarations(self, tmp_path: Path) -> None:
        assert "environment" not in build([make_project(tmp_path, "app")], tmp_path)

    def test_advisory_writes_baseline(self, tmp_path: Path) -> None:
        project = make_project(tmp_path, "app", environment={"sdk": ">=3.2.0 <4.0.0"})
        assert build([project], tmp_path)["environment"] == {"sdk": "^3.0.0"}

    def test_advisory_logs_empty_intersection(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        project = make_project(tmp_path, "app", environment={"sdk": ">=2.12.0 <3.0.0"})
        with caplog.at_level(logging.WARNING, logger="lintmesh.workspace.synthesis"):
            content = build([project], tmp_path)
        assert content["environment"] == {"sdk": "^3.0.0"}
        assert "no version compatible" in caplog.text

    def test_enforced_writes_intersection(self, tmp_path: Path) -> None:
        projects = [
            make_project(tmp_path / "a", "a", environment={"sdk": ">=3.1.0 <4.0.0"}),
            make_project(tmp_path / "b", "b", environment={"sdk": "^3.2.0"}),
        ]
        assert build(projects, tmp_path, ENFORCED)["environment"] == {"sdk": "^3.2.0"}

    def test_enforced_conflict_between_projects(self, tmp_path: Path) -> None:
        projects = [
            make_project(tmp_path / "a", "a", environment={"sdk": ">=3.0.0 <3.1.0"}),
            make_project(tmp_path / "b", "b", environment={"sdk": "^3.2.0"}),
        ]
        with pytest.raises(IncompatibleDependencyConstraintsError) as excinfo:
            build(projects, tmp_path, ENFORCED)

        error = excinfo.value
        assert error.kind is ConflictKind.ENVIRONMENT
        assert error.key == "sdk"
        assert [meta.display for meta in error.conflicts] == ['">=3.0.0 <3.1.0"', '"^3.2.0"']

    def test_enforced_conflict_with_baseline(self, tmp_path: Path) -> None:
        project = make_project(tmp_path, "app", environment={"sdk": ">=2.0.0 <3.0.0"})
        with pytest.raises(IncompatibleDependencyConstraintsError) as excinfo:
            build([project], tmp_path, ENFORCED)

        conflicts = excinfo.value.conflicts
        assert [meta.project_name for meta in conflicts] == ["custom_lint_client", "app"]
        assert conflicts[0].display == '"^3.0.0"'


class TestOverrideManifest:
    def test_relative_override_resolves_from_its_project(self, tmp_path: Path) -> None:
        project = make_project(
            tmp_path / "packages" / "a", "a", overrides={"analyzer": PathDeclaration("../shared")}
        )
        builder = HostManifestBuilder([project], [], tmp_path, DEFAULT_SETTINGS)

        expected = Path(os.path.normpath(tmp_path / "packages" / "shared")).as_posix()
        assert builder.overrides_to_dict() == {
            "dependency_overrides": {"analyzer": {"path": expected}}
        }

    def test_same_relative_path_in_two_projects_conflicts(self, tmp_path: Path) -> None:
        projects = [
            make_project(tmp_path / "a" / "app", "a", overrides={"x": PathDeclaration("../x")}),
            make_project(tmp_path / "b" / "app", "b", overrides={"x": PathDeclaration("../x")}),
        ]
        builder = HostManifestBuilder(projects, [], tmp_path, DEFAULT_SETTINGS)
        with pytest.raises(IncompatibleDependencyConstraintsError):
            builder.overrides_to_dict()

    def test_none_without_overrides(self, tmp_path: Path) -> None:
        builder = HostManifestBuilder([make_project(tmp_path, "app")], [], tmp_path, DEFAULT_SETTINGS)
        assert builder.overrides_to_dict() is None

    def test_merges_project_overrides(self, tmp_path: Path) -> None:
        shared = {"analyzer": hosted(">=6.0.0 <7.0.0")}
        projects = [
            make_project(tmp_path / "a", "a", overrides=shared),
            make_project(tmp_path / "b", "b", overrides={"analyzer": hosted("^6.2.0")}),
        ]
        builder = HostManifestBuilder(projects, [], tmp_path, DEFAULT_SETTINGS)
        assert builder.overrides_to_dict() == {"dependency_overrides": {"analyzer": "^6.2.0"}}


class TestDumpManifest:
    def test_keeps_key_order(self) -> None:
        text = dump_manifest({"name": "x", "description": "y", "dependencies": {"b": "any"}})
        assert text.splitlines()[:2] == ["name: x", "description: y"]
