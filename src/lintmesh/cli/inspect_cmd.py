"""``lintmesh inspect [PATHS]...`` - Show root projects and their plugins.

Exit Codes:
    0 - Workspace built successfully.
    1 - A manifest, package index or plugin could not be resolved.
"""

from __future__ import annotations

import sys

import click

from lintmesh.cli.options import (
    build_settings,
    load_workspace,
    resolve_working_directory,
    workspace_options,
)
from lintmesh.cli.output import print_error, print_workspace
from lintmesh.exceptions import LintMeshError


@click.command("inspect")
@workspace_options
def inspect_command(
    paths: tuple[str, ...],
    working_directory: str,
    tool_name: str,
    enforce_environment: bool,
) -> None:
    """Build the workspace for PATHS and print its projects."""
    cwd = resolve_working_directory(working_directory)
    try:
        workspace = load_workspace(paths, cwd, build_settings(tool_name, enforce_environment))
    except LintMeshError as exc:
        print_error(exc)
        sys.exit(1)

    print_workspace(workspace)
