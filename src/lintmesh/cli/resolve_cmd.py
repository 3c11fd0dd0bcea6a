"""``lintmesh resolve [PATHS]... --target DIR`` - Create and resolve the host.

Writes the host pubspec (and overrides, when any) into DIR, then runs
``dart pub get`` or ``flutter pub get`` there.

Exit Codes:
    0 - Host project resolved.
    1 - Synthesis failed or the package manager exited with an error.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from lintmesh.cli.options import (
    build_settings,
    load_workspace,
    resolve_working_directory,
    workspace_options,
)
from lintmesh.cli.output import console, print_error
from lintmesh.exceptions import LintMeshError


@click.command("resolve")
@workspace_options
@click.option(
    "--target", "-t",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory to create the host project in.",
)
def resolve_command(
    paths: tuple[str, ...],
    working_directory: str,
    tool_name: str,
    enforce_environment: bool,
    target: str,
) -> None:
    """Write the host project for PATHS into --target and fetch its plugins."""
    cwd = resolve_working_directory(working_directory)
    try:
        workspace = load_workspace(paths, cwd, build_settings(tool_name, enforce_environment))
        asyncio.run(workspace.resolve_plugin_host(Path(target)))
    except LintMeshError as exc:
        print_error(exc)
        sys.exit(1)

    console.print(
        f"[green]Resolved[/green] {len(workspace.unique_plugin_names)} plugins in {target}"
    )
