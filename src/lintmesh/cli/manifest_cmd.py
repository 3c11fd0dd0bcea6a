"""``lintmesh manifest [PATHS]...`` - Print the synthesized host pubspec.

Exit Codes:
    0 - Manifest written to stdout or to ``--output``.
    1 - Projects declare incompatible constraints, or discovery failed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from lintmesh.cli.options import (
    build_settings,
    load_workspace,
    resolve_working_directory,
    workspace_options,
)
from lintmesh.cli.output import print_error
from lintmesh.exceptions import LintMeshError


@click.command("manifest")
@workspace_options
@click.option(
    "--overrides",
    is_flag=True,
    default=False,
    help="Print pubspec_overrides.yaml instead of pubspec.yaml.",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write to this file instead of stdout.",
)
def manifest_command(
    paths: tuple[str, ...],
    working_directory: str,
    tool_name: str,
    enforce_environment: bool,
    overrides: bool,
    output: str | None,
) -> None:
    """Synthesize the host manifest that depends on every enabled plugin."""
    cwd = resolve_working_directory(working_directory)
    try:
        workspace = load_workspace(paths, cwd, build_settings(tool_name, enforce_environment))
        content = (
            workspace.synthesize_override_manifest()
            if overrides
            else workspace.synthesize_manifest()
        )
    except LintMeshError as exc:
        print_error(exc)
        sys.exit(1)

    if content is None:
        click.echo("No dependency overrides to write.", err=True)
        return

    if output is not None:
        Path(output).write_text(content, encoding="utf-8")
        click.echo(f"Manifest written to {output}")
    else:
        click.echo(content, nl=False)
