"""``lintmesh roots [PATHS]...`` - List the directories that enable the tool.

Exit Codes:
    0 - At least one context root was found.
    2 - No analyzed directory enables the tool.
"""

from __future__ import annotations

import asyncio
import sys

import click

from lintmesh.cli.options import build_settings, resolve_working_directory, workspace_options
from lintmesh.cli.output import print_context_roots
from lintmesh.workspace import discover_context_roots


@click.command("roots")
@workspace_options
def roots_command(
    paths: tuple[str, ...],
    working_directory: str,
    tool_name: str,
    enforce_environment: bool,
) -> None:
    """List context roots under PATHS whose analysis options enable the tool."""
    cwd = resolve_working_directory(working_directory)
    settings = build_settings(tool_name, enforce_environment)
    roots = asyncio.run(
        discover_context_roots(paths or [str(cwd)], working_directory=cwd, settings=settings)
    )

    if not roots:
        click.echo(f"No directory enables {settings.tool_name}.")
        sys.exit(2)

    print_context_roots(roots, cwd)
