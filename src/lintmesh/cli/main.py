"""lintmesh CLI - Inspect analyzer plugin workspaces and build their host.

Entry point for the ``lintmesh`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    roots     - List directories whose analysis options enable the tool.
    inspect   - Show root projects and the plugins they enable.
    manifest  - Print the synthesized host pubspec (or its overrides).
    resolve   - Write the host project and run ``pub get`` in it.

Usage::

    lintmesh roots
    lintmesh inspect ./packages
    lintmesh manifest --overrides
    lintmesh resolve --target .dart_tool/lint_host
"""

from __future__ import annotations

import logging

import click

from lintmesh import __version__
from lintmesh.cli.inspect_cmd import inspect_command
from lintmesh.cli.manifest_cmd import manifest_command
from lintmesh.cli.resolve_cmd import resolve_command
from lintmesh.cli.roots_cmd import roots_command


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """lintmesh: Aggregate analyzer plugins across a Dart workspace.

    Discovers every project that enables the tool, checks that their
    plugin constraints agree, and synthesizes a single host project
    depending on all of them.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


cli.add_command(roots_command)
cli.add_command(inspect_command)
cli.add_command(manifest_command)
cli.add_command(resolve_command)
