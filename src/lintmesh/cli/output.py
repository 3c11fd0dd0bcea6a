"""Rich output formatting helpers for the lintmesh CLI."""

from __future__ import annotations

import os
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lintmesh.exceptions import IncompatibleDependencyConstraintsError, LintMeshError
from lintmesh.workspace import ContextRoot, Workspace

console = Console()


def _relative(path: Path, working_directory: Path) -> str:
    return os.path.relpath(path, working_directory)


def print_context_roots(roots: list[ContextRoot], working_directory: Path) -> None:
    """Print a table of discovered context roots.

    Args:
        roots: Roots with the tool enabled.
        working_directory: Base for displayed paths.
    """
    table = Table(title="Context Roots", show_header=True, header_style="bold")
    table.add_column("Root", style="bold")
    table.add_column("Options File", style="dim")
    table.add_column("Nested Roots", justify="right")
    table.add_column("Parent Roots", justify="right")

    for root in roots:
        options = _relative(root.options_file, working_directory) if root.options_file else "-"
        table.add_row(
            _relative(root.root, working_directory),
            options,
            str(len(root.excluded)),
            str(len(root.ancestors)),
        )
    console.print(table)


def print_workspace(workspace: Workspace) -> None:
    """Print the root projects of a workspace and the plugins they enable."""
    if not workspace.projects:
        console.print("[dim]No root projects found.[/dim]")
        return

    table = Table(title="lintmesh Workspace", show_header=True, header_style="bold")
    table.add_column("Project", style="bold")
    table.add_column("Path", style="dim")
    table.add_column("Plugins")

    for project in workspace.projects:
        plugins = ", ".join(plugin.name for plugin in project.plugins) or "-"
        table.add_row(
            project.manifest.name,
            _relative(project.directory, workspace.working_directory),
            plugins,
        )
    console.print(table)

    parts = [
        f"[bold]{len(workspace.projects)}[/bold] root projects",
        f"{len(workspace.context_roots)} context roots",
        f"{len(workspace.unique_plugin_names)} unique plugins",
    ]
    if workspace.is_using_framework:
        parts.append(f"uses [cyan]{workspace.settings.framework_package}[/cyan]")
    console.print(" | ".join(parts))


def print_error(error: LintMeshError) -> None:
    """Print a lintmesh error, with a conflict table for constraint errors."""
    if isinstance(error, IncompatibleDependencyConstraintsError):
        header = Text.assemble(
            (f"{error.kind.value.capitalize()} ", "bold"),
            (error.key, "bold red"),
            (" has incompatible version constraints", ""),
        )
        console.print(Panel(header, title="Conflict"))
        table = Table(show_header=True, header_style="bold")
        table.add_column("Constraint")
        table.add_column("Project", style="bold")
        table.add_column("File", style="dim")
        for meta in error.conflicts:
            table.add_row(
                meta.display,
                meta.project_name,
                os.path.join(meta.project_path, error.file_name),
            )
        console.print(table)
        return
    console.print(Text(f"Error: {error}", style="bold red"))
