"""Options shared by every workspace-building command."""

from __future__ import annotations

import asyncio
import dataclasses
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from lintmesh.config import DEFAULT_SETTINGS, WorkspaceSettings
from lintmesh.workspace import Workspace

F = TypeVar("F", bound=Callable[..., Any])


def workspace_options(func: F) -> F:
    """Attach the PATHS argument and the settings options to a command."""
    func = click.option(
        "--enforce-environment",
        is_flag=True,
        default=False,
        help="Fail when projects disagree on an environment constraint.",
    )(func)
    func = click.option(
        "--tool-name",
        default=DEFAULT_SETTINGS.tool_name,
        show_default=True,
        help="Analyzer plugin name that opts a project in.",
    )(func)
    func = click.option(
        "--working-directory",
        "-C",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        help="Directory whose pubspec lists the plugins (default: current).",
    )(func)
    func = click.argument("paths", nargs=-1, type=click.Path(exists=True, file_okay=False))(func)
    return func


def build_settings(tool_name: str, enforce_environment: bool) -> WorkspaceSettings:
    """Apply CLI overrides on top of the default settings."""
    return dataclasses.replace(
        DEFAULT_SETTINGS, tool_name=tool_name, enforce_environment=enforce_environment
    )


def resolve_working_directory(working_directory: str) -> Path:
    """Return the working directory as an absolute, normalized path."""
    return Path(os.path.abspath(working_directory))


def load_workspace(
    paths: tuple[str, ...], working_directory: Path, settings: WorkspaceSettings
) -> Workspace:
    """Build the workspace for *paths* (default: the working directory)."""
    return asyncio.run(
        Workspace.from_paths(
            paths or [str(working_directory)],
            working_directory=working_directory,
            settings=settings,
        )
    )
