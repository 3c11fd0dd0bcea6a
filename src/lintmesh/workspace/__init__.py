"""Workspace discovery, project modelling and host-manifest synthesis.

Public API::

    from lintmesh.workspace import Workspace

    workspace = await Workspace.from_paths(["."], working_directory=Path.cwd())
    print(workspace.synthesize_manifest())
"""

from __future__ import annotations

from lintmesh.workspace.discovery import (
    discover_context_roots,
    find_options_file,
    find_roots,
    is_tool_enabled,
)
from lintmesh.workspace.process import ProcessResult, ProcessRunner, run_process
from lintmesh.workspace.project import ContextRoot, Plugin, Project
from lintmesh.workspace.synthesis import HostManifestBuilder, merge_declarations
from lintmesh.workspace.workspace import Workspace

__all__ = [
    "ContextRoot",
    "HostManifestBuilder",
    "Plugin",
    "ProcessResult",
    "ProcessRunner",
    "Project",
    "Workspace",
    "discover_context_roots",
    "find_options_file",
    "find_roots",
    "is_tool_enabled",
    "merge_declarations",
    "run_process",
]
