"""Workspace settings.

Marker names and host-project identity used across discovery and manifest
synthesis. The defaults describe a ``custom_lint`` workspace; the CLI can
override individual fields.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkspaceSettings:
    """Names and policies that drive discovery and synthesis.

    Attributes:
        tool_name: Entry that must appear under ``analyzer.plugins`` in
            analysis_options.yaml for a root to be considered.
        plugin_marker: A package is a plugin iff its pubspec has a regular
            dependency on this package.
        framework_package: When any project resolves this package, the
            package manager is invoked through the framework's CLI.
        framework_command: Executable used when the framework is in use.
        default_command: Executable used otherwise.
        analyzer_key: Top-level key of analysis_options.yaml holding
            the ``plugins`` list.
        baseline_environment: Range every environment key is merged with
            and, in advisory mode, the range written to the host manifest.
        enforce_environment: When True, an empty environment intersection
            raises instead of being logged, and the intersection is emitted.
        host_name: ``name`` of the synthesized host manifest.
        host_description: ``description`` of the synthesized host manifest.
        host_version: ``version`` of the synthesized host manifest.
    """

    tool_name: str = "custom_lint"
    plugin_marker: str = "custom_lint_builder"
    framework_package: str = "flutter"
    framework_command: str = "flutter"
    default_command: str = "dart"
    analyzer_key: str = "analyzer"
    baseline_environment: str = "^3.0.0"
    enforce_environment: bool = False
    host_name: str = "custom_lint_client"
    host_description: str = "A client for custom_lint"
    host_version: str = "0.0.1"


DEFAULT_SETTINGS = WorkspaceSettings()
