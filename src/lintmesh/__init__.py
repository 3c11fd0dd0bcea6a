"""lintmesh: Merge lint-plugin manifests across a multi-project workspace."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
