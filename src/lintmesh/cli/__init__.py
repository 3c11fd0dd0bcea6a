"""Command-line interface for lintmesh."""
