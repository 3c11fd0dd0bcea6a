"""Version ranges and dependency declarations.

Public names are re-exported here so callers can write
``from lintmesh.core.constraints import HostedDeclaration``.
"""

from lintmesh.core.constraints.declarations import (
    AnyDeclaration,
    Declaration,
    GitDeclaration,
    HostedDeclaration,
    PathDeclaration,
    SdkDeclaration,
    parse_declaration,
)
from lintmesh.core.constraints.versions import (
    ANY,
    EMPTY,
    VersionRange,
    next_breaking,
    parse_version,
)

__all__ = [
    "ANY",
    "EMPTY",
    "AnyDeclaration",
    "Declaration",
    "GitDeclaration",
    "HostedDeclaration",
    "PathDeclaration",
    "SdkDeclaration",
    "VersionRange",
    "next_breaking",
    "parse_declaration",
    "parse_version",
]
