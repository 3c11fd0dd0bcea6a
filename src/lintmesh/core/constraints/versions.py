"""Version ranges over semantic versions, using pub constraint syntax.

A ``VersionRange`` is a single interval with optional, independently
inclusive or exclusive bounds. Every constraint a pubspec can express for a
hosted dependency (``any``, caret, exact, and comparator lists) is a single
interval, and the intersection of two intervals is again an interval, so no
union type is needed to merge constraints.

Supported syntax:

- Any version: ``any``
- Caret: ``^1.2.3`` (``>=1.2.3 <2.0.0``), ``^0.2.3`` (``>=0.2.3 <0.3.0``)
- Exact: ``1.2.3``
- Comparators: ``>=1.0.0``, ``>1.0.0``, ``<=2.0.0``, ``<2.0.0``
- Compound (space-separated, all must hold): ``>=1.0.0 <2.0.0``

References
----------
.. [pub-semver] Dart team. "pub_semver" package: version constraint
   semantics used by ``pub``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from semantic_version import Version

# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------

_VERSION_PATTERN = r"\d+\.\d+\.\d+(?:-[0-9A-Za-z\-.]+)?(?:\+[0-9A-Za-z\-.]+)?"

_COMPARATOR_RE = re.compile(rf"\s*(?P<op>>=|<=|>|<|\^)?\s*(?P<ver>{_VERSION_PATTERN})\s*")


def parse_version(text: str) -> Version:
    """Parse a semantic version string.

    Args:
        text: Version string (e.g., "1.2.3", "2.0.0-dev.1").

    Returns:
        The parsed ``semantic_version.Version``.

    Raises:
        ValueError: If the string is not a valid semantic version.
    """
    try:
        return Version(text.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid semantic version: {text!r}") from exc


def next_breaking(version: Version) -> Version:
    """Return the first version that is not caret-compatible with *version*.

    Below 1.0.0 the minor version is the breaking component, matching pub.
    """
    if version.major == 0:
        return Version(f"0.{version.minor + 1}.0")
    return Version(f"{version.major + 1}.0.0")


# ---------------------------------------------------------------------------
# VersionRange
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionRange:
    """A contiguous interval of versions.

    ``min``/``max`` of ``None`` leave that side unbounded. The inclusive
    flag of an unbounded side is always False so that equal intervals
    compare equal.

    Attributes:
        min: Lower bound, or None.
        max: Upper bound, or None.
        include_min: Whether ``min`` itself is allowed.
        include_max: Whether ``max`` itself is allowed.
        empty: True for the range that allows no version at all.
    """

    min: Version | None = None
    max: Version | None = None
    include_min: bool = False
    include_max: bool = False
    empty: bool = False

    @classmethod
    def parse(cls, text: str) -> VersionRange:
        """Parse a pub version constraint.

        Args:
            text: Constraint such as ``"^1.2.0"`` or ``">=1.0.0 <2.0.0"``.

        Returns:
            The interval described by *text*.

        Raises:
            ValueError: If *text* is not a valid constraint.
        """
        stripped = text.strip()
        if stripped == "any":
            return ANY
        if not stripped or not re.fullmatch(rf"(?:{_COMPARATOR_RE.pattern})+", stripped):
            raise ValueError(f"Invalid version constraint: {text!r}")

        result = ANY
        for match in _COMPARATOR_RE.finditer(stripped):
            result = result.intersect(cls._from_comparator(match.group("op"), match.group("ver")))
        return result

    @classmethod
    def _from_comparator(cls, op: str | None, raw_version: str) -> VersionRange:
        version = parse_version(raw_version)
        if op is None:
            return cls(min=version, max=version, include_min=True, include_max=True)
        if op == "^":
            return cls(min=version, max=next_breaking(version), include_min=True)
        if op == ">=":
            return cls(min=version, include_min=True)
        if op == ">":
            return cls(min=version)
        if op == "<=":
            return cls(max=version, include_max=True)
        return cls(max=version)

    @classmethod
    def exact(cls, version: Version) -> VersionRange:
        """Return the range allowing only *version*."""
        return cls(min=version, max=version, include_min=True, include_max=True)

    # -- Queries --------------------------------------------------------------

    @property
    def is_any(self) -> bool:
        """True if every version is allowed."""
        return not self.empty and self.min is None and self.max is None

    @property
    def is_empty(self) -> bool:
        """True if no version is allowed."""
        return self.empty

    def allows(self, version: Version) -> bool:
        """Check whether *version* falls inside this range."""
        if self.empty:
            return False
        if self.min is not None:
            if version < self.min or (not self.include_min and not version > self.min):
                return False
        if self.max is not None:
            if version > self.max or (not self.include_max and not version < self.max):
                return False
        return True

    def allows_any(self, other: VersionRange) -> bool:
        """Check whether at least one version satisfies both ranges."""
        return not self.intersect(other).is_empty

    # -- Algebra --------------------------------------------------------------

    def intersect(self, other: VersionRange) -> VersionRange:
        """Return the range of versions allowed by both *self* and *other*.

        Returns ``EMPTY`` when the ranges do not overlap.
        """
        if self.empty or other.empty:
            return EMPTY

        low, include_low = _pick_bound(
            (self.min, self.include_min), (other.min, other.include_min), keep_greater=True
        )
        high, include_high = _pick_bound(
            (self.max, self.include_max), (other.max, other.include_max), keep_greater=False
        )

        if low is not None and high is not None:
            if low > high:
                return EMPTY
            if not low < high and not (include_low and include_high):
                return EMPTY
        return VersionRange(min=low, max=high, include_min=include_low, include_max=include_high)

    # -- Rendering ------------------------------------------------------------

    def __str__(self) -> str:
        if self.empty:
            return "<empty>"
        if self.is_any:
            return "any"
        if (
            self.min is not None
            and self.max is not None
            and self.include_min
            and self.include_max
            and not self.min < self.max
        ):
            return str(self.min)
        if (
            self.min is not None
            and self.max is not None
            and self.include_min
            and not self.include_max
            and self.max == next_breaking(self.min)
        ):
            return f"^{self.min}"

        parts: list[str] = []
        if self.min is not None:
            parts.append(f"{'>=' if self.include_min else '>'}{self.min}")
        if self.max is not None:
            parts.append(f"{'<=' if self.include_max else '<'}{self.max}")
        return " ".join(parts)


def _pick_bound(
    left: tuple[Version | None, bool],
    right: tuple[Version | None, bool],
    *,
    keep_greater: bool,
) -> tuple[Version | None, bool]:
    """Pick the tighter of two bounds on the same side of an interval."""
    left_version, left_inclusive = left
    right_version, right_inclusive = right
    if left_version is None:
        return right_version, right_inclusive if right_version is not None else False
    if right_version is None:
        return left_version, left_inclusive
    if left_version > right_version:
        return left if keep_greater else right
    if left_version < right_version:
        return right if keep_greater else left
    return left_version, left_inclusive and right_inclusive


ANY = VersionRange()
EMPTY = VersionRange(empty=True)
