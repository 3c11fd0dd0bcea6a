"""Property-based tests for the version-range and declaration algebra.

Intersection of intervals is the meet of a lattice with ``ANY`` on top and
``EMPTY`` at the bottom. These tests check the lattice laws and that
intersection agrees with membership, over small generated constraints.
"""
from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st
from semantic_version import Version

from lintmesh.core.constraints import ANY, EMPTY, HostedDeclaration, VersionRange


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

version_texts = st.builds(
    lambda major, minor, patch: f"{major}.{minor}.{patch}",
    st.integers(min_value=0, max_value=3),
    st.integers(min_value=0, max_value=3),
    st.integers(min_value=0, max_value=2),
)

versions = version_texts.map(Version)

comparators = st.sampled_from([">=", ">", "<=", "<"])

constraint_texts = st.one_of(
    st.just("any"),
    version_texts,
    version_texts.map(lambda v: f"^{v}"),
    st.builds(lambda op, v: f"{op}{v}", comparators, version_texts),
    st.builds(
        lambda op1, v1, op2, v2: f"{op1}{v1} {op2}{v2}",
        comparators,
        version_texts,
        comparators,
        version_texts,
    ),
)

ranges = constraint_texts.map(VersionRange.parse)


# ---------------------------------------------------------------------------
# Lattice laws
# ---------------------------------------------------------------------------


class TestIntersectLaws:
    """Algebraic laws for VersionRange.intersect."""

    @given(a=ranges, b=ranges)
    def test_commutativity(self, a: VersionRange, b: VersionRange) -> None:
        """a & b == b & a."""
        assert a.intersect(b) == b.intersect(a)

    @given(a=ranges, b=ranges, c=ranges)
    def test_associativity(self, a: VersionRange, b: VersionRange, c: VersionRange) -> None:
        """(a & b) & c == a & (b & c)."""
        assert a.intersect(b).intersect(c) == a.intersect(b.intersect(c))

    @given(a=ranges)
    def test_idempotency(self, a: VersionRange) -> None:
        """a & a == a."""
        assert a.intersect(a) == a

    @given(a=ranges)
    def test_any_is_identity(self, a: VersionRange) -> None:
        """a & ANY == a."""
        assert a.intersect(ANY) == a

    @given(a=ranges)
    def test_empty_absorbs(self, a: VersionRange) -> None:
        """a & EMPTY == EMPTY."""
        assert a.intersect(EMPTY).is_empty


class TestIntersectSoundness:
    """Intersection allows exactly the versions both operands allow."""

    @given(a=ranges, b=ranges, v=versions)
    def test_membership(self, a: VersionRange, b: VersionRange, v: Version) -> None:
        assert a.intersect(b).allows(v) == (a.allows(v) and b.allows(v))

    @given(a=ranges, v=versions)
    def test_rendering_round_trips_membership(self, a: VersionRange, v: Version) -> None:
        """Parsing the rendered form gives back the same set of versions."""
        if a.is_empty:
            return
        assert VersionRange.parse(str(a)).allows(v) == a.allows(v)


class TestHostedCompatibility:
    @given(a=ranges, b=ranges)
    def test_symmetry(self, a: VersionRange, b: VersionRange) -> None:
        """compatible_with is symmetric."""
        left, right = HostedDeclaration(version=a), HostedDeclaration(version=b)
        assert left.compatible_with(right) == right.compatible_with(left)

    @given(a=ranges, b=ranges)
    def test_compatible_iff_intersection_exists(self, a: VersionRange, b: VersionRange) -> None:
        merged = HostedDeclaration(version=a).intersect(HostedDeclaration(version=b))
        assert (merged is not None) == a.allows_any(b)
