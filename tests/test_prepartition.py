"""Tests for Prepartition and its lattice operations."""

import itertools
from fractions import Fraction

import pytest

from box_integral.box import Box, OptionalBox
from box_integral.prepartition import Prepartition
from box_integral.region import Region
from box_integral.split import split, split_many


I = Box((0, 0), (1, 1))
LEFT = Box((0, 0), (0.5, 1))
RIGHT = Box((0.5, 0), (1, 1))
BOTTOM = Box((0, 0), (1, 0.5))
TOP = Box((0, 0.5), (1, 1))
QUADRANTS = [
    Box((0, 0), (0.5, 0.5)),
    Box((0, 0.5), (0.5, 1)),
    Box((0.5, 0), (1, 0.5)),
    Box((0.5, 0.5), (1, 1)),
]


def assert_disjoint(pi):
    for a, b in itertools.combinations(pi.boxes, 2):
        assert a.disjoint(b), f"{a!r} overlaps {b!r}"


# ═══════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════


class TestConstruction:
    def test_valid(self):
        pi = Prepartition(I, [LEFT, RIGHT])
        assert len(pi) == 2
        assert LEFT in pi

    def test_cell_outside_box_raises(self):
        with pytest.raises(ValueError, match="not contained"):
            Prepartition(I, [Box((0.5, 0.5), (1.5, 1))])

    def test_overlapping_cells_raise(self):
        with pytest.raises(ValueError, match="overlap"):
            Prepartition(I, [LEFT, BOTTOM])

    def test_non_box_cell_raises(self):
        with pytest.raises(TypeError):
            Prepartition(I, [(0, 1)])

    def test_dimension_mismatch_raises(self):
        with pytest.raises(ValueError):
            Prepartition(I, [Box((0,), (1,))])

    def test_duplicate_cells_collapse(self):
        assert len(Prepartition(I, [LEFT, LEFT])) == 1

    def test_immutable(self):
        pi = Prepartition(I, [LEFT])
        with pytest.raises(AttributeError):
            pi.boxes = frozenset()

    def test_iteration_is_sorted(self):
        pi = Prepartition(I, list(reversed(QUADRANTS)))
        assert list(pi) == QUADRANTS

    def test_equality_by_value(self):
        assert Prepartition(I, [LEFT, RIGHT]) == Prepartition(I, [RIGHT, LEFT])
        assert Prepartition(I, [LEFT]) != Prepartition(I, [RIGHT])


class TestIdentityCombinators:
    def test_single(self):
        pi = Prepartition.single(I, LEFT)
        assert pi.boxes == frozenset([LEFT])
        assert pi.union == Region.of(LEFT)

    def test_single_requires_sub_box(self):
        with pytest.raises(ValueError):
            Prepartition.single(LEFT, I)

    def test_top(self):
        top = Prepartition.top(I)
        assert top.union == Region.of(I)
        assert top.is_partition()

    def test_bottom(self):
        bot = Prepartition.bottom(I)
        assert bot.union.is_empty
        assert len(bot) == 0
        assert not bot.is_partition()

    def test_of_optional_boxes_drops_empties(self):
        pi = Prepartition.of_optional_boxes(I, [OptionalBox.of(LEFT), OptionalBox.EMPTY])
        assert pi.boxes == frozenset([LEFT])


# ═══════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════


class TestOrder:
    def test_refinement(self):
        fine = Prepartition(I, QUADRANTS)
        coarse = Prepartition(I, [LEFT, RIGHT])
        assert fine <= coarse
        assert not coarse <= fine
        assert coarse >= fine

    def test_bottom_and_top(self):
        pi = Prepartition(I, [LEFT])
        assert Prepartition.bottom(I) <= pi <= Prepartition.top(I)

    def test_different_boxes_rejected(self):
        with pytest.raises(ValueError, match="different boxes"):
            Prepartition.top(I) <= Prepartition.top(LEFT)


# ═══════════════════════════════════════════════════════════════════
# Derived data
# ═══════════════════════════════════════════════════════════════════


class TestDerived:
    def test_is_partition(self):
        assert Prepartition(I, [LEFT, RIGHT]).is_partition()
        assert not Prepartition(I, [LEFT]).is_partition()

    def test_union_within_box(self):
        pi = Prepartition(I, [QUADRANTS[0], QUADRANTS[3]])
        assert pi.union <= Region.of(I)

    def test_distortion(self):
        assert Prepartition(I, [LEFT, QUADRANTS[3]]).distortion() == pytest.approx(2.0)
        assert Prepartition.bottom(I).distortion() == 0.0

    def test_closure_multiplicity_at_center(self):
        pi = Prepartition(I, QUADRANTS)
        assert pi.closure_multiplicity((0.5, 0.5)) == 4
        assert pi.closure_multiplicity((0.5, 0.25)) == 2
        assert pi.closure_multiplicity((0.1, 0.1)) == 1

    def test_compl_is_cached(self):
        pi = Prepartition(I, [LEFT])
        assert pi.compl() is pi.compl()
        assert pi.compl().union == Region.of(RIGHT)

    def test_measure_is_exact(self):
        a, b = Box((0, 0), (0.1, 0.3)), Box((0.1, 0), (0.3, 0.3))
        assert Prepartition(I, [a, b]).measure == a.exact_volume() + b.exact_volume()
        assert Prepartition.bottom(I).measure == Fraction(0)

    def test_is_partition_for_non_dyadic_halves(self):
        box = Box((0.1, 0.0), (0.7, 0.3))
        mid = (0.1 + 0.7) / 2
        pi = Prepartition(box, [Box((0.1, 0.0), (mid, 0.3)), Box((mid, 0.0), (0.7, 0.3))])
        assert pi.is_partition()
        assert not Prepartition.single(box, Box((0.1, 0.0), (mid, 0.3))).is_partition()


class TestUnionComparison:
    def test_same_union_different_cells(self):
        assert Prepartition(I, [LEFT, RIGHT]).same_union(Prepartition(I, [BOTTOM, TOP]))
        assert Prepartition(I, QUADRANTS[:2]).same_union(Prepartition.single(I, LEFT))

    def test_same_union_detects_difference(self):
        assert not Prepartition.single(I, LEFT).same_union(Prepartition.single(I, RIGHT))
        # equal measure, different sets
        assert not Prepartition.single(I, LEFT).same_union(Prepartition.single(I, BOTTOM))
        assert not Prepartition.top(I).same_union(Prepartition(I, QUADRANTS[:3]))

    def test_same_union_agrees_with_region(self):
        a = split_many(I, {(0, 0.3), (1, 0.6)}).filter(lambda J: J.lower[0] == 0)
        b = Prepartition.single(I, Box((0, 0), (0.3, 1)))
        assert a.same_union(b)
        assert a.union == b.union

    def test_same_union_requires_same_box(self):
        with pytest.raises(ValueError, match="different boxes"):
            Prepartition.top(I).same_union(Prepartition.top(LEFT))

    def test_is_complement_of(self):
        assert Prepartition.single(I, RIGHT).is_complement_of(Prepartition.single(I, LEFT))
        assert Prepartition(I, QUADRANTS[2:]).is_complement_of(Prepartition.single(I, LEFT))
        assert Prepartition.bottom(I).is_complement_of(Prepartition.top(I))
        assert not Prepartition.single(I, BOTTOM).is_complement_of(Prepartition(I, QUADRANTS[1:2]))
        assert not Prepartition.single(I, BOTTOM).is_complement_of(Prepartition.single(I, LEFT))


# ═══════════════════════════════════════════════════════════════════
# Combinators
# ═══════════════════════════════════════════════════════════════════


class TestRestrict:
    def test_restrict_union_law(self):
        pi = Prepartition(I, QUADRANTS)
        J = Box((0.25, 0.25), (0.75, 1))
        r = pi.restrict(J)
        assert r.box == J
        assert r.union == Region.of(J) & pi.union
        assert len(r) == 4

    def test_restrict_drops_empty(self):
        pi = Prepartition(I, [LEFT])
        assert len(pi.restrict(RIGHT)) == 0

    def test_restrict_monotone(self):
        J = Box((0.25, 0), (0.75, 1))
        fine = Prepartition(I, QUADRANTS)
        coarse = Prepartition(I, [LEFT, RIGHT])
        assert fine.restrict(J) <= coarse.restrict(J)


class TestBiUnion:
    def test_bi_union_law(self):
        pi = Prepartition(I, [LEFT, RIGHT])
        result = pi.bi_union(lambda J: split(J, 1, 0.5))
        assert result.boxes == frozenset(QUADRANTS)
        assert result.union == pi.union
        assert result <= pi
        assert_disjoint(result)

    def test_bi_union_with_bottoms(self):
        pi = Prepartition(I, [LEFT, RIGHT])
        result = pi.bi_union(lambda J: Prepartition.bottom(J))
        assert len(result) == 0

    def test_bi_union_requires_sub_prepartition_of_cell(self):
        pi = Prepartition(I, [LEFT, RIGHT])
        with pytest.raises(ValueError):
            pi.bi_union(lambda J: Prepartition.top(I))

    def test_bi_union_index(self):
        pi = Prepartition(I, [LEFT, RIGHT])
        pis = lambda J: split(J, 1, 0.5)  # noqa: E731
        assert pi.bi_union_index(pis, QUADRANTS[3]) == RIGHT
        with pytest.raises(ValueError):
            pi.bi_union_index(pis, I)


class TestFilterAndDisjUnion:
    def test_filter_is_refinement(self):
        pi = Prepartition(I, QUADRANTS)
        kept = pi.filter(lambda J: J.lower[0] == 0)
        assert kept.boxes == frozenset(QUADRANTS[:2])
        assert kept <= pi

    def test_disj_union_law(self):
        a = Prepartition(I, QUADRANTS[:2])
        b = Prepartition(I, QUADRANTS[2:])
        u = a.disj_union(b)
        assert u.boxes == a.boxes | b.boxes
        assert not (a.boxes & b.boxes)
        assert u.union == a.union | b.union
        assert u.is_partition()

    def test_disj_union_overlap_raises(self):
        with pytest.raises(ValueError, match="disjoint"):
            Prepartition(I, [LEFT]).disj_union(Prepartition(I, [BOTTOM]))

    def test_disj_union_requires_same_box(self):
        with pytest.raises(ValueError):
            Prepartition.bottom(I).disj_union(Prepartition.bottom(LEFT))


class TestMeet:
    def test_meet_of_halves_gives_quadrants(self):
        v = Prepartition(I, [LEFT, RIGHT])
        h = Prepartition(I, [BOTTOM, TOP])
        assert (v & h).boxes == frozenset(QUADRANTS)

    def test_meet_commutative_associative(self):
        a = split_many(I, {(0, 0.25), (1, 0.5)})
        b = split_many(I, {(0, 0.5)})
        c = Prepartition(I, [Box((0, 0), (1, 0.75))])
        assert (a & b).boxes == (b & a).boxes
        assert ((a & b) & c).boxes == (a & (b & c)).boxes

    def test_meet_union_law(self):
        a = Prepartition(I, [LEFT])
        b = Prepartition(I, [BOTTOM])
        m = a.meet(b)
        assert m.union == a.union & b.union
        assert m <= a
        assert m <= b

    def test_meet_with_top_is_identity(self):
        pi = Prepartition(I, QUADRANTS[:3])
        assert (pi & Prepartition.top(I)).boxes == pi.boxes

    def test_meet_of_partitions_is_partition(self):
        a = split(I, 0, 0.3)
        b = split(I, 1, 0.6)
        assert (a & b).is_partition()
