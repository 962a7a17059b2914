"""Tests for hyperplane splitting and complement synthesis."""

import itertools
import math

import pytest

from box_integral.box import Box
from box_integral.prepartition import Prepartition
from box_integral.region import Region
from box_integral.split import (
    complement,
    cubical_refinement,
    hyperplanes_of,
    refine_to_distortion,
    split,
    split_center,
    split_many,
)


UNIT_1D = Box((0,), (1,))
SQUARE = Box((0, 0), (1, 1))


# ═══════════════════════════════════════════════════════════════════
# split
# ═══════════════════════════════════════════════════════════════════


class TestSplit:
    def test_split_unit_interval_at_half(self):
        pi = split(UNIT_1D, 0, 0.5)
        assert pi.boxes == frozenset([Box((0,), (0.5,)), Box((0.5,), (1,))])
        assert pi.union == Region.of(UNIT_1D)
        assert pi.is_partition()

    @pytest.mark.parametrize("x", [-1.0, 0.0, 1.0, 2.5])
    def test_split_outside_open_interval_is_top(self, x):
        assert split(UNIT_1D, 0, x) == Prepartition.top(UNIT_1D)

    def test_split_second_axis(self):
        pi = split(SQUARE, 1, 0.25)
        assert pi.boxes == frozenset([Box((0, 0), (1, 0.25)), Box((0, 0.25), (1, 1))])

    def test_split_invalid_axis(self):
        with pytest.raises(ValueError):
            split(SQUARE, 2, 0.5)

    def test_split_nan_coordinate_rejected(self):
        with pytest.raises(ValueError, match="hyperplane coordinate on axis 0"):
            split(UNIT_1D, 0, math.nan)

    @pytest.mark.parametrize("x", [math.inf, -math.inf])
    def test_split_at_infinity_is_top(self, x):
        assert split(SQUARE, 1, x) == Prepartition.top(SQUARE)

    def test_split_non_numeric_coordinate(self):
        with pytest.raises(TypeError):
            split(UNIT_1D, 0, "0.5")


# ═══════════════════════════════════════════════════════════════════
# split_many
# ═══════════════════════════════════════════════════════════════════


class TestSplitMany:
    def test_quadrants(self):
        pi = split_many(SQUARE, {(0, 0.5), (1, 0.5)})
        assert len(pi) == 4
        assert pi.is_partition()
        assert Box((0.5, 0.5), (1, 1)) in pi

    def test_empty_set_is_top(self):
        assert split_many(SQUARE, set()) == Prepartition.top(SQUARE)

    def test_degenerate_hyperplanes_ignored(self):
        pi = split_many(SQUARE, {(0, 0.0), (0, 1.0), (1, 7.0), (0, 0.5)})
        assert len(pi) == 2
        assert pi.is_partition()

    def test_grid_cell_count(self):
        planes = {(0, 0.25), (0, 0.5), (0, 0.75), (1, 0.1), (1, 0.9)}
        pi = split_many(SQUARE, planes)
        assert len(pi) == 4 * 3
        assert pi.is_partition()

    def test_order_of_hyperplanes_irrelevant(self):
        planes = [(1, 0.3), (0, 0.6), (0, 0.2)]
        assert split_many(SQUARE, planes) == split_many(SQUARE, reversed(planes))

    def test_refines_single_splits(self):
        pi = split_many(SQUARE, {(0, 0.3), (1, 0.7)})
        assert pi <= split(SQUARE, 0, 0.3)
        assert pi <= split(SQUARE, 1, 0.7)


class TestContainmentFromIntersection:
    def test_cells_meeting_target_lie_inside_it(self):
        J = Box((0.2, 0.3), (0.6, 0.9))
        other = Box((0.6, 0.0), (1.0, 0.3))
        grid = split_many(SQUARE, hyperplanes_of([J, other]))
        for K in grid:
            for target in (J, other):
                if not K.disjoint(target):
                    assert K <= target

    def test_hyperplanes_of_covers_both_faces(self):
        J = Box((0.2, 0.3), (0.6, 0.9))
        assert hyperplanes_of([J]) == {(0, 0.2), (0, 0.6), (1, 0.3), (1, 0.9)}


# ═══════════════════════════════════════════════════════════════════
# complement
# ═══════════════════════════════════════════════════════════════════


class TestComplement:
    def test_left_half_complement(self):
        pi = Prepartition.single(SQUARE, Box((0, 0), (0.5, 1)))
        c = complement(pi)
        assert c.union == Region.of(Box((0.5, 0), (1, 1)))

    def test_union_is_difference(self):
        pi = Prepartition(SQUARE, [Box((0.2, 0.2), (0.4, 0.6)), Box((0.5, 0.0), (1.0, 0.3))])
        c = complement(pi)
        assert c.union == Region.of(SQUARE) - pi.union
        assert c.union.isdisjoint(pi.union)
        assert pi.disj_union(c).is_partition()

    def test_complement_of_partition_is_bottom(self):
        pi = split_many(SQUARE, {(0, 0.5)})
        assert len(complement(pi)) == 0

    def test_complement_of_bottom_is_top(self):
        assert complement(Prepartition.bottom(SQUARE)) == Prepartition.top(SQUARE)

    def test_deterministic(self):
        pi = Prepartition(SQUARE, [Box((0.1, 0.1), (0.3, 0.3))])
        assert complement(pi) == complement(pi)


# ═══════════════════════════════════════════════════════════════════
# split_center and cubical_refinement
# ═══════════════════════════════════════════════════════════════════


class TestSplitCenter:
    def test_partition_of_two_pow_n_homothetic_cells(self):
        box = Box((0, 0, 0), (4, 2, 1))
        pi = split_center(box)
        assert len(pi) == 8
        assert pi.is_partition()
        assert all(J.distortion() == box.distortion() for J in pi)

    def test_boundary_multiplicity_bound(self):
        box = Box((0, 0), (2, 2))
        pi = split_center(box)
        for x in itertools.product((0.0, 0.5, 1.0, 2.0), repeat=2):
            assert pi.closure_multiplicity(x) <= 2 ** box.dim


class TestCubicalRefinement:
    def test_preserves_union_and_lowers_distortion(self):
        pi = Prepartition(SQUARE, [Box((0, 0), (1, 0.1)), Box((0, 0.5), (0.3, 1))])
        for level in (1, 2, 4):
            refined = cubical_refinement(pi, level)
            assert refined.union == pi.union
            assert refined <= pi
            assert refined.distortion() <= 1 + 1 / level + 1e-9

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            cubical_refinement(Prepartition.top(SQUARE), 0)
        with pytest.raises(TypeError):
            cubical_refinement(Prepartition.top(SQUARE), 1.5)


class TestRefineToDistortion:
    def test_near_square_complement(self):
        # sides 1.1 x 1: seven rows of eight columns first fit within 1.05
        pi = Prepartition.single(Box((0, 0), (2.1, 1)), Box((1, 0), (2.1, 1)))
        refined = refine_to_distortion(pi, 1.05)
        assert refined.distortion() <= 1.05 + 1e-9
        assert refined.same_union(pi)
        assert refined <= pi
        assert len(refined) == 56

    @pytest.mark.parametrize("cap", [1.01, 1.1, 1.5, 3.0])
    def test_any_cap_above_one(self, cap):
        pi = Prepartition(SQUARE, [Box((0, 0), (0.3, 0.7)), Box((0.3, 0.0), (1.0, 0.1))])
        refined = refine_to_distortion(pi, cap)
        assert refined.distortion() <= cap + 1e-9
        assert refined.same_union(pi)

    def test_cap_must_exceed_one(self):
        with pytest.raises(ValueError):
            refine_to_distortion(Prepartition.top(SQUARE), 1.0)
