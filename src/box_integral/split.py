"""
Hyperplane splitting and complement synthesis.

split(I, i, x)
    Cuts I by the hyperplane {y : yᵢ = x} into
        I ∩ {yᵢ ≤ x}   and   I ∩ {x < yᵢ},
    dropping an empty side.  When x ∉ (lᵢ, uᵢ) the result is top(I).
    Always a partition of I.

split_many(I, S)
    The meet of split(I, i, x) over every (i, x) ∈ S.  Always a
    partition of I; split_many(I, ∅) = top(I).

Containment from intersection:
    If S contains both faces of a box J on every axis, each cell J′ of
    split_many(I, S) with J′ ∩ J ≠ ∅ satisfies J′ ≤ J.  Choosing S as the
    faces of all cells of π therefore makes split_many(I, S) refine π,
    and the cells of split_many(I, S) that lie in no cell of π cover
    exactly I \\ ⋃π.  That selection is ``complement``.

Hyperplane sets are folded in sorted order (axis first, then
coordinate), so every result is deterministic.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence, Set, Tuple

import numpy as np

from box_integral.box import Box, _validate_coordinate
from box_integral.prepartition import Prepartition

logger = logging.getLogger(__name__)

Hyperplane = Tuple[int, float]


def split(box: Box, axis: int, x: float) -> Prepartition:
    """Split ``box`` by the hyperplane ``y[axis] = x``.

    Infinite ``x`` misses the box and gives ``top(box)``; NaN is rejected.
    """
    if not (isinstance(x, float) and math.isinf(x)):
        x = _validate_coordinate(x, f"hyperplane coordinate on axis {axis}")
    lower = box.split_lower(axis, x)
    upper = box.split_upper(axis, x)
    return Prepartition._trusted(box, (p.unwrap() for p in (lower, upper) if not p.is_empty))


def split_many(box: Box, hyperplanes: Iterable[Hyperplane]) -> Prepartition:
    """Meet of the single splits of ``box`` along every hyperplane."""
    result = Prepartition.top(box)
    for axis, x in sorted(set(hyperplanes)):
        result = result.meet(split(box, axis, x))
    return result


def hyperplanes_of(boxes: Iterable[Box]) -> Set[Hyperplane]:
    """Both faces of every box on every axis."""
    planes: Set[Hyperplane] = set()
    for J in boxes:
        for i in range(J.dim):
            planes.add((i, J.lower[i]))
            planes.add((i, J.upper[i]))
    return planes


def complement(pi: Prepartition) -> Prepartition:
    """A prepartition of ``pi.box`` whose union is ``pi.box \\ ⋃pi``.

    The cells of the grid spanned by ``hyperplanes_of(pi)`` are held as
    corner arrays; only the uncovered ones become ``Box`` values.
    """
    box = pi.box
    if pi.is_partition():
        return Prepartition.bottom(box)
    planes = hyperplanes_of(pi.boxes)
    axes = []
    for i in range(box.dim):
        inner = {x for a, x in planes if a == i and box.lower[i] < x < box.upper[i]}
        coords = np.array(sorted(inner | {box.lower[i], box.upper[i]}))
        axes.append((coords[:-1], coords[1:]))
    lo = np.stack([g.ravel() for g in np.meshgrid(*(a for a, _ in axes), indexing="ij")], axis=1)
    hi = np.stack([g.ravel() for g in np.meshgrid(*(b for _, b in axes), indexing="ij")], axis=1)
    covered = np.zeros(len(lo), dtype=bool)
    for K in pi.boxes:
        covered |= np.all((lo >= K.lower) & (hi <= K.upper), axis=1)
    kept = [Box(tuple(l), tuple(u)) for l, u in zip(lo[~covered].tolist(), hi[~covered].tolist())]
    logger.debug(
        "complement of %d cells: grid of %d cells, %d kept", len(pi), len(lo), len(kept)
    )
    return Prepartition._trusted(box, kept)


def split_center(box: Box) -> Prepartition:
    """The 2ⁿ-cell partition of ``box`` obtained by halving every side."""
    return Prepartition._trusted(box, box.split_center_boxes())


def _equal_pieces(J: Box, counts: Sequence[int]) -> Prepartition:
    planes = []
    for i, (side, n) in enumerate(zip(J.side_lengths, counts)):
        planes.extend((i, J.lower[i] + side * k / n) for k in range(1, n))
    return split_many(J, planes)


def cubical_refinement(pi: Prepartition, level: int = 1) -> Prepartition:
    """Refine every cell of ``pi`` into nearly cubical pieces.

    Each cell J is cut on axis i into ``ceil(level · sideᵢ / min_side(J))``
    equal parts.  The union is unchanged and the
    distortion of every piece is below ``1 + 1/level`` up to rounding.
    """
    if isinstance(level, bool) or not isinstance(level, int):
        raise TypeError(f"level must be an int, got: {type(level).__name__}")
    if level < 1:
        raise ValueError(f"level must be >= 1, got: {level}")

    def pieces(J: Box) -> Prepartition:
        sides = J.side_lengths
        shortest = min(sides)
        # 1e-9 absorbs rounding in side / shortest
        counts = [max(1, math.ceil(side / shortest * level - 1e-9)) for side in sides]
        return _equal_pieces(J, counts)

    return pi.bi_union(pieces)


def _counts_within(J: Box, cap: float) -> List[int]:
    """Fewest equal cuts per axis, by cube edge min_side / k, meeting ``cap``."""
    sides = J.side_lengths
    shortest = min(sides)
    k = 1
    while True:
        counts = [max(1, round(side * k / shortest)) for side in sides]
        lengths = [side / n for side, n in zip(sides, counts)]
        if max(lengths) / min(lengths) <= cap:
            return counts
        k += 1


def refine_to_distortion(pi: Prepartition, cap: float) -> Prepartition:
    """Refine every cell of ``pi`` into equal pieces of distortion at most ``cap``.

    Rounding ``sideᵢ · k / min_side`` to the nearest count puts every piece
    length within a factor ``1 ± 1/(2k)`` of the common edge, so the
    search over k ends for every ``cap > 1``; the number of pieces grows
    like ``(1 / (cap - 1))ⁿ``.  The union is unchanged.
    """
    if not cap > 1.0:
        raise ValueError(f"distortion cap must be > 1, got: {cap}")
    return pi.bi_union(lambda J: _equal_pieces(J, _counts_within(J, cap)))
