"""
Point-set algebra over finite unions of boxes.

A ``Region`` is the set ⋃ₖ Bₖ for finitely many boxes Bₖ (overlaps are
allowed).  Two regions are compared exactly, without sampling:

    Collect, per axis, every face coordinate of every box involved.  The
    resulting grid cuts space into elementary cells, and because each box
    has its faces on the grid, every elementary cell lies either entirely
    inside or entirely outside each box.

So a region is faithfully represented by the set of elementary cells it
covers, and =, ⊆, ∩, ∪, \\ reduce to finite set operations on cells.
"""

from __future__ import annotations

import itertools
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from box_integral.box import Box


def _grid_cells(boxes: Sequence[Box]) -> List[Box]:
    """Elementary cells of the grid spanned by the faces of ``boxes``.

    Only cells inside the bounding box of ``boxes`` are produced.
    """
    if not boxes:
        return []
    dim = boxes[0].dim
    axes = []
    for i in range(dim):
        coords = sorted({b.lower[i] for b in boxes} | {b.upper[i] for b in boxes})
        axes.append(list(zip(coords, coords[1:])))
    cells = []
    for intervals in itertools.product(*axes):
        cells.append(Box(tuple(a for a, _ in intervals), tuple(b for _, b in intervals)))
    return cells


def _covered(cells: Iterable[Box], boxes: Sequence[Box]) -> FrozenSet[Box]:
    return frozenset(c for c in cells if any(c <= b for b in boxes))


class Region:
    """A finite union of boxes, compared as a point set.

    Regions are immutable.  ``Region()`` is the empty set.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, boxes: Iterable[Box] = ()) -> None:
        items = []
        for b in boxes:
            if not isinstance(b, Box):
                raise TypeError(f"Region members must be Box, got: {type(b).__name__}")
            items.append(b)
        dims = {b.dim for b in items}
        if len(dims) > 1:
            raise ValueError(f"Region boxes have mixed dimensions: {sorted(dims)}")
        self._boxes: Tuple[Box, ...] = tuple(sorted(set(items), key=Box.sort_key))

    @classmethod
    def of(cls, *boxes: Box) -> Region:
        return cls(boxes)

    @property
    def boxes(self) -> Tuple[Box, ...]:
        return self._boxes

    @property
    def dim(self) -> Optional[int]:
        return self._boxes[0].dim if self._boxes else None

    @property
    def is_empty(self) -> bool:
        return not self._boxes

    # ── Membership ─────────────────────────────────────────────────

    def contains(self, x: Sequence[float]) -> bool:
        return any(b.contains(x) for b in self._boxes)

    def __contains__(self, x: Sequence[float]) -> bool:
        return self.contains(x)

    def contains_points(self, points: Any) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        result = np.zeros(len(pts), dtype=bool)
        for b in self._boxes:
            result |= b.contains_points(pts)
        return result

    # ── Set algebra ────────────────────────────────────────────────

    def _common_cells(self, other: Region) -> Tuple[FrozenSet[Box], FrozenSet[Box]]:
        if self.dim is not None and other.dim is not None and self.dim != other.dim:
            raise ValueError(f"Dimension mismatch: {self.dim} vs {other.dim}")
        cells = _grid_cells(self._boxes + other._boxes)
        return _covered(cells, self._boxes), _covered(cells, other._boxes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Region):
            return NotImplemented
        if self.is_empty or other.is_empty:
            return self.is_empty and other.is_empty
        mine, theirs = self._common_cells(other)
        return mine == theirs

    def __le__(self, other: Region) -> bool:
        if not isinstance(other, Region):
            return NotImplemented
        if self.is_empty:
            return True
        mine, theirs = self._common_cells(other)
        return mine <= theirs

    def __ge__(self, other: Region) -> bool:
        if not isinstance(other, Region):
            return NotImplemented
        return other <= self

    def __and__(self, other: Region) -> Region:
        mine, theirs = self._common_cells(other)
        return Region(mine & theirs)

    def __or__(self, other: Region) -> Region:
        return Region(self._boxes + other._boxes)

    def __sub__(self, other: Region) -> Region:
        mine, theirs = self._common_cells(other)
        return Region(mine - theirs)

    def isdisjoint(self, other: Region) -> bool:
        return all(a.disjoint(b) for a in self._boxes for b in other._boxes)

    def volume(self) -> float:
        """Lebesgue measure, counting overlaps once."""
        return sum(c.volume() for c in _covered(_grid_cells(self._boxes), self._boxes))

    def __repr__(self) -> str:
        return f"Region({list(self._boxes)!r})"
