"""
Prepartitions of a box.

A prepartition π of an ambient box I is a finite set of boxes such that

    (a) J ≤ I for every J ∈ π            (containment)
    (b) J₁ ∩ J₂ = ∅ for J₁ ≠ J₂ ∈ π      (pairwise disjointness)

Its union ⋃π ⊆ I need not be all of I; when it is, π is a *partition*.

Order (refinement):
    π₁ ≤ π₂  ⟺  every cell of π₁ lies in some cell of π₂.
    top = {I},  bottom = {}.

Invariants (a) and (b) are validated exactly once, by the public
constructor.  Every combinator below preserves them by construction
and builds its result through ``Prepartition._trusted``, so nothing is
re-checked downstream:

    restrict(π, J)      cells J ∩ J′, dropping empties
    bi_union(π, πᵢ)     ⋃_{J∈π} πᵢ(J), each πᵢ(J) a prepartition of J
    filter(π, p)        cells satisfying p
    disj_union(π₁, π₂)  boxes₁ ∪ boxes₂ given ⋃π₁ ∩ ⋃π₂ = ∅
    meet(π₁, π₂)        bi_union(π₁, J ↦ restrict(π₂, J))
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from functools import cached_property
from typing import Callable, Collection, FrozenSet, Iterable, Iterator, Sequence

import numpy as np

from box_integral.box import Box, OptionalBox
from box_integral.region import Region


def _overlap_measure(first: Collection[Box], second: Collection[Box]) -> Fraction:
    """Exact measure of (⋃first) ∩ (⋃second) for two pairwise-disjoint families."""
    if not first or not second:
        return Fraction(0)
    if len(first) > len(second):
        first, second = second, first
    others = list(second)
    lo = np.array([K.lower for K in others], dtype=float)
    hi = np.array([K.upper for K in others], dtype=float)
    total = Fraction(0)
    for J in first:
        hits = np.nonzero(np.all((lo < J.upper) & (hi > J.lower), axis=1))[0]
        for k in hits:
            total += J.meet(others[int(k)]).unwrap().exact_volume()
    return total


@dataclass(frozen=True)
class Prepartition:
    """A finite set of pairwise-disjoint sub-boxes of ``box``.

    Attributes:
        box:   The ambient box I.
        boxes: The cells.  Iteration yields them in lexicographic order
               of ``(lower, upper)``.

    Raises:
        TypeError:  If ``box`` or a cell is not a ``Box``.
        ValueError: If a cell is not a sub-box of ``box`` or two cells
                    overlap.
    """

    box: Box
    boxes: FrozenSet[Box] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.box, Box):
            raise TypeError(f"box must be a Box, got: {type(self.box).__name__}")
        cells = []
        for J in self.boxes:
            if not isinstance(J, Box):
                raise TypeError(f"Prepartition cells must be Box, got: {type(J).__name__}")
            if J.dim != self.box.dim:
                raise ValueError(f"Cell {J!r} has dimension {J.dim}, expected {self.box.dim}")
            if not J <= self.box:
                raise ValueError(f"Cell {J!r} is not contained in {self.box!r}")
            cells.append(J)
        cells.sort(key=Box.sort_key)
        for i, J1 in enumerate(cells):
            for J2 in cells[i + 1:]:
                if not J1.disjoint(J2):
                    raise ValueError(f"Cells {J1!r} and {J2!r} overlap")
        object.__setattr__(self, "boxes", frozenset(cells))

    @classmethod
    def _trusted(cls, box: Box, boxes: Iterable[Box]) -> Prepartition:
        """Build without validation; callers guarantee (a) and (b)."""
        obj = cls.__new__(cls)
        object.__setattr__(obj, "box", box)
        object.__setattr__(obj, "boxes", frozenset(boxes))
        return obj

    # ── Constructors ───────────────────────────────────────────────

    @classmethod
    def single(cls, box: Box, J: Box) -> Prepartition:
        """The one-cell prepartition {J}; requires J ≤ box."""
        return cls(box, frozenset([J]))

    @classmethod
    def top(cls, box: Box) -> Prepartition:
        return cls._trusted(box, [box])

    @classmethod
    def bottom(cls, box: Box) -> Prepartition:
        return cls._trusted(box, [])

    @classmethod
    def of_optional_boxes(cls, box: Box, boxes: Iterable[OptionalBox]) -> Prepartition:
        """Build from possibly-empty boxes, discarding the empty ones."""
        return cls(box, frozenset(b.unwrap() for b in boxes if not b.is_empty))

    # ── Container protocol ─────────────────────────────────────────

    def __iter__(self) -> Iterator[Box]:
        return iter(sorted(self.boxes, key=Box.sort_key))

    def __len__(self) -> int:
        return len(self.boxes)

    def __contains__(self, J: object) -> bool:
        return J in self.boxes

    # ── Derived data ───────────────────────────────────────────────

    @cached_property
    def union(self) -> Region:
        """⋃π as a point set."""
        return Region(self.boxes)

    @cached_property
    def measure(self) -> Fraction:
        """Exact measure of ⋃π, the sum of the cell volumes."""
        return sum((J.exact_volume() for J in self.boxes), Fraction(0))

    def is_partition(self) -> bool:
        """True when the cells cover the ambient box."""
        return self.measure == self.box.exact_volume()

    def same_union(self, other: Prepartition) -> bool:
        """Whether ⋃self = ⋃other, without building a common grid.

        Both families are disjoint, so the unions agree exactly when their
        measures agree with the measure of their intersection.  A nonempty
        difference of finite unions of boxes has positive measure.
        """
        self._check_same_box(other)
        if self.measure != other.measure:
            return False
        return _overlap_measure(self.boxes, other.boxes) == self.measure

    def is_complement_of(self, other: Prepartition) -> bool:
        """Whether ⋃self = box \\ ⋃other."""
        self._check_same_box(other)
        if self.measure + other.measure != self.box.exact_volume():
            return False
        return _overlap_measure(self.boxes, other.boxes) == 0

    def distortion(self) -> float:
        """Largest cell distortion; 0.0 for the empty prepartition."""
        return max((J.distortion() for J in self.boxes), default=0.0)

    def closure_multiplicity(self, x: Sequence[float]) -> int:
        """Number of cells whose closure contains ``x`` (at most 2ⁿ)."""
        return sum(1 for J in self.boxes if J.closure_contains(x))

    def compl(self) -> Prepartition:
        """A prepartition of ``box`` covering exactly ``box \\ ⋃π``.

        Computed on first use and cached on the instance.
        """
        cached = self.__dict__.get("_compl")
        if cached is None:
            from box_integral.split import complement

            cached = complement(self)
            self.__dict__["_compl"] = cached
        return cached

    # ── Order ──────────────────────────────────────────────────────

    def _check_same_box(self, other: Prepartition) -> None:
        if self.box != other.box:
            raise ValueError(
                f"Prepartitions of different boxes: {self.box!r} vs {other.box!r}"
            )

    def __le__(self, other: Prepartition) -> bool:
        """Refinement: every cell of ``self`` lies in a cell of ``other``."""
        if not isinstance(other, Prepartition):
            return NotImplemented
        self._check_same_box(other)
        return all(any(J <= K for K in other.boxes) for J in self.boxes)

    def __ge__(self, other: Prepartition) -> bool:
        if not isinstance(other, Prepartition):
            return NotImplemented
        return other <= self

    # ── Combinators ────────────────────────────────────────────────

    def restrict(self, J: Box) -> Prepartition:
        """The prepartition {J ∩ J′ : J′ ∈ π} \\ {∅} of J."""
        if not isinstance(J, Box):
            raise TypeError(f"Expected Box, got: {type(J).__name__}")
        parts = (J.meet(K) for K in self.boxes)
        return Prepartition._trusted(J, (p.unwrap() for p in parts if not p.is_empty))

    def bi_union(self, pis: Callable[[Box], Prepartition]) -> Prepartition:
        """Replace every cell J by the cells of ``pis(J)``.

        ``pis(J)`` must be a prepartition whose ambient box is J.
        """
        cells = []
        for J in self:
            sub = pis(J)
            if not isinstance(sub, Prepartition) or sub.box != J:
                raise ValueError(f"bi_union expects a prepartition of {J!r}, got: {sub!r}")
            cells.extend(sub.boxes)
        return Prepartition._trusted(self.box, cells)

    def bi_union_index(self, pis: Callable[[Box], Prepartition], J: Box) -> Box:
        """The cell of π whose sub-prepartition ``pis(·)`` contains J."""
        for K in self:
            if J <= K and J in pis(K).boxes:
                return K
        raise ValueError(f"{J!r} is not a cell of the bi_union")

    def filter(self, predicate: Callable[[Box], bool]) -> Prepartition:
        return Prepartition._trusted(self.box, (J for J in self.boxes if predicate(J)))

    def disj_union(self, other: Prepartition) -> Prepartition:
        """Union of two prepartitions with disjoint point-set unions."""
        self._check_same_box(other)
        if _overlap_measure(self.boxes, other.boxes) != 0:
            raise ValueError("disj_union requires prepartitions with disjoint unions")
        return Prepartition._trusted(self.box, self.boxes | other.boxes)

    def meet(self, other: Prepartition) -> Prepartition:
        """Common refinement π₁ ⊓ π₂; ⋃(π₁ ⊓ π₂) = ⋃π₁ ∩ ⋃π₂."""
        self._check_same_box(other)
        return self.bi_union(other.restrict)

    def __and__(self, other: Prepartition) -> Prepartition:
        if not isinstance(other, Prepartition):
            return NotImplemented
        return self.meet(other)

    def __repr__(self) -> str:
        return f"Prepartition({self.box!r}, {list(self)!r})"
