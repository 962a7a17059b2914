"""
Tagged prepartitions.

A tagged prepartition is a prepartition π of I together with a tag
xⱼ ∈ Icc I for every cell J.  The predicates used by the refinement
disciplines:

    Henstock:      xⱼ ∈ Icc J for every J
    r-subordinate: Icc J ⊆ closedBall(xⱼ, r(xⱼ)) for every J
    distortion:    max over cells of J.distortion()

Fine tagged partitions are built by subbox induction
(``subordinate_partition``): a cell is kept with the first candidate tag
at which it is already subordinate, otherwise it is halved on every axis
and the halves are processed in turn.  Halving keeps every cell
homothetic to I, so the result has exactly the distortion of I.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from box_integral.box import Box, Point, as_point
from box_integral.gauge import Gauge
from box_integral.prepartition import Prepartition
from box_integral.region import Region

logger = logging.getLogger(__name__)

# Subbox induction halves a cell at most this many times.
DEFAULT_MAX_DEPTH = 48


@dataclass(frozen=True)
class TaggedPrepartition:
    """A prepartition with one tag per cell.

    Attributes:
        prepartition: The underlying prepartition.
        tags:         ``(cell, tag)`` pairs, one per cell, sorted by cell.

    Construct with a mapping ``{cell: tag}``; every tag must lie in the
    closure of the ambient box.
    """

    prepartition: Prepartition
    tags: Tuple[Tuple[Box, Point], ...]

    def __post_init__(self) -> None:
        if not isinstance(self.prepartition, Prepartition):
            raise TypeError(
                f"prepartition must be a Prepartition, got: {type(self.prepartition).__name__}"
            )
        raw = dict(self.tags)
        cells = self.prepartition.boxes
        missing = [J for J in cells if J not in raw]
        if missing:
            raise ValueError(f"Missing tags for cells: {missing!r}")
        extra = [J for J in raw if J not in cells]
        if extra:
            raise ValueError(f"Tags given for boxes outside the prepartition: {extra!r}")
        I = self.prepartition.box
        normalized = []
        for J in sorted(cells, key=Box.sort_key):
            x = as_point(raw[J], "tag")
            if not I.closure_contains(x):
                raise ValueError(f"Tag {x} of {J!r} lies outside the closure of {I!r}")
            normalized.append((J, x))
        object.__setattr__(self, "tags", tuple(normalized))

    @classmethod
    def _trusted(cls, prepartition: Prepartition, tags: Mapping[Box, Point]) -> TaggedPrepartition:
        obj = cls.__new__(cls)
        object.__setattr__(obj, "prepartition", prepartition)
        object.__setattr__(
            obj, "tags", tuple(sorted(tags.items(), key=lambda item: item[0].sort_key()))
        )
        return obj

    # ── Constructors ───────────────────────────────────────────────

    @classmethod
    def single(cls, box: Box, J: Box, x: Sequence[float]) -> TaggedPrepartition:
        """The one-cell tagged prepartition {(J, x)}; requires x ∈ Icc box."""
        return cls(Prepartition.single(box, J), ((J, x),))

    @classmethod
    def bi_union_tagged(
        cls,
        pi: Prepartition,
        pis: Callable[[Box], TaggedPrepartition],
    ) -> TaggedPrepartition:
        """Replace every cell J of ``pi`` by the tagged cells of ``pis(J)``."""
        tags: Dict[Box, Point] = {}
        for J in pi:
            sub = pis(J)
            if not isinstance(sub, TaggedPrepartition) or sub.box != J:
                raise ValueError(
                    f"bi_union_tagged expects a tagged prepartition of {J!r}, got: {sub!r}"
                )
            tags.update(sub.tag_map)
        return cls._trusted(Prepartition._trusted(pi.box, tags), tags)

    # ── Accessors ──────────────────────────────────────────────────

    @property
    def box(self) -> Box:
        return self.prepartition.box

    @property
    def boxes(self):
        return self.prepartition.boxes

    @cached_property
    def tag_map(self) -> Dict[Box, Point]:
        return dict(self.tags)

    def tag(self, J: Box) -> Point:
        try:
            return self.tag_map[J]
        except KeyError:
            raise ValueError(f"{J!r} is not a cell of this tagged prepartition") from None

    def __iter__(self) -> Iterator[Box]:
        return iter(self.prepartition)

    def __len__(self) -> int:
        return len(self.prepartition)

    def __contains__(self, J: object) -> bool:
        return J in self.prepartition

    def to_prepartition(self) -> Prepartition:
        return self.prepartition

    @property
    def union(self) -> Region:
        return self.prepartition.union

    def is_partition(self) -> bool:
        return self.prepartition.is_partition()

    def distortion(self) -> float:
        return self.prepartition.distortion()

    # ── Predicates ─────────────────────────────────────────────────

    def is_henstock(self) -> bool:
        """Every tag lies in the closure of its own cell."""
        return all(J.closure_contains(x) for J, x in self.tags)

    def is_subordinate(self, r: Gauge) -> bool:
        """Every cell lies in the sup-norm ball of radius r(tag) at its tag."""
        return all(J.radius_from(x) <= r(x) for J, x in self.tags)

    # ── Combinators ────────────────────────────────────────────────

    def filter(self, predicate: Callable[[Box], bool]) -> TaggedPrepartition:
        kept = self.prepartition.filter(predicate)
        return TaggedPrepartition._trusted(kept, {J: x for J, x in self.tags if J in kept.boxes})

    def disj_union(self, other: TaggedPrepartition) -> TaggedPrepartition:
        """Union with a tagged prepartition covering a disjoint region."""
        merged = self.prepartition.disj_union(other.prepartition)
        tags = dict(self.tags)
        tags.update(other.tags)
        return TaggedPrepartition._trusted(merged, tags)

    def embed_box(self, box: Box) -> TaggedPrepartition:
        """The same tagged cells viewed as a tagged prepartition of ``box ≥ self.box``."""
        if not self.box <= box:
            raise ValueError(f"{self.box!r} is not contained in {box!r}")
        return TaggedPrepartition._trusted(
            Prepartition._trusted(box, self.prepartition.boxes), self.tag_map
        )

    def inf_prepartition(self, other: Prepartition) -> TaggedPrepartition:
        """Meet with an untagged prepartition; each piece keeps its parent's tag."""
        tags: Dict[Box, Point] = {}
        for J, x in self.tags:
            for K in other.restrict(J).boxes:
                tags[K] = x
        return TaggedPrepartition._trusted(self.prepartition.meet(other), tags)

    def union_compl_to_subordinate(self, other: Prepartition, r: Gauge) -> TaggedPrepartition:
        """Complete ``self`` to a partition using ``r``-subordinate tagged cells.

        ``other`` must cover exactly ``box \\ ⋃self``.
        """
        if other.box != self.box:
            raise ValueError(f"Prepartitions of different boxes: {self.box!r} vs {other.box!r}")
        if not other.is_complement_of(self.prepartition):
            raise ValueError("union_compl_to_subordinate requires ⋃other = box \\ ⋃self")
        return self.disj_union(to_subordinate(other, r))

    def __repr__(self) -> str:
        cells = ", ".join(f"{J!r}@{x}" for J, x in self.tags)
        return f"TaggedPrepartition({self.box!r}, [{cells}])"


# ═══════════════════════════════════════════════════════════════════
# Subbox induction
# ═══════════════════════════════════════════════════════════════════


def _first_subordinate_tag(J: Box, r: Gauge) -> Optional[Point]:
    """Centre first, then closure vertices in lexicographic order."""
    for x in (J.center, *J.vertices()):
        if J.radius_from(x) <= r(x):
            return x
    return None


def subordinate_partition(
    box: Box,
    r: Gauge,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> TaggedPrepartition:
    """A Henstock, ``r``-subordinate tagged partition of ``box``.

    Every cell is homothetic to ``box``, hence the result has distortion
    ``box.distortion()``.

    Raises:
        ValueError: If some cell still is not subordinate after
                    ``max_depth`` halvings.
    """
    if not isinstance(r, Gauge):
        raise TypeError(f"Expected Gauge, got: {type(r).__name__}")
    tags: Dict[Box, Point] = {}
    pending: List[Tuple[Box, int]] = [(box, 0)]
    deepest = 0
    while pending:
        J, depth = pending.pop()
        x = _first_subordinate_tag(J, r)
        if x is not None:
            tags[J] = x
            deepest = max(deepest, depth)
            continue
        if depth >= max_depth:
            raise ValueError(
                f"No r-subordinate tag for {J!r} after {max_depth} halvings of {box!r}"
            )
        pending.extend((K, depth + 1) for K in J.split_center_boxes())
    logger.debug("subordinate_partition of %r: %d cells, depth %d", box, len(tags), deepest)
    return TaggedPrepartition._trusted(Prepartition._trusted(box, tags), tags)


def to_subordinate(pi: Prepartition, r: Gauge) -> TaggedPrepartition:
    """Refine every cell of ``pi`` into a Henstock, ``r``-subordinate partition.

    The result has the same union and the same distortion as ``pi``.
    """
    return TaggedPrepartition.bi_union_tagged(pi, lambda J: subordinate_partition(J, r))
