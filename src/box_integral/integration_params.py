"""
Integration parameters: the refinement discipline of a box integral.

An ``IntegrationParams`` value l = (bRiemann, bHenstock, bDistortion)
selects which tagged partitions count as "fine enough":

    bRiemann     the gauge must be constant                     (r-condition)
    bHenstock    every tag lies in the closure of its cell
    bDistortion  cells have distortion ≤ c, and the uncovered part of I
                 admits a prepartition of distortion ≤ c

Order (second and third flags reversed):

    l₁ ≤ l₂  ⟺  l₁.bRiemann ≤ l₂.bRiemann,
                l₂.bHenstock ≤ l₁.bHenstock,
                l₂.bDistortion ≤ l₁.bDistortion

A smaller l demands more of a tagged partition (fewer of them qualify),
so its filter is finer.  Named instances:

    RIEMANN  = (True,  True,  False)
    HENSTOCK = (False, True,  False)
    MCSHANE  = (False, False, False)
    GP       = (False, True,  True)    bottom: GP ≤ l for every l
    TOP      = (True,  False, False)

Base sets.  For a box I, cap c ≥ 0 and gauge r, a tagged prepartition π
belongs to the base set MemBaseSet(l, I, c, r) when

    1. π is r-subordinate;
    2. bHenstock   ⟹ π is Henstock;
    3. bDistortion ⟹ π.distortion() ≤ c;
    4. bDistortion ⟹ some prepartition π′ of I with ⋃π′ = I \\ ⋃π has
                      π′.distortion() ≤ c.

Distortions are compared with a cap up to the relative tolerance
DISTORTION_TOL, so halving a box whose corners are not dyadic does not
push it over a cap it met.

Condition 4 is decided constructively: π.compl() and any supplied
complements are tried, followed by their cubical refinements, and the
first candidate within the cap is the witness.  For c > 1 the search
ends with π.compl() refined to the cap, which always succeeds, so the
answer is exact; for c ≤ 1 only the candidates are tried.

Monotonicity: l₁ ≤ l₂, c₁ ≤ c₂ and r₁ ≤ r₂ pointwise imply
MemBaseSet(l₁, I, c₁, r₁) ⊆ MemBaseSet(l₂, I, c₂, r₂).
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from box_integral.box import Box
from box_integral.gauge import Gauge
from box_integral.prepartition import Prepartition
from box_integral.split import cubical_refinement, refine_to_distortion
from box_integral.tagged import TaggedPrepartition, subordinate_partition, to_subordinate

if TYPE_CHECKING:
    from box_integral.filters import DistortionFilter, ParamFilter

logger = logging.getLogger(__name__)

# Cubical refinement levels tried when searching for a complement within a cap.
COMPLEMENT_REFINEMENT_LEVELS = 4

# Relative tolerance for comparing a distortion against a cap
DISTORTION_TOL = 1e-9


def _validate_cap(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"distortion cap must be a number, got: {type(value).__name__}")
    value = float(value)
    if math.isnan(value) or value < 0.0:
        raise ValueError(f"distortion cap must be >= 0, got: {value}")
    return value


def _within_cap(distortion: float, cap: float) -> bool:
    """``distortion ≤ cap`` up to ``DISTORTION_TOL``, relative to max(cap, 1)."""
    return distortion <= cap + DISTORTION_TOL * max(cap, 1.0)


# ═══════════════════════════════════════════════════════════════════
# IntegrationParams
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IntegrationParams:
    """A refinement discipline (bRiemann, bHenstock, bDistortion)."""

    b_riemann: bool
    b_henstock: bool
    b_distortion: bool

    RIEMANN = None  # type: IntegrationParams
    HENSTOCK = None  # type: IntegrationParams
    MCSHANE = None  # type: IntegrationParams
    GP = None  # type: IntegrationParams
    TOP = None  # type: IntegrationParams

    def __post_init__(self) -> None:
        for name in ("b_riemann", "b_henstock", "b_distortion"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise TypeError(f"{name} must be a bool, got: {type(value).__name__}")

    @classmethod
    def all(cls) -> List[IntegrationParams]:
        """The eight configurations, in lexicographic flag order."""
        return [cls(*flags) for flags in itertools.product((False, True), repeat=3)]

    # ── Order ──────────────────────────────────────────────────────

    def __le__(self, other: IntegrationParams) -> bool:
        if not isinstance(other, IntegrationParams):
            return NotImplemented
        return (
            self.b_riemann <= other.b_riemann
            and other.b_henstock <= self.b_henstock
            and other.b_distortion <= self.b_distortion
        )

    def __lt__(self, other: IntegrationParams) -> bool:
        if not isinstance(other, IntegrationParams):
            return NotImplemented
        return self <= other and self != other

    def __ge__(self, other: IntegrationParams) -> bool:
        if not isinstance(other, IntegrationParams):
            return NotImplemented
        return other <= self

    def __gt__(self, other: IntegrationParams) -> bool:
        if not isinstance(other, IntegrationParams):
            return NotImplemented
        return other < self

    def join(self, other: IntegrationParams) -> IntegrationParams:
        """Least upper bound."""
        return IntegrationParams(
            self.b_riemann or other.b_riemann,
            self.b_henstock and other.b_henstock,
            self.b_distortion and other.b_distortion,
        )

    def meet(self, other: IntegrationParams) -> IntegrationParams:
        """Greatest lower bound."""
        return IntegrationParams(
            self.b_riemann and other.b_riemann,
            self.b_henstock or other.b_henstock,
            self.b_distortion or other.b_distortion,
        )

    # ── Base sets ──────────────────────────────────────────────────

    def r_cond(self, r: Gauge) -> bool:
        """Riemann-type parameters only admit constant gauges."""
        if not isinstance(r, Gauge):
            raise TypeError(f"Expected Gauge, got: {type(r).__name__}")
        return not self.b_riemann or r.constant

    def check_base_set(
        self,
        box: Box,
        cap: float,
        r: Gauge,
        pi: TaggedPrepartition,
        complements: Iterable[Prepartition] = (),
    ) -> BaseSetCheck:
        """Evaluate every condition of MemBaseSet(self, box, cap, r) on ``pi``.

        ``complements`` are extra candidates for condition 4; each must
        cover exactly ``box \\ ⋃pi``.
        """
        c = _validate_cap(cap)
        if pi.box != box:
            raise ValueError(f"Tagged prepartition of {pi.box!r}, expected {box!r}")
        subordinate = pi.is_subordinate(r)
        henstock = not self.b_henstock or pi.is_henstock()
        distortion_le = not self.b_distortion or _within_cap(pi.distortion(), c)
        witness = None
        if self.b_distortion:
            witness = complement_witness(pi.to_prepartition(), c, complements)
        return BaseSetCheck(
            is_subordinate=subordinate,
            is_henstock=henstock,
            distortion_le=distortion_le,
            exists_compl=not self.b_distortion or witness is not None,
            complement=witness,
        )

    def mem_base_set(
        self,
        box: Box,
        cap: float,
        r: Gauge,
        pi: TaggedPrepartition,
        complements: Iterable[Prepartition] = (),
    ) -> bool:
        return self.check_base_set(box, cap, r, pi, complements).accepted

    # ── Filters ────────────────────────────────────────────────────

    def to_filter_distortion(self, box: Box, cap: float) -> DistortionFilter:
        from box_integral.filters import DistortionFilter

        return DistortionFilter(self, box, cap)

    def to_filter(self, box: Box) -> ParamFilter:
        from box_integral.filters import ParamFilter

        return ParamFilter(self, box)

    def to_filter_distortion_union(
        self, box: Box, cap: float, pi0: Prepartition
    ) -> DistortionFilter:
        from box_integral.filters import DistortionFilter

        return DistortionFilter(self, box, cap, union=pi0)

    def to_filter_union(self, box: Box, pi0: Prepartition) -> ParamFilter:
        from box_integral.filters import ParamFilter

        return ParamFilter(self, box, union=pi0)

    def __repr__(self) -> str:
        for name in ("RIEMANN", "HENSTOCK", "MCSHANE", "GP", "TOP"):
            if self == getattr(IntegrationParams, name):
                return f"IntegrationParams.{name}"
        return (
            f"IntegrationParams(b_riemann={self.b_riemann}, "
            f"b_henstock={self.b_henstock}, b_distortion={self.b_distortion})"
        )


IntegrationParams.RIEMANN = IntegrationParams(True, True, False)
IntegrationParams.HENSTOCK = IntegrationParams(False, True, False)
IntegrationParams.MCSHANE = IntegrationParams(False, False, False)
IntegrationParams.GP = IntegrationParams(False, True, True)
IntegrationParams.TOP = IntegrationParams(True, False, False)


@dataclass(frozen=True)
class BaseSetCheck:
    """Outcome of ``IntegrationParams.check_base_set``.

    Conditions switched off by the parameters are reported as satisfied.
    ``complement`` is the prepartition witnessing ``exists_compl`` when the
    distortion condition is active and satisfied.
    """

    is_subordinate: bool
    is_henstock: bool
    distortion_le: bool
    exists_compl: bool
    complement: Optional[Prepartition] = None

    @property
    def accepted(self) -> bool:
        return self.is_subordinate and self.is_henstock and self.distortion_le and self.exists_compl


# ═══════════════════════════════════════════════════════════════════
# Complement search
# ═══════════════════════════════════════════════════════════════════


def complement_candidates(
    pi: Prepartition, complements: Iterable[Prepartition] = ()
) -> List[Prepartition]:
    """Prepartitions covering ``pi.box \\ ⋃pi``, coarsest first.

    ``pi.compl()`` and the supplied ``complements`` come first, then their
    cubical refinements at levels ``1..COMPLEMENT_REFINEMENT_LEVELS``.
    """
    base = [pi.compl()]
    for extra in complements:
        if extra.box != pi.box:
            raise ValueError(f"Complement of {extra.box!r}, expected {pi.box!r}")
        if not extra.is_complement_of(pi):
            raise ValueError("Supplied complement does not cover box \\ ⋃pi")
        if extra not in base:
            base.append(extra)
    candidates = list(base)
    for level in range(1, COMPLEMENT_REFINEMENT_LEVELS + 1):
        for p in base:
            if len(p):
                candidates.append(cubical_refinement(p, level))
    return candidates


def complement_witness(
    pi: Prepartition, cap: float, complements: Iterable[Prepartition] = ()
) -> Optional[Prepartition]:
    """A complement of ``pi`` with distortion ≤ ``cap``, or None.

    The candidates of ``complement_candidates`` are tried in order.  When
    none fits and ``cap > 1``, ``pi.compl()`` refined to the cap is the
    witness, so for such caps the answer is exact.
    """
    for candidate in complement_candidates(pi, complements):
        if _within_cap(candidate.distortion(), cap):
            return candidate
    if cap > 1.0 + DISTORTION_TOL:
        fitted = refine_to_distortion(pi.compl(), cap)
        logger.debug("complement of %r fitted to cap %s: %d cells", pi.box, cap, len(fitted))
        if _within_cap(fitted.distortion(), cap):
            return fitted
    logger.debug("no complement of %r within distortion cap %s", pi.box, cap)
    return None


# ═══════════════════════════════════════════════════════════════════
# Witness constructions
# ═══════════════════════════════════════════════════════════════════


def exists_mem_base_set_is_partition(
    l: IntegrationParams, box: Box, cap: float, r: Gauge
) -> TaggedPrepartition:
    """A tagged partition of ``box`` in MemBaseSet(l, box, cap, r).

    Requires ``cap ≥ box.distortion()`` when ``l.b_distortion``.
    """
    c = _validate_cap(cap)
    if l.b_distortion and not _within_cap(box.distortion(), c):
        raise ValueError(
            f"distortion cap {c} is below the distortion {box.distortion()} of {box!r}"
        )
    return subordinate_partition(box, r)


def exists_mem_base_set_le_union_eq(
    l: IntegrationParams, pi0: Prepartition, cap: float, r: Gauge
) -> TaggedPrepartition:
    """A tagged π ≤ ``pi0`` with ⋃π = ⋃pi0 in MemBaseSet(l, pi0.box, cap, r).

    Requires ``pi0.distortion() ≤ cap`` and ``pi0.compl().distortion() ≤ cap``
    when ``l.b_distortion``.
    """
    c = _validate_cap(cap)
    if l.b_distortion:
        if not _within_cap(pi0.distortion(), c):
            raise ValueError(f"distortion cap {c} is below pi0.distortion() = {pi0.distortion()}")
        if not _within_cap(pi0.compl().distortion(), c):
            raise ValueError(
                f"distortion cap {c} is below pi0.compl().distortion() = "
                f"{pi0.compl().distortion()}"
            )
    return to_subordinate(pi0, r)


def union_compl_to_subordinate_mem_base_set(
    l: IntegrationParams,
    pi1: TaggedPrepartition,
    pi2: Prepartition,
    cap: float,
    r: Gauge,
) -> Tuple[TaggedPrepartition, BaseSetCheck]:
    """Complete ``pi1`` over ``pi2`` (⋃pi2 = I \\ ⋃pi1) with ``r``-subordinate cells.

    If ``pi1`` is in MemBaseSet(l, I, cap, r) and ``pi2.distortion() ≤ cap``,
    the completed partition is too.  Returns the partition and its check.
    """
    result = pi1.union_compl_to_subordinate(pi2, r)
    check = l.check_base_set(pi1.box, cap, r, result)
    return result, check
