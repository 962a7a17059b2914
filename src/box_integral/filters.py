"""
Convergence filters on tagged prepartitions.

A filter here is presented by a *basis*: an index set together with a map
index ↦ basis set.  Basis indices are gauges, which range over an
uncountable space, so nothing is enumerated.  A filter object is a
generator of membership tests: given an index, it returns a ``BasisSet``
(a lazily evaluated predicate on tagged prepartitions).

Four levels, for parameters l, box I, cap c and prepartition π₀:

    toFilterDistortion(l, I, c)
        basis index   r : Gauge with l.r_cond(r)
        basis set     {π : MemBaseSet(l, I, c, r, π)}

    toFilter(l, I) = ⨆_c toFilterDistortion(l, I, c)
        basis index   r : GaugeFamily, l.r_cond(r(c)) for every c
        basis set     {π : ∃ c, MemBaseSet(l, I, c, r(c), π)}

    toFilterDistortionUnion(l, I, c, π₀)
        toFilterDistortion(l, I, c) ⊓ 𝓟{π : ⋃π = ⋃π₀}

    toFilterUnion(l, I, π₀) = ⨆_c toFilterDistortionUnion(l, I, c, π₀)

Directedness: the pointwise minimum of two admissible gauges is
admissible and its basis set lies in both, so the basis sets form a
filter basis.  The ∃ c of the supremum levels is tested over finitely
many candidate caps determined by π: its own distortion combined with the
distortion of every complement candidate and with the witness cap.  For
a gauge family that does not vary with c this decides membership, since
MemBaseSet is monotone in c.  A family that does vary with c may make π a
member only at other caps; callers name those through
``ParamFilter.basis_set(index, caps=...)``, and otherwise the test
under-approximates the basis set.

Non-triviality: ``witness(index)`` constructs a member of the basis set.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional

from box_integral.box import Box
from box_integral.gauge import Gauge, GaugeFamily
from box_integral.integration_params import (
    IntegrationParams,
    _validate_cap,
    _within_cap,
    complement_candidates,
    exists_mem_base_set_is_partition,
    exists_mem_base_set_le_union_eq,
)
from box_integral.prepartition import Prepartition
from box_integral.tagged import TaggedPrepartition

logger = logging.getLogger(__name__)


class BasisSet:
    """A set of tagged prepartitions, given by its membership test."""

    def __init__(self, predicate: Callable[[TaggedPrepartition], bool], description: str = "") -> None:
        self._predicate = predicate
        self.description = description

    def __contains__(self, pi: object) -> bool:
        if not isinstance(pi, TaggedPrepartition):
            return False
        return bool(self._predicate(pi))

    def __call__(self, pi: TaggedPrepartition) -> bool:
        return pi in self

    def __and__(self, other: BasisSet) -> BasisSet:
        return BasisSet(
            lambda pi: pi in self and pi in other,
            f"({self.description}) ∩ ({other.description})",
        )

    def __repr__(self) -> str:
        return f"BasisSet({self.description})"


# ═══════════════════════════════════════════════════════════════════
# Base class
# ═══════════════════════════════════════════════════════════════════


class TaggedFilter(ABC):
    """Common structure of the four filter levels.

    Attributes:
        params: The refinement discipline.
        box:    The ambient box.
        union:  If set, members must have the same union as this
                prepartition (the ``*Union`` levels).
    """

    def __init__(
        self,
        params: IntegrationParams,
        box: Box,
        union: Optional[Prepartition] = None,
    ) -> None:
        if not isinstance(params, IntegrationParams):
            raise TypeError(f"Expected IntegrationParams, got: {type(params).__name__}")
        if not isinstance(box, Box):
            raise TypeError(f"Expected Box, got: {type(box).__name__}")
        if union is not None and union.box != box:
            raise ValueError(f"union prepartition is of {union.box!r}, expected {box!r}")
        self.params = params
        self.box = box
        self.union = union

    @abstractmethod
    def is_basis_index(self, index: Any) -> bool:
        """Whether ``index`` indexes a basis set of this filter."""

    @abstractmethod
    def _accepts(self, index: Any, pi: TaggedPrepartition) -> bool:
        ...

    @abstractmethod
    def refine(self, first: Any, second: Any) -> Any:
        """An index whose basis set is contained in both given ones."""

    @abstractmethod
    def witness(self, index: Any) -> TaggedPrepartition:
        """A member of ``basis_set(index)``."""

    @abstractmethod
    def has_witness(self) -> bool:
        """Whether ``witness`` succeeds for every basis index."""

    def basis_set(self, index: Any) -> BasisSet:
        if not self.is_basis_index(index):
            raise ValueError(f"{index!r} is not a basis index of {self!r}")
        return BasisSet(lambda pi: self._accepts(index, pi), f"{self!r} at {index!r}")

    def _union_ok(self, pi: TaggedPrepartition) -> bool:
        if pi.box != self.box:
            return False
        return self.union is None or pi.to_prepartition().same_union(self.union)

    def _complements(self) -> List[Prepartition]:
        # Every member of a union level has the same uncovered region.
        return [] if self.union is None else [self.union.compl()]

    def _same_frame(self, other: TaggedFilter) -> bool:
        if self.box != other.box:
            return False
        if self.union is None or other.union is None:
            return self.union is None and other.union is None
        return self.union.same_union(other.union)


# ═══════════════════════════════════════════════════════════════════
# Fixed distortion cap
# ═══════════════════════════════════════════════════════════════════


class DistortionFilter(TaggedFilter):
    """``toFilterDistortion(l, I, c)``, or its union-constrained form."""

    def __init__(
        self,
        params: IntegrationParams,
        box: Box,
        cap: float,
        union: Optional[Prepartition] = None,
    ) -> None:
        super().__init__(params, box, union)
        self.cap = _validate_cap(cap)

    def is_basis_index(self, index: Any) -> bool:
        return isinstance(index, Gauge) and self.params.r_cond(index)

    def _accepts(self, index: Gauge, pi: TaggedPrepartition) -> bool:
        if not self._union_ok(pi):
            return False
        return self.params.mem_base_set(self.box, self.cap, index, pi, self._complements())

    def refine(self, first: Gauge, second: Gauge) -> Gauge:
        for r in (first, second):
            if not self.is_basis_index(r):
                raise ValueError(f"{r!r} is not a basis index of {self!r}")
        return first.min(second)

    def has_witness(self) -> bool:
        if not self.params.b_distortion:
            return True
        if self.union is None:
            return _within_cap(self.box.distortion(), self.cap)
        return _within_cap(self.union.distortion(), self.cap) and _within_cap(
            self.union.compl().distortion(), self.cap
        )

    def witness(self, index: Gauge) -> TaggedPrepartition:
        if not self.is_basis_index(index):
            raise ValueError(f"{index!r} is not a basis index of {self!r}")
        if self.union is None:
            result = exists_mem_base_set_is_partition(self.params, self.box, self.cap, index)
        else:
            result = exists_mem_base_set_le_union_eq(self.params, self.union, self.cap, index)
        logger.debug("witness for %r: %d cells", self, len(result))
        return result

    def is_finer_than(self, other: DistortionFilter) -> bool:
        """Certifies ``self ≤ other`` from l₁ ≤ l₂ and c₁ ≤ c₂."""
        if not isinstance(other, DistortionFilter):
            raise TypeError(f"Expected DistortionFilter, got: {type(other).__name__}")
        return self._same_frame(other) and self.params <= other.params and self.cap <= other.cap

    def __repr__(self) -> str:
        suffix = "" if self.union is None else f", union={len(self.union)} cells"
        return f"DistortionFilter({self.params!r}, {self.box!r}, c={self.cap}{suffix})"


# ═══════════════════════════════════════════════════════════════════
# Supremum over caps
# ═══════════════════════════════════════════════════════════════════


class ParamFilter(TaggedFilter):
    """``toFilter(l, I)``, or ``toFilterUnion(l, I, π₀)`` when ``union`` is set."""

    def is_basis_index(self, index: Any) -> bool:
        if not isinstance(index, GaugeFamily):
            return False
        return not self.params.b_riemann or index.constant

    def distortion_filter(self, cap: float) -> DistortionFilter:
        """The component of the supremum at ``cap``."""
        return DistortionFilter(self.params, self.box, cap, self.union)

    def basis_set(self, index: GaugeFamily, caps: Iterable[float] = ()) -> BasisSet:
        """Basis set at ``index``; ``caps`` are tried besides ``candidate_caps``.

        Membership is tested at finitely many caps.  The caps derived from
        ``pi`` suffice when ``index`` does not vary with the cap; for other
        families a member may only qualify at a cap the caller names in
        ``caps``, so without them the test can reject members.
        """
        if not self.is_basis_index(index):
            raise ValueError(f"{index!r} is not a basis index of {self!r}")
        extra = tuple(_validate_cap(c) for c in caps)
        suffix = f" with caps {list(extra)}" if extra else ""
        return BasisSet(lambda pi: self._accepts(index, pi, extra), f"{self!r} at {index!r}{suffix}")

    def candidate_caps(self, pi: TaggedPrepartition, caps: Iterable[float] = ()) -> List[float]:
        """Caps at which membership of ``pi`` is tested, ascending."""
        own = pi.distortion()
        found = {own, max(own, self.witness_cap())}
        for candidate in complement_candidates(pi.to_prepartition(), self._complements()):
            found.add(max(own, candidate.distortion()))
        found.update(_validate_cap(c) for c in caps)
        return sorted(found)

    def _accepts(
        self, index: GaugeFamily, pi: TaggedPrepartition, caps: Iterable[float] = ()
    ) -> bool:
        if not self._union_ok(pi):
            return False
        complements = self._complements()
        return any(
            self.params.mem_base_set(self.box, c, index(c), pi, complements)
            for c in self.candidate_caps(pi, caps)
        )

    def refine(self, first: GaugeFamily, second: GaugeFamily) -> GaugeFamily:
        for r in (first, second):
            if not self.is_basis_index(r):
                raise ValueError(f"{r!r} is not a basis index of {self!r}")
        return first.min(second)

    def witness_cap(self) -> float:
        """The cap at which ``witness`` evaluates the gauge family."""
        if self.union is None:
            return self.box.distortion()
        return max(self.union.distortion(), self.union.compl().distortion())

    def has_witness(self) -> bool:
        return True

    def witness(self, index: GaugeFamily) -> TaggedPrepartition:
        if not self.is_basis_index(index):
            raise ValueError(f"{index!r} is not a basis index of {self!r}")
        c = self.witness_cap()
        return self.distortion_filter(c).witness(index(c))

    def is_finer_than(self, other: ParamFilter) -> bool:
        """Certifies ``self ≤ other`` from l₁ ≤ l₂."""
        if not isinstance(other, ParamFilter):
            raise TypeError(f"Expected ParamFilter, got: {type(other).__name__}")
        return self._same_frame(other) and self.params <= other.params

    def __repr__(self) -> str:
        suffix = "" if self.union is None else f", union={len(self.union)} cells"
        return f"ParamFilter({self.params!r}, {self.box!r}{suffix})"
