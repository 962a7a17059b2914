"""
Gauge functions.

A gauge r : ℝⁿ → (0, ∞) bounds how large a cell tagged at x may be: a
tagged cell (J, x) is r-subordinate when Icc J ⊆ closedBall(x, r(x)) in
the sup norm.  The smaller the gauge, the finer the tagged partitions it
admits.

Gauges range over an uncountable space, so they are never enumerated.
A ``Gauge`` is a closure plus one piece of declared metadata: whether it
is constant.  Riemann-type refinement (``IntegrationParams.b_riemann``)
only admits constant gauges, and constancy of an arbitrary function is
not decidable, so it must be declared.  Composition is symbolic:

    (r₁ ⊓ r₂)(x) = min(r₁(x), r₂(x)),   constant iff both are.

A ``GaugeFamily`` assigns a gauge to every distortion cap c ≥ 0; it is
the basis index of the supremum filters ``toFilter`` / ``toFilterUnion``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

GaugeFunction = Callable[[Sequence[float]], float]


def _validate_positive(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got: {type(value).__name__}")
    value = float(value)
    if math.isnan(value) or math.isinf(value) or value <= 0.0:
        raise ValueError(f"{name} must be finite and positive, got: {value}")
    return value


@dataclass(frozen=True)
class Gauge:
    """A strictly positive function on points.

    Attributes:
        fn:       The underlying function.
        constant: Whether ``fn`` is declared to take a single value.
    """

    fn: GaugeFunction
    constant: bool = False

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise TypeError(f"Gauge function must be callable, got: {type(self.fn).__name__}")
        if not isinstance(self.constant, bool):
            raise TypeError(f"constant must be a bool, got: {type(self.constant).__name__}")

    @classmethod
    def const(cls, value: float) -> Gauge:
        v = _validate_positive(value, "gauge value")
        return cls(lambda x: v, constant=True)

    def __call__(self, x: Sequence[float]) -> float:
        return _validate_positive(self.fn(x), "gauge value")

    def min(self, other: Gauge) -> Gauge:
        """Pointwise minimum; a basis set contained in both."""
        if not isinstance(other, Gauge):
            raise TypeError(f"Expected Gauge, got: {type(other).__name__}")
        return Gauge(lambda x: min(self(x), other(x)), constant=self.constant and other.constant)

    def scaled(self, factor: float) -> Gauge:
        k = _validate_positive(factor, "factor")
        return Gauge(lambda x: k * self(x), constant=self.constant)


@dataclass(frozen=True)
class GaugeFamily:
    """A gauge for every distortion cap: ``c ↦ Gauge``.

    ``constant`` declares that every member gauge is constant.
    """

    fn: Callable[[float], Gauge]
    constant: bool = False

    def __post_init__(self) -> None:
        if not callable(self.fn):
            raise TypeError(f"GaugeFamily function must be callable, got: {type(self.fn).__name__}")

    @classmethod
    def const(cls, gauge: Gauge) -> GaugeFamily:
        """The family taking the same gauge at every cap."""
        if not isinstance(gauge, Gauge):
            raise TypeError(f"Expected Gauge, got: {type(gauge).__name__}")
        return cls(lambda c: gauge, constant=gauge.constant)

    def __call__(self, cap: float) -> Gauge:
        gauge = self.fn(cap)
        if not isinstance(gauge, Gauge):
            raise TypeError(f"GaugeFamily must return a Gauge, got: {type(gauge).__name__}")
        if self.constant and not gauge.constant:
            raise ValueError(f"GaugeFamily declared constant returned a non-constant gauge at c={cap}")
        return gauge

    def min(self, other: GaugeFamily) -> GaugeFamily:
        if not isinstance(other, GaugeFamily):
            raise TypeError(f"Expected GaugeFamily, got: {type(other).__name__}")
        return GaugeFamily(
            lambda c: self(c).min(other(c)), constant=self.constant and other.constant
        )
