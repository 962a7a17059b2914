"""
Axis-aligned boxes in ℝⁿ.

A box I = (l, u] is the half-open product

    I = ∏ᵢ (lᵢ, uᵢ]        with lᵢ < uᵢ for every axis i.

Half-open cells are what make decompositions work: cutting (0, 1] at
x = 0.5 yields (0, 0.5] and (0.5, 1], which are disjoint as point sets yet
cover the original box exactly.  Boundary-inclusive questions (is a tag
inside its cell?) use the closure Icc I = ∏ᵢ [lᵢ, uᵢ].

Order:
    J ≤ I  ⟺  lᴵ ≤ lᴶ and uᴶ ≤ uᴵ component-wise  ⟺  J ⊆ I as point sets.

Intersections may vanish, so ``Box.meet`` returns an ``OptionalBox``,
a two-case variant {EMPTY, some box} whose order extends the box order
with EMPTY as the minimum.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Iterator, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, ...]


def _validate_coordinate(value: Any, name: str) -> float:
    """Validate a single coordinate."""
    if isinstance(value, bool):
        raise TypeError(f"{name} must be a number, got: bool")
    if not isinstance(value, (int, float)) and not hasattr(value, "__float__"):
        raise TypeError(f"{name} must be a number, got: {type(value).__name__}")
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"{name} must be finite, got: {value}")
    return value


def as_point(values: Sequence[Any], name: str = "point") -> Point:
    """Normalize a sequence of coordinates to a tuple of floats."""
    if isinstance(values, (str, bytes)) or not hasattr(values, "__len__"):
        raise TypeError(f"{name} must be a sequence of numbers, got: {type(values).__name__}")
    if len(values) == 0:
        raise ValueError(f"{name} must not be empty")
    return tuple(_validate_coordinate(v, f"{name}[{i}]") for i, v in enumerate(values))


# ═══════════════════════════════════════════════════════════════════
# Box
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Box:
    """A non-empty half-open box ∏ᵢ (lowerᵢ, upperᵢ].

    Attributes:
        lower: Lower corner, one coordinate per axis.
        upper: Upper corner.  ``lower[i] < upper[i]`` on every axis.
    """

    lower: Point
    upper: Point

    def __post_init__(self) -> None:
        lower = as_point(self.lower, "lower")
        upper = as_point(self.upper, "upper")
        if len(lower) != len(upper):
            raise ValueError(
                f"Corner dimension mismatch: lower has {len(lower)}, upper has {len(upper)}"
            )
        for i, (lo, hi) in enumerate(zip(lower, upper)):
            if not lo < hi:
                raise ValueError(f"Box side {i} is empty: lower={lo}, upper={hi}")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    # ── Geometry ───────────────────────────────────────────────────

    @property
    def dim(self) -> int:
        return len(self.lower)

    @property
    def side_lengths(self) -> Tuple[float, ...]:
        return tuple(u - l for l, u in zip(self.lower, self.upper))

    @property
    def center(self) -> Point:
        return tuple((l + u) / 2 for l, u in zip(self.lower, self.upper))

    def volume(self) -> float:
        return math.prod(self.side_lengths)

    def exact_volume(self) -> Fraction:
        """Volume as an exact rational; floats convert to Fraction without rounding."""
        return math.prod(Fraction(u) - Fraction(l) for l, u in zip(self.lower, self.upper))

    def distortion(self) -> float:
        """Anisotropy of the box: longest side over shortest side (≥ 1)."""
        sides = self.side_lengths
        return max(sides) / min(sides)

    def vertices(self) -> Iterator[Point]:
        """Corners of the closure, in lexicographic order."""
        return itertools.product(*zip(self.lower, self.upper))

    def radius_from(self, x: Sequence[float]) -> float:
        """Sup-norm distance from ``x`` to the farthest point of Icc J.

        ``J.radius_from(x) <= r`` is exactly ``Icc J ⊆ closedBall(x, r)``.
        """
        self._check_dim(len(x))
        return max(max(abs(xi - l), abs(u - xi)) for xi, l, u in zip(x, self.lower, self.upper))

    # ── Membership ─────────────────────────────────────────────────

    def contains(self, x: Sequence[float]) -> bool:
        """Point-set membership in the half-open box."""
        self._check_dim(len(x))
        return all(l < xi <= u for xi, l, u in zip(x, self.lower, self.upper))

    def closure_contains(self, x: Sequence[float]) -> bool:
        """Membership in the closed box Icc J (boundary-inclusive)."""
        self._check_dim(len(x))
        return all(l <= xi <= u for xi, l, u in zip(x, self.lower, self.upper))

    def contains_points(self, points: Any) -> np.ndarray:
        """Vectorised half-open membership for an ``(m, n)`` array of points."""
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != self.dim:
            raise ValueError(f"points must have shape (m, {self.dim}), got: {pts.shape}")
        lo = np.asarray(self.lower)
        hi = np.asarray(self.upper)
        return np.all((pts > lo) & (pts <= hi), axis=1)

    # ── Order and meet ─────────────────────────────────────────────

    def __le__(self, other: Box) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        self._check_dim(other.dim)
        return all(ol <= sl for sl, ol in zip(self.lower, other.lower)) and all(
            su <= ou for su, ou in zip(self.upper, other.upper)
        )

    def __lt__(self, other: Box) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return self <= other and self != other

    def __ge__(self, other: Box) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return other <= self

    def __gt__(self, other: Box) -> bool:
        if not isinstance(other, Box):
            return NotImplemented
        return other < self

    def meet(self, other: Box) -> OptionalBox:
        """Point-set intersection; EMPTY when the boxes do not overlap."""
        self._check_dim(other.dim)
        lower = tuple(max(a, b) for a, b in zip(self.lower, other.lower))
        upper = tuple(min(a, b) for a, b in zip(self.upper, other.upper))
        if all(l < u for l, u in zip(lower, upper)):
            return OptionalBox.of(Box(lower, upper))
        return OptionalBox.EMPTY

    def disjoint(self, other: Box) -> bool:
        return self.meet(other).is_empty

    # ── Splitting ──────────────────────────────────────────────────

    def split_lower(self, axis: int, x: float) -> OptionalBox:
        """The part ``{y ∈ J : y_axis ≤ x}``."""
        self._check_axis(axis)
        if x <= self.lower[axis]:
            return OptionalBox.EMPTY
        upper = list(self.upper)
        upper[axis] = min(x, upper[axis])
        return OptionalBox.of(Box(self.lower, tuple(upper)))

    def split_upper(self, axis: int, x: float) -> OptionalBox:
        """The part ``{y ∈ J : x < y_axis}``."""
        self._check_axis(axis)
        if x >= self.upper[axis]:
            return OptionalBox.EMPTY
        lower = list(self.lower)
        lower[axis] = max(x, lower[axis])
        return OptionalBox.of(Box(tuple(lower), self.upper))

    def split_center_box(self, mask: Sequence[bool]) -> Box:
        """One of the 2ⁿ halves: upper half on axis i iff ``mask[i]``."""
        if len(mask) != self.dim:
            raise ValueError(f"mask must have {self.dim} entries, got: {len(mask)}")
        mid = self.center
        lower = tuple(m if s else l for s, l, m in zip(mask, self.lower, mid))
        upper = tuple(u if s else m for s, u, m in zip(mask, self.upper, mid))
        return Box(lower, upper)

    def split_center_boxes(self) -> Iterator[Box]:
        for mask in itertools.product((False, True), repeat=self.dim):
            yield self.split_center_box(mask)

    # ── Helpers ────────────────────────────────────────────────────

    def sort_key(self) -> Tuple[Point, Point]:
        return (self.lower, self.upper)

    def _check_dim(self, n: int) -> None:
        if n != self.dim:
            raise ValueError(f"Dimension mismatch: box has {self.dim}, got {n}")

    def _check_axis(self, axis: int) -> None:
        if isinstance(axis, bool) or not isinstance(axis, int):
            raise TypeError(f"axis must be an int, got: {type(axis).__name__}")
        if not 0 <= axis < self.dim:
            raise ValueError(f"axis must be in range({self.dim}), got: {axis}")

    def __repr__(self) -> str:
        return f"Box({self.lower}, {self.upper})"


# ═══════════════════════════════════════════════════════════════════
# OptionalBox
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OptionalBox:
    """Either EMPTY or some ``Box``.

    Construct with ``OptionalBox.of(box)``; the empty value is the
    singleton ``OptionalBox.EMPTY``.
    """

    box: Optional[Box] = None

    EMPTY = None  # type: OptionalBox  # assigned below

    @classmethod
    def of(cls, box: Box) -> OptionalBox:
        if not isinstance(box, Box):
            raise TypeError(f"Expected Box, got: {type(box).__name__}")
        return cls(box)

    @property
    def is_empty(self) -> bool:
        return self.box is None

    def unwrap(self) -> Box:
        if self.box is None:
            raise ValueError("Cannot unwrap an empty OptionalBox")
        return self.box

    def meet(self, other: OptionalBox) -> OptionalBox:
        if self.box is None or other.box is None:
            return OptionalBox.EMPTY
        return self.box.meet(other.box)

    def __le__(self, other: OptionalBox) -> bool:
        if not isinstance(other, OptionalBox):
            return NotImplemented
        if self.box is None:
            return True
        if other.box is None:
            return False
        return self.box <= other.box

    def __ge__(self, other: OptionalBox) -> bool:
        if not isinstance(other, OptionalBox):
            return NotImplemented
        return other <= self

    def __repr__(self) -> str:
        return "OptionalBox.EMPTY" if self.box is None else f"OptionalBox.of({self.box!r})"


OptionalBox.EMPTY = OptionalBox(None)
