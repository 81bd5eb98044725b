"""Geometric primitives: vectors, angle helpers and (wrap-aware) ranges."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

TWO_PI = 2.0 * math.pi

# Largest period shift needed to compare angles living in [-3*pi, 3*pi] with arcs in [-pi, 3*pi].
_ARC_SHIFTS = tuple(TWO_PI * k for k in range(-3, 4))


@dataclass(frozen=True)
class Vector:
    x: float
    y: float

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Vector":
        return Vector(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def angle(self) -> float:
        """Polar angle in ``(-pi, pi]``."""

        return math.atan2(self.y, self.x)

    def as_tuple(self) -> Tuple[float, float]:
        return self.x, self.y

    @classmethod
    def from_polar(cls, length: float, angle: float) -> "Vector":
        return cls(length * math.cos(angle), length * math.sin(angle))


UNIT_X = Vector(1.0, 0.0)


def wrap_angle(angle):
    """Map ``angle`` (scalar or array) to ``[-pi, pi)``."""

    return (angle + math.pi) % TWO_PI - math.pi


def angle_between(a: Vector, b: Vector) -> float:
    """Signed angle that rotates ``a`` onto ``b``, in ``[-pi, pi)``."""

    return wrap_angle(b.angle() - a.angle())


@dataclass(frozen=True)
class InsideRange:
    """Closed interval ``[min, max]``."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"range min {self.min} is greater than max {self.max}")

    @property
    def outside(self) -> bool:
        return False

    @property
    def width(self) -> float:
        return self.max - self.min

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def overlaps(self, other: "InsideRange") -> bool:
        """True when the interiors of the two intervals intersect."""

        return self.min < other.max and other.min < self.max

    def intersects(self, lo, hi):
        """Whether ``[lo, hi]`` touches the interval; vectorized over numpy arrays."""

        return np.logical_and(lo <= self.max, hi >= self.min)

    def arc(self) -> Tuple[float, float]:
        return self.min, self.max


@dataclass(frozen=True)
class OutsideRange:
    """Angles in ``[-pi, pi]`` outside the open interval ``(min, max)``.

    The admissible set is the arc going from ``max`` through the +-pi seam
    back to ``min``.
    """

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"range min {self.min} is greater than max {self.max}")

    @property
    def outside(self) -> bool:
        return True

    @property
    def width(self) -> float:
        return TWO_PI - (self.max - self.min)

    def contains(self, value: float) -> bool:
        return value <= self.min or value >= self.max

    def arc(self) -> Tuple[float, float]:
        return self.max, self.min + TWO_PI


Range = Union[InsideRange, OutsideRange]

FULL_ANGLE_RANGE = InsideRange(-math.pi, math.pi)


def make_range(min_value: float, max_value: float, outside: bool = False) -> Range:
    if outside:
        return OutsideRange(min_value, max_value)
    return InsideRange(min_value, max_value)


def arc_intersects(angle_range: Range, lo, hi):
    """Whether angle intervals ``[lo, hi]`` meet the arc of ``angle_range`` modulo 2*pi.

    ``lo``/``hi`` may be numpy arrays; the result broadcasts accordingly.
    """

    start, end = angle_range.arc()
    lo = np.asarray(lo, dtype=float)
    hi = np.asarray(hi, dtype=float)
    if end - start >= TWO_PI:
        return np.ones(np.broadcast(lo, hi).shape, dtype=bool)
    result = np.zeros(np.broadcast(lo, hi).shape, dtype=bool)
    for shift in _ARC_SHIFTS:
        result |= (lo <= end + shift) & (hi >= start + shift)
    return result


__all__ = [
    "TWO_PI",
    "Vector",
    "UNIT_X",
    "wrap_angle",
    "angle_between",
    "InsideRange",
    "OutsideRange",
    "Range",
    "FULL_ANGLE_RANGE",
    "make_range",
    "arc_intersects",
]
