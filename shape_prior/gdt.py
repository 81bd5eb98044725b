"""Generalized distance transforms over regular 1D and 2D grids.

For a penalty ``f`` sampled on the grid the transform stores

    D(x_i) = min_j f(x_j) + scale * (x_i - x_j) ** 2

computed in linear time as the lower envelope of the parabolas rooted at every
grid point. The 2D version runs the same envelope pass along each axis in turn,
which is exact because the squared Euclidean distance separates.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from .geometry import Vector
from .types import InvalidDomainError, OutOfRangeError, Penalty1D, Penalty2D

logger = logging.getLogger(__name__)

_MIN_EXTENT = 1e-6


def lower_envelope(values: np.ndarray, step: float, scale: float) -> np.ndarray:
    """Return ``min_j values[j] + scale * ((i - j) * step) ** 2`` for every ``i``.

    Infinite entries never become part of the envelope; an all-infinite input
    yields an all-infinite output.
    """

    f = [float(v) for v in values]
    n = len(f)
    c = scale * step * step
    finite = [i for i in range(n) if f[i] < math.inf]
    if not finite:
        return np.full(n, math.inf)

    envelope = [0] * n
    breaks = [0.0] * (n + 1)
    top = 0
    envelope[0] = finite[0]
    breaks[0] = -math.inf
    breaks[1] = math.inf
    for q in finite[1:]:
        fq = f[q] + c * q * q
        while True:
            p = envelope[top]
            crossing = (fq - (f[p] + c * p * p)) / (2.0 * c * (q - p))
            if crossing > breaks[top]:
                break
            top -= 1
        top += 1
        envelope[top] = q
        breaks[top] = crossing
        breaks[top + 1] = math.inf

    out = np.empty(n)
    current = 0
    for i in range(n):
        while breaks[current + 1] < i:
            current += 1
        p = envelope[current]
        out[i] = f[p] + c * (i - p) * (i - p)
    return out


@dataclass(frozen=True)
class GridAxis:
    """``size`` evenly spaced cell centres from ``min`` to ``max`` inclusive."""

    min: float
    max: float
    size: int
    step: float = field(init=False)

    def __post_init__(self) -> None:
        if not self.max > self.min + _MIN_EXTENT:
            raise InvalidDomainError(
                f"grid max {self.max!r} should be greater than grid min {self.min!r}"
            )
        if self.size < 2:
            raise InvalidDomainError(f"grid needs at least 2 points, got {self.size}")
        object.__setattr__(self, "step", (self.max - self.min) / (self.size - 1))

    @property
    def half_width(self) -> float:
        return 0.5 * self.step

    def coords(self) -> np.ndarray:
        return self.min + np.arange(self.size) * self.step

    def index_to_coord(self, index: int) -> float:
        return self.min + index * self.step

    def coord_to_index(self, coord: float) -> int:
        index = int(math.floor((coord - self.min) / self.step + 0.5))
        if index < 0 or index >= self.size:
            raise OutOfRangeError(
                f"coordinate {coord!r} is outside grid [{self.min!r}, {self.max!r}]"
            )
        return index

    def check_index(self, index: int) -> int:
        if index < 0 or index >= self.size:
            raise OutOfRangeError(f"grid index {index} is outside [0, {self.size})")
        return index


@dataclass(frozen=True)
class Grid2D:
    """Cell layout shared by 2D transforms and admissibility masks."""

    x: GridAxis
    y: GridAxis

    @classmethod
    def from_bounds(cls, grid_min: Vector, grid_max: Vector, grid_size: Tuple[int, int]) -> "Grid2D":
        return cls(
            GridAxis(grid_min.x, grid_max.x, int(grid_size[0])),
            GridAxis(grid_min.y, grid_max.y, int(grid_size[1])),
        )

    @property
    def grid_min(self) -> Vector:
        return Vector(self.x.min, self.y.min)

    @property
    def grid_max(self) -> Vector:
        return Vector(self.x.max, self.y.max)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.x.size, self.y.size

    @property
    def cell_half_size(self) -> Vector:
        return Vector(self.x.half_width, self.y.half_width)

    def coord_to_index(self, x: float, y: float) -> Tuple[int, int]:
        return self.x.coord_to_index(x), self.y.coord_to_index(y)


class GeneralizedDistanceTransform1D:
    """Distance transform of ``penalty`` over ``grid_size`` points of ``[grid_min, grid_max]``."""

    def __init__(
        self,
        grid_min: float,
        grid_max: float,
        grid_size: int,
        distance_scale: float,
        penalty: Penalty1D,
    ) -> None:
        if not distance_scale > 0.0:
            raise ValueError(f"distance scale must be positive, got {distance_scale!r}")
        self.axis = GridAxis(float(grid_min), float(grid_max), int(grid_size))
        self.distance_scale = float(distance_scale)
        self.penalty = penalty

        coords = self.axis.coords()
        penalties = np.broadcast_to(
            np.asarray(penalty(coords, self.axis.half_width), dtype=float), coords.shape
        )
        self._values = lower_envelope(penalties, self.axis.step, self.distance_scale)
        self._values.flags.writeable = False

    @property
    def grid_min(self) -> float:
        return self.axis.min

    @property
    def grid_max(self) -> float:
        return self.axis.max

    @property
    def grid_size(self) -> int:
        return self.axis.size

    @property
    def values(self) -> np.ndarray:
        return self._values

    def index_to_coord(self, index: int) -> float:
        return self.axis.index_to_coord(index)

    def coord_to_index(self, coord: float) -> int:
        return self.axis.coord_to_index(coord)

    def get_by_index(self, index: int) -> float:
        return float(self._values[self.axis.check_index(index)])

    def get_by_coord(self, coord: float) -> float:
        return float(self._values[self.axis.coord_to_index(coord)])

    def min_value(self) -> float:
        return float(self._values.min())


class GeneralizedDistanceTransform2D:
    """Separable distance transform over a ``(x, y)`` grid.

    ``penalty`` is evaluated once as ``penalty(xs[:, None], ys[None, :], half_x, half_y)``.
    """

    def __init__(
        self,
        grid_min: Vector,
        grid_max: Vector,
        grid_size: Tuple[int, int],
        distance_scale: Tuple[float, float],
        penalty: Penalty2D,
    ) -> None:
        scale_x, scale_y = (float(s) for s in distance_scale)
        if not (scale_x > 0.0 and scale_y > 0.0):
            raise ValueError(f"distance scales must be positive, got {distance_scale!r}")
        self.grid = Grid2D.from_bounds(grid_min, grid_max, grid_size)
        self.distance_scale = (scale_x, scale_y)
        self.penalty = penalty

        xs = self.grid.x.coords()
        ys = self.grid.y.coords()
        penalties = np.broadcast_to(
            np.asarray(
                penalty(xs[:, None], ys[None, :], self.grid.x.half_width, self.grid.y.half_width),
                dtype=float,
            ),
            self.grid.shape,
        )
        self._values = self._calculate(penalties)
        self._values.flags.writeable = False
        logger.debug(
            "Built 2D distance transform grid=%dx%d x=[%.6g, %.6g] y=[%.6g, %.6g]",
            self.grid.x.size,
            self.grid.y.size,
            self.grid.x.min,
            self.grid.x.max,
            self.grid.y.min,
            self.grid.y.max,
        )

    def _calculate(self, penalties: np.ndarray) -> np.ndarray:
        nx, ny = self.grid.shape
        along_x = np.empty((nx, ny))
        for j in range(ny):
            along_x[:, j] = lower_envelope(penalties[:, j], self.grid.x.step, self.distance_scale[0])
        result = np.empty((nx, ny))
        for i in range(nx):
            result[i, :] = lower_envelope(along_x[i, :], self.grid.y.step, self.distance_scale[1])
        return result

    @property
    def grid_min(self) -> Vector:
        return self.grid.grid_min

    @property
    def grid_max(self) -> Vector:
        return self.grid.grid_max

    @property
    def grid_size(self) -> Tuple[int, int]:
        return self.grid.shape

    @property
    def values(self) -> np.ndarray:
        return self._values

    def get_by_index(self, i: int, j: int) -> float:
        return float(self._values[self.grid.x.check_index(i), self.grid.y.check_index(j)])

    def get_by_coord(self, x: float, y: float) -> float:
        i, j = self.grid.coord_to_index(x, y)
        return float(self._values[i, j])

    def min_value(self) -> float:
        return float(self._values.min())


__all__ = [
    "lower_envelope",
    "GridAxis",
    "Grid2D",
    "GeneralizedDistanceTransform1D",
    "GeneralizedDistanceTransform2D",
]
