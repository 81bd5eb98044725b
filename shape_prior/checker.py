"""Grid-based admissibility of (length, angle) pairs for one constrained edge."""

from __future__ import annotations

import math
from typing import Union

import numpy as np

from .constraints import VertexConstraints, edge_limits
from .gdt import GeneralizedDistanceTransform2D, Grid2D
from .geometry import InsideRange, arc_intersects


class AllowedLengthAngleChecker:
    """Cell mask of the (length, angle) grid reachable by an edge.

    Grid coordinates describe the edge *after* the relation of a modeled pair
    is applied: a cell ``(x, y)`` stands for edges of length ``x / length_ratio``
    and angle ``y - mean_angle``. With ``log_length`` the x axis holds
    ``log(length)`` instead of the length itself.

    A cell is admissible when its length interval meets the exact length range
    and its angle interval meets the exact angle arc of the two endpoint boxes,
    so every reachable pair lands in an admissible cell.
    """

    def __init__(
        self,
        constraint1: VertexConstraints,
        constraint2: VertexConstraints,
        grid: Union[Grid2D, GeneralizedDistanceTransform2D],
        length_ratio: float = 1.0,
        mean_angle: float = 0.0,
        *,
        log_length: bool = False,
        min_length: float = 0.0,
    ) -> None:
        if not length_ratio > 0.0:
            raise ValueError(f"length ratio must be positive, got {length_ratio!r}")
        self.grid: Grid2D = getattr(grid, "grid", grid)
        self.length_ratio = float(length_ratio)
        self.mean_angle = float(mean_angle)
        self.log_length = log_length

        length_range, self.angle_range = edge_limits(constraint1, constraint2)
        self.length_range = InsideRange(
            max(length_range.min, min_length), max(length_range.max, min_length)
        )
        self._mask = self.cell_mask(
            self.grid.x.coords()[:, None],
            self.grid.y.coords()[None, :],
            self.grid.x.half_width,
            self.grid.y.half_width,
        )
        self._mask.flags.writeable = False

    def cell_mask(self, xs, ys, half_x: float, half_y: float) -> np.ndarray:
        """Admissibility of the cells centred at ``xs`` x ``ys`` (broadcast)."""

        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        if self.log_length:
            lo = np.exp(xs - half_x)
            hi = np.exp(xs + half_x)
        else:
            lo = xs - half_x
            hi = xs + half_x
        length_ok = self.length_range.intersects(lo / self.length_ratio, hi / self.length_ratio)
        angle_ok = arc_intersects(self.angle_range, ys - half_y - self.mean_angle, ys + half_y - self.mean_angle)
        return np.logical_and(length_ok, angle_ok)

    def penalty(self, xs, ys, half_x: float, half_y: float) -> np.ndarray:
        """Zero on admissible cells and ``inf`` elsewhere; a 2D transform penalty."""

        return np.where(self.cell_mask(xs, ys, half_x, half_y), 0.0, math.inf)

    @property
    def mask(self) -> np.ndarray:
        return self._mask

    def is_allowed(self, length: float, angle: float) -> bool:
        """Whether the grid cell holding ``(length, angle)`` is admissible.

        Raises :class:`~shape_prior.types.OutOfRangeError` outside the grid.
        """

        x = math.log(length) if self.log_length else length
        i, j = self.grid.coord_to_index(x, angle)
        return bool(self._mask[i, j])


__all__ = ["AllowedLengthAngleChecker"]
