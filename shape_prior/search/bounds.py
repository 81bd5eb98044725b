"""Lower bounds on the shape energy of every shape inside a constraint box."""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from ..checker import AllowedLengthAngleChecker
from ..constraints import ShapeConstraints
from ..gdt import GeneralizedDistanceTransform1D, GeneralizedDistanceTransform2D, Grid2D
from ..geometry import TWO_PI, Vector
from ..types import EdgeId, RegionLowerBound

logger = logging.getLogger(__name__)

_PAD_FRACTION = 0.05
_LOG_LENGTH_PAD = 0.05
_RATIO_PAD = 0.01


def _padded(lo: float, hi: float, min_pad: float):
    pad = _PAD_FRACTION * (hi - lo) + min_pad
    return lo - pad, hi + pad


def pair_lower_bound(
    constraints: ShapeConstraints, pair_index: int, length_grid_size: int, angle_grid_size: int
) -> float:
    """Minimum of one pairwise term over the box.

    The second edge's admissible (log length, angle) cells seed a 2D distance
    transform whose quadratic weights are the term's coefficients. The angle
    axis spans ``[-2pi, 2pi]`` so wrapped angle differences up to pi are seen
    directly. The transform is then read over the first edge's admissible
    cells shifted by the modeled relation.
    """

    model = constraints.model
    (e1, e2), params = model.edge_pairs[pair_index]
    lengths1 = constraints.clamped_length_range(e1)
    lengths2 = constraints.clamped_length_range(e2)
    shift = params.log_length_ratio
    lo, hi = _padded(
        min(math.log(lengths2.min), math.log(lengths1.min) + shift),
        max(math.log(lengths2.max), math.log(lengths1.max) + shift),
        _LOG_LENGTH_PAD,
    )
    grid_min = Vector(lo, -TWO_PI)
    grid_max = Vector(hi, TWO_PI)
    grid_size = (length_grid_size, angle_grid_size)

    second = AllowedLengthAngleChecker(
        *constraints.endpoint_constraints(e2),
        Grid2D.from_bounds(grid_min, grid_max, grid_size),
        log_length=True,
        min_length=model.min_edge_length,
    )
    transform = GeneralizedDistanceTransform2D(
        grid_min, grid_max, grid_size, (params.length_scale, params.angle_scale), second.penalty
    )
    first = AllowedLengthAngleChecker(
        *constraints.endpoint_constraints(e1),
        transform,
        params.length_ratio,
        params.mean_angle,
        log_length=True,
        min_length=model.min_edge_length,
    )
    reachable = transform.values[first.mask]
    if reachable.size == 0:
        logger.debug("Pair %d has no reachable cells on a %dx%d grid", pair_index, *grid_size)
        return math.inf
    return float(reachable.min())


def width_lower_bound(constraints: ShapeConstraints, edge: EdgeId, width_grid_size: int) -> float:
    """Minimum of the width term of ``edge`` over the box, via a 1D transform over width/length."""

    params = constraints.model.edge_params[edge]
    ratios = constraints.width_ratio_range(edge)
    mean = params.width_ratio
    lo, hi = _padded(min(ratios.min, mean), max(ratios.max, mean), _RATIO_PAD)

    def penalty(centres: np.ndarray, half_width: float) -> np.ndarray:
        return np.where(ratios.intersects(centres - half_width, centres + half_width), 0.0, math.inf)

    scale = 0.5 / (params.width_deviation * params.width_deviation)
    transform = GeneralizedDistanceTransform1D(lo, hi, width_grid_size, scale, penalty)
    return transform.get_by_coord(mean)


def shape_lower_bound(
    constraints: ShapeConstraints,
    length_grid_size: int,
    angle_grid_size: int,
    width_grid_size: int,
    region_lower_bound: Optional[RegionLowerBound] = None,
) -> float:
    """Sum of per-term minima: a lower bound on the energy of any shape in ``constraints``."""

    model = constraints.model
    total = 0.0
    for pair_index in range(len(model.edge_pairs)):
        total += pair_lower_bound(constraints, pair_index, length_grid_size, angle_grid_size)
    for edge in range(model.edge_count):
        total += width_lower_bound(constraints, edge, width_grid_size)
    if region_lower_bound is not None:
        total += float(region_lower_bound(constraints))
    return total


__all__ = ["pair_lower_bound", "width_lower_bound", "shape_lower_bound"]
