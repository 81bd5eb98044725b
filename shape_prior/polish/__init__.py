"""Local refinement of candidate shapes inside their constraint box."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from scipy.optimize import least_squares

from ..constraints import ShapeConstraints
from ..model import Shape, shape_from_arrays

logger = logging.getLogger(__name__)

_FIXED_EPS = 1e-12


@dataclass
class PolishOptions:
    """Configuration knobs for the polishing optimizer."""

    enable: bool = True
    max_nfev: Optional[int] = 50
    ftol: float = 1e-10


@dataclass
class PolishResult:
    shape: Shape
    success: bool
    iterations: int
    energy_before: float
    energy_after: float
    notes: List[str] = field(default_factory=list)


def _bounds(constraints: ShapeConstraints):
    lower: List[float] = []
    upper: List[float] = []
    for box in constraints.vertex_constraints:
        lower.extend((box.min_coord.x, box.min_coord.y))
        upper.extend((box.max_coord.x, box.max_coord.y))
    for interval in constraints.edge_constraints:
        lower.append(interval.min_width)
        upper.append(interval.max_width)
    return np.asarray(lower, dtype=float), np.asarray(upper, dtype=float)


def _flatten(shape: Shape) -> np.ndarray:
    values: List[float] = []
    for v in shape.vertex_positions:
        values.extend((v.x, v.y))
    values.extend(shape.edge_widths)
    return np.asarray(values, dtype=float)


def polish_shape(
    shape: Shape, constraints: ShapeConstraints, options: PolishOptions = PolishOptions()
) -> PolishResult:
    """Minimize the energy of ``shape`` without leaving ``constraints``.

    The energy is a sum of squared residuals, so a bounded ``least_squares``
    run over the free coordinates does the job. The refined shape is only
    returned when it actually lowers the energy.
    """

    energy_before = shape.calculate_energy()
    if not options.enable:
        return PolishResult(shape, True, 0, energy_before, energy_before)

    lower, upper = _bounds(constraints)
    start = np.clip(_flatten(shape), lower, upper)
    free = upper - lower > _FIXED_EPS
    if not free.any():
        return PolishResult(shape, True, 0, energy_before, energy_before, ["no free parameters"])

    model = shape.model
    split = 2 * model.vertex_count

    def build(params: np.ndarray) -> Shape:
        full = start.copy()
        full[free] = params
        return shape_from_arrays(model, full[:split], full[split:])

    def residuals(params: np.ndarray) -> np.ndarray:
        return build(params).residuals()

    result = least_squares(
        residuals,
        start[free],
        bounds=(lower[free], upper[free]),
        method="trf",
        max_nfev=options.max_nfev,
        ftol=options.ftol,
    )
    candidate = build(np.clip(result.x, lower[free], upper[free]))
    energy_after = candidate.calculate_energy()
    notes: List[str] = [] if result.success else [f"least_squares stopped: {result.message}"]
    if energy_after >= energy_before:
        logger.debug("Polish kept the original candidate (%.6g -> %.6g)", energy_before, energy_after)
        return PolishResult(shape, bool(result.success), int(result.nfev), energy_before, energy_before, notes)

    logger.debug("Polish improved candidate energy %.6g -> %.6g", energy_before, energy_after)
    return PolishResult(candidate, bool(result.success), int(result.nfev), energy_before, energy_after, notes)


__all__ = [
    "PolishOptions",
    "PolishResult",
    "polish_shape",
]
