from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Tuple

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .constraints import ShapeConstraints

VertexId = int
EdgeId = int
Edge = Tuple[VertexId, VertexId]
EdgePair = Tuple[EdgeId, EdgeId]

# ``penalty(centres, half_width)`` evaluated over a whole grid axis at once.
Penalty1D = Callable[[np.ndarray, float], np.ndarray]
# ``penalty(xs[:, None], ys[None, :], half_x, half_y)``.
Penalty2D = Callable[[np.ndarray, np.ndarray, float, float], np.ndarray]

# Lower-bound contribution of the pixel data term for a constrained region.
RegionLowerBound = Callable[["ShapeConstraints"], float]


class InvalidDomainError(ValueError):
    """Raised when a distance transform grid has no usable extent."""


class TopologyMismatchError(ValueError):
    """Raised when constraints do not match the vertex/edge layout of a model."""


class OutOfRangeError(IndexError):
    """Raised when a coordinate query falls outside a transform grid."""


__all__ = [
    "VertexId",
    "EdgeId",
    "Edge",
    "EdgePair",
    "Penalty1D",
    "Penalty2D",
    "RegionLowerBound",
    "InvalidDomainError",
    "TopologyMismatchError",
    "OutOfRangeError",
]
