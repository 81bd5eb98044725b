import logging

from .geometry import (
    FULL_ANGLE_RANGE,
    InsideRange,
    OutsideRange,
    Range,
    Vector,
    angle_between,
    make_range,
    wrap_angle,
)
from .gdt import GeneralizedDistanceTransform1D, GeneralizedDistanceTransform2D, Grid2D, GridAxis
from .model import EdgePairParams, EdgeParams, Shape, ShapeModel
from .constraints import EdgeConstraints, ShapeConstraints, VertexConstraints, edge_limits
from .checker import AllowedLengthAngleChecker
from .polish import PolishOptions, PolishResult, polish_shape
from .search import (
    BranchAndBoundSearch,
    SearchOptions,
    SearchResult,
    calculate_min_shape_energy,
    find_min_energy_shape,
    get_default_search_options,
    set_default_search_options,
)
from .fitting import BranchAndBoundFittingStrategy, ShapeFittingStrategy, fit_shapes
from .types import InvalidDomainError, OutOfRangeError, TopologyMismatchError

if not logging.getLogger().handlers:  # pragma: no cover - depends on host application
    logging.basicConfig(level=logging.INFO)

__all__ = [
    'Vector',
    'InsideRange',
    'OutsideRange',
    'Range',
    'FULL_ANGLE_RANGE',
    'make_range',
    'wrap_angle',
    'angle_between',
    'GridAxis',
    'Grid2D',
    'GeneralizedDistanceTransform1D',
    'GeneralizedDistanceTransform2D',
    'EdgeParams',
    'EdgePairParams',
    'ShapeModel',
    'Shape',
    'VertexConstraints',
    'EdgeConstraints',
    'ShapeConstraints',
    'edge_limits',
    'AllowedLengthAngleChecker',
    'PolishOptions',
    'PolishResult',
    'polish_shape',
    'BranchAndBoundSearch',
    'SearchOptions',
    'SearchResult',
    'calculate_min_shape_energy',
    'find_min_energy_shape',
    'get_default_search_options',
    'set_default_search_options',
    'ShapeFittingStrategy',
    'BranchAndBoundFittingStrategy',
    'fit_shapes',
    'InvalidDomainError',
    'OutOfRangeError',
    'TopologyMismatchError',
]
