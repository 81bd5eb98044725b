"""Search façade: lower bounds and branch-and-bound minimization."""

from __future__ import annotations

import logging
from typing import Optional

from ..constraints import ShapeConstraints
from ..model import ShapeModel
from ..types import RegionLowerBound
from .bounds import pair_lower_bound, shape_lower_bound, width_lower_bound
from .branch_and_bound import BranchAndBoundSearch
from .config import get_default_search_options, set_default_search_options
from .model import SearchOptions, SearchOrder, SearchResult

logger = logging.getLogger(__name__)


def calculate_min_shape_energy(
    model: ShapeModel,
    constraints: ShapeConstraints,
    options: Optional[SearchOptions] = None,
    region_lower_bound: Optional[RegionLowerBound] = None,
) -> float:
    """Lower bound of the energy of ``model`` over ``constraints``."""

    return BranchAndBoundSearch(model, options, region_lower_bound).calculate_min_shape_energy(constraints)


def find_min_energy_shape(
    model: ShapeModel,
    root: ShapeConstraints,
    options: Optional[SearchOptions] = None,
    region_lower_bound: Optional[RegionLowerBound] = None,
) -> SearchResult:
    """Globally minimize the energy of ``model`` inside ``root``."""

    logger.info(
        "Minimizing energy for model with %d vertices, %d edges, %d pairs",
        model.vertex_count,
        model.edge_count,
        len(model.edge_pairs),
    )
    return BranchAndBoundSearch(model, options, region_lower_bound).search(root)


__all__ = [
    "BranchAndBoundSearch",
    "SearchOptions",
    "SearchOrder",
    "SearchResult",
    "calculate_min_shape_energy",
    "find_min_energy_shape",
    "get_default_search_options",
    "set_default_search_options",
    "pair_lower_bound",
    "shape_lower_bound",
    "width_lower_bound",
]
