"""Fitting strategies: given a model and a target region, produce candidate shapes."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

import numpy as np

from .constraints import ShapeConstraints
from .model import Shape, ShapeModel
from .search import BranchAndBoundSearch, SearchOptions, SearchResult
from .types import RegionLowerBound

logger = logging.getLogger(__name__)


class ShapeFittingStrategy(Protocol):
    def fit_shapes(self, shape_model: ShapeModel, mask: np.ndarray) -> List[Shape]:
        ...


class BranchAndBoundFittingStrategy:
    """Fits the globally best shape inside the mask's image rectangle."""

    def __init__(
        self,
        options: Optional[SearchOptions] = None,
        region_lower_bound: Optional[RegionLowerBound] = None,
        max_edge_width: Optional[float] = None,
    ) -> None:
        self.options = options
        self.region_lower_bound = region_lower_bound
        self.max_edge_width = max_edge_width
        self.last_result: Optional[SearchResult] = None

    def fit_shapes(self, shape_model: ShapeModel, mask: np.ndarray) -> List[Shape]:
        mask = np.asarray(mask)
        if mask.ndim < 2:
            raise ValueError(f"mask must be a 2D image, got shape {mask.shape}")
        height, width = mask.shape[:2]
        root = ShapeConstraints.for_image(shape_model, width, height, self.max_edge_width)
        search = BranchAndBoundSearch(shape_model, self.options, self.region_lower_bound)
        self.last_result = search.search(root)
        if self.last_result.shape is None:
            return []
        return [self.last_result.shape]


def fit_shapes(strategy: ShapeFittingStrategy, shape_model: ShapeModel, mask: np.ndarray) -> List[Shape]:
    """Run ``strategy`` on ``mask``; the strategy is chosen by the caller."""

    logger.info("Fitting shapes with %s on %s mask", type(strategy).__name__, np.shape(mask))
    shapes = strategy.fit_shapes(shape_model, mask)
    logger.info("Strategy %s produced %d shape(s)", type(strategy).__name__, len(shapes))
    return shapes


__all__ = ["ShapeFittingStrategy", "BranchAndBoundFittingStrategy", "fit_shapes"]
