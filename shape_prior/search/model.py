"""Option and result containers for the branch-and-bound search."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from ..model import Shape
from ..polish import PolishOptions

SearchOrder = Literal["best-first", "depth-first"]


@dataclass
class SearchOptions:
    """Branch-and-bound configuration.

    Grid sizes control the resolution of the distance transforms used for
    lower bounds. A node becomes a leaf once every vertex box and width
    interval is below its tolerance, or has been split ``max_split_depth``
    times along that dimension.
    """

    length_grid_size: int = 101
    angle_grid_size: int = 181
    width_grid_size: int = 101
    vertex_tolerance: float = 1.0
    width_tolerance: float = 1.0
    energy_tolerance: float = 1e-6
    max_split_depth: int = 20
    max_iterations: Optional[int] = None
    time_limit: Optional[float] = None
    order: SearchOrder = "best-first"
    max_workers: int = 1
    polish: PolishOptions = field(default_factory=PolishOptions)

    def validate(self) -> None:
        for name in ("length_grid_size", "angle_grid_size", "width_grid_size"):
            if getattr(self, name) < 2:
                raise ValueError(f"{name} must be at least 2")
        if not (self.vertex_tolerance > 0.0 and self.width_tolerance > 0.0):
            raise ValueError("vertex and width tolerances must be positive")
        if self.energy_tolerance < 0.0:
            raise ValueError("energy tolerance must be non-negative")
        if self.max_split_depth < 0:
            raise ValueError("max_split_depth must be non-negative")
        if self.order not in ("best-first", "depth-first"):
            raise ValueError(f"unknown search order {self.order!r}")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")


@dataclass
class SearchResult:
    """Outcome of a search.

    ``certified`` is ``False`` when an iteration or time cap stopped the search
    early; ``energy`` is then only the best upper bound found so far.
    """

    energy: float
    shape: Optional[Shape]
    lower_bound: float
    certified: bool
    iterations: int
    nodes_pruned: int
    leaves_evaluated: int


__all__ = ["SearchOrder", "SearchOptions", "SearchResult"]
