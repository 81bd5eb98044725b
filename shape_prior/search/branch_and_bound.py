"""Branch-and-bound minimization of the shape energy over constraint boxes."""

from __future__ import annotations

import heapq
import itertools
import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional, Tuple

from ..constraints import ShapeConstraints
from ..logging_utils import debug_log_call
from ..model import Shape, ShapeModel
from ..polish import polish_shape
from ..types import RegionLowerBound, TopologyMismatchError
from .bounds import shape_lower_bound
from .config import get_default_search_options
from .model import SearchOptions, SearchResult

logger = logging.getLogger(__name__)

_Entry = Tuple[float, int, ShapeConstraints]


class _Worklist:
    """Live nodes, popped lowest bound first or last in first out.

    Best-first ties go to the most recently pushed node so equal bounds dive
    towards leaves instead of sweeping a whole tree level.
    """

    def __init__(self, best_first: bool) -> None:
        self.best_first = best_first
        self._items: List[_Entry] = []
        self._counter = itertools.count()

    def push(self, lower_bound: float, node: ShapeConstraints) -> None:
        entry = (lower_bound, -next(self._counter), node)
        if self.best_first:
            heapq.heappush(self._items, entry)
        else:
            self._items.append(entry)

    def pop(self) -> Tuple[float, ShapeConstraints]:
        entry = heapq.heappop(self._items) if self.best_first else self._items.pop()
        return entry[0], entry[2]

    def min_bound(self) -> float:
        if not self._items:
            return math.inf
        if self.best_first:
            return self._items[0][0]
        return min(entry[0] for entry in self._items)

    def __len__(self) -> int:
        return len(self._items)


class BranchAndBoundSearch:
    """Global minimizer of the shape energy of ``model``.

    ``region_lower_bound`` is the optional pixel data term: it receives a
    constraint box and returns a lower bound of its contribution there.
    """

    def __init__(
        self,
        model: ShapeModel,
        options: Optional[SearchOptions] = None,
        region_lower_bound: Optional[RegionLowerBound] = None,
    ) -> None:
        self.model = model
        self.options = options if options is not None else get_default_search_options()
        self.options.validate()
        self.region_lower_bound = region_lower_bound

    def _check_model(self, constraints: ShapeConstraints) -> None:
        if constraints.model is self.model:
            return
        if (
            constraints.model.vertex_count != self.model.vertex_count
            or constraints.model.edges != self.model.edges
        ):
            raise TopologyMismatchError("constraints were built for a different shape model")

    @debug_log_call(logger)
    def calculate_min_shape_energy(self, constraints: ShapeConstraints) -> float:
        """Lower bound of the energy over every shape allowed by ``constraints``.

        On point constraints this reproduces the energy of that single shape up
        to the grid resolution.
        """

        self._check_model(constraints)
        return shape_lower_bound(
            constraints,
            self.options.length_grid_size,
            self.options.angle_grid_size,
            self.options.width_grid_size,
            self.region_lower_bound,
        )

    def _leaf_energy(self, shape: Shape) -> float:
        energy = shape.calculate_energy()
        if self.region_lower_bound is not None:
            energy += float(self.region_lower_bound(ShapeConstraints.from_shape(shape)))
        return energy

    def _relative_extents(
        self, node: ShapeConstraints, vertex_tolerance: float, width_tolerance: float
    ) -> Iterator[Tuple[float, str, int]]:
        for index, box in enumerate(node.vertex_constraints):
            yield box.extent / vertex_tolerance, "vertex", index
        for index, interval in enumerate(node.edge_constraints):
            yield interval.extent / width_tolerance, "edge", index

    def _branch(
        self, node: ShapeConstraints, vertex_tolerance: float, width_tolerance: float
    ) -> Optional[List[ShapeConstraints]]:
        """Children of ``node`` split along its largest relative extent, or ``None`` for a leaf."""

        extent, kind, index = max(
            self._relative_extents(node, vertex_tolerance, width_tolerance), key=lambda item: item[0]
        )
        if extent <= 1.0:
            return None
        if kind == "vertex":
            return [node.with_vertex(index, child) for child in node.vertex_constraints[index].split()]
        return [node.with_edge(index, child) for child in node.edge_constraints[index].split()]

    def _effective_tolerances(self, root: ShapeConstraints) -> Tuple[float, float]:
        # Past max_split_depth halvings a dimension counts as resolved.
        depth_factor = 2.0 ** self.options.max_split_depth
        vertex_extent = max(box.extent for box in root.vertex_constraints)
        width_extent = max(interval.extent for interval in root.edge_constraints)
        return (
            max(self.options.vertex_tolerance, vertex_extent / depth_factor),
            max(self.options.width_tolerance, width_extent / depth_factor),
        )

    def search(self, root: ShapeConstraints) -> SearchResult:
        """Run branch and bound from ``root`` and return the best shape found."""

        self._check_model(root)
        options = self.options
        vertex_tolerance, width_tolerance = self._effective_tolerances(root)
        tolerance = options.energy_tolerance
        logger.info(
            "Starting branch-and-bound search order=%s grids=%dx%d/%d tolerances=(%.3g, %.3g) workers=%d",
            options.order,
            options.length_grid_size,
            options.angle_grid_size,
            options.width_grid_size,
            vertex_tolerance,
            width_tolerance,
            options.max_workers,
        )

        started = time.monotonic()
        worklist = _Worklist(best_first=options.order == "best-first")
        worklist.push(self.calculate_min_shape_energy(root), root)

        upper_bound = math.inf
        best_shape: Optional[Shape] = None
        iterations = pruned = leaves = 0
        certified = True
        global_lower_bound = math.inf

        executor = ThreadPoolExecutor(max_workers=options.max_workers) if options.max_workers > 1 else None
        try:
            while worklist:
                if options.max_iterations is not None and iterations >= options.max_iterations:
                    logger.info("Stopping search after %d iterations (iteration cap)", iterations)
                    certified = False
                    break
                if options.time_limit is not None and time.monotonic() - started >= options.time_limit:
                    logger.info("Stopping search after %.2fs (time cap)", time.monotonic() - started)
                    certified = False
                    break

                lower_bound, node = worklist.pop()
                if lower_bound >= upper_bound - tolerance:
                    pruned += 1
                    if worklist.best_first:
                        # Every remaining node has a bound at least as large.
                        global_lower_bound = min(global_lower_bound, lower_bound)
                        pruned += len(worklist)
                        break
                    continue

                iterations += 1
                children = self._branch(node, vertex_tolerance, width_tolerance)
                if children is None:
                    leaves += 1
                    # The centre only bounds the leaf from above; keep its box bound.
                    global_lower_bound = min(global_lower_bound, lower_bound)
                    candidate = node.center_shape()
                    if options.polish.enable:
                        candidate = polish_shape(candidate, node, options.polish).shape
                    energy = self._leaf_energy(candidate)
                    if energy < upper_bound:
                        logger.info(
                            "New incumbent energy=%.6g (lower bound %.6g) after %d iterations",
                            energy,
                            lower_bound,
                            iterations,
                        )
                        upper_bound = energy
                        best_shape = candidate
                    continue

                if executor is not None:
                    bounds = list(executor.map(self.calculate_min_shape_energy, children))
                else:
                    bounds = [self.calculate_min_shape_energy(child) for child in children]
                for child, child_bound in zip(children, bounds):
                    if child_bound >= upper_bound - tolerance:
                        pruned += 1
                    else:
                        worklist.push(child_bound, child)
            if not certified:
                global_lower_bound = min(global_lower_bound, worklist.min_bound())
        finally:
            if executor is not None:
                executor.shutdown()

        global_lower_bound = min(global_lower_bound, upper_bound)
        logger.info(
            "Branch-and-bound finished energy=%.6g lower_bound=%.6g certified=%s iterations=%d pruned=%d leaves=%d",
            upper_bound,
            global_lower_bound,
            certified,
            iterations,
            pruned,
            leaves,
        )
        return SearchResult(
            energy=upper_bound,
            shape=best_shape,
            lower_bound=global_lower_bound,
            certified=certified,
            iterations=iterations,
            nodes_pruned=pruned,
            leaves_evaluated=leaves,
        )


__all__ = ["BranchAndBoundSearch"]
