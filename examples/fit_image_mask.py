"""Example: run the branch-and-bound fitting strategy on a synthetic mask."""

import numpy as np

from shape_prior import BranchAndBoundFittingStrategy, SearchOptions, fit_shapes
from shape_prior.presets import one_edge_model


def main() -> None:
    mask = np.zeros((24, 24), dtype=bool)
    mask[4:20, 10:14] = True

    def region(constraints):
        # Cheap data term: endpoints should sit on the mask's vertical bar.
        total = 0.0
        for box in constraints.vertex_constraints:
            total += max(0.0, 10.0 - box.max_coord.x, box.min_coord.x - 14.0)
        return total

    options = SearchOptions(vertex_tolerance=2.0, width_tolerance=1.0, length_grid_size=41, angle_grid_size=73)
    strategy = BranchAndBoundFittingStrategy(options, region_lower_bound=region, max_edge_width=6.0)
    shapes = fit_shapes(strategy, one_edge_model(), mask)
    for shape in shapes:
        print("Energy:", shape.calculate_energy())
        print("Vertices:", [vertex.as_tuple() for vertex in shape.vertex_positions])
        print("Widths:", shape.edge_widths)


if __name__ == "__main__":
    main()
