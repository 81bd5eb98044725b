"""Example: globally place the free end of a two-edge shape with branch and bound."""

from shape_prior import (
    EdgeConstraints,
    SearchOptions,
    ShapeConstraints,
    Vector,
    VertexConstraints,
    find_min_energy_shape,
)
from shape_prior.presets import two_edge_model


def main() -> None:
    model = two_edge_model()
    root = ShapeConstraints.create_from_constraints(
        model,
        [
            VertexConstraints.from_point(Vector(10, 30)),
            VertexConstraints.from_point(Vector(30, 30)),
            VertexConstraints(Vector(0, 0), Vector(64, 64)),
        ],
        [EdgeConstraints.from_width(3), EdgeConstraints(0, 10)],
    )
    result = find_min_energy_shape(model, root, SearchOptions(order="best-first", max_workers=2))
    print("Certified:", result.certified)
    print("Energy:", result.energy, "lower bound:", result.lower_bound)
    print("Iterations:", result.iterations, "pruned:", result.nodes_pruned)
    if result.shape is not None:
        for index, vertex in enumerate(result.shape.vertex_positions):
            print(f"v{index}: ({vertex.x:.3f}, {vertex.y:.3f})")
        print("Widths:", ", ".join(f"{w:.3f}" for w in result.shape.edge_widths))


if __name__ == "__main__":
    main()
