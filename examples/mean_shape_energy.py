"""Example: fit the mean letter shape into an image and compare energy evaluations."""

from shape_prior import SearchOptions, ShapeConstraints, calculate_min_shape_energy
from shape_prior.presets import letter_model


def main() -> None:
    model = letter_model()
    shape = model.fit_mean_shape(100, 160)
    options = SearchOptions(length_grid_size=201, angle_grid_size=721, width_grid_size=201)
    bound = calculate_min_shape_energy(model, ShapeConstraints.from_shape(shape), options)
    print("Direct energy:", shape.calculate_energy())
    print("Distance transform bound:", bound)
    for index, vertex in enumerate(shape.vertex_positions):
        print(f"v{index}: ({vertex.x:.3f}, {vertex.y:.3f})")


if __name__ == "__main__":
    main()
