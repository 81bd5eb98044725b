import math

import pytest

from shape_prior import (
    EdgePairParams,
    EdgeParams,
    SearchOptions,
    Shape,
    ShapeConstraints,
    ShapeModel,
    TopologyMismatchError,
    Vector,
    calculate_min_shape_energy,
)
from shape_prior.presets import five_edge_model, letter_model, one_edge_model, two_edge_model

FINE_TWO_EDGE_GRIDS = SearchOptions(length_grid_size=301, angle_grid_size=1441, width_grid_size=401)
FINE_FIVE_EDGE_GRIDS = SearchOptions(length_grid_size=301, angle_grid_size=721, width_grid_size=401)


def _compare_energy_with_lower_bound(model, vertices, widths, options, tolerance):
    shape = Shape(model, vertices, widths)
    direct = shape.calculate_energy()
    bound = calculate_min_shape_energy(model, ShapeConstraints.from_shape(shape), options)
    assert math.isclose(direct, bound, abs_tol=tolerance), (direct, bound)
    return direct


def test_two_edge_energy_matches_distance_transform_bound():
    _compare_energy_with_lower_bound(
        two_edge_model(math.pi * 0.5, 1.1),
        [Vector(0, 0), Vector(80, 0), Vector(80, 100)],
        [10, 15],
        FINE_TWO_EDGE_GRIDS,
        0.1,
    )


def test_two_edge_energy_matches_bound_for_a_bent_shape():
    energy = _compare_energy_with_lower_bound(
        two_edge_model(math.pi * 0.5, 1.1),
        [Vector(0, 0), Vector(40, 0), Vector(0, 42)],
        [10, 15],
        FINE_TWO_EDGE_GRIDS,
        0.1,
    )
    assert energy > 1.0


@pytest.mark.parametrize(
    "vertices",
    [
        [(0, 0), (40, 0), (40, 50), (80, 70), (30, 55), (10, -50)],
        [(0, 0), (40, 0), (3, -40), (37, -43), (2, -90), (-35, -95)],
    ],
)
def test_five_edge_energy_matches_distance_transform_bound(vertices):
    _compare_energy_with_lower_bound(
        five_edge_model(), vertices, [10, 11, 12, 13, 14], FINE_FIVE_EDGE_GRIDS, 1.5
    )


def test_letter_energy_matches_distance_transform_bound():
    _compare_energy_with_lower_bound(
        letter_model(),
        [(0, 0), (-40, -1), (3, -40), (37, -43), (2, -90), (-35, -95)],
        [10, 11, 12, 13, 14],
        FINE_FIVE_EDGE_GRIDS,
        1.5,
    )


@pytest.mark.parametrize("model_factory", [lambda: two_edge_model(math.pi * 0.5, 1.1), five_edge_model, letter_model])
def test_mean_shape_has_zero_energy_and_fits_the_image(model_factory):
    model = model_factory()
    width, height = 100, 160
    mean_shape = model.fit_mean_shape(width, height)

    energy = _compare_energy_with_lower_bound(
        model, mean_shape.vertex_positions, mean_shape.edge_widths, FINE_FIVE_EDGE_GRIDS, 1e-4
    )
    assert energy == pytest.approx(0.0, abs=1e-9)
    for vertex in mean_shape.vertex_positions:
        assert 0 < vertex.x < width
        assert 0 < vertex.y < height


def test_twisting_the_second_edge_raises_then_lowers_energy():
    edge_length = 100.0
    start_angle = math.pi * 0.5
    model = two_edge_model(math.pi * 0.5, 1.0)
    options = SearchOptions(length_grid_size=101, angle_grid_size=1441, width_grid_size=101)

    v0 = Vector(0.0, 0.0)
    v1 = Vector.from_polar(edge_length, start_angle)
    iteration_count = 10
    angle_step = 2 * math.pi / iteration_count
    last_energy = None
    for i in range(iteration_count):
        angle = start_angle + math.pi * 0.5 + angle_step * i
        v2 = v1 + Vector.from_polar(edge_length, angle)
        energy = _compare_energy_with_lower_bound(model, [v0, v1, v2], [10, 10], options, 0.25)

        if i <= iteration_count // 2:
            assert last_energy is None or last_energy < energy
        else:
            assert last_energy > energy
        last_energy = energy


def test_energy_terms_follow_the_gaussian_form():
    params = EdgePairParams(2.0, math.pi / 2, 0.5, 0.25)
    model = ShapeModel(3, [(0, 1), (1, 2)], [EdgeParams(0.1, 0.2)] * 2, {(0, 1): params})
    shape = Shape(model, [(0, 0), (10, 0), (10, 10)], [1.0, 3.0])

    log_term = 0.5 * (math.log(10 / 10) - math.log(2.0)) ** 2 / 0.25
    width_term = 0.5 * ((3.0 / 10 - 0.1) / 0.2) ** 2
    assert shape.pair_energy(0) == pytest.approx(log_term)
    assert shape.calculate_energy() == pytest.approx(log_term + width_term)
    assert shape.energy() == shape.calculate_energy()
    assert len(shape.residuals()) == 4


def test_angle_deviation_is_wrapped():
    model = two_edge_model(math.pi * 0.9, 1.0)
    # Second edge turned by -0.9*pi, i.e. 0.2*pi away from the mean across the seam.
    v2 = Vector(10, 0) + Vector.from_polar(10, -math.pi * 0.9)
    shape = Shape(model, [(0, 0), (10, 0), v2], [1.5, 1.5])
    expected = 0.5 * (0.2 * math.pi / 0.4) ** 2
    assert shape.pair_energy(0) == pytest.approx(expected)


def test_short_edges_are_floored():
    model = one_edge_model()
    shape = Shape(model, [(1, 1), (1, 1)], [0.0])
    assert shape.edge_length(0) == model.min_edge_length
    assert math.isfinite(shape.calculate_energy())


def test_shape_checks_topology():
    model = two_edge_model()
    with pytest.raises(TopologyMismatchError):
        Shape(model, [(0, 0), (1, 1)], [1, 1])
    with pytest.raises(TopologyMismatchError):
        Shape(model, [(0, 0), (1, 1), (2, 2)], [1])


def test_model_validation():
    params = EdgeParams(0.1, 0.1)
    pair = EdgePairParams(1.0, 0.0, 0.3, 0.4)
    with pytest.raises(ValueError):
        ShapeModel(3, [(0, 1)], [params])
    with pytest.raises(TopologyMismatchError):
        ShapeModel(3, [(0, 1), (1, 2)], [params])
    with pytest.raises(ValueError):
        ShapeModel(3, [(0, 1), (1, 2)], [params, params])
    with pytest.raises(ValueError):
        ShapeModel(3, [(0, 1), (0, 3)], [params, params], {(0, 1): pair})
    with pytest.raises(ValueError):
        EdgePairParams(0.0, 0.0, 0.3, 0.4)
    with pytest.raises(ValueError):
        EdgeParams(0.1, 0.0)


def test_mean_angle_is_stored_wrapped():
    assert EdgePairParams(1.0, 3 * math.pi / 2, 0.3, 0.4).mean_angle == pytest.approx(-math.pi / 2)


def test_fit_mean_shape_rejects_empty_rectangle():
    with pytest.raises(ValueError):
        two_edge_model().fit_mean_shape(0, 10)


@pytest.mark.parametrize("margin", [0.0, 0.5, -0.1])
def test_fit_mean_shape_needs_a_positive_margin(margin):
    with pytest.raises(ValueError):
        two_edge_model().fit_mean_shape(100, 160, margin=margin)
