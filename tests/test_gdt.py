import math

import numpy as np
import pytest

from shape_prior import GeneralizedDistanceTransform1D, GeneralizedDistanceTransform2D, Vector
from shape_prior.gdt import GridAxis, lower_envelope
from shape_prior.types import InvalidDomainError, OutOfRangeError


def _brute_force_1d(values: np.ndarray, coords: np.ndarray, scale: float) -> np.ndarray:
    diff = coords[:, None] - coords[None, :]
    return np.min(values[None, :] + scale * diff * diff, axis=1)


def _constant_penalty(values: np.ndarray):
    def penalty(centres, half_width):
        return values

    return penalty


def test_transform_matches_brute_force_minimum():
    rng = np.random.default_rng(7)
    values = rng.uniform(0.0, 20.0, size=57)
    transform = GeneralizedDistanceTransform1D(-3.0, 5.0, 57, 2.5, _constant_penalty(values))

    coords = np.linspace(-3.0, 5.0, 57)
    expected = _brute_force_1d(values, coords, 2.5)
    assert np.allclose(transform.values, expected, rtol=1e-9, atol=1e-9)


def test_transform_ignores_infinite_penalties():
    values = np.full(11, math.inf)
    values[3] = 1.0
    transform = GeneralizedDistanceTransform1D(0.0, 10.0, 11, 0.5, _constant_penalty(values))

    assert transform.get_by_index(3) == pytest.approx(1.0)
    assert transform.get_by_index(0) == pytest.approx(1.0 + 0.5 * 9.0)
    assert transform.get_by_index(10) == pytest.approx(1.0 + 0.5 * 49.0)


def test_all_infinite_penalties_give_infinite_transform():
    transform = GeneralizedDistanceTransform1D(0.0, 1.0, 5, 1.0, _constant_penalty(np.full(5, math.inf)))
    assert np.all(np.isinf(transform.values))


def test_penalty_receives_cell_centres_and_half_width():
    seen = {}

    def penalty(centres, half_width):
        seen["centres"] = np.array(centres)
        seen["half_width"] = half_width
        return np.zeros_like(centres)

    GeneralizedDistanceTransform1D(1.0, 3.0, 5, 1.0, penalty)
    assert np.allclose(seen["centres"], [1.0, 1.5, 2.0, 2.5, 3.0])
    assert seen["half_width"] == pytest.approx(0.25)


def test_query_by_coord_rounds_to_nearest_grid_point():
    values = np.arange(5, dtype=float)
    transform = GeneralizedDistanceTransform1D(0.0, 4.0, 5, 100.0, _constant_penalty(values))

    assert transform.get_by_coord(1.49) == pytest.approx(1.0)
    assert transform.get_by_coord(1.51) == pytest.approx(2.0)
    assert transform.get_by_coord(-0.4) == pytest.approx(0.0)
    assert transform.get_by_coord(4.4) == pytest.approx(4.0)


def test_query_outside_grid_raises():
    transform = GeneralizedDistanceTransform1D(0.0, 4.0, 5, 1.0, _constant_penalty(np.zeros(5)))
    with pytest.raises(OutOfRangeError):
        transform.get_by_coord(-0.6)
    with pytest.raises(OutOfRangeError):
        transform.get_by_coord(4.6)
    with pytest.raises(OutOfRangeError):
        transform.get_by_index(5)


@pytest.mark.parametrize("grid_max", [1.0, 1.0 + 1e-7, 0.5])
def test_degenerate_domain_is_rejected(grid_max):
    with pytest.raises(InvalidDomainError):
        GeneralizedDistanceTransform1D(1.0, grid_max, 10, 1.0, _constant_penalty(np.zeros(10)))


def test_grid_needs_two_points():
    with pytest.raises(InvalidDomainError):
        GridAxis(0.0, 1.0, 1)


def test_lower_envelope_of_single_zero_is_parabola():
    values = np.full(9, math.inf)
    values[4] = 0.0
    out = lower_envelope(values, 0.5, 2.0)
    expected = [2.0 * ((i - 4) * 0.5) ** 2 for i in range(9)]
    assert np.allclose(out, expected)


def test_2d_transform_matches_brute_force_minimum():
    rng = np.random.default_rng(11)
    values = rng.uniform(0.0, 5.0, size=(7, 9))
    values[2, 3] = math.inf
    xs = np.linspace(0.0, 3.0, 7)
    ys = np.linspace(-1.0, 1.0, 9)
    scale_x, scale_y = 1.5, 4.0

    def penalty(px, py, half_x, half_y):
        return values

    transform = GeneralizedDistanceTransform2D(
        Vector(0.0, -1.0), Vector(3.0, 1.0), (7, 9), (scale_x, scale_y), penalty
    )

    dx = xs[:, None, None, None] - xs[None, None, :, None]
    dy = ys[None, :, None, None] - ys[None, None, None, :]
    total = values[None, None, :, :] + scale_x * dx * dx + scale_y * dy * dy
    expected = total.reshape(7, 9, -1).min(axis=2)
    assert np.allclose(transform.values, expected, rtol=1e-9, atol=1e-9)


def test_2d_transform_exposes_grid_bounds_and_coord_queries():
    def penalty(px, py, half_x, half_y):
        return np.where((np.abs(px - 1.0) < 0.5 * half_x) & (np.abs(py) < 0.5 * half_y), 0.0, math.inf)

    transform = GeneralizedDistanceTransform2D(Vector(0.0, -2.0), Vector(4.0, 2.0), (41, 41), (1.0, 1.0), penalty)

    assert transform.grid_min == Vector(0.0, -2.0)
    assert transform.grid_max == Vector(4.0, 2.0)
    assert transform.grid_size == (41, 41)
    assert transform.get_by_coord(1.0, 0.0) == pytest.approx(0.0)
    assert transform.get_by_coord(3.0, 1.0) == pytest.approx(4.0 + 1.0)
    with pytest.raises(OutOfRangeError):
        transform.get_by_coord(5.0, 0.0)


def test_2d_transform_rejects_degenerate_axis():
    with pytest.raises(InvalidDomainError):
        GeneralizedDistanceTransform2D(
            Vector(0.0, 0.0), Vector(1.0, 0.0), (5, 5), (1.0, 1.0), lambda px, py, hx, hy: 0.0
        )
