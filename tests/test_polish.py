import pytest

from shape_prior import (
    EdgeConstraints,
    PolishOptions,
    Shape,
    ShapeConstraints,
    Vector,
    VertexConstraints,
    polish_shape,
)
from shape_prior.presets import two_edge_model


def _box(free_vertex_box):
    return ShapeConstraints.create_from_constraints(
        two_edge_model(),
        [
            VertexConstraints.from_point(Vector(10, 30)),
            VertexConstraints.from_point(Vector(30, 30)),
            free_vertex_box,
        ],
        [EdgeConstraints(2, 4), EdgeConstraints(2, 4)],
    )


def test_polish_reaches_the_interior_minimum():
    constraints = _box(VertexConstraints(Vector(24, 44), Vector(36, 56)))
    start = Shape(
        constraints.model, [Vector(10, 30), Vector(30, 30), Vector(35, 45)], [2.5, 3.5]
    )

    result = polish_shape(start, constraints, PolishOptions(max_nfev=200))

    assert result.energy_after < 1e-8
    assert result.energy_after < result.energy_before
    assert result.shape.vertex_positions[2].x == pytest.approx(30.0, abs=1e-3)
    assert result.shape.vertex_positions[2].y == pytest.approx(50.0, abs=1e-3)
    assert constraints.contains_shape(result.shape)


def test_polish_stays_inside_the_box():
    constraints = _box(VertexConstraints(Vector(40, 40), Vector(44, 44)))
    start = constraints.center_shape()

    result = polish_shape(start, constraints)

    assert constraints.contains_shape(result.shape)
    assert result.energy_after <= result.energy_before
    assert result.shape.vertex_positions[2].x == pytest.approx(40.0, abs=1e-2)


def test_polish_is_a_no_op_when_disabled_or_fixed():
    constraints = _box(VertexConstraints(Vector(24, 44), Vector(36, 56)))
    start = constraints.center_shape()

    disabled = polish_shape(start, constraints, PolishOptions(enable=False))
    assert disabled.shape is start
    assert disabled.iterations == 0

    pinned = ShapeConstraints.from_shape(start)
    fixed = polish_shape(start, pinned)
    assert fixed.shape is start
    assert fixed.notes == ["no free parameters"]
