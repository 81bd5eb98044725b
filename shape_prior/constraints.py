"""Axis-aligned constraint boxes over vertex positions and edge widths."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .geometry import FULL_ANGLE_RANGE, TWO_PI, InsideRange, OutsideRange, Range, Vector, wrap_angle
from .model import Shape, ShapeModel
from .types import EdgeId, TopologyMismatchError, VertexId


def _as_vector(value) -> Vector:
    if isinstance(value, Vector):
        return value
    return Vector(float(value[0]), float(value[1]))


@dataclass(frozen=True)
class VertexConstraints:
    """Rectangle ``[min_coord, max_coord]`` bounding one vertex position."""

    min_coord: Vector
    max_coord: Vector

    def __post_init__(self) -> None:
        object.__setattr__(self, "min_coord", _as_vector(self.min_coord))
        object.__setattr__(self, "max_coord", _as_vector(self.max_coord))
        if self.min_coord.x > self.max_coord.x or self.min_coord.y > self.max_coord.y:
            raise ValueError(f"vertex box min {self.min_coord} exceeds max {self.max_coord}")

    @classmethod
    def from_point(cls, point: Vector) -> "VertexConstraints":
        point = _as_vector(point)
        return cls(point, point)

    @property
    def width(self) -> float:
        return self.max_coord.x - self.min_coord.x

    @property
    def height(self) -> float:
        return self.max_coord.y - self.min_coord.y

    @property
    def extent(self) -> float:
        return max(self.width, self.height)

    @property
    def middle(self) -> Vector:
        return Vector(
            0.5 * (self.min_coord.x + self.max_coord.x), 0.5 * (self.min_coord.y + self.max_coord.y)
        )

    def contains(self, point: Vector) -> bool:
        return (
            self.min_coord.x <= point.x <= self.max_coord.x
            and self.min_coord.y <= point.y <= self.max_coord.y
        )

    def split(self) -> List["VertexConstraints"]:
        """Quadrisect the rectangle at its middle point."""

        mid = self.middle
        lo, hi = self.min_coord, self.max_coord
        return [
            VertexConstraints(lo, mid),
            VertexConstraints(Vector(mid.x, lo.y), Vector(hi.x, mid.y)),
            VertexConstraints(Vector(lo.x, mid.y), Vector(mid.x, hi.y)),
            VertexConstraints(mid, hi),
        ]


@dataclass(frozen=True)
class EdgeConstraints:
    """Interval ``[min_width, max_width]`` bounding one edge width."""

    min_width: float
    max_width: float

    def __post_init__(self) -> None:
        if self.min_width < 0.0:
            raise ValueError(f"edge width must be non-negative, got {self.min_width!r}")
        if self.min_width > self.max_width:
            raise ValueError(f"edge width min {self.min_width!r} exceeds max {self.max_width!r}")

    @classmethod
    def from_width(cls, width: float) -> "EdgeConstraints":
        return cls(width, width)

    @property
    def extent(self) -> float:
        return self.max_width - self.min_width

    @property
    def middle(self) -> float:
        return 0.5 * (self.min_width + self.max_width)

    def split(self) -> List["EdgeConstraints"]:
        mid = self.middle
        return [EdgeConstraints(self.min_width, mid), EdgeConstraints(mid, self.max_width)]


def edge_limits(start: VertexConstraints, end: VertexConstraints) -> Tuple[InsideRange, Range]:
    """Exact length and angle ranges of ``q - p`` for ``p`` in ``start`` and ``q`` in ``end``.

    The set of such vectors is the rectangle ``end - start`` (Minkowski
    difference). Its length range runs from the distance of the origin to the
    rectangle up to its farthest corner. If the rectangle holds the origin every
    direction is reachable; otherwise the directions form an arc narrower than
    pi spanned by the corners, which is an :class:`OutsideRange` when it
    crosses the +-pi seam.
    """

    x_lo = end.min_coord.x - start.max_coord.x
    x_hi = end.max_coord.x - start.min_coord.x
    y_lo = end.min_coord.y - start.max_coord.y
    y_hi = end.max_coord.y - start.min_coord.y

    near_x = min(max(0.0, x_lo), x_hi)
    near_y = min(max(0.0, y_lo), y_hi)
    far_x = max(abs(x_lo), abs(x_hi))
    far_y = max(abs(y_lo), abs(y_hi))
    length_range = InsideRange(math.hypot(near_x, near_y), math.hypot(far_x, far_y))

    if x_lo <= 0.0 <= x_hi and y_lo <= 0.0 <= y_hi:
        return length_range, FULL_ANGLE_RANGE

    center = math.atan2(0.5 * (y_lo + y_hi), 0.5 * (x_lo + x_hi))
    deltas = [
        float(wrap_angle(math.atan2(y, x) - center))
        for x, y in ((x_lo, y_lo), (x_lo, y_hi), (x_hi, y_lo), (x_hi, y_hi))
    ]
    lo = center + min(deltas)
    hi = center + max(deltas)
    if lo < -math.pi:
        return length_range, OutsideRange(hi, lo + TWO_PI)
    if hi > math.pi:
        return length_range, OutsideRange(hi - TWO_PI, lo)
    return length_range, InsideRange(lo, hi)


@dataclass(frozen=True, eq=False)
class ShapeConstraints:
    """A box in the full parameter space: one rectangle per vertex, one interval per edge."""

    model: ShapeModel = field(repr=False)
    vertex_constraints: Tuple[VertexConstraints, ...]
    edge_constraints: Tuple[EdgeConstraints, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertex_constraints", tuple(self.vertex_constraints))
        object.__setattr__(self, "edge_constraints", tuple(self.edge_constraints))
        if len(self.vertex_constraints) != self.model.vertex_count:
            raise TopologyMismatchError(
                f"model has {self.model.vertex_count} vertices, got {len(self.vertex_constraints)} vertex constraints"
            )
        if len(self.edge_constraints) != self.model.edge_count:
            raise TopologyMismatchError(
                f"model has {self.model.edge_count} edges, got {len(self.edge_constraints)} edge constraints"
            )

    @classmethod
    def create_from_constraints(
        cls,
        model: ShapeModel,
        vertex_constraints: Sequence[VertexConstraints],
        edge_constraints: Sequence[EdgeConstraints],
    ) -> "ShapeConstraints":
        return cls(model, tuple(vertex_constraints), tuple(edge_constraints))

    @classmethod
    def for_image(
        cls, model: ShapeModel, width: float, height: float, max_edge_width: Optional[float] = None
    ) -> "ShapeConstraints":
        """Root box: every vertex anywhere in the image, widths up to ``max_edge_width``."""

        if max_edge_width is None:
            max_edge_width = float(max(width, height))
        box = VertexConstraints(Vector(0.0, 0.0), Vector(float(width), float(height)))
        interval = EdgeConstraints(0.0, float(max_edge_width))
        return cls(model, (box,) * model.vertex_count, (interval,) * model.edge_count)

    @classmethod
    def from_shape(cls, shape: Shape) -> "ShapeConstraints":
        """Degenerate point constraints pinned to ``shape``'s own geometry."""

        return cls(
            shape.model,
            tuple(VertexConstraints.from_point(v) for v in shape.vertex_positions),
            tuple(EdgeConstraints.from_width(w) for w in shape.edge_widths),
        )

    def endpoint_constraints(self, edge: EdgeId) -> Tuple[VertexConstraints, VertexConstraints]:
        a, b = self.model.edges[edge]
        return self.vertex_constraints[a], self.vertex_constraints[b]

    def determine_edge_limits(self, edge: EdgeId) -> Tuple[InsideRange, Range]:
        return edge_limits(*self.endpoint_constraints(edge))

    def clamped_length_range(self, edge: EdgeId) -> InsideRange:
        """Reachable length range with the model's minimum edge length applied."""

        length_range, _ = self.determine_edge_limits(edge)
        clamp = self.model.clamp_length
        return InsideRange(clamp(length_range.min), clamp(length_range.max))

    def width_ratio_range(self, edge: EdgeId) -> InsideRange:
        """Reachable ``width / length`` range of ``edge``."""

        lengths = self.clamped_length_range(edge)
        widths = self.edge_constraints[edge]
        return InsideRange(widths.min_width / lengths.max, widths.max_width / lengths.min)

    def with_vertex(self, vertex: VertexId, constraint: VertexConstraints) -> "ShapeConstraints":
        boxes = list(self.vertex_constraints)
        boxes[vertex] = constraint
        return ShapeConstraints(self.model, tuple(boxes), self.edge_constraints)

    def with_edge(self, edge: EdgeId, constraint: EdgeConstraints) -> "ShapeConstraints":
        intervals = list(self.edge_constraints)
        intervals[edge] = constraint
        return ShapeConstraints(self.model, self.vertex_constraints, tuple(intervals))

    def center_shape(self) -> Shape:
        return Shape(
            self.model,
            [box.middle for box in self.vertex_constraints],
            [interval.middle for interval in self.edge_constraints],
        )

    def contains_shape(self, shape: Shape) -> bool:
        return all(
            box.contains(v) for box, v in zip(self.vertex_constraints, shape.vertex_positions)
        ) and all(
            interval.min_width <= w <= interval.max_width
            for interval, w in zip(self.edge_constraints, shape.edge_widths)
        )


__all__ = [
    "VertexConstraints",
    "EdgeConstraints",
    "ShapeConstraints",
    "edge_limits",
]
