"""Shape model topology, statistics and energy evaluation."""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .geometry import Vector, wrap_angle
from .logging_utils import debug_log_call
from .types import Edge, EdgeId, EdgePair, TopologyMismatchError

logger = logging.getLogger(__name__)

_HALF_SQRT = math.sqrt(0.5)


@dataclass(frozen=True)
class EdgeParams:
    """Expected width of an edge relative to its length."""

    width_ratio: float
    width_deviation: float

    def __post_init__(self) -> None:
        if self.width_ratio < 0.0:
            raise ValueError(f"width ratio must be non-negative, got {self.width_ratio!r}")
        if not self.width_deviation > 0.0:
            raise ValueError(f"width deviation must be positive, got {self.width_deviation!r}")


@dataclass(frozen=True)
class EdgePairParams:
    """Expected geometry of the second edge of a pair relative to the first one.

    ``length_ratio`` is ``length2 / length1``; ``mean_angle`` is the rotation from
    the first edge direction to the second, stored wrapped to ``[-pi, pi)``.
    """

    length_ratio: float
    mean_angle: float
    length_deviation: float
    angle_deviation: float

    def __post_init__(self) -> None:
        if not self.length_ratio > 0.0:
            raise ValueError(f"length ratio must be positive, got {self.length_ratio!r}")
        if not (self.length_deviation > 0.0 and self.angle_deviation > 0.0):
            raise ValueError("length and angle deviations must be positive")
        object.__setattr__(self, "mean_angle", float(wrap_angle(self.mean_angle)))

    @property
    def log_length_ratio(self) -> float:
        return math.log(self.length_ratio)

    @property
    def length_scale(self) -> float:
        """Quadratic coefficient of the log-length deviation."""

        return 0.5 / (self.length_deviation * self.length_deviation)

    @property
    def angle_scale(self) -> float:
        return 0.5 / (self.angle_deviation * self.angle_deviation)


def pair_residuals(
    params: EdgePairParams, length1: float, angle1: float, length2: float, angle2: float
) -> Tuple[float, float]:
    """Signed residuals whose squares sum to the pair energy."""

    log_dev = math.log(length2) - math.log(length1) - params.log_length_ratio
    angle_dev = float(wrap_angle(angle2 - angle1 - params.mean_angle))
    return (
        _HALF_SQRT * log_dev / params.length_deviation,
        _HALF_SQRT * angle_dev / params.angle_deviation,
    )


def width_residual(params: EdgeParams, length: float, width: float) -> float:
    return _HALF_SQRT * (width / length - params.width_ratio) / params.width_deviation


def _is_tree(node_count: int, links: Sequence[Tuple[int, int]]) -> bool:
    if len(links) != node_count - 1:
        return False
    adjacency: Dict[int, List[int]] = {i: [] for i in range(node_count)}
    for a, b in links:
        adjacency[a].append(b)
        adjacency[b].append(a)
    seen = {0}
    queue = deque([0])
    while queue:
        node = queue.popleft()
        for other in adjacency[node]:
            if other not in seen:
                seen.add(other)
                queue.append(other)
    return len(seen) == node_count


@dataclass(frozen=True, eq=False)
class ShapeModel:
    """Fixed edge topology plus the statistics of the shape prior.

    The vertex graph and the graph of modeled edge pairs must both be trees;
    together they determine the zero-energy mean shape up to similarity.
    """

    vertex_count: int
    edges: Tuple[Edge, ...]
    edge_params: Tuple[EdgeParams, ...]
    edge_pairs: Tuple[Tuple[EdgePair, EdgePairParams], ...] = ()
    min_edge_length: float = 1e-2

    def __init__(
        self,
        vertex_count: int,
        edges: Sequence[Edge],
        edge_params: Sequence[EdgeParams],
        edge_pairs: Union[Mapping[EdgePair, EdgePairParams], Sequence[Tuple[EdgePair, EdgePairParams]]] = (),
        min_edge_length: float = 1e-2,
    ) -> None:
        pairs = edge_pairs.items() if isinstance(edge_pairs, Mapping) else edge_pairs
        object.__setattr__(self, "vertex_count", int(vertex_count))
        object.__setattr__(self, "edges", tuple((int(a), int(b)) for a, b in edges))
        object.__setattr__(self, "edge_params", tuple(edge_params))
        object.__setattr__(
            self, "edge_pairs", tuple(((int(p[0]), int(p[1])), params) for p, params in pairs)
        )
        object.__setattr__(self, "min_edge_length", float(min_edge_length))
        self._validate()

    def _validate(self) -> None:
        if not self.edges:
            raise ValueError("shape model needs at least one edge")
        if len(self.edge_params) != len(self.edges):
            raise TopologyMismatchError(
                f"expected {len(self.edges)} edge parameter sets, got {len(self.edge_params)}"
            )
        for a, b in self.edges:
            if not (0 <= a < self.vertex_count and 0 <= b < self.vertex_count) or a == b:
                raise ValueError(f"edge ({a}, {b}) does not join two distinct model vertices")
        if not _is_tree(self.vertex_count, self.edges):
            raise ValueError("model edges must form a tree over the vertices")
        for (e1, e2), _ in self.edge_pairs:
            if not (0 <= e1 < self.edge_count and 0 <= e2 < self.edge_count) or e1 == e2:
                raise ValueError(f"edge pair ({e1}, {e2}) does not join two distinct model edges")
        if not _is_tree(self.edge_count, [pair for pair, _ in self.edge_pairs]):
            raise ValueError("modeled edge pairs must form a tree over the edges")
        if not self.min_edge_length > 0.0:
            raise ValueError("minimum edge length must be positive")

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def clamp_length(self, length: float) -> float:
        return max(length, self.min_edge_length)

    def _mean_edge_vectors(self) -> List[Vector]:
        adjacency: Dict[EdgeId, List[Tuple[EdgeId, EdgePairParams, bool]]] = {
            e: [] for e in range(self.edge_count)
        }
        for (e1, e2), params in self.edge_pairs:
            adjacency[e1].append((e2, params, True))
            adjacency[e2].append((e1, params, False))

        lengths: Dict[EdgeId, float] = {0: 1.0}
        angles: Dict[EdgeId, float] = {0: 0.0}
        queue = deque([0])
        while queue:
            edge = queue.popleft()
            for other, params, forward in adjacency[edge]:
                if other in lengths:
                    continue
                if forward:
                    lengths[other] = lengths[edge] * params.length_ratio
                    angles[other] = angles[edge] + params.mean_angle
                else:
                    lengths[other] = lengths[edge] / params.length_ratio
                    angles[other] = angles[edge] - params.mean_angle
                queue.append(other)
        return [Vector.from_polar(lengths[e], angles[e]) for e in range(self.edge_count)]

    @debug_log_call(logger)
    def fit_mean_shape(self, width: float, height: float, margin: float = 0.1) -> "Shape":
        """Zero-energy shape scaled and centred strictly inside ``[0, width] x [0, height]``."""

        if not (width > 0.0 and height > 0.0):
            raise ValueError(f"bounding rectangle must be non-empty, got {width!r}x{height!r}")
        if not 0.0 < margin < 0.5:
            raise ValueError(f"margin must be in (0, 0.5), got {margin!r}")

        vectors = self._mean_edge_vectors()
        incident: Dict[int, List[Tuple[EdgeId, bool]]] = {v: [] for v in range(self.vertex_count)}
        for e, (a, b) in enumerate(self.edges):
            incident[a].append((e, True))
            incident[b].append((e, False))

        positions: Dict[int, Vector] = {0: Vector(0.0, 0.0)}
        queue = deque([0])
        while queue:
            vertex = queue.popleft()
            for e, starts_here in incident[vertex]:
                a, b = self.edges[e]
                other = b if starts_here else a
                if other in positions:
                    continue
                if starts_here:
                    positions[other] = positions[vertex] + vectors[e]
                else:
                    positions[other] = positions[vertex] - vectors[e]
                queue.append(other)

        xs = np.array([positions[v].x for v in range(self.vertex_count)])
        ys = np.array([positions[v].y for v in range(self.vertex_count)])
        span_x = float(xs.max() - xs.min())
        span_y = float(ys.max() - ys.min())
        usable = 1.0 - 2.0 * margin
        scale = min(
            width * usable / span_x if span_x > 0.0 else math.inf,
            height * usable / span_y if span_y > 0.0 else math.inf,
        )
        center_x = 0.5 * float(xs.max() + xs.min())
        center_y = 0.5 * float(ys.max() + ys.min())
        vertices = [
            Vector((positions[v].x - center_x) * scale + 0.5 * width, (positions[v].y - center_y) * scale + 0.5 * height)
            for v in range(self.vertex_count)
        ]
        widths = [
            self.edge_params[e].width_ratio * vectors[e].length() * scale for e in range(self.edge_count)
        ]
        logger.info(
            "Fitted mean shape with %d vertices into %gx%g (scale=%.6g)",
            self.vertex_count,
            width,
            height,
            scale,
        )
        return Shape(self, vertices, widths)


@dataclass(frozen=True, eq=False)
class Shape:
    """Concrete vertex positions and edge widths for a :class:`ShapeModel`."""

    model: ShapeModel = field(repr=False)
    vertex_positions: Tuple[Vector, ...]
    edge_widths: Tuple[float, ...]

    def __init__(self, model: ShapeModel, vertex_positions: Sequence, edge_widths: Sequence[float]) -> None:
        vertices = tuple(v if isinstance(v, Vector) else Vector(float(v[0]), float(v[1])) for v in vertex_positions)
        widths = tuple(float(w) for w in edge_widths)
        if len(vertices) != model.vertex_count:
            raise TopologyMismatchError(
                f"model has {model.vertex_count} vertices, got {len(vertices)} positions"
            )
        if len(widths) != model.edge_count:
            raise TopologyMismatchError(f"model has {model.edge_count} edges, got {len(widths)} widths")
        object.__setattr__(self, "model", model)
        object.__setattr__(self, "vertex_positions", vertices)
        object.__setattr__(self, "edge_widths", widths)

    def edge_vector(self, edge: EdgeId) -> Vector:
        a, b = self.model.edges[edge]
        return self.vertex_positions[b] - self.vertex_positions[a]

    def edge_length(self, edge: EdgeId) -> float:
        """Edge length, floored at the model's minimum edge length."""

        return self.model.clamp_length(self.edge_vector(edge).length())

    def edge_angle(self, edge: EdgeId) -> float:
        return self.edge_vector(edge).angle()

    def residuals(self) -> np.ndarray:
        out: List[float] = []
        lengths = [self.edge_length(e) for e in range(self.model.edge_count)]
        angles = [self.edge_angle(e) for e in range(self.model.edge_count)]
        for (e1, e2), params in self.model.edge_pairs:
            out.extend(pair_residuals(params, lengths[e1], angles[e1], lengths[e2], angles[e2]))
        for e, params in enumerate(self.model.edge_params):
            out.append(width_residual(params, lengths[e], self.edge_widths[e]))
        return np.asarray(out, dtype=float)

    def calculate_energy(self) -> float:
        residuals = self.residuals()
        return float(np.dot(residuals, residuals))

    energy = calculate_energy

    def pair_energy(self, pair_index: int) -> float:
        (e1, e2), params = self.model.edge_pairs[pair_index]
        r_len, r_ang = pair_residuals(
            params, self.edge_length(e1), self.edge_angle(e1), self.edge_length(e2), self.edge_angle(e2)
        )
        return r_len * r_len + r_ang * r_ang


def shape_from_arrays(model: ShapeModel, coords: np.ndarray, widths: Optional[np.ndarray] = None) -> Shape:
    """Build a shape from a flat ``[x0, y0, x1, y1, ...]`` array."""

    coords = np.asarray(coords, dtype=float).reshape(model.vertex_count, 2)
    if widths is None:
        widths = np.zeros(model.edge_count)
    return Shape(model, [Vector(float(x), float(y)) for x, y in coords], [float(w) for w in widths])


__all__ = [
    "EdgeParams",
    "EdgePairParams",
    "ShapeModel",
    "Shape",
    "pair_residuals",
    "width_residual",
    "shape_from_arrays",
]
