"""Small ready-made shape models."""

from __future__ import annotations

import math

from .model import EdgePairParams, EdgeParams, ShapeModel

DEFAULT_LENGTH_DEVIATION = 0.3
DEFAULT_ANGLE_DEVIATION = 0.4


def _pair(length_ratio: float, mean_angle: float) -> EdgePairParams:
    return EdgePairParams(length_ratio, mean_angle, DEFAULT_LENGTH_DEVIATION, DEFAULT_ANGLE_DEVIATION)


def one_edge_model(width_ratio: float = 0.1) -> ShapeModel:
    return ShapeModel(2, [(0, 1)], [EdgeParams(width_ratio, 0.1)])


def two_edge_model(mean_angle: float = math.pi * 0.5, length_ratio: float = 1.0) -> ShapeModel:
    """Chain ``0 - 1 - 2``; the second edge is ``length_ratio`` times longer, turned by ``mean_angle``."""

    return ShapeModel(
        3,
        [(0, 1), (1, 2)],
        [EdgeParams(0.15, 0.1), EdgeParams(0.15, 0.1)],
        {(0, 1): _pair(length_ratio, mean_angle)},
    )


def five_edge_model() -> ShapeModel:
    return ShapeModel(
        6,
        [(0, 1), (1, 2), (2, 3), (2, 4), (0, 5)],
        [EdgeParams(0.2, 0.1)] * 5,
        {
            (0, 1): _pair(1.2, math.pi * 0.5),
            (1, 2): _pair(1.0, -math.pi * 0.25),
            (1, 3): _pair(0.8, math.pi * 0.25),
            (0, 4): _pair(1.1, -math.pi * 0.5),
        },
    )


def letter_model() -> ShapeModel:
    """Stick letter "K" with a foot: stem 0-1-2, arms 1-3 and 1-4, foot 2-5."""

    return ShapeModel(
        6,
        [(0, 1), (1, 2), (1, 3), (1, 4), (2, 5)],
        [EdgeParams(0.2, 0.1)] * 5,
        {
            (0, 1): _pair(1.0, 0.0),
            (0, 2): _pair(0.9, math.pi * 0.75),
            (1, 3): _pair(0.9, -math.pi * 0.25),
            (1, 4): _pair(0.4, math.pi * 0.5),
        },
    )


__all__ = ["one_edge_model", "two_edge_model", "five_edge_model", "letter_model"]
