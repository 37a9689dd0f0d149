"""Distance measures between anchor points."""

import math

from .clustering import ConfigurationError
from .models import Point


def euclidean(p1: Point, p2: Point) -> float:
    """Straight-line distance."""
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def manhattan(p1: Point, p2: Point) -> float:
    """Sum of the absolute axis differences (suits axis-aligned text)."""
    return abs(p2.x - p1.x) + abs(p2.y - p1.y)


DISTANCE_MEASURES = {
    "euclidean": euclidean,
    "manhattan": manhattan,
}


def get_distance_measure(name: str):
    """Look up a distance measure by its config name."""
    try:
        return DISTANCE_MEASURES[name.lower()]
    except (KeyError, AttributeError):
        raise ConfigurationError(
            f"Unknown distance measure: {name!r} (expected one of {sorted(DISTANCE_MEASURES)})"
        ) from None
