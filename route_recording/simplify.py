"""
Douglas-Peucker path simplification for recorded trajectories.
"""
from __future__ import annotations

from typing import List, Sequence, TypeVar

from .geo import HasPosition, perpendicular_distance

DEFAULT_TOLERANCE = 0.00005  # degrees, roughly 5 m of latitude

P = TypeVar("P", bound=HasPosition)


def douglas_peucker(points: Sequence[P], tolerance: float = DEFAULT_TOLERANCE) -> List[P]:
    """
    Reduce ``points`` to the subset needed to stay within ``tolerance`` of
    the original shape.

    The first and last points are always kept and the original order is
    preserved. Sequences shorter than three points come back unchanged.
    """
    if len(points) < 3:
        return list(points)

    end = len(points) - 1
    max_distance = 0.0
    split_index = 0
    for index in range(1, end):
        distance = perpendicular_distance(points[index], points[0], points[end])
        if distance > max_distance:
            split_index = index
            max_distance = distance

    if max_distance > tolerance:
        left = douglas_peucker(points[: split_index + 1], tolerance)
        right = douglas_peucker(points[split_index:], tolerance)
        return left[:-1] + right

    return [points[0], points[end]]


def reduction_ratio(original_count: int, simplified_count: int) -> float:
    """Fraction of points removed by simplification."""
    if original_count <= 0:
        return 0.0
    return (original_count - simplified_count) / original_count
