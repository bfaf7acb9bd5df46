"""
Distance helpers for route recording: great-circle distance for gating and
planar point-to-line distance for path simplification.
"""
from __future__ import annotations

import math
from typing import Optional, Protocol

EARTH_RADIUS_KM = 6371.0
DEGENERATE_LINE_EPSILON = 1e-8


class HasPosition(Protocol):
    latitude: float
    longitude: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute the great-circle distance between two coordinates in kilometres.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push `a` just outside [0, 1] near antipodal points.
    a = min(max(a, 0.0), 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def perpendicular_distance(
    point: HasPosition, line_start: HasPosition, line_end: HasPosition
) -> float:
    """
    Distance from ``point`` to the line through ``line_start`` and ``line_end``.

    Latitude and longitude are treated as planar x/y, so the result is in
    degrees and only meaningful when compared against a tolerance in the
    same units. The projection is onto the infinite line, not clamped to the
    segment. A degenerate line (both ends in the same place) yields 0.
    """
    dx = line_end.latitude - line_start.latitude
    dy = line_end.longitude - line_start.longitude

    magnitude = math.sqrt(dx * dx + dy * dy)
    if magnitude < DEGENERATE_LINE_EPSILON:
        return 0.0

    u = (
        (point.latitude - line_start.latitude) * dx
        + (point.longitude - line_start.longitude) * dy
    ) / (magnitude * magnitude)

    foot_lat = line_start.latitude + u * dx
    foot_lon = line_start.longitude + u * dy
    return math.hypot(point.latitude - foot_lat, point.longitude - foot_lon)


def speed_mps(distance_km: float, elapsed_ms: float) -> Optional[float]:
    """Ground speed implied by covering ``distance_km`` in ``elapsed_ms``."""
    if elapsed_ms <= 0:
        return None
    return (distance_km * 1000.0) / (elapsed_ms / 1000.0)
