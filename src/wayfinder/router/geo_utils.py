# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no imports from other project modules except the coordinate types.

import math
from typing import Sequence

import numpy as np

from .errors import EmptyPolylineError
from .models import GeoPoint, GeometryPoint


EARTH_RADIUS_M = 6_371_000.0


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        a, b: Points in decimal degrees.

    Returns:
        Distance in metres. Symmetric, and exactly 0.0 for identical points.
    """
    if a == b:
        return 0.0
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_to_polyline_meters(point: GeoPoint, polyline: Sequence[GeometryPoint]) -> float:
    """
    Minimum distance in metres from a point to any edge of a polyline.

    Every edge is projected in a local equirectangular plane centred on
    ``point``; the projection parameter is clamped to [0, 1] so edge
    endpoints are respected. Accurate while edges stay well under a degree.

    Args:
        point:    Position to measure from.
        polyline: Route geometry, at least 2 points.

    Returns:
        Distance in metres.
    """
    if len(polyline) < 2:
        raise EmptyPolylineError(
            f"Polyline needs at least 2 points, got {len(polyline)}."
        )

    coords = np.array([(p.lng, p.lat) for p in polyline], dtype=float)
    scale_y = math.radians(1.0) * EARTH_RADIUS_M
    scale_x = math.cos(math.radians(point.lat)) * scale_y

    # Planar coordinates relative to the point, so the point itself is the origin.
    xs = (coords[:, 0] - point.lng) * scale_x
    ys = (coords[:, 1] - point.lat) * scale_y

    ax, ay = xs[:-1], ys[:-1]
    dx, dy = xs[1:] - ax, ys[1:] - ay
    len_sq = dx * dx + dy * dy

    dot = -(ax * dx + ay * dy)
    t = np.divide(dot, len_sq, out=np.zeros_like(dot), where=len_sq > 0)
    t = np.clip(t, 0.0, 1.0)

    cx = ax + t * dx
    cy = ay + t * dy
    return float(np.min(np.hypot(cx, cy)))
