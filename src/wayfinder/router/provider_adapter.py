# provider_adapter.py
# Converts a GraphHopper path (encoded polyline + instruction list) into a RouteModel.
# This is the only place where decoded (lat, lng) pairs become (lng, lat) geometry.

import logging
import math
from numbers import Real
from typing import Any, Dict, List, Optional, Sequence, Tuple

import polyline

from .errors import MalformedRouteError
from .models import GeoPoint, GeometryPoint, RouteModel, Segment, Step, to_geometry_point

logger = logging.getLogger(__name__)

METRES_PER_WAY_POINT = 10.0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise MalformedRouteError(f"Provider path field '{name}' is not a number: {value!r}")
    return value


def _optional_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return None
    return value


def _decode_geometry(encoded: Any) -> Tuple[GeometryPoint, ...]:
    if not isinstance(encoded, str) or not encoded:
        raise MalformedRouteError("Provider path has no encoded geometry.")
    try:
        pairs = polyline.decode(encoded)
        points = [to_geometry_point(GeoPoint(lat, lng)) for lat, lng in pairs]
    except (IndexError, ValueError, TypeError) as e:
        raise MalformedRouteError(f"Could not decode provider geometry: {e}") from e

    if len(points) < 2:
        raise MalformedRouteError(
            f"Provider geometry decodes to {len(points)} point(s); at least 2 required."
        )
    return tuple(points)


def _interval_way_points(interval: Any, point_count: int) -> Tuple[int, ...]:
    """Exact coverage reported by the provider as [first, last] inclusive."""
    if (
        not isinstance(interval, (list, tuple))
        or len(interval) != 2
        or not all(isinstance(i, int) and not isinstance(i, bool) for i in interval)
    ):
        raise MalformedRouteError(f"Malformed instruction interval: {interval!r}")
    first, last = interval
    if not 0 <= first <= last < point_count:
        raise MalformedRouteError(
            f"Instruction interval {interval!r} outside geometry of {point_count} points."
        )
    return tuple(range(first, last + 1))


def estimate_way_points(
    distances: Sequence[Optional[float]], point_count: int
) -> List[Tuple[int, ...]]:
    """
    Approximate geometry coverage per instruction.

    APPROXIMATE: assumes one geometry point per ~10 m of instruction distance
    (minimum one) and hands out contiguous index blocks in order. There is no
    measured relationship behind this; indices that would run past the end of
    the geometry are clamped to the last point.

    Args:
        distances:   Instruction distances in metres (None counts as 0).
        point_count: Number of geometry points in the route.

    Returns:
        One tuple of non-decreasing indices per instruction.
    """
    last = point_count - 1
    cursor = 0
    blocks: List[Tuple[int, ...]] = []
    for distance in distances:
        count = max(_round_half_up((distance or 0.0) / METRES_PER_WAY_POINT), 1)
        block = sorted({min(cursor + i, last) for i in range(count)})
        blocks.append(tuple(block))
        cursor += count
    return blocks


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def to_route_model(provider_path: Dict[str, Any]) -> RouteModel:
    """
    Build a RouteModel from one GraphHopper path.

    Args:
        provider_path: ``{"points", "instructions", "distance", "time"}`` as
                       returned in ``paths[i]`` of a directions response.

    Returns:
        Validated RouteModel with a single segment.

    Raises:
        MalformedRouteError: geometry missing, undecodable or shorter than 2
                             points, or totals/instructions unusable.
    """
    if not isinstance(provider_path, dict):
        raise MalformedRouteError("Provider path is not an object.")

    geometry = _decode_geometry(provider_path.get("points"))
    distance = _number(provider_path.get("distance"), "distance")
    duration = _number(provider_path.get("time"), "time")

    instructions = provider_path.get("instructions") or []
    if not isinstance(instructions, list) or not all(isinstance(i, dict) for i in instructions):
        raise MalformedRouteError("Provider instructions must be a list of objects.")

    if instructions and all("interval" in i for i in instructions):
        way_points = [_interval_way_points(i["interval"], len(geometry)) for i in instructions]
    else:
        way_points = estimate_way_points(
            [_optional_number(i.get("distance")) for i in instructions], len(geometry)
        )
        logger.debug(f"Estimated way-points for {len(instructions)} instructions (approximate).")

    steps = tuple(
        Step(
            instruction=str(instr.get("text", "")),
            distance_meters=_optional_number(instr.get("distance")),
            duration_millis=_optional_number(instr.get("time")),
            way_points=wp,
        )
        for instr, wp in zip(instructions, way_points)
    )

    segment = Segment(steps=steps, distance_meters=distance, duration_millis=duration)
    return RouteModel(
        geometry=geometry,
        segments=(segment,),
        distance_meters=distance,
        duration_millis=duration,
    )
