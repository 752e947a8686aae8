# poi_sampler.py
# Turns a point or a polyline into one batched Overpass proximity query.
#
# Usage:
#   query = build_query(route_points, radius_m=300, type_filters=["fuel"])
#   elements = OverpassClient(config).execute(query)

import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..router.errors import EmptyPolylineError, InvalidFilterError, InvalidRadiusError
from ..router.models import GeoPoint
from ..router.nav_config import NavConfig


# ---------------------------------------------------------------------------
# POI types → OSM tag clauses
# ---------------------------------------------------------------------------

DEFAULT_TYPES: Tuple[str, ...] = ("restaurant", "cafe", "atm", "fuel", "hotel", "hospital")

# Each type is matched three ways; results are unioned.
MATCH_CLAUSES: Tuple[Tuple[str, str], ...] = (
    ("node", "amenity"),
    ("way",  "amenity"),
    ("node", "shop"),
)

_TAG_VALUE = re.compile(r"^[a-z0-9_]+$")

MODE_NEARBY = "nearby"
MODE_ROUTE  = "route"


# ---------------------------------------------------------------------------
# Query model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpatialQuery:
    """A ready-to-send Overpass query plus the inputs it was built from."""
    mode: str                           # "nearby" | "route"
    samples: Tuple[GeoPoint, ...]
    radius_m: float
    type_filters: Tuple[str, ...]
    limit: int                          # max elements returned, centre-aggregated
    timeout_s: float
    text: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sample_indices(length: int, max_samples: int = 15) -> List[int]:
    """
    Evenly spaced indices over ``range(length)`` by position.

    The first and last index are always included and at most
    ``max_samples`` indices are returned.
    """
    if length <= 0:
        return []
    n = min(max_samples, length)
    if n == 1:
        return [0]
    return [i * (length - 1) // (n - 1) for i in range(n)]


def parse_type_filters(raw: Optional[str]) -> List[str]:
    """Split a comma-separated filter string ("restaurant,cafe") into tags."""
    if not raw:
        return []
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


def _normalise_filters(type_filters: Optional[Iterable[str]]) -> Tuple[str, ...]:
    filters = tuple(dict.fromkeys(t.strip().lower() for t in (type_filters or ()) if t.strip()))
    if not filters:
        return DEFAULT_TYPES
    bad = [t for t in filters if not _TAG_VALUE.match(t)]
    if bad:
        raise InvalidFilterError(f"Unsupported POI type filter(s): {bad}")
    return filters


def _fmt_radius(radius_m: float) -> str:
    # One decimal place; a positive radius never renders as 0
    if float(radius_m).is_integer():
        return str(int(radius_m))
    return f"{max(radius_m, 0.1):.1f}"


def _render(samples: Sequence[GeoPoint], radius_m: float, filters: Sequence[str],
            limit: int, timeout_s: float) -> str:
    radius = _fmt_radius(radius_m)
    clauses = []
    for point in samples:
        around = f"(around:{radius},{point.lat:.6f},{point.lng:.6f})"
        for tag in filters:
            for element, key in MATCH_CLAUSES:
                clauses.append(f'{element}["{key}"="{tag}"]{around};')
    body = "\n  ".join(clauses)
    return f"[out:json][timeout:{int(timeout_s)}];\n(\n  {body}\n);\nout center {limit};"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_query(
    coordinates: Sequence[GeoPoint],
    radius_m: float,
    type_filters: Optional[Iterable[str]] = None,
    config: Optional[NavConfig] = None,
) -> SpatialQuery:
    """
    Build a single batched proximity query.

    One coordinate ⇒ "nearby" mode around that point. Two or more ⇒
    "route" mode: up to ``config.max_samples`` points sampled evenly by
    index, always including both ends.

    Args:
        coordinates:  (lat, lng) points, in route order.
        radius_m:     Search radius around every sample, > 0.
        type_filters: OSM amenity/shop values; defaults to DEFAULT_TYPES.
        config:       NavConfig for limits and timeouts.

    Returns:
        SpatialQuery with the Overpass QL text.
    """
    config = config or NavConfig()
    if not coordinates:
        raise EmptyPolylineError("No coordinates given for a POI query.")
    if not radius_m > 0 or not math.isfinite(radius_m):
        raise InvalidRadiusError(f"Radius must be positive and finite, got {radius_m}.")
    filters = _normalise_filters(type_filters)

    if len(coordinates) == 1:
        mode, limit, timeout_s = MODE_NEARBY, config.nearby_limit, config.nearby_timeout_s
        samples: Tuple[GeoPoint, ...] = (coordinates[0],)
    else:
        mode, limit, timeout_s = MODE_ROUTE, config.route_limit, config.route_timeout_s
        samples = tuple(coordinates[i] for i in sample_indices(len(coordinates), config.max_samples))

    return SpatialQuery(
        mode=mode,
        samples=samples,
        radius_m=float(radius_m),
        type_filters=filters,
        limit=limit,
        timeout_s=timeout_s,
        text=_render(samples, radius_m, filters, limit, timeout_s),
    )
