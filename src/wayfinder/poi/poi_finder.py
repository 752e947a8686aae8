# poi_finder.py
# Finds places (restaurant, fuel, hospital ...) around a point or along a route via Overpass.
#
# Usage:
#   finder = PoiFinder(OverpassClient(config), config)
#   results = finder.find_nearby(GeoPoint(9.03, 38.75), radius_m=1500, types=["cafe"])

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from ..router.errors import EmptyPolylineError, ProviderError, ProviderTimeoutError
from ..router.geo_utils import distance_to_polyline_meters, haversine_meters
from ..router.models import GeoPoint, to_geometry_point
from ..router.nav_config import NavConfig
from .poi_sampler import SpatialQuery, build_query

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class PoiResult:
    """One place returned by the spatial query."""
    id: int
    kind: str                  # OSM element type: node | way
    coord: GeoPoint
    name: str
    category: str              # amenity or shop value
    distance_m: float          # to the search centre, or to the route
    tags: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.name} ({self.category}) — {int(self.distance_m)} m away"


# ---------------------------------------------------------------------------
# Overpass transport
# ---------------------------------------------------------------------------

class OverpassClient:
    """
    Submits a SpatialQuery to an Overpass interpreter in one request.

    Args:
        config: NavConfig with the interpreter URL and user agent.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()

    def execute(self, query: SpatialQuery) -> List[Dict[str, Any]]:
        """
        Run the query.

        Returns:
            Raw ``elements`` list.

        Raises:
            ProviderTimeoutError: no answer within ``query.timeout_s``.
            ProviderError:        transport, HTTP or payload failure.
        """
        logger.debug(f"Overpass {query.mode} query: {len(query.samples)} samples, {query.type_filters}")
        try:
            response = requests.post(
                self.config.overpass_url,
                data={"data": query.text},
                headers={"User-Agent": self.config.user_agent},
                timeout=query.timeout_s,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as e:
            raise ProviderTimeoutError(f"Overpass timed out after {query.timeout_s}s") from e
        except requests.RequestException as e:
            raise ProviderError(f"Overpass request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Overpass returned non-JSON: {e}") from e

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            raise ProviderError("Overpass response has no element list.")
        return elements


# ---------------------------------------------------------------------------
# Element parsing
# ---------------------------------------------------------------------------

def _element_point(element: Dict[str, Any]) -> Optional[GeoPoint]:
    """Nodes carry lat/lon directly; ways carry a computed centre."""
    src = element if "lat" in element else (element.get("center") or {})
    try:
        return GeoPoint(float(src["lat"]), float(src["lon"]))
    except (KeyError, TypeError, ValueError):
        return None


def _element_name(tags: Dict[str, str]) -> str:
    return tags.get("name") or tags.get("amenity") or tags.get("shop") or "POI"


# ---------------------------------------------------------------------------
# Main class
# ---------------------------------------------------------------------------

class PoiFinder:
    """
    POI discovery around a point or along a route.

    Args:
        client: Anything with ``execute(SpatialQuery) -> elements``.
        config: NavConfig for sampling limits and default radius.
    """

    def __init__(self, client: Optional[OverpassClient] = None, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.client = client or OverpassClient(self.config)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_nearby(
        self,
        center: GeoPoint,
        radius_m: Optional[float] = None,
        types: Optional[Iterable[str]] = None,
    ) -> List[PoiResult]:
        """
        Places within ``radius_m`` of a point, nearest first.

        Args:
            center:   Search centre.
            radius_m: Radius in metres; defaults to config.default_poi_radius_m.
            types:    OSM amenity/shop values; defaults to the standard set.
        """
        radius = self.config.default_poi_radius_m if radius_m is None else radius_m
        query = build_query([center], radius, types, self.config)
        elements = self.client.execute(query)
        return self._collect(elements, lambda p: haversine_meters(center, p))

    def find_along_route(
        self,
        coordinates: Sequence[GeoPoint],
        radius_m: Optional[float] = None,
        types: Optional[Iterable[str]] = None,
    ) -> List[PoiResult]:
        """
        Places near a route polyline, ordered by distance from the route.

        Args:
            coordinates: (lat, lng) route points, at least 2.
            radius_m:    Radius around each sample point.
            types:       OSM amenity/shop values.
        """
        if len(coordinates) < 2:
            raise EmptyPolylineError("Along-route search needs at least 2 points.")
        radius = self.config.default_poi_radius_m if radius_m is None else radius_m
        query = build_query(coordinates, radius, types, self.config)
        elements = self.client.execute(query)

        geometry = [to_geometry_point(c) for c in coordinates]
        return self._collect(elements, lambda p: distance_to_polyline_meters(p, geometry))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _collect(self, elements: List[Dict[str, Any]], measure) -> List[PoiResult]:
        seen: set = set()
        results: List[PoiResult] = []
        for element in elements:
            key: Tuple[Any, Any] = (element.get("type"), element.get("id"))
            if key in seen:
                continue
            seen.add(key)

            point = _element_point(element)
            if point is None:
                continue
            tags = element.get("tags") or {}
            results.append(PoiResult(
                id=element.get("id"),
                kind=element.get("type", ""),
                coord=point,
                name=_element_name(tags),
                category=tags.get("amenity") or tags.get("shop") or "",
                distance_m=measure(point),
                tags=tags,
            ))

        results.sort(key=lambda r: r.distance_m)
        logger.info(f"[PoiFinder] {len(results)} results.")
        return results
