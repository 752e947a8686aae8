# graphhopper_client.py
# The GraphHopper adapter: directions + geocoding over HTTP.
#
# Sole responsibility: talk to GraphHopper and return its JSON or normalised hits.
# Encapsulates provider details:
#   coordinate formatting (POST bodies take [lng, lat])
#   avoid options expressed as a custom model
#   timeouts and HTTP error mapping
# It holds no navigation state.

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from .errors import NoRouteFoundError, ProviderError, ProviderTimeoutError
from .models import GeocodeHit, GeoPoint, TravelMode, to_geometry_point
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


# Priority rules that make a road class unusable for the router.
AVOID_RULES: Dict[str, Dict[str, str]] = {
    "toll":     {"if": "toll != NO", "multiply_by": "0"},
    "ferry":    {"if": "road_environment == FERRY", "multiply_by": "0"},
    "motorway": {"if": "road_class == MOTORWAY", "multiply_by": "0"},
}


class GraphHopperClient:
    """
    GraphHopper adapter / client.

    The blocking ``fetch_*`` methods do the HTTP work; ``route`` and
    ``search`` wrap them for use from an asyncio event loop.

    Args:
        config: NavConfig with API key, base URL and timeout.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.base_url = self.config.graphhopper_base_url.rstrip("/")
        self.timeout = self.config.request_timeout_s

        if not self.config.graphhopper_api_key:
            raise ValueError("GraphHopper API key not set. Please set GRAPHHOPPER_API_KEY in .env.")

    # ------------------------------------------------------------------
    # Request shaping
    # ------------------------------------------------------------------

    @staticmethod
    def format_points(coordinates: Sequence[GeoPoint]) -> List[List[float]]:
        """Convert (lat, lng) points to the [lng, lat] pairs the POST API expects."""
        return [list(to_geometry_point(c).as_tuple()) for c in coordinates]

    def build_route_body(
        self,
        coordinates: Sequence[GeoPoint],
        mode: TravelMode,
        avoid: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        body: Dict[str, Any] = {
            "points": self.format_points(coordinates),
            "profile": mode.value,
            "points_encoded": True,
            "instructions": True,
            "locale": "en",
        }

        avoid_tags = list(dict.fromkeys(avoid or []))
        unknown = [t for t in avoid_tags if t not in AVOID_RULES]
        if unknown:
            raise ValueError(f"Unsupported avoid option(s): {unknown}. Use {sorted(AVOID_RULES)}.")
        if avoid_tags:
            body["ch.disable"] = True
            body["custom_model"] = {"priority": [AVOID_RULES[t] for t in avoid_tags]}
        return body

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}/{path}"
        params = dict(kwargs.pop("params", {}) or {})
        params["key"] = self.config.graphhopper_api_key
        headers = {"User-Agent": self.config.user_agent}

        try:
            response = requests.request(
                method, url, params=params, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.Timeout as e:
            raise ProviderTimeoutError(f"GraphHopper {path} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ProviderError(f"GraphHopper {path} request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"GraphHopper {path} returned non-JSON (HTTP {response.status_code})"
            ) from e

        if response.status_code == 400 and path == "route":
            message = data.get("message", "No route found") if isinstance(data, dict) else ""
            raise NoRouteFoundError(f"GraphHopper: {message}")
        if response.status_code >= 400:
            message = data.get("message", "Unknown error") if isinstance(data, dict) else ""
            raise ProviderError(f"GraphHopper {path} error {response.status_code}: {message}")
        if not isinstance(data, dict):
            raise ProviderError(f"GraphHopper {path} returned an unexpected payload.")
        return data

    def fetch_route(
        self,
        coordinates: Sequence[GeoPoint],
        mode: TravelMode,
        avoid: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        """
        POST /route with the given points.

        Returns:
            Raw response ``{"paths": [{"points", "instructions", "distance", "time"}, ...]}``.
        """
        body = self.build_route_body(coordinates, mode, avoid)
        logger.debug(f"GraphHopper route: {len(coordinates)} points, profile={mode.value}")
        return self._call("POST", "route", json=body)

    def fetch_geocode(self, text: str, limit: int = 1) -> List[GeocodeHit]:
        """GET /geocode and normalise hits; hits without a point are skipped."""
        data = self._call("GET", "geocode", params={"q": text, "limit": limit, "locale": "en"})
        hits: List[GeocodeHit] = []
        for hit in data.get("hits") or []:
            point = hit.get("point") or {}
            try:
                geo = GeoPoint(float(point["lat"]), float(point["lng"]))
            except (KeyError, TypeError, ValueError):
                continue
            hits.append(GeocodeHit(point=geo, label=hit.get("name") or ""))
        return hits[:limit]

    # ------------------------------------------------------------------
    # Awaitable collaborator interface
    # ------------------------------------------------------------------

    async def route(
        self,
        coordinates: Sequence[GeoPoint],
        mode: TravelMode,
        avoid: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(self.fetch_route, coordinates, mode, avoid)

    async def search(self, text: str, limit: int = 1) -> List[GeocodeHit]:
        return await asyncio.to_thread(self.fetch_geocode, text, limit)
