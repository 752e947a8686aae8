import math

import polyline
import pytest
import requests

from wayfinder.router.geo_utils import EARTH_RADIUS_M
from wayfinder.router.models import GeometryPoint, RouteModel, Segment, Step

METRES_PER_DEGREE = math.radians(1.0) * EARTH_RADIUS_M


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def provider_path():
    """Build a GraphHopper-style path from (lat, lng) pairs."""

    def _build(points, instructions=None, distance=1200.0, time=90000):
        return {
            "points": polyline.encode(points),
            "instructions": instructions if instructions is not None else [
                {"text": "Head north", "distance": distance, "time": time},
                {"text": "Arrive at destination", "distance": 0.0, "time": 0},
            ],
            "distance": distance,
            "time": time,
        }

    return _build


@pytest.fixture
def straight_route():
    """East-west route along a fixed latitude, built directly in (lng, lat)."""

    def _build(lat=9.0, lng_start=38.74, lng_end=38.76, points=3, distance=2200.0, duration=160000):
        step = (lng_end - lng_start) / (points - 1)
        geometry = tuple(GeometryPoint(lng=lng_start + i * step, lat=lat) for i in range(points))
        segment = Segment(
            steps=(
                Step("Head east", distance, duration, tuple(range(points - 1))),
                Step("Arrive", 0.0, 0, (points - 1,)),
            ),
            distance_meters=distance,
            duration_millis=duration,
        )
        return RouteModel(geometry, (segment,), distance, duration)

    return _build


@pytest.fixture
def metres_per_degree():
    return METRES_PER_DEGREE
