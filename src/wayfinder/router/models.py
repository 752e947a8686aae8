# models.py
# Shared data structures and enums used across all modules.
#
# Two coordinate types exist on purpose: GeoPoint is (lat, lng) as produced by
# geolocation and geocoding, GeometryPoint is (lng, lat) as stored in route
# geometry. Convert only through to_geometry_point() / to_geo_point().

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import MalformedRouteError


# ---------------------------------------------------------------------------
# Coordinates
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GeoPoint:
    """Immutable (lat, lng) coordinate in WGS-84 degrees."""
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0) or not (-180.0 <= self.lng <= 180.0):
            raise ValueError(f"Coordinate out of range: lat={self.lat}, lng={self.lng}")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class GeometryPoint:
    """Immutable (lng, lat) coordinate, the ordering used by route geometry."""
    lng: float
    lat: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lng, self.lat)


def to_geometry_point(point: GeoPoint) -> GeometryPoint:
    return GeometryPoint(lng=point.lng, lat=point.lat)


def to_geo_point(point: GeometryPoint) -> GeoPoint:
    return GeoPoint(lat=point.lat, lng=point.lng)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TravelMode(Enum):
    CAR  = "car"
    FOOT = "foot"
    BIKE = "bike"


class MonitorState(Enum):
    ON_ROUTE  = "on_route"
    OFF_ROUTE = "off_route"


# ---------------------------------------------------------------------------
# Route model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Step:
    """A single turn-by-turn instruction."""
    instruction: str
    distance_meters: Optional[float] = None
    duration_millis: Optional[float] = None
    way_points: Optional[Tuple[int, ...]] = None   # indices into RouteModel.geometry

    def __post_init__(self) -> None:
        if self.way_points is not None:
            object.__setattr__(self, "way_points", tuple(int(i) for i in self.way_points))

    def to_dict(self) -> dict:
        return {
            "instruction": self.instruction,
            "distance": self.distance_meters,
            "duration": self.duration_millis,
            "way_points": list(self.way_points) if self.way_points is not None else None,
        }

    @staticmethod
    def from_dict(d: dict) -> "Step":
        return Step(
            instruction=d["instruction"],
            distance_meters=d.get("distance"),
            duration_millis=d.get("duration"),
            way_points=d.get("way_points"),
        )


@dataclass(frozen=True)
class Segment:
    """One leg of a route. Totals are the provider's, never recomputed."""
    steps: Tuple[Step, ...]
    distance_meters: float
    duration_millis: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))

    def to_dict(self) -> dict:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "distance": self.distance_meters,
            "duration": self.duration_millis,
        }

    @staticmethod
    def from_dict(d: dict) -> "Segment":
        return Segment(
            steps=tuple(Step.from_dict(s) for s in d["steps"]),
            distance_meters=d["distance"],
            duration_millis=d["duration"],
        )


def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-6, abs_tol=1e-6)


@dataclass(frozen=True)
class RouteModel:
    """
    Canonical computed route: geometry plus turn-by-turn segments.

    Instances are validated on construction and never mutated; a new route
    always replaces the old one as a whole.
    """
    geometry: Tuple[GeometryPoint, ...]
    segments: Tuple[Segment, ...]
    distance_meters: float
    duration_millis: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "geometry", tuple(self.geometry))
        object.__setattr__(self, "segments", tuple(self.segments))
        self._validate()

    def _validate(self) -> None:
        if len(self.geometry) < 2:
            raise MalformedRouteError(
                f"Route geometry needs at least 2 points, got {len(self.geometry)}."
            )
        if not all(isinstance(p, GeometryPoint) for p in self.geometry):
            raise MalformedRouteError("Route geometry must contain GeometryPoint values.")
        if not self.segments:
            raise MalformedRouteError("Route must have at least one segment.")

        if not _close(self.distance_meters, sum(s.distance_meters for s in self.segments)):
            raise MalformedRouteError("Route distance does not match its segments.")
        if not _close(self.duration_millis, sum(s.duration_millis for s in self.segments)):
            raise MalformedRouteError("Route duration does not match its segments.")

        last_index = -1
        for step in self.steps:
            if step.way_points is None:
                continue
            for idx in step.way_points:
                if not 0 <= idx < len(self.geometry):
                    raise MalformedRouteError(
                        f"Way-point index {idx} outside geometry of {len(self.geometry)} points."
                    )
                if idx < last_index:
                    raise MalformedRouteError("Way-point indices must be non-decreasing.")
                last_index = idx

    # ------------------------------------------------------------------
    # Read-only helpers
    # ------------------------------------------------------------------

    @property
    def origin(self) -> GeometryPoint:
        return self.geometry[0]

    @property
    def destination(self) -> GeometryPoint:
        return self.geometry[-1]

    @property
    def steps(self) -> List[Step]:
        return [step for segment in self.segments for step in segment.steps]

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "geometry": {
                "type": "LineString",
                "coordinates": [list(p.as_tuple()) for p in self.geometry],
            },
            "segments": [s.to_dict() for s in self.segments],
            "distance": self.distance_meters,
            "duration": self.duration_millis,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "RouteModel":
        coords: Iterable = d["geometry"]["coordinates"]
        return RouteModel(
            geometry=tuple(GeometryPoint(lng=float(c[0]), lat=float(c[1])) for c in coords),
            segments=tuple(Segment.from_dict(s) for s in d["segments"]),
            distance_meters=d["distance"],
            duration_millis=d["duration"],
        )


# ---------------------------------------------------------------------------
# Monitor output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RerouteRequest:
    """Emitted by DeviationMonitor when the user drifts off the active route."""
    origin: GeoPoint
    destination: GeoPoint
    mode: TravelMode


@dataclass
class DeviationResult:
    """Returned by DeviationMonitor.update() on every position fix."""
    state: MonitorState
    distance_m: Optional[float] = None          # metres from the route, None when idle
    reroute: Optional[RerouteRequest] = None


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GeocodeHit:
    point: GeoPoint
    label: str = field(default="")
