# route_tracker.py
# State machine that compares a live position stream against the active route.
# Call load_route() whenever the route changes, then update() on every GPS fix.

import logging
import time
from typing import Callable, Optional, Protocol

from .geo_utils import distance_to_polyline_meters
from .models import (
    DeviationResult,
    GeoPoint,
    MonitorState,
    RerouteRequest,
    RouteModel,
    TravelMode,
    to_geo_point,
)
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reroute policies
# ---------------------------------------------------------------------------

class ReroutePolicy(Protocol):
    """Decides whether a detected deviation may emit a reroute request."""

    def allow(self, now: float) -> bool: ...

    def record(self, now: float) -> None: ...


class AlwaysReroute:
    """Edge-triggered: every off-route fix emits a reroute."""

    def allow(self, now: float) -> bool:
        return True

    def record(self, now: float) -> None:
        pass


class CooldownReroute:
    """At most one reroute per ``seconds`` window."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._last: Optional[float] = None

    def allow(self, now: float) -> bool:
        return self._last is None or now - self._last >= self.seconds

    def record(self, now: float) -> None:
        self._last = now


def policy_from_config(config: NavConfig) -> ReroutePolicy:
    if config.reroute_cooldown_s > 0:
        return CooldownReroute(config.reroute_cooldown_s)
    return AlwaysReroute()


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------

class DeviationMonitor:
    """
    Off-route detector for a single navigation session.

    Usage:
        monitor = DeviationMonitor(config)
        monitor.load_route(route, TravelMode.CAR)

        # Inside GPS loop:
        result = monitor.update(current_position)
        if result.reroute:
            ...
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        policy: Optional[ReroutePolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or NavConfig()
        self.policy = policy or policy_from_config(self.config)
        self._clock = clock
        self._route: Optional[RouteModel] = None
        self._mode: TravelMode = TravelMode.CAR
        self._state: MonitorState = MonitorState.ON_ROUTE
        self._last_position: Optional[GeoPoint] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load_route(self, route: RouteModel, mode: TravelMode) -> None:
        """Track a new route. The last known position is kept."""
        self._route = route
        self._mode = mode
        self._state = MonitorState.ON_ROUTE

    def stop(self) -> None:
        """Forget the route; the monitor goes idle."""
        self._route = None
        self._state = MonitorState.ON_ROUTE

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._route is not None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def route(self) -> Optional[RouteModel]:
        return self._route

    @property
    def last_position(self) -> Optional[GeoPoint]:
        return self._last_position

    # ------------------------------------------------------------------
    # Core method — call on every GPS update
    # ------------------------------------------------------------------

    def update(self, position: GeoPoint) -> DeviationResult:
        """
        Compare the current position to the active route.

        Args:
            position: Current (lat, lng) fix.

        Returns:
            DeviationResult; ``reroute`` is set on exactly the fixes that
            crossed the deviation threshold and were allowed by the policy.
        """
        self._last_position = position

        if self._route is None:
            return DeviationResult(state=self._state)

        distance = distance_to_polyline_meters(position, self._route.geometry)
        if distance <= self.config.deviation_threshold_m:
            return DeviationResult(state=MonitorState.ON_ROUTE, distance_m=distance)

        # ON_ROUTE -> OFF_ROUTE, emit, then straight back to ON_ROUTE
        self._state = MonitorState.OFF_ROUTE
        now = self._clock()
        reroute: Optional[RerouteRequest] = None
        if self.policy.allow(now):
            self.policy.record(now)
            reroute = RerouteRequest(
                origin=position,
                destination=to_geo_point(self._route.destination),
                mode=self._mode,
            )
            logger.info(f"Off route by {distance:.1f} m at {position}; reroute requested.")
        else:
            logger.debug(f"Off route by {distance:.1f} m; reroute suppressed by policy.")

        self._state = MonitorState.ON_ROUTE
        return DeviationResult(state=MonitorState.OFF_ROUTE, distance_m=distance, reroute=reroute)
