# navigator.py
# Public entry point for the navigation system.
# Owns session state only; routing, decoding, deviation and storage live in specialist modules.

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from .errors import DestinationNotFoundError, MalformedRouteError, NoRouteFoundError, ProviderError
from .models import (
    DeviationResult,
    GeocodeHit,
    GeoPoint,
    RerouteRequest,
    RouteModel,
    TravelMode,
    to_geo_point,
)
from .nav_config import NavConfig
from .nav_logger import RouteStore
from .provider_adapter import to_route_model
from .route_tracker import DeviationMonitor

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class DirectionsProvider(Protocol):
    async def route(
        self,
        coordinates: Sequence[GeoPoint],
        mode: TravelMode,
        avoid: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]: ...


class Geocoder(Protocol):
    async def search(self, text: str, limit: int = 1) -> List[GeocodeHit]: ...


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class NavigationSession:
    """
    High-level navigation facade.

    Typical lifecycle:
        session = NavigationSession(GraphHopperClient(config), geocoder=client,
                                    store=RouteStore.on_disk(config))
        session.restore_last_route()
        await session.route_to(GeoPoint(9.03, 38.7578), "Meskel Square")

        # GPS loop (inside the event loop):
        result = session.on_live_position(GeoPoint(lat, lng))

    Every route request gets a sequence number; a response is applied only if
    no newer request was issued while it was in flight.

    Args:
        directions: Awaitable directions collaborator (``route``).
        geocoder:   Awaitable geocoding collaborator (``search``); only needed by route_to().
        store:      Optional RouteStore for the last-route cache.
        config:     Optional NavConfig; defaults to NavConfig().
        notify:     Called with a user-facing message when a background reroute fails.
        monitor:    Optional DeviationMonitor override.
    """

    def __init__(
        self,
        directions: DirectionsProvider,
        geocoder: Optional[Geocoder] = None,
        store: Optional[RouteStore] = None,
        config: Optional[NavConfig] = None,
        notify: Optional[Callable[[str], None]] = None,
        monitor: Optional[DeviationMonitor] = None,
    ) -> None:
        self.config = config or NavConfig()
        self._directions = directions
        self._geocoder = geocoder
        self._store = store
        self._notify = notify or self._log_notice
        self._monitor = monitor or DeviationMonitor(self.config)

        self._active_route: Optional[RouteModel] = None
        self._origin: Optional[GeoPoint] = None
        self._destination: Optional[GeoPoint] = None
        self._travel_mode: TravelMode = TravelMode.CAR
        self._avoid: Tuple[str, ...] = ()

        self._request_seq: int = 0
        self._pending: Set["asyncio.Task[None]"] = set()

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def active_route(self) -> Optional[RouteModel]:
        return self._active_route

    @property
    def origin(self) -> Optional[GeoPoint]:
        return self._origin

    @property
    def destination(self) -> Optional[GeoPoint]:
        return self._destination

    @property
    def travel_mode(self) -> TravelMode:
        return self._travel_mode

    @travel_mode.setter
    def travel_mode(self, mode: TravelMode) -> None:
        """Default mode for the next request; the active route is left alone."""
        self._travel_mode = mode

    @property
    def request_seq(self) -> int:
        return self._request_seq

    @property
    def monitor(self) -> DeviationMonitor:
        return self._monitor

    # ------------------------------------------------------------------
    # Route requests
    # ------------------------------------------------------------------

    async def request_route(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        mode: Optional[TravelMode] = None,
        waypoints: Optional[Sequence[GeoPoint]] = None,
        avoid: Optional[Iterable[str]] = None,
    ) -> Optional[RouteModel]:
        """
        Fetch a route and make it the active route.

        Args:
            origin:      Start (lat, lng); never geocoded.
            destination: End (lat, lng).
            mode:        Travel mode; defaults to the session's current mode.
            waypoints:   Optional intermediate stops, in order.
            avoid:       Optional avoid tags ("toll", "ferry", "motorway").

        Returns:
            The applied RouteModel, or None if a newer request superseded
            this one before its response (or its failure) arrived.

        Raises:
            NoRouteFoundError, ProviderTimeoutError, ProviderError,
            MalformedRouteError: the active route is left untouched.
        """
        mode = mode or self._travel_mode
        avoid_tags = tuple(avoid) if avoid is not None else self._avoid

        self._request_seq += 1
        seq = self._request_seq
        coordinates = [origin, *(waypoints or ()), destination]
        logger.info(f"Route request #{seq}: {origin} → {destination} ({mode.value}, {len(coordinates)} points)")

        try:
            response = await self._directions.route(coordinates, mode, list(avoid_tags) or None)
            route = self._first_path(response, seq)
        except (ProviderError, MalformedRouteError) as e:
            if seq != self._request_seq:
                logger.debug(f"Discarding stale failure #{seq}: {e}")
                return None
            raise

        if seq != self._request_seq:
            logger.debug(f"Discarding stale response #{seq}; latest request is #{self._request_seq}.")
            return None

        self._apply(route, origin, destination, mode, avoid_tags)
        return route

    @staticmethod
    def _first_path(response: Any, seq: int) -> RouteModel:
        paths = response.get("paths") if isinstance(response, dict) else None
        if paths is not None and not isinstance(paths, list):
            raise MalformedRouteError(f"Route request #{seq}: 'paths' is not a list.")
        if not paths:
            raise NoRouteFoundError(f"Route request #{seq} returned no paths.")
        return to_route_model(paths[0])

    async def route_to(
        self,
        origin: GeoPoint,
        destination_text: str,
        waypoint_texts: Iterable[str] = (),
        mode: Optional[TravelMode] = None,
        avoid: Optional[Iterable[str]] = None,
    ) -> Optional[RouteModel]:
        """
        Geocode a free-text destination (and waypoints) then request a route.

        Blank waypoint texts are ignored; waypoints that cannot be geocoded are
        skipped with a warning.

        Raises:
            DestinationNotFoundError: the destination text has no match.
        """
        if self._geocoder is None:
            raise RuntimeError("route_to() needs a geocoder.")
        text = destination_text.strip()
        if not text:
            raise ValueError("Please enter a destination.")

        hits = await self._geocoder.search(text, 1)
        if not hits:
            raise DestinationNotFoundError(f"Destination not found: {text!r}")
        destination = hits[0].point

        waypoints: List[GeoPoint] = []
        for raw in waypoint_texts:
            wp_text = raw.strip()
            if not wp_text:
                continue
            wp_hits = await self._geocoder.search(wp_text, 1)
            if wp_hits:
                waypoints.append(wp_hits[0].point)
            else:
                logger.warning(f"Waypoint not found, skipping: {wp_text!r}")

        return await self.request_route(origin, destination, mode, waypoints, avoid)

    def _apply(
        self,
        route: RouteModel,
        origin: GeoPoint,
        destination: GeoPoint,
        mode: TravelMode,
        avoid: Tuple[str, ...],
    ) -> None:
        # Whole-object replacement; readers see the old route or the new one.
        self._active_route = route
        self._origin = origin
        self._destination = destination
        self._travel_mode = mode
        self._avoid = avoid
        self._monitor.load_route(route, mode)
        if self._store is not None:
            self._store.save(route)
        first = route.steps[0].instruction if route.steps else "(no instructions)"
        logger.info(f"Route ready — {len(route.steps)} steps, {route.distance_meters:.0f} m. First: {first}")

    # ------------------------------------------------------------------
    # GPS update — call this on every position fix
    # ------------------------------------------------------------------

    def on_live_position(self, position: GeoPoint) -> DeviationResult:
        """
        Process a new position fix.

        Evaluation is synchronous; a reroute, if needed, is scheduled on the
        running event loop and this call returns without waiting for it.

        Args:
            position: Current (lat, lng).

        Returns:
            DeviationResult from the monitor.
        """
        result = self._monitor.update(position)
        if result.reroute is not None:
            self._schedule_reroute(result.reroute)
        return result

    def _schedule_reroute(self, request: RerouteRequest) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._reroute(request))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _reroute(self, request: RerouteRequest) -> None:
        try:
            await self.request_route(request.origin, request.destination, request.mode)
        except (ProviderError, MalformedRouteError) as e:
            logger.warning(f"Reroute failed, keeping current route: {e}")
            self._notify(e.user_message)

    async def wait_idle(self) -> None:
        """Wait until every scheduled reroute has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def restore_last_route(self) -> Optional[RouteModel]:
        """
        Re-activate the cached route, if any.

        Returns:
            The restored RouteModel, or None when nothing usable was cached.
        """
        if self._store is None:
            return None
        route = self._store.load()
        if route is None:
            return None

        self._active_route = route
        self._origin = to_geo_point(route.origin)
        self._destination = to_geo_point(route.destination)
        self._monitor.load_route(route, self._travel_mode)
        return route

    def clear_route(self) -> None:
        """Forget the active route. Responses still in flight are discarded."""
        self._request_seq += 1
        self._active_route = None
        self._monitor.stop()
        logger.info("Navigation cleared by user.")

    @staticmethod
    def _log_notice(message: str) -> None:
        logger.warning(f"[Nav] {message}")
