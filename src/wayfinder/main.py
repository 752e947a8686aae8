# main.py
# Entry point. Simulates a GPS loop feeding positions into a NavigationSession.
# In production, replace the simulated track with a real position source.
#
# Usage:
#   wayfinder-demo "Meskel Square, Addis Ababa"
#   python -m wayfinder.main "Meskel Square, Addis Ababa" --mode foot --poi cafe,atm

import argparse
import asyncio
import logging
import os

from .poi.poi_finder import PoiFinder
from .poi.poi_sampler import parse_type_filters
from .router.errors import WayfinderError
from .router.graphhopper_client import GraphHopperClient
from .router.models import GeoPoint, MonitorState, TravelMode, to_geo_point
from .router.nav_config import NavConfig
from .router.nav_logger import RouteStore
from .router.navigator import NavigationSession

DEFAULT_ORIGIN = GeoPoint(9.03, 38.7578)

# Fixes after the route starts: two on the route, one ~150 m off it, one back on.
OFF_ROUTE_OFFSET_DEG = 0.00135


def _configure_logging() -> None:
    # Configure once here, all modules inherit
    logging.basicConfig(
        level=os.getenv("WAYFINDER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Route to a destination and replay a GPS track.")
    parser.add_argument("destination", help="Free-text destination to geocode")
    parser.add_argument("--via", action="append", default=[], help="Waypoint text (repeatable)")
    parser.add_argument("--mode", choices=[m.value for m in TravelMode], default="car")
    parser.add_argument("--avoid", action="append", default=[], choices=["toll", "ferry", "motorway"])
    parser.add_argument("--poi", default="", help="Comma-separated POI types to list along the route")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    try:
        config = NavConfig.from_env()
        client = GraphHopperClient(config)
    except ValueError as e:
        print(f"[Main] Config error: {e}")
        return 2
    session = NavigationSession(
        client,
        geocoder=client,
        store=RouteStore.on_disk(config),
        config=config,
        notify=lambda msg: print(f"  !  {msg}"),
    )

    # 1. Restore whatever we were navigating last time
    restored = session.restore_last_route()
    if restored:
        print(f"[Main] Restored last route ({len(restored.geometry)} points).")

    # 2. Request a route
    try:
        route = await session.route_to(
            DEFAULT_ORIGIN, args.destination, args.via, TravelMode(args.mode), args.avoid
        )
    except WayfinderError as e:
        print(f"[Main] Could not start navigation: {e.user_message}")
        return 1
    if route is None:
        return 1

    for i, step in enumerate(route.steps, start=1):
        print(f"  {i:2d}. {step.instruction}")

    # 3. Optional POI listing along the route
    if args.poi:
        finder = PoiFinder(config=config)
        try:
            pois = await asyncio.to_thread(
                finder.find_along_route,
                [to_geo_point(p) for p in route.geometry], 300, parse_type_filters(args.poi),
            )
        except WayfinderError as e:
            print(f"[Main] POI lookup failed: {e.user_message}")
        else:
            for poi in pois[:10]:
                print(f"  *  {poi}")

    # 4. GPS loop — replace with a real position feed in production
    print("\n--- GPS Loop Active ---")
    mid = to_geo_point(route.geometry[len(route.geometry) // 2])
    track = [
        to_geo_point(route.geometry[0]),
        mid,
        GeoPoint(mid.lat + OFF_ROUTE_OFFSET_DEG, mid.lng),
        mid,
    ]
    for position in track:
        result = session.on_live_position(position)
        print(f"  GPS {position.as_tuple()} → [{result.state.name}] {result.distance_m or 0:.1f} m from route")
        if result.state == MonitorState.OFF_ROUTE:
            print("  ⚠  Off-route detected — rerouting.")
        await session.wait_idle()
        # Simulate GPS poll interval (remove in real use)
        await asyncio.sleep(0.05)

    print("\n--- Session complete ---")
    print(f"    Last route cached at: {config.route_filepath}")
    return 0


def main(argv=None) -> int:
    _configure_logging()
    return asyncio.run(run(_parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
