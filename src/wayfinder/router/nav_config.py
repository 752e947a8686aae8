# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv


# ---------------------------------------------------------------------------
# Provider endpoints
# ---------------------------------------------------------------------------

GRAPHHOPPER_BASE_URL: str = "https://graphhopper.com/api/1"
OVERPASS_URL: str = "https://overpass-api.de/api/interpreter"

USER_AGENT: str = "wayfinder/0.1"


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Providers
    graphhopper_api_key: str = ""
    graphhopper_base_url: str = GRAPHHOPPER_BASE_URL
    overpass_url: str = OVERPASS_URL
    user_agent: str = USER_AGENT
    request_timeout_s: float = 15.0        # directions + geocoding

    # Deviation tracking
    deviation_threshold_m: float = 80.0    # strictly beyond this → off-route
    reroute_cooldown_s: float = 0.0        # 0 disables; every qualifying fix reroutes

    # POI sampling
    max_samples: int = 15
    nearby_limit: int = 30
    route_limit: int = 50
    nearby_timeout_s: float = 15.0
    route_timeout_s: float = 25.0
    default_poi_radius_m: float = 1500.0

    # Persistence
    data_dir: str = "."                    # directory for the cached route
    route_filename: str = "last_route.json"

    @property
    def route_filepath(self) -> str:
        return os.path.join(self.data_dir, self.route_filename)

    @classmethod
    def from_env(cls) -> "NavConfig":
        """Build a config from the process environment (and a .env file if present)."""
        load_dotenv(find_dotenv(usecwd=True))
        defaults = cls()
        return cls(
            graphhopper_api_key=os.getenv("GRAPHHOPPER_API_KEY", ""),
            graphhopper_base_url=os.getenv("GRAPHHOPPER_BASE_URL", defaults.graphhopper_base_url),
            overpass_url=os.getenv("OVERPASS_URL", defaults.overpass_url),
            request_timeout_s=float(
                os.getenv("WAYFINDER_REQUEST_TIMEOUT_S", defaults.request_timeout_s)
            ),
            deviation_threshold_m=float(
                os.getenv("WAYFINDER_DEVIATION_M", defaults.deviation_threshold_m)
            ),
            reroute_cooldown_s=float(
                os.getenv("WAYFINDER_REROUTE_COOLDOWN_S", defaults.reroute_cooldown_s)
            ),
            data_dir=os.getenv("WAYFINDER_DATA_DIR", defaults.data_dir),
        )
