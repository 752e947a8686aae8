"""Turn-by-turn navigation with off-route detection and POI discovery."""

__version__ = "0.1.0"
