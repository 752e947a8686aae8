# errors.py
# Exception hierarchy shared by the router and the POI backend.
# Contract failures also subclass ValueError so callers can treat them as bad input.

from typing import Optional


class WayfinderError(Exception):
    """Base class for every error raised by this package."""

    default_user_message = "Something went wrong."

    def __init__(self, message: str, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


# ---------------------------------------------------------------------------
# Contract failures (reject the call, never recover)
# ---------------------------------------------------------------------------

class MalformedRouteError(WayfinderError, ValueError):
    default_user_message = "The routing service returned an unreadable route."


class EmptyPolylineError(WayfinderError, ValueError):
    default_user_message = "A route needs at least two points."


class InvalidRadiusError(WayfinderError, ValueError):
    default_user_message = "Search radius must be positive."


class InvalidFilterError(WayfinderError, ValueError):
    default_user_message = "Unsupported place type."


# ---------------------------------------------------------------------------
# Operational failures (surfaced to the user, session keeps its route)
# ---------------------------------------------------------------------------

class ProviderError(WayfinderError):
    default_user_message = "Network error occurred."


class NoRouteFoundError(ProviderError):
    default_user_message = "No route could be calculated for the given locations."


class DestinationNotFoundError(ProviderError):
    default_user_message = (
        "The destination address could not be found. Please try a different location."
    )


class ProviderTimeoutError(ProviderError):
    default_user_message = "The routing service took too long to answer."


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StorageReadError(WayfinderError):
    """Cached route is missing or unreadable. Always treated as absent."""

    default_user_message = "Saved route could not be read."
