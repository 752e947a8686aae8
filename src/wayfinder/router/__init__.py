# Client-side navigation core: route model, provider adapter, deviation monitor, session.

from .errors import (
    DestinationNotFoundError,
    EmptyPolylineError,
    InvalidFilterError,
    InvalidRadiusError,
    MalformedRouteError,
    NoRouteFoundError,
    ProviderError,
    ProviderTimeoutError,
    StorageReadError,
    WayfinderError,
)
from .models import (
    DeviationResult,
    GeocodeHit,
    GeometryPoint,
    GeoPoint,
    MonitorState,
    RerouteRequest,
    RouteModel,
    Segment,
    Step,
    TravelMode,
    to_geo_point,
    to_geometry_point,
)
from .nav_config import NavConfig
from .navigator import NavigationSession
