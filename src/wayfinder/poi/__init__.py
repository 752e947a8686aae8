# Backend POI discovery: polyline sampling and batched Overpass queries.

from .poi_finder import OverpassClient, PoiFinder, PoiResult
from .poi_sampler import DEFAULT_TYPES, SpatialQuery, build_query
