"""routecalc - build a walking route by clicking on a map and measure its distance."""

from .config import CONFIG
from .models import Point, Waypoint, PathStep, PathLeg, Path, RouteRequest, RouteResult
from .logger import Logger
from .geo import (
    haversine_distance,
    distance,
    format_distance,
    same_location,
    bearing_between,
    bearing_to_compass,
    relative_direction,
)
from .errors import RouteError, RouteNotFound, ServiceUnavailable
from .route_state import RouteState
from .osm import OSMFetcher
from .graph import StreetGraph
from .routing import RoutingClient, OSRMClient, GraphRoutingClient
from .controller import RouteController
from .map_server import MapSurface, MapServer

__all__ = [
    "CONFIG",
    "Point",
    "Waypoint",
    "PathStep",
    "PathLeg",
    "Path",
    "RouteRequest",
    "RouteResult",
    "Logger",
    "haversine_distance",
    "distance",
    "format_distance",
    "same_location",
    "bearing_between",
    "bearing_to_compass",
    "relative_direction",
    "RouteError",
    "RouteNotFound",
    "ServiceUnavailable",
    "RouteState",
    "OSMFetcher",
    "StreetGraph",
    "RoutingClient",
    "OSRMClient",
    "GraphRoutingClient",
    "RouteController",
    "MapSurface",
    "MapServer",
]
