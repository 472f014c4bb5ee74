"""Routing clients: adapters from an ordered list of points to a walking path.

Two back ends are provided:

- OSRMClient talks to an OSRM server over HTTP.
- GraphRoutingClient routes locally over OpenStreetMap ways fetched from
  Overpass.

Both visit every intermediate point in order (stopovers) and report failures
as RouteResult.failure() rather than raising.
"""

import threading
from typing import Optional, Sequence

import networkx as nx
import requests

from .config import CONFIG
from .errors import RouteError, RouteNotFound, ServiceUnavailable
from .geo import bearing_to_compass, bounding_circle, distance
from .graph import StreetGraph
from .models import Path, PathLeg, PathStep, Point, RouteResult
from .osm import OSMFetcher

__all__ = [
    "RouteError",
    "RouteNotFound",
    "ServiceUnavailable",
    "RoutingClient",
    "OSRMClient",
    "GraphRoutingClient",
]


class RoutingClient:
    """Base class for walking directions providers"""

    name = "base"

    def route(self, origin: Point, destination: Point,
              intermediate: Sequence[Point] = ()) -> RouteResult:
        """Walking path from origin through each intermediate point to destination"""
        points = [origin, *intermediate, destination]
        try:
            path = self._fetch_path(points)
        except RouteError as e:
            return RouteResult.failure(e)
        return RouteResult.success(path)

    def _fetch_path(self, points: list[Point]) -> Path:
        """Return a path visiting points in order, or raise a RouteError"""
        raise NotImplementedError


class OSRMClient(RoutingClient):
    """OSRM /route adapter.

    Converts internal (lat, lon) points to OSRM's lon,lat pairs and
    normalizes the response into a Path.
    """

    name = "osrm"

    NO_ROUTE_CODES = {"NoRoute", "NoSegment"}

    def __init__(self, base_url: Optional[str] = None, profile: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or CONFIG["osrm_base_url"] or "").rstrip("/")
        self.profile = profile or CONFIG["osrm_profile"]
        self.timeout = timeout if timeout is not None else CONFIG["request_timeout"]

        if not self.base_url:
            raise ValueError("OSRM base URL not set")

    @staticmethod
    def format_coordinates(points: list[Point]) -> str:
        """Convert points to OSRM format 'lon,lat;lon,lat;...'"""
        return ";".join(f"{p.lon},{p.lat}" for p in points)

    def _fetch_path(self, points: list[Point]) -> Path:
        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(points)}"
        try:
            response = requests.get(
                url,
                params={
                    "overview": "full",
                    "geometries": "geojson",
                    "steps": "true",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ServiceUnavailable(f"OSRM request failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise ServiceUnavailable(f"OSRM returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceUnavailable("OSRM returned an invalid response") from e
        if not isinstance(data, dict):
            raise ServiceUnavailable("OSRM returned an invalid response")

        code = data.get("code")
        if code in self.NO_ROUTE_CODES:
            raise RouteNotFound(data.get("message") or "No walking route found")
        if code != "Ok" or not data.get("routes"):
            raise ServiceUnavailable(f"OSRM error: {data.get('message', code or 'Unknown error')}")

        # take the first route (OSRM may return alternatives)
        try:
            route = data["routes"][0]
            legs = [self._parse_leg(leg) for leg in route["legs"]]
        except (KeyError, TypeError, IndexError, ValueError, AttributeError) as e:
            raise ServiceUnavailable("OSRM returned a malformed route") from e
        return Path(legs=legs, provider=self.name)

    def _parse_leg(self, leg: dict) -> PathLeg:
        coordinates: list[Point] = []
        steps = []
        for step in leg.get("steps", []):
            for coord in step["geometry"]["coordinates"]:
                # OSRM may append elevation after lon,lat
                lon, lat = coord[:2]
                point = Point(lat=lat, lon=lon)
                if coordinates and coordinates[-1] == point:
                    continue
                coordinates.append(point)
            lon, lat = step["maneuver"]["location"][:2]
            steps.append(PathStep(
                instruction=self._step_instruction(step),
                distance=step.get("distance", 0.0),
                location=Point(lat=lat, lon=lon),
            ))
        return PathLeg(
            coordinates=coordinates,
            distance=leg["distance"],
            duration=leg["duration"],
            steps=steps,
        )

    @staticmethod
    def _step_instruction(step: dict) -> str:
        maneuver = step["maneuver"]
        maneuver_type = maneuver.get("type", "continue")
        name = step.get("name")

        if maneuver_type == "depart":
            text = f"head {bearing_to_compass(maneuver.get('bearing_after', 0))}"
            return f"{text} on {name}" if name else text
        if maneuver_type == "arrive":
            return "arrive"

        text = maneuver.get("modifier") or maneuver_type
        return f"{text} onto {name}" if name else text


class GraphRoutingClient(RoutingClient):
    """Routes over a local street graph built from OpenStreetMap ways.

    The graph is fetched for a circle covering all requested points and
    reused while later requests stay inside it.
    """

    name = "graph"

    def __init__(self, fetcher: Optional[OSMFetcher] = None):
        self.fetcher = fetcher or OSMFetcher()
        self.graph: Optional[StreetGraph] = None
        self._coverage: Optional[tuple[Point, float]] = None
        self._lock = threading.Lock()

    def _graph_for(self, points: list[Point]) -> StreetGraph:
        center, radius = bounding_circle(points)
        radius = max(radius + CONFIG["osm_fetch_margin"], CONFIG["osm_min_fetch_radius"])

        with self._lock:
            if self.graph is not None and self._coverage is not None:
                covered_center, covered_radius = self._coverage
                if covered_radius >= distance(center, covered_center) + radius:
                    return self.graph

            osm_data = self.fetcher.fetch_streets(center.lat, center.lon, radius)
            graph = StreetGraph()
            graph.build_from_osm(osm_data)
            if not graph.nodes:
                raise ServiceUnavailable("No walkable streets found near the route")

            self.graph = graph
            self._coverage = (center, radius)
            return graph

    def _fetch_path(self, points: list[Point]) -> Path:
        graph = self._graph_for(points)
        nodes = [graph.find_nearest_node(p.lat, p.lon) for p in points]

        legs = []
        for source, target in zip(nodes, nodes[1:]):
            try:
                node_path = graph.shortest_path(source, target)
            except nx.NetworkXNoPath as e:
                raise RouteNotFound("No walking route between waypoints") from e

            length = graph.path_length(node_path)
            legs.append(PathLeg(
                coordinates=[graph.node_point(n) for n in node_path],
                distance=length,
                duration=length / CONFIG["walking_speed"],
                steps=graph.path_steps(node_path),
            ))
        return Path(legs=legs, provider=self.name)
