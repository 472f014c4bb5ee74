"""Shared fixtures: fake map surface, fake routing client, sample points."""

import pytest

from routecalc.errors import RouteNotFound
from routecalc.logger import Logger
from routecalc.map_server import MapSurface
from routecalc.models import Path, PathLeg, Point, RouteResult
from routecalc.routing import RoutingClient


class RecordingSurface(MapSurface):
    """Map surface that records every call instead of drawing"""

    def __init__(self):
        self.calls = []
        self.path = None
        self.waypoints = []
        self.distance = 0

    def draw_path(self, path):
        self.calls.append("draw_path")
        self.path = path

    def clear_path(self):
        self.calls.append("clear_path")
        self.path = None

    def remove_overlay(self):
        self.calls.append("remove_overlay")
        self.path = None
        self.waypoints = []

    def show_waypoints(self, waypoints):
        self.calls.append("show_waypoints")
        self.waypoints = list(waypoints)

    def show_distance(self, label):
        self.calls.append("show_distance")
        self.distance = label


class FakeRoutingClient(RoutingClient):
    """Returns a straight-line path through the requested points"""

    name = "fake"

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.requests = []

    def _fetch_path(self, points):
        self.requests.append(points)
        if self.fail_with is not None:
            raise self.fail_with
        legs = [PathLeg(coordinates=[a, b], distance=0.0, duration=0.0)
                for a, b in zip(points, points[1:])]
        return Path(legs=legs, provider=self.name)


def straight_path(*points):
    return Path(legs=[PathLeg(coordinates=list(points), distance=0.0, duration=0.0)], provider="fake")


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def client():
    return FakeRoutingClient()


@pytest.fixture
def failing_client():
    return FakeRoutingClient(fail_with=RouteNotFound("no route"))


@pytest.fixture
def quiet_logger():
    return Logger(echo=False)


@pytest.fixture
def points():
    """Three points a few hundred meters apart in Berkeley"""
    return (
        Point(37.8715, -122.2730),
        Point(37.8735, -122.2700),
        Point(37.8760, -122.2690),
    )


@pytest.fixture
def ok_result(points):
    return RouteResult.success(straight_path(*points))


@pytest.fixture
def grid_osm():
    """Overpass payload for a 2x2 block grid (~110 m sides) at the origin.

        3 --- Top Street --- 4
        |                    |
     West Path          East Path
        |                    |
        1 -- Bottom Street - 2
    """
    return {
        "elements": [
            {"type": "node", "id": 1, "lat": 0.0, "lon": 0.0},
            {"type": "node", "id": 2, "lat": 0.0, "lon": 0.001},
            {"type": "node", "id": 3, "lat": 0.001, "lon": 0.0},
            {"type": "node", "id": 4, "lat": 0.001, "lon": 0.001},
            {"type": "way", "id": 100, "nodes": [1, 2],
             "tags": {"highway": "residential", "name": "Bottom Street"}},
            {"type": "way", "id": 101, "nodes": [3, 4],
             "tags": {"highway": "residential", "name": "Top Street"}},
            {"type": "way", "id": 102, "nodes": [1, 3],
             "tags": {"highway": "primary", "name": "West Path"}},
            {"type": "way", "id": 103, "nodes": [2, 4],
             "tags": {"highway": "footway", "name": "East Path"}},
        ]
    }
