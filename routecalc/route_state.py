"""Ordered waypoint sequence and its derived distance."""

from typing import Union

from .geo import distance, format_distance
from .models import Point, Waypoint


class RouteState:
    """The route being built: waypoints in click order plus total distance.

    Distance is recomputed from the waypoint geometry after every mutation,
    so it never depends on what a routing service returned.
    """

    def __init__(self):
        self._waypoints: list[Waypoint] = []
        self._total_distance = 0.0

    def __len__(self) -> int:
        return len(self._waypoints)

    def append(self, point: Point):
        """Add a waypoint at the end of the route"""
        self._waypoints.append(Waypoint(location=point, stopover=True))
        self._recompute_distance()

    def remove_last(self) -> bool:
        """Remove the last waypoint. Returns False if the route was empty."""
        if not self._waypoints:
            return False
        self._waypoints.pop()
        self._recompute_distance()
        return True

    def reset(self):
        """Remove every waypoint"""
        self._waypoints.clear()
        self._total_distance = 0.0

    def total_distance(self) -> float:
        """Total route length in meters (0 for fewer than two waypoints)"""
        return self._total_distance

    def distance_label(self) -> Union[str, int]:
        """Distance as shown in the label: 0, or e.g. "1.25 km" """
        if len(self._waypoints) < 2:
            return 0
        return format_distance(self._total_distance)

    def waypoints(self) -> tuple[Waypoint, ...]:
        return tuple(self._waypoints)

    def points(self) -> list[Point]:
        return [w.location for w in self._waypoints]

    def _recompute_distance(self):
        if len(self._waypoints) < 2:
            self._total_distance = 0.0
            return
        total = 0.0
        for i in range(1, len(self._waypoints)):
            total += distance(self._waypoints[i - 1].location, self._waypoints[i].location)
        self._total_distance = total
