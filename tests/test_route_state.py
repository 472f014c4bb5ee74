"""Unit tests for the waypoint sequence and its derived distance."""

import pytest

from routecalc.geo import distance, format_distance
from routecalc.models import Point, Waypoint
from routecalc.route_state import RouteState


class TestRouteState:
    def test_starts_empty(self):
        state = RouteState()
        assert len(state) == 0
        assert state.waypoints() == ()
        assert state.total_distance() == 0
        assert state.distance_label() == 0

    def test_single_waypoint_has_zero_distance(self, points):
        state = RouteState()
        state.append(points[0])
        assert state.total_distance() == 0
        assert state.distance_label() == 0

    def test_append_creates_stopover_waypoints_in_order(self, points):
        state = RouteState()
        for p in points:
            state.append(p)
        assert state.waypoints() == tuple(Waypoint(location=p, stopover=True) for p in points)
        assert state.points() == list(points)

    def test_total_is_sum_of_consecutive_distances(self, points):
        state = RouteState()
        for p in points:
            state.append(p)
        expected = distance(points[0], points[1]) + distance(points[1], points[2])
        assert state.total_distance() == pytest.approx(expected)
        assert state.distance_label() == format_distance(expected)

    def test_label_switches_to_km(self):
        state = RouteState()
        state.append(Point(0.0, 0.0))
        state.append(Point(0.0, 0.02))  # ~2.2 km
        assert state.distance_label().endswith(" km")

    def test_duplicate_click_is_zero_length_segment(self, points):
        state = RouteState()
        state.append(points[0])
        state.append(points[0])
        assert len(state) == 2
        assert state.total_distance() == 0
        assert state.distance_label() == "0.00 meters"

    def test_append_then_remove_restores_prior_state(self, points):
        state = RouteState()
        state.append(points[0])
        state.append(points[1])
        before_waypoints = state.waypoints()
        before_distance = state.total_distance()

        state.append(points[2])
        assert state.remove_last() is True

        assert state.waypoints() == before_waypoints
        assert state.total_distance() == before_distance

    def test_remove_last_on_empty_is_noop(self):
        state = RouteState()
        assert state.remove_last() is False
        assert state.waypoints() == ()
        assert state.total_distance() == 0

    def test_remove_down_to_one_resets_distance(self, points):
        state = RouteState()
        state.append(points[0])
        state.append(points[1])
        state.remove_last()
        assert state.total_distance() == 0
        assert state.distance_label() == 0

    def test_reset(self, points):
        state = RouteState()
        for p in points:
            state.append(p)
        state.reset()
        assert len(state) == 0
        assert state.total_distance() == 0

    def test_waypoints_view_is_a_copy(self, points):
        state = RouteState()
        state.append(points[0])
        view = state.waypoints()
        state.append(points[1])
        assert len(view) == 1
