"""Unit tests for the route controller state machine."""

import asyncio

import pytest

from routecalc.controller import BUILDING, IDLE, RouteController
from routecalc.errors import RouteError, RouteNotFound, ServiceUnavailable
from routecalc.logger import Logger
from routecalc.routing import RoutingClient
from routecalc.geo import distance
from routecalc.models import RouteResult


@pytest.fixture
def controller(client, surface, quiet_logger):
    return RouteController(client, surface, logger=quiet_logger)


class TestClick:
    def test_first_click_issues_no_request(self, controller, surface, points):
        request = controller.click(points[0])
        assert request is None
        assert controller.status == IDLE
        assert not controller.pending
        assert "clear_path" not in surface.calls
        assert [w.location for w in surface.waypoints] == [points[0]]
        assert surface.distance == 0

    def test_second_click_clears_path_and_requests(self, controller, surface, points):
        controller.click(points[0])
        request = controller.click(points[1])

        assert request is not None
        assert request.origin == points[0]
        assert request.destination == points[1]
        assert request.intermediate == (points[0],)
        assert request.waypoint_count == 2
        assert controller.status == BUILDING
        assert controller.pending
        assert "clear_path" in surface.calls

    def test_three_clicks(self, controller, surface, points):
        a, b, c = points
        controller.click(a)
        controller.click(b)
        request = controller.click(c)

        assert controller.state.points() == [a, b, c]
        assert request.origin == b
        assert request.destination == c
        assert request.intermediate == (a, b)
        expected = distance(a, b) + distance(b, c)
        assert controller.state.total_distance() == pytest.approx(expected)
        assert surface.distance == controller.state.distance_label()

    def test_request_ids_increase(self, controller, points):
        controller.click(points[0])
        first = controller.click(points[1])
        second = controller.click(points[2])
        assert second.request_id > first.request_id
        assert controller.in_flight == second

    def test_path_cleared_before_new_request(self, controller, surface, points, ok_result):
        controller.click(points[0])
        request = controller.click(points[1])
        controller.complete(request, ok_result)
        assert surface.path is not None

        controller.click(points[2])
        assert surface.path is None
        assert controller.path is None


class TestResponses:
    def test_success_draws_path(self, controller, surface, points, ok_result):
        controller.click(points[0])
        request = controller.click(points[1])

        assert controller.complete(request, ok_result) is True
        assert surface.path is ok_result.path
        assert controller.path is ok_result.path
        assert not controller.pending

    def test_failure_leaves_path_cleared_and_waypoints_untouched(self, controller, surface, points):
        controller.click(points[0])
        request = controller.click(points[1])
        distance_before = controller.state.total_distance()

        result = RouteResult.failure(ServiceUnavailable("down"))
        assert controller.complete(request, result) is True

        assert surface.path is None
        assert "draw_path" not in surface.calls
        assert controller.state.points() == [points[0], points[1]]
        assert controller.state.total_distance() == distance_before
        assert not controller.pending

    def test_stale_response_is_discarded(self, controller, surface, points, ok_result):
        controller.click(points[0])
        old = controller.click(points[1])
        new = controller.click(points[2])

        assert controller.complete(old, ok_result) is False
        assert surface.path is None
        assert controller.in_flight == new

        assert controller.complete(new, ok_result) is True
        assert surface.path is ok_result.path

    def test_stale_response_after_newer_one_settled(self, controller, surface, points, ok_result):
        controller.click(points[0])
        old = controller.click(points[1])
        new = controller.click(points[2])
        controller.complete(new, ok_result)
        drawn = surface.path

        controller.complete(old, RouteResult.success(ok_result.path))
        assert surface.path is drawn
        assert surface.calls.count("draw_path") == 1

    def test_duplicate_response_is_ignored(self, controller, surface, points, ok_result):
        controller.click(points[0])
        request = controller.click(points[1])
        controller.complete(request, ok_result)
        assert controller.complete(request, ok_result) is False
        assert surface.calls.count("draw_path") == 1


class TestUndo:
    def test_undo_on_empty_is_noop(self, controller, surface):
        assert controller.undo() is None
        assert surface.calls == []
        assert controller.status == IDLE

    def test_undo_from_three_requests_remaining_route(self, controller, surface, points, ok_result):
        a, b, c = points
        controller.click(a)
        controller.click(b)
        request = controller.click(c)
        controller.complete(request, ok_result)

        request = controller.undo()

        assert controller.state.points() == [a, b]
        assert request.origin == a
        assert request.destination == b
        assert request.intermediate == (a,)
        assert surface.path is None
        assert controller.pending
        assert controller.state.total_distance() == pytest.approx(distance(a, b))

    def test_undo_to_one_waypoint(self, controller, surface, points, ok_result):
        a, b, _ = points
        controller.click(a)
        request = controller.click(b)
        controller.complete(request, ok_result)

        assert controller.undo() is None

        assert controller.state.points() == [a]
        assert surface.path is None
        assert surface.distance == 0
        assert controller.status == IDLE
        assert not controller.pending
        assert "remove_overlay" not in surface.calls

    def test_undo_to_empty_removes_overlay(self, controller, surface, points):
        controller.click(points[0])
        controller.undo()

        assert len(controller.state) == 0
        assert "remove_overlay" in surface.calls
        assert surface.waypoints == []
        assert surface.distance == 0

    def test_response_after_undo_below_two_is_stale(self, controller, surface, points, ok_result):
        controller.click(points[0])
        request = controller.click(points[1])
        controller.undo()

        assert controller.complete(request, ok_result) is False
        assert surface.path is None

    def test_click_undo_round_trip_restores_distance(self, controller, points):
        controller.click(points[0])
        controller.click(points[1])
        before = controller.state.total_distance()
        controller.click(points[2])
        controller.undo()
        assert controller.state.total_distance() == before


class TestDispatch:
    def test_dispatch_draws_path(self, client, surface, quiet_logger, points):
        controller = RouteController(client, surface, logger=quiet_logger)

        async def scenario():
            controller.handle_click(points[0])
            task = controller.handle_click(points[1])
            return await task

        result = asyncio.run(scenario())

        assert result.ok
        assert surface.path is result.path
        assert client.requests == [[points[0], points[0], points[1]]]

    def test_dispatch_failure_is_swallowed(self, failing_client, surface, quiet_logger, points):
        controller = RouteController(failing_client, surface, logger=quiet_logger)

        async def scenario():
            controller.handle_click(points[0])
            return await controller.handle_click(points[1])

        result = asyncio.run(scenario())

        assert not result.ok
        assert isinstance(result.error, RouteNotFound)
        assert surface.path is None
        assert not controller.pending
        assert len(controller.state) == 2

    def test_superseded_task_is_cancelled(self, client, surface, quiet_logger, points):
        controller = RouteController(client, surface, logger=quiet_logger)

        async def scenario():
            controller.handle_click(points[0])
            first = controller.handle_click(points[1])
            second = controller.handle_click(points[2])
            result = await second
            await asyncio.gather(first, return_exceptions=True)
            return first, result

        first, result = asyncio.run(scenario())

        assert first.cancelled()
        assert surface.path is result.path
        assert surface.calls.count("draw_path") == 1

    def test_unexpected_client_error_settles_request(self, surface, quiet_logger, points):
        class CrashingClient(RoutingClient):
            def route(self, origin, destination, intermediate=()):
                raise RuntimeError("boom")

        controller = RouteController(CrashingClient(), surface, logger=quiet_logger)

        async def scenario():
            controller.handle_click(points[0])
            return await controller.handle_click(points[1])

        result = asyncio.run(scenario())

        assert not result.ok
        assert isinstance(result.error, RouteError)
        assert not controller.pending
        assert controller.snapshot()["pending"] is False
        assert surface.path is None
        assert len(controller.state) == 2

    def test_unexpected_error_for_superseded_request_is_discarded(self, surface, quiet_logger, points,
                                                                   ok_result):
        class CrashingClient(RoutingClient):
            def route(self, origin, destination, intermediate=()):
                raise RuntimeError("boom")

        controller = RouteController(CrashingClient(), surface, logger=quiet_logger)
        controller.click(points[0])
        old = controller.click(points[1])
        new = controller.click(points[2])

        asyncio.run(controller.dispatch(old))

        assert controller.in_flight == new
        assert controller.complete(new, ok_result) is True

    def test_first_click_schedules_nothing(self, controller, points):
        async def scenario():
            return controller.handle_click(points[0])

        assert asyncio.run(scenario()) is None

    def test_close_cancels_pending(self, client, surface, quiet_logger, points):
        controller = RouteController(client, surface, logger=quiet_logger)

        async def scenario():
            controller.handle_click(points[0])
            task = controller.handle_click(points[1])
            controller.close()
            await asyncio.gather(task, return_exceptions=True)
            return task

        task = asyncio.run(scenario())
        assert task.cancelled()
        assert not controller.pending
        assert surface.path is None


class TestSnapshot:
    def test_snapshot(self, controller, points, ok_result):
        controller.click(points[0])
        request = controller.click(points[1])
        controller.complete(request, ok_result)

        snap = controller.snapshot()
        assert snap["status"] == BUILDING
        assert snap["pending"] is False
        assert len(snap["waypoints"]) == 2
        assert snap["distance"] == controller.state.distance_label()
        assert snap["path"]["provider"] == "fake"


class TestLogging:
    def test_issued_request_is_logged_in_full(self, client, surface, points):
        entries = []
        logger = Logger(callback=lambda m, d: entries.append((m, d)), echo=False)
        controller = RouteController(client, surface, logger=logger)

        controller.click(points[0])
        request = controller.click(points[1])

        assert ("Route requested", request.to_dict()) in entries
        logged = dict(entries)["Route requested"]
        assert logged["origin"] == points[0].to_dict()
        assert logged["destination"] == points[1].to_dict()
        assert logged["intermediate"] == [points[0].to_dict()]
