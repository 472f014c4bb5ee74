"""Route controller: turns click/undo events into route state changes and routing requests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

from .errors import RouteError
from .logger import Logger
from .models import Path, Point, RouteRequest, RouteResult
from .route_state import RouteState
from .routing import RoutingClient

if TYPE_CHECKING:
    from .map_server import MapSurface

IDLE = "idle"
BUILDING = "building"


class RouteController:
    """Drives a RouteState and a RoutingClient from map events.

    Every click or undo that changes the route clears the drawn path before a
    new request is issued, so the map never shows a path for a different set
    of waypoints. Only the most recently issued request may draw; responses
    to superseded requests are dropped.

    All methods must be called from the thread running the event loop.
    """

    def __init__(self, client: RoutingClient, surface: "MapSurface",
                 logger: Optional[Logger] = None, state: Optional[RouteState] = None):
        self.client = client
        self.surface = surface
        self.logger = logger or Logger()
        self.state = state or RouteState()
        self.path: Optional[Path] = None

        self._last_request_id = 0
        self._in_flight: Optional[RouteRequest] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def status(self) -> str:
        return BUILDING if len(self.state) >= 2 else IDLE

    @property
    def pending(self) -> bool:
        return self._in_flight is not None

    @property
    def in_flight(self) -> Optional[RouteRequest]:
        return self._in_flight

    # ----------------
    # Events
    # ----------------

    def click(self, point: Point) -> Optional[RouteRequest]:
        """Append a waypoint. Returns the routing request to run, if any."""
        self.state.append(point)
        self.logger.log("Waypoint added", {"lat": point.lat, "lon": point.lon,
                                           "waypoints": len(self.state)})

        request = None
        if len(self.state) >= 2:
            self._clear_path()
            request = self._issue_request()

        self._publish_route()
        return request

    def undo(self) -> Optional[RouteRequest]:
        """Remove the last waypoint. Returns the routing request to run, if any."""
        if not self.state.remove_last():
            self.logger.log("Undo ignored: route is empty")
            return None

        self.logger.log("Waypoint removed", {"waypoints": len(self.state)})
        self._clear_path()

        request = None
        if len(self.state) >= 2:
            request = self._issue_request()
        else:
            # Whatever is still in flight was for a longer route
            self._in_flight = None
            if len(self.state) == 0:
                self.state.reset()
                self.surface.remove_overlay()

        self._publish_route()
        return request

    def complete(self, request: RouteRequest, result: RouteResult) -> bool:
        """Apply a routing response. Returns False if the response was stale."""
        if self._in_flight is None or request.request_id != self._in_flight.request_id:
            self.logger.log("Discarding stale route response", {"request_id": request.request_id})
            return False

        self._in_flight = None
        if result.ok:
            self.path = result.path
            self.surface.draw_path(result.path)
            self.logger.log("Route drawn", {
                "request_id": request.request_id,
                "provider": result.path.provider,
                "path_distance": round(result.path.distance, 1),
            })
        else:
            self.logger.log("Route request failed", {
                "request_id": request.request_id,
                "error": type(result.error).__name__,
                "message": str(result.error),
            })
        return True

    # ----------------
    # Async dispatch
    # ----------------

    def resolve(self, request: RouteRequest) -> RouteResult:
        """Run the routing query for a request (blocking)"""
        return self.client.route(request.origin, request.destination, request.intermediate)

    async def dispatch(self, request: RouteRequest) -> RouteResult:
        """Resolve a request in a worker thread and apply the result.

        A client that fails with anything other than a RouteError still
        settles the request, as a failure.
        """
        try:
            result = await asyncio.to_thread(self.resolve, request)
        except Exception as e:
            self.logger.log("Routing client raised", {"request_id": request.request_id,
                                                      "error": type(e).__name__})
            result = RouteResult.failure(RouteError(f"Routing client failed: {e}"))
        self.complete(request, result)
        return result

    def submit(self, request: RouteRequest) -> asyncio.Task:
        """Schedule a request on the running loop, cancelling the one it supersedes"""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self.dispatch(request))
        return self._task

    def handle_click(self, point: Point) -> Optional[asyncio.Task]:
        request = self.click(point)
        return self.submit(request) if request else None

    def handle_undo(self) -> Optional[asyncio.Task]:
        request = self.undo()
        if request:
            return self.submit(request)
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return None

    def close(self):
        """Cancel any pending request"""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._in_flight = None

    # ----------------
    # Display
    # ----------------

    def snapshot(self) -> dict:
        """Everything a freshly connected map needs to render the route"""
        return {
            "status": self.status,
            "pending": self.pending,
            "waypoints": [w.to_dict() for w in self.state.waypoints()],
            "distance": self.state.distance_label(),
            "distance_meters": self.state.total_distance(),
            "path": self.path.to_dict() if self.path else None,
        }

    def _issue_request(self) -> RouteRequest:
        points = self.state.points()
        self._last_request_id += 1
        request = RouteRequest(
            request_id=self._last_request_id,
            origin=points[-2],
            destination=points[-1],
            intermediate=tuple(points[:-1]),
            waypoint_count=len(points),
        )
        self._in_flight = request
        self.logger.log("Route requested", request.to_dict())
        return request

    def _clear_path(self):
        self.path = None
        self.surface.clear_path()

    def _publish_route(self):
        self.surface.show_waypoints(list(self.state.waypoints()))
        self.surface.show_distance(self.state.distance_label())
