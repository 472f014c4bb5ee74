"""Browser map surface: Leaflet page over HTTP, map events over WebSocket."""

from __future__ import annotations

import asyncio
import http.server
import json
import socketserver
import threading
import time
import webbrowser
from functools import partial
from typing import TYPE_CHECKING, Optional, Union

import websockets

from .config import CONFIG
from .models import Path, Point, Waypoint

if TYPE_CHECKING:
    from .controller import RouteController


MAP_HTML = '''<!DOCTYPE html>
<html>
<head>
    <title>RDC - Route Distance Calculator</title>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; height: 100vh; display: flex; flex-direction: column; }
        header { background: #1e293b; color: white; padding: 12px 20px; display: flex; justify-content: space-between; align-items: center; gap: 16px; }
        header h1 { font-size: 18px; font-weight: 600; }
        .controls { display: flex; align-items: center; gap: 12px; }
        .controls button { background: #f8fafc; border: none; border-radius: 4px; padding: 6px 14px; cursor: pointer; font-size: 13px; }
        .controls button:hover { background: #e2e8f0; }
        .status-badge { background: #22c55e; padding: 4px 12px; border-radius: 12px; font-size: 12px; }
        .status-badge.disconnected { background: #ef4444; }
        .main-content { display: flex; flex: 1; overflow: hidden; }
        #map { flex: 1; min-width: 0; }
        .side-panel { width: 340px; background: #f8fafc; display: flex; flex-direction: column; border-left: 1px solid #e2e8f0; }
        .panel-section { padding: 16px; border-bottom: 1px solid #e2e8f0; }
        .panel-section h2 { font-size: 12px; text-transform: uppercase; color: #64748b; margin-bottom: 12px; letter-spacing: 0.5px; }
        #total-distance { font-size: 22px; font-weight: 600; color: #1e293b; }
        #route-status { font-size: 12px; color: #64748b; margin-top: 4px; }
        .steps-section { flex: 1; overflow-y: auto; }
        .step { font-size: 13px; color: #1e293b; padding: 4px 0; border-bottom: 1px dashed #e2e8f0; }
        .step .step-distance { color: #94a3b8; float: right; }
        .logs-container { height: 160px; overflow-y: auto; padding: 12px; background: #1e293b; font-family: "SF Mono", Monaco, monospace; font-size: 12px; }
        .log-entry { color: #94a3b8; margin-bottom: 6px; line-height: 1.4; }
        .log-entry .message { color: #e2e8f0; }
        .log-entry .data { color: #38bdf8; }
    </style>
</head>
<body>
    <header>
        <h1>RDC - Route Distance Calculator</h1>
        <div class="controls">
            <button id="undo-button">Undo</button>
            <span id="connection-status" class="status-badge disconnected">Disconnected</span>
        </div>
    </header>
    <div class="main-content">
        <div id="map"></div>
        <div class="side-panel">
            <div class="panel-section">
                <h2>Total Distance</h2>
                <div id="total-distance">0</div>
                <div id="route-status">Click the map to start a route</div>
            </div>
            <div class="panel-section steps-section">
                <h2>Directions</h2>
                <div id="steps"></div>
            </div>
            <div class="logs-container" id="logs"></div>
        </div>
    </div>
    <script>
        var map = L.map('map').setView([{{CENTER_LAT}}, {{CENTER_LON}}], {{ZOOM}});
        L.tileLayer('https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png', {
            attribution: '&copy; OpenStreetMap contributors'
        }).addTo(map);

        var ws = null;
        var pathLayer = null;
        var waypointLayer = L.layerGroup().addTo(map);

        function connect() {
            ws = new WebSocket('ws://' + window.location.hostname + ':{{WS_PORT}}');

            ws.onopen = function() {
                document.getElementById('connection-status').textContent = 'Connected';
                document.getElementById('connection-status').classList.remove('disconnected');
                ws.send(JSON.stringify({type: 'get_state'}));
            };

            ws.onclose = function() {
                document.getElementById('connection-status').textContent = 'Disconnected';
                document.getElementById('connection-status').classList.add('disconnected');
                setTimeout(connect, 2000);
            };

            ws.onerror = function() {};

            ws.onmessage = function(event) {
                handleMessage(JSON.parse(event.data));
            };
        }

        function handleMessage(msg) {
            switch(msg.type) {
                case 'state':
                    showWaypoints(msg.data.waypoints);
                    showDistance(msg.data.distance);
                    clearPath();
                    if (msg.data.path) drawPath(msg.data.path);
                    break;
                case 'path':
                    drawPath(msg.data);
                    break;
                case 'clear_path':
                    clearPath();
                    break;
                case 'remove_overlay':
                    clearPath();
                    waypointLayer.clearLayers();
                    break;
                case 'waypoints':
                    showWaypoints(msg.data.waypoints);
                    break;
                case 'distance':
                    showDistance(msg.data.label);
                    break;
                case 'log':
                    addLog(msg.data.message, msg.data.data);
                    break;
                case 'error':
                    addLog('Error: ' + msg.data.message);
                    break;
            }
        }

        function clearPath() {
            if (pathLayer) {
                map.removeLayer(pathLayer);
                pathLayer = null;
            }
            document.getElementById('steps').innerHTML = '';
        }

        function drawPath(path) {
            clearPath();
            pathLayer = L.polyline(path.coordinates, {color: '#3b82f6', weight: 5, opacity: 0.8}).addTo(map);
            var steps = document.getElementById('steps');
            path.legs.forEach(function(leg) {
                leg.steps.forEach(function(step) {
                    var div = document.createElement('div');
                    div.className = 'step';
                    div.innerHTML = step.instruction + '<span class="step-distance">' + Math.round(step.distance) + ' m</span>';
                    steps.appendChild(div);
                });
            });
        }

        function showWaypoints(waypoints) {
            waypointLayer.clearLayers();
            waypoints.forEach(function(w, i) {
                var isStart = i === 0;
                L.circleMarker([w.location.lat, w.location.lon], {
                    radius: isStart ? 9 : 6,
                    fillColor: isStart ? '#ef4444' : '#f97316',
                    color: '#ffffff',
                    weight: 2,
                    fillOpacity: 1
                }).addTo(waypointLayer).bindPopup(isStart ? 'Start' : 'Waypoint ' + i);
            });
            document.getElementById('route-status').textContent =
                waypoints.length === 0 ? 'Click the map to start a route' : waypoints.length + ' waypoint(s)';
        }

        function showDistance(label) {
            document.getElementById('total-distance').textContent = label;
        }

        function addLog(message, data) {
            var logs = document.getElementById('logs');
            var entry = document.createElement('div');
            entry.className = 'log-entry';
            var html = '<span class="message">' + message + '</span>';
            if (data) {
                html += ' <span class="data">' + JSON.stringify(data) + '</span>';
            }
            entry.innerHTML = html;
            logs.appendChild(entry);
            logs.scrollTop = logs.scrollHeight;
            while (logs.children.length > 100) {
                logs.removeChild(logs.firstChild);
            }
        }

        map.on('click', function(e) {
            if (ws && ws.readyState === WebSocket.OPEN) {
                ws.send(JSON.stringify({type: 'click', data: {lat: e.latlng.lat, lon: e.latlng.lng}}));
            }
        });

        document.getElementById('undo-button').addEventListener('click', function() {
            if (ws && ws.readyState === WebSocket.OPEN) {
                ws.send(JSON.stringify({type: 'undo'}));
            }
        });

        connect();
    </script>
</body>
</html>'''


class MapSurface:
    """What the route controller needs from a map"""

    def draw_path(self, path: Path):
        raise NotImplementedError

    def clear_path(self):
        raise NotImplementedError

    def remove_overlay(self):
        raise NotImplementedError

    def show_waypoints(self, waypoints: list[Waypoint]):
        raise NotImplementedError

    def show_distance(self, label: Union[str, int]):
        raise NotImplementedError


class MapServer(MapSurface):
    """HTTP and WebSocket server for the browser map"""

    def __init__(self, http_port: Optional[int] = None, ws_port: Optional[int] = None,
                 center: Optional[tuple[float, float]] = None, zoom: Optional[int] = None,
                 open_browser: bool = True):
        self.http_port = http_port or CONFIG["http_port"]
        self.ws_port = ws_port or CONFIG["ws_port"]
        self.center = center or CONFIG["default_center"]
        self.zoom = zoom or CONFIG["default_zoom"]
        self.open_browser = open_browser
        self.controller: Optional["RouteController"] = None
        self.http_thread = None
        self.ws_thread = None
        self.ws_loop: Optional[asyncio.AbstractEventLoop] = None
        self.connected_clients: set = set()
        self._running = False

    def bind(self, controller: "RouteController"):
        """Route map clicks and undo presses to a controller"""
        self.controller = controller

    def render_html(self) -> str:
        return (MAP_HTML
                .replace('{{WS_PORT}}', str(self.ws_port))
                .replace('{{CENTER_LAT}}', str(self.center[0]))
                .replace('{{CENTER_LON}}', str(self.center[1]))
                .replace('{{ZOOM}}', str(self.zoom)))

    def start(self):
        """Start HTTP and WebSocket servers in background threads"""
        self._running = True

        self.http_thread = threading.Thread(target=self._run_http_server, daemon=True)
        self.http_thread.start()

        self.ws_thread = threading.Thread(target=self._run_ws_server, daemon=True)
        self.ws_thread.start()

        # Give servers time to start
        time.sleep(0.5)

        url = f"http://localhost:{self.http_port}"
        print(f"Route map available at: {url}")
        if self.open_browser:
            webbrowser.open(url)

    def _run_http_server(self):
        """Run the HTTP server for serving the map page"""
        handler = partial(_MapHTTPHandler, self.render_html())
        socketserver.TCPServer.allow_reuse_address = True
        with socketserver.TCPServer(("", self.http_port), handler) as httpd:
            httpd.timeout = 0.5
            while self._running:
                httpd.handle_request()

    def _run_ws_server(self):
        """Run the WebSocket server; the controller lives on this loop"""
        self.ws_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.ws_loop)

        async def handler(websocket):
            self.connected_clients.add(websocket)
            try:
                async for message in websocket:
                    reply = self.handle_message(message)
                    if reply:
                        await websocket.send(json.dumps(reply))
            finally:
                self.connected_clients.discard(websocket)

        async def main():
            try:
                async with websockets.serve(handler, "localhost", self.ws_port):
                    while self._running:
                        await asyncio.sleep(0.1)
            except OSError as e:
                print(f"WebSocket server error: {e}")
            finally:
                if self.controller:
                    self.controller.close()

        self.ws_loop.run_until_complete(main())

    def handle_message(self, raw: Union[str, bytes]) -> Optional[dict]:
        """Dispatch one browser message. Returns a direct reply, if any."""
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            return {"type": "error", "data": {"message": "Invalid JSON"}}
        if not isinstance(msg, dict):
            return {"type": "error", "data": {"message": "Message must be an object"}}
        if self.controller is None:
            return {"type": "error", "data": {"message": "No route controller bound"}}

        msg_type = msg.get("type")
        if msg_type == "click":
            try:
                point = Point.from_dict(msg.get("data") or {})
            except (KeyError, TypeError, ValueError):
                return {"type": "error", "data": {"message": "click needs numeric lat and lon"}}
            self.controller.handle_click(point)
        elif msg_type == "undo":
            self.controller.handle_undo()
        elif msg_type == "get_state":
            return {"type": "state", "data": self.controller.snapshot()}
        else:
            return {"type": "error", "data": {"message": f"Unknown message type: {msg_type}"}}
        return None

    def _send_message(self, msg_type: str, data: Optional[dict] = None):
        """Send a message to all connected WebSocket clients"""
        if not self.connected_clients or not self.ws_loop or self.ws_loop.is_closed():
            return
        message = json.dumps({"type": msg_type, "data": data or {}})
        self.ws_loop.call_soon_threadsafe(websockets.broadcast, set(self.connected_clients), message)

    def draw_path(self, path: Path):
        self._send_message("path", path.to_dict())

    def clear_path(self):
        self._send_message("clear_path")

    def remove_overlay(self):
        self._send_message("remove_overlay")

    def show_waypoints(self, waypoints: list[Waypoint]):
        self._send_message("waypoints", {"waypoints": [w.to_dict() for w in waypoints]})

    def show_distance(self, label: Union[str, int]):
        self._send_message("distance", {"label": label})

    def send_log(self, message: str, data: Optional[dict] = None):
        """Send log message to browser"""
        self._send_message("log", {"message": message, "data": data})

    def stop(self):
        """Stop the servers"""
        self._running = False


class _MapHTTPHandler(http.server.SimpleHTTPRequestHandler):
    """HTTP handler that serves the map page"""

    def __init__(self, html: str, *args, **kwargs):
        self.html = html
        super().__init__(*args, **kwargs)

    def do_GET(self):
        if self.path == '/' or self.path == '/index.html':
            self.send_response(200)
            self.send_header('Content-type', 'text/html')
            self.end_headers()
            self.wfile.write(self.html.encode())
        else:
            self.send_error(404)

    def log_message(self, format, *args):
        pass  # Suppress HTTP log messages
