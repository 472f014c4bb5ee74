"""Command line entry point: serve the route map and build routes by clicking."""

import argparse
import time

from .config import CONFIG
from .controller import RouteController
from .logger import Logger
from .map_server import MapServer
from .routing import GraphRoutingClient, OSRMClient


def build_client(args):
    if args.router == "graph":
        return GraphRoutingClient()
    return OSRMClient(base_url=args.osrm_url, profile=args.profile)


def main():
    parser = argparse.ArgumentParser(
        description="RDC - build a walking route by clicking on a map and measure its distance"
    )
    parser.add_argument("--lat", type=float, metavar="LAT",
                        help="Map center latitude")
    parser.add_argument("--lon", type=float, metavar="LON",
                        help="Map center longitude")
    parser.add_argument("--zoom", type=int, default=CONFIG["default_zoom"],
                        help=f"Initial map zoom (default: {CONFIG['default_zoom']})")
    parser.add_argument("--router", choices=["osrm", "graph"], default="osrm",
                        help="Routing back end: OSRM server or local OSM street graph (default: osrm)")
    parser.add_argument("--osrm-url", metavar="URL", default=CONFIG["osrm_base_url"],
                        help=f"OSRM base URL (default: {CONFIG['osrm_base_url']})")
    parser.add_argument("--profile", default=CONFIG["osrm_profile"],
                        help=f"OSRM profile (default: {CONFIG['osrm_profile']})")
    parser.add_argument("--http-port", type=int, default=CONFIG["http_port"],
                        help=f"Port for the map page (default: {CONFIG['http_port']})")
    parser.add_argument("--ws-port", type=int, default=CONFIG["ws_port"],
                        help=f"Port for map events (default: {CONFIG['ws_port']})")
    parser.add_argument("--log", metavar="FILE",
                        help="Also append log lines to FILE")
    parser.add_argument("--no-browser", action="store_true",
                        help="Do not open a browser window")

    args = parser.parse_args()

    # Validate lat/lon - must provide both or neither
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be used together")

    center = (args.lat, args.lon) if args.lat is not None else CONFIG["default_center"]

    try:
        client = build_client(args)
    except ValueError as e:
        parser.error(str(e))

    server = MapServer(http_port=args.http_port, ws_port=args.ws_port, center=center,
                       zoom=args.zoom, open_browser=not args.no_browser)
    logger = Logger(args.log, callback=server.send_log)
    controller = RouteController(client, server, logger=logger)
    server.bind(controller)

    logger.log("Starting route map", {"router": client.name, "center": list(center)})
    server.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nShutting down.")
    finally:
        server.stop()
        logger.close()


if __name__ == "__main__":
    main()
