"""Configuration settings for routecalc."""

CONFIG = {
    # Map view
    "default_center": (37.8715, -122.2730),  # (lat, lon) Berkeley
    "default_zoom": 14,
    # Browser front end
    "http_port": 8080,
    "ws_port": 8765,
    # OSRM routing service
    "osrm_base_url": "https://router.project-osrm.org",
    "osrm_profile": "foot",
    "request_timeout": 10,  # seconds
    # Overpass / local street graph router
    "overpass_url": "https://overpass-api.de/api/interpreter",
    "osm_cache_dir": "osm_cache",
    "osm_cache_max_age": 7 * 24 * 3600,  # 7 days
    "osm_fetch_margin": 300,  # meters added around the waypoints' bounding circle
    "osm_min_fetch_radius": 500,  # meters
    "walking_speed": 1.4,  # m/s, for graph router durations
    # Road type weights (lower = preferred)
    "road_weights": {
        "footway": 1,
        "pedestrian": 1,
        "path": 1,
        "steps": 1.5,
        "residential": 1.2,
        "living_street": 1.2,
        "service": 1.5,
        "unclassified": 1.5,
        "tertiary": 2,
        "secondary": 2.5,
        "primary": 3,
        "trunk": 10,
    },
    "default_road_weight": 2,
}
