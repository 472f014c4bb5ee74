"""Geographic utility functions."""

import math

from .models import Point

EARTH_RADIUS = 6371000  # meters


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS * c


def same_location(a: Point, b: Point) -> bool:
    """True if two points name the same place on the globe.

    Longitudes are compared modulo 360, and any longitude is the same
    place at a pole.
    """
    if a.lat != b.lat:
        return False
    if abs(a.lat) == 90:
        return True
    return (a.lon - b.lon) % 360 == 0


def distance(a: Point, b: Point) -> float:
    """Great-circle distance between two points in meters (0 at the same location)"""
    if same_location(a, b):
        return 0.0
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def format_distance(meters: float) -> str:
    """Format a distance for the distance label ("812.00 meters", "2.50 km")"""
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.2f} meters"


def bearing_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate bearing from point 1 to point 2 in degrees (0-360, 0=North)"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = (math.cos(phi1) * math.sin(phi2) -
         math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda))

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def bearing_to_compass(bearing: float) -> str:
    """Convert bearing to compass direction"""
    directions = ["north", "northeast", "east", "southeast",
                  "south", "southwest", "west", "northwest"]
    index = round(bearing / 45) % 8
    return directions[index]


def relative_direction(from_bearing: float, to_bearing: float) -> str:
    """Get relative direction (left, right, straight, etc.)"""
    diff = (to_bearing - from_bearing + 360) % 360

    if diff < 30 or diff > 330:
        return "straight"
    elif 30 <= diff < 60:
        return "slight right"
    elif 60 <= diff < 120:
        return "right"
    elif 120 <= diff < 150:
        return "sharp right"
    elif 150 <= diff < 210:
        return "u-turn"
    elif 210 <= diff < 240:
        return "sharp left"
    elif 240 <= diff < 300:
        return "left"
    else:
        return "slight left"


def bounding_circle(points: list[Point]) -> tuple[Point, float]:
    """Return (center, radius in meters) of a circle covering all points"""
    if not points:
        raise ValueError("At least one point is required")
    center = Point(
        lat=sum(p.lat for p in points) / len(points),
        lon=sum(p.lon for p in points) / len(points),
    )
    radius = max(distance(center, p) for p in points)
    return center, radius
