"""Data classes for routecalc."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .errors import RouteError


@dataclass(frozen=True)
class Point:
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @classmethod
    def from_dict(cls, d: dict) -> "Point":
        return cls(lat=float(d["lat"]), lon=float(d["lon"]))


@dataclass(frozen=True)
class Waypoint:
    """A clicked point the route must pass through"""
    location: Point
    stopover: bool = True

    def to_dict(self) -> dict:
        return {"location": self.location.to_dict(), "stopover": self.stopover}


@dataclass
class PathStep:
    """A single turn-by-turn instruction"""
    instruction: str
    distance: float  # meters
    location: Point

    def to_dict(self) -> dict:
        return {
            "instruction": self.instruction,
            "distance": self.distance,
            "location": self.location.to_dict(),
        }


@dataclass
class PathLeg:
    """Path between two consecutive stopovers"""
    coordinates: list[Point]
    distance: float  # meters
    duration: float  # seconds
    steps: list[PathStep] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "coordinates": [[p.lat, p.lon] for p in self.coordinates],
            "distance": self.distance,
            "duration": self.duration,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass
class Path:
    """Walking path returned by a routing service"""
    legs: list[PathLeg]
    provider: str = "unknown"

    @property
    def coordinates(self) -> list[Point]:
        """All leg coordinates, without repeating the joint between legs"""
        coords: list[Point] = []
        for leg in self.legs:
            for point in leg.coordinates:
                if coords and coords[-1] == point:
                    continue
                coords.append(point)
        return coords

    @property
    def distance(self) -> float:
        return sum(leg.distance for leg in self.legs)

    @property
    def duration(self) -> float:
        return sum(leg.duration for leg in self.legs)

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "coordinates": [[p.lat, p.lon] for p in self.coordinates],
            "distance": self.distance,
            "duration": self.duration,
            "legs": [leg.to_dict() for leg in self.legs],
        }


@dataclass(frozen=True)
class RouteRequest:
    """A routing query issued by the controller"""
    request_id: int
    origin: Point
    destination: Point
    intermediate: tuple[Point, ...]
    waypoint_count: int

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "intermediate": [p.to_dict() for p in self.intermediate],
            "waypoint_count": self.waypoint_count,
        }


@dataclass
class RouteResult:
    """Outcome of a routing query: a path or an error, never both"""
    path: Optional[Path] = None
    error: Optional["RouteError"] = None

    @property
    def ok(self) -> bool:
        return self.path is not None and self.error is None

    @classmethod
    def success(cls, path: Path) -> "RouteResult":
        return cls(path=path)

    @classmethod
    def failure(cls, error: "RouteError") -> "RouteResult":
        return cls(error=error)
