"""OpenStreetMap data fetching via Overpass API with disk caching."""

import hashlib
import json
import os
import time
from typing import Optional

import requests

from .config import CONFIG
from .errors import ServiceUnavailable
from .geo import haversine_distance

WALKABLE_HIGHWAYS = (
    "footway|pedestrian|path|steps|residential|living_street|service|"
    "unclassified|tertiary|secondary|primary|trunk"
)


class OSMFetcher:
    """Fetch walkable street data from OpenStreetMap via Overpass API"""

    def __init__(self, overpass_url: Optional[str] = None, cache_dir: Optional[str] = None,
                 cache_max_age: Optional[float] = None):
        self.overpass_url = overpass_url or CONFIG["overpass_url"]
        self.cache_dir = cache_dir if cache_dir is not None else CONFIG["osm_cache_dir"]
        self.cache_max_age = cache_max_age if cache_max_age is not None else CONFIG["osm_cache_max_age"]

    def _cache_path(self, lat: float, lon: float, radius: float) -> str:
        """Generate a cache file path for the given query parameters."""
        # Round coordinates to reduce near-duplicate caches
        key = f"{lat:.5f},{lon:.5f},{radius:.0f}"
        h = hashlib.md5(key.encode()).hexdigest()[:12]
        return os.path.join(self.cache_dir, f"osm_{h}.json")

    def _find_covering_cache(self, lat: float, lon: float, radius: float) -> Optional[dict]:
        """Find a cached response that covers the requested area.

        A cache entry covers the request if the requested circle fits
        inside the cached circle.
        """
        if not self.cache_dir or not os.path.isdir(self.cache_dir):
            return None
        now = time.time()
        for fname in os.listdir(self.cache_dir):
            if not fname.endswith(".json"):
                continue
            fpath = os.path.join(self.cache_dir, fname)
            try:
                age = now - os.path.getmtime(fpath)
                if age > self.cache_max_age:
                    continue
                with open(fpath) as f:
                    cached = json.load(f)
                meta = cached.get("_cache_meta")
                if not meta:
                    continue
                clat, clon, cradius = meta["lat"], meta["lon"], meta["radius"]
                dist = haversine_distance(lat, lon, clat, clon)
                if cradius >= dist + radius:
                    return cached
            except (json.JSONDecodeError, KeyError, OSError):
                continue
        return None

    def _save_cache(self, lat: float, lon: float, radius: float, data: dict):
        os.makedirs(self.cache_dir, exist_ok=True)
        cache_data = dict(data)
        cache_data["_cache_meta"] = {
            "lat": lat, "lon": lon, "radius": radius,
            "fetched_at": time.time(),
        }
        cache_path = self._cache_path(lat, lon, radius)
        with open(cache_path, "w") as f:
            json.dump(cache_data, f)

    def fetch_streets(self, lat: float, lon: float, radius: float) -> dict:
        """Fetch all walkable ways within radius of a location.

        Raises ServiceUnavailable if Overpass cannot be reached or answers
        with something other than JSON.
        """
        cached = self._find_covering_cache(lat, lon, radius)
        if cached:
            return {k: v for k, v in cached.items() if k != "_cache_meta"}

        # Scale timeout with radius; larger areas need more server time
        timeout = max(30, int(radius / 50))
        query = f"""
        [out:json][timeout:{timeout}];
        (
          way["highway"~"^({WALKABLE_HIGHWAYS})$"]
            (around:{radius:.0f},{lat},{lon});
        );
        out body;
        >;
        out skel qt;
        """

        try:
            response = requests.post(self.overpass_url, data={"data": query}, timeout=timeout + 30)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ServiceUnavailable(f"Overpass request failed: {e}") from e
        except ValueError as e:
            raise ServiceUnavailable("Overpass returned an invalid response") from e

        if data.get("elements") and self.cache_dir:
            self._save_cache(lat, lon, radius, data)

        return data
