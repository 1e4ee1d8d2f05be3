"""GeoPoint value object — immutable (lat, lon) pair."""

import math
import re
from dataclasses import dataclass

# Coordinate shapes found in Google Maps share links, most specific first
_MAPS_URL_PATTERNS = (
    re.compile(r"[?&]q=(-?\d+\.?\d*),(-?\d+\.?\d*)"),
    re.compile(r"@(-?\d+\.?\d*),(-?\d+\.?\d*)"),
    re.compile(r"place/[^/]*/(-?\d+\.?\d*),(-?\d+\.?\d*)"),
    re.compile(r"ll=(-?\d+\.?\d*),(-?\d+\.?\d*)"),
    re.compile(r"center=(-?\d+\.?\d*),(-?\d+\.?\d*)"),
    re.compile(r"!3d(-?\d+\.?\d*)!4d(-?\d+\.?\d*)"),
    re.compile(r"(-?\d+\.\d{4,}),\s*(-?\d+\.\d{4,})"),
)


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def haversine_km(self, other: "GeoPoint") -> float:
        """Calculate distance in km between two points using the Haversine formula."""
        earth_radius_km = 6371.0

        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = math.radians(other.latitude - self.latitude)
        dlon = math.radians(other.longitude - self.longitude)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return earth_radius_km * c

    @classmethod
    def from_maps_url(cls, url: str | None) -> "GeoPoint | None":
        """Extract coordinates from a maps link, or None if the link has none."""
        if not url:
            return None
        for pattern in _MAPS_URL_PATTERNS:
            match = pattern.search(url)
            if not match:
                continue
            lat, lon = float(match.group(1)), float(match.group(2))
            if -90 <= lat <= 90 and -180 <= lon <= 180:
                return cls(latitude=lat, longitude=lon)
        return None
