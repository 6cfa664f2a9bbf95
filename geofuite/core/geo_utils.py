"""
GeoFuite - Geospatial Utilities
Coordinate handling and map URL helpers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

from geofuite.core.constants import (
    DEFAULT_MAP_ZOOM,
    GOOGLE_MAPS_EMBED_URL,
    GOOGLE_MAPS_SEARCH_URL,
)


@dataclass(frozen=True)
class Coordinates:
    """Geographic point with latitude and longitude in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(
                f"Coordinates out of range: ({self.latitude}, {self.longitude})"
            )

    def to_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinates":
        return cls(latitude=float(data["latitude"]), longitude=float(data["longitude"]))

    def format(self, precision: int = 6) -> str:
        """Format as 'lat, lon' the way the capture form shows it."""
        return f"{self.latitude:.{precision}f}, {self.longitude:.{precision}f}"


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check that a latitude/longitude pair is within WGS84 bounds."""
    try:
        return -90.0 <= float(latitude) <= 90.0 and -180.0 <= float(longitude) <= 180.0
    except (TypeError, ValueError):
        return False


def parse_coordinates(
    latitude: Optional[float],
    longitude: Optional[float]
) -> Optional[Coordinates]:
    """
    Build Coordinates from an optional pair.

    Returns None when either value is missing. Raises ValueError when the
    pair is present but out of range.
    """
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=float(latitude), longitude=float(longitude))


def google_maps_search_url(coordinates: Coordinates) -> str:
    """URL opening an external map application at the given point."""
    query = urlencode({
        "api": 1,
        "query": f"{coordinates.latitude},{coordinates.longitude}",
    }, safe=",")
    return f"{GOOGLE_MAPS_SEARCH_URL}?{query}"


def embed_map_url(
    latitude: float,
    longitude: float,
    zoom: int = DEFAULT_MAP_ZOOM
) -> str:
    """URL of an embeddable map centred on a point."""
    query = urlencode({
        "q": f"{latitude},{longitude}",
        "z": zoom,
        "output": "embed",
    }, safe=",")
    return f"{GOOGLE_MAPS_EMBED_URL}?{query}"
