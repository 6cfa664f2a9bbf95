"""
GeoFuite - Core Utilities
Central configuration, logging, and utility functions.
"""

from geofuite.core.config import settings
from geofuite.core.constants import (
    LOCAL_STORAGE_KEY,
    PHOTO_MAX_WIDTH,
    PHOTO_JPEG_QUALITY,
    MIN_COMMENT_LENGTH,
    DEFAULT_MAP_CENTER,
)
from geofuite.core.geo_utils import (
    Coordinates,
    is_valid_coordinate,
    parse_coordinates,
    google_maps_search_url,
    embed_map_url,
)

__all__ = [
    "settings",
    "LOCAL_STORAGE_KEY",
    "PHOTO_MAX_WIDTH",
    "PHOTO_JPEG_QUALITY",
    "MIN_COMMENT_LENGTH",
    "DEFAULT_MAP_CENTER",
    "Coordinates",
    "is_valid_coordinate",
    "parse_coordinates",
    "google_maps_search_url",
    "embed_map_url",
]
