"""
GeoFuite - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, Tuple

# =============================================================================
# STORAGE
# =============================================================================

# Key under which the whole report collection is stored
LOCAL_STORAGE_KEY: str = "geo_fuite_data"

# Typical browser-style local storage quota (bytes)
DEFAULT_STORAGE_QUOTA_BYTES: int = 5 * 1024 * 1024

# =============================================================================
# PHOTO NORMALIZATION
# =============================================================================

PHOTO_MAX_WIDTH: int = 800
PHOTO_JPEG_QUALITY: float = 0.7
PHOTO_MIME_TYPE: str = "image/jpeg"

# =============================================================================
# AI ADVISORY
# =============================================================================

MIN_COMMENT_LENGTH: int = 5
AI_SUMMARY_PREFIX: str = "[IA Résumé]"

# =============================================================================
# GEOLOCATION & MAPS
# =============================================================================

GEOLOCATION_TIMEOUT_SECONDS: float = 10.0

# Paris, used when no current position is known
DEFAULT_MAP_CENTER: Tuple[float, float] = (48.8566, 2.3522)
DEFAULT_MAP_ZOOM: int = 14

GOOGLE_MAPS_SEARCH_URL: str = "https://www.google.com/maps/search/"
GOOGLE_MAPS_EMBED_URL: str = "https://maps.google.com/maps"

# =============================================================================
# STATUS DISPLAY
# =============================================================================

# Marker/badge colour per status display value
STATUS_COLORS: Dict[str, str] = {
    "Nouveau": "blue",
    "En cours": "orange",
    "Résolu": "green",
    "Urgent": "red",
}

STATUS_ICONS: Dict[str, str] = {
    "Nouveau": "exclamation-circle",
    "En cours": "clock-o",
    "Résolu": "check-circle",
    "Urgent": "warning",
}

# Unknown or future statuses
NEUTRAL_STATUS_COLOR: str = "gray"
NEUTRAL_STATUS_ICON: str = "info-circle"
