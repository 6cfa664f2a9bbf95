"""
GeoFuite - Data Ingestion Module
Clients for device and external position sources.
"""

from geofuite.ingestion.geolocation_client import (
    GeolocationClient,
    GeolocationError,
    LocationError,
    LocationResult,
    IPGeolocationProvider,
    StaticPositionProvider,
    get_current_position,
)

__all__ = [
    "GeolocationClient",
    "GeolocationError",
    "LocationError",
    "LocationResult",
    "IPGeolocationProvider",
    "StaticPositionProvider",
    "get_current_position",
]
