"""
Geolocation client for GeoFuite

Acquires the current position for a leak report. Every failure (permission
denied, timeout, unavailable) degrades to "no coordinates"; nothing here is
fatal to report capture.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from geofuite.core.constants import GEOLOCATION_TIMEOUT_SECONDS
from geofuite.core.geo_utils import Coordinates, is_valid_coordinate

logger = logging.getLogger(__name__)


class LocationError(str, Enum):
    """Reasons a position could not be acquired."""
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"


class GeolocationError(Exception):
    """Raised by position providers."""

    def __init__(self, code: LocationError, message: str = ""):
        self.code = code
        super().__init__(message or code.value)


@dataclass
class LocationResult:
    """Outcome of a position request."""
    coordinates: Optional[Coordinates] = None
    error: Optional[LocationError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.coordinates is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "error": self.error.value if self.error else None,
            "message": self.message,
        }


# (high_accuracy, maximum_age_seconds) -> Coordinates
PositionProvider = Callable[[bool, float], Awaitable[Coordinates]]


class StaticPositionProvider:
    """Provider returning a fixed position, or unavailable when unset."""

    def __init__(self, coordinates: Optional[Coordinates] = None):
        self.coordinates = coordinates

    async def __call__(self, high_accuracy: bool = True, maximum_age: float = 0) -> Coordinates:
        if self.coordinates is None:
            raise GeolocationError(LocationError.UNAVAILABLE, "No position configured")
        return self.coordinates


class IPGeolocationProvider:
    """
    Approximate position from an IP geolocation service.

    Accepts responses using either latitude/longitude or lat/lon keys.
    """

    def __init__(
        self,
        url: str = "https://ipapi.co/json/",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url
        self._transport = transport

    async def __call__(self, high_accuracy: bool = True, maximum_age: float = 0) -> Coordinates:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(self.url)
        except httpx.HTTPError as e:
            raise GeolocationError(LocationError.UNAVAILABLE, f"Request failed: {e}") from e

        if response.status_code in (401, 403):
            raise GeolocationError(LocationError.PERMISSION_DENIED, "Location service refused")
        if response.status_code != 200:
            raise GeolocationError(
                LocationError.UNAVAILABLE, f"Location service HTTP {response.status_code}"
            )

        try:
            data = response.json()
            latitude = float(data.get("latitude", data.get("lat")))
            longitude = float(data.get("longitude", data.get("lon")))
        except (ValueError, TypeError, AttributeError) as e:
            raise GeolocationError(LocationError.UNAVAILABLE, f"Bad location payload: {e}") from e

        return Coordinates(latitude=latitude, longitude=longitude)


class GeolocationClient:
    """
    Requests the current position from a provider.

    Usage:
        client = GeolocationClient(IPGeolocationProvider())
        result = await client.locate()
        if result.ok:
            print(result.coordinates.format())
    """

    def __init__(
        self,
        provider: PositionProvider,
        timeout: float = GEOLOCATION_TIMEOUT_SECONDS
    ):
        """
        Initialize geolocation client.

        Args:
            provider: Async position provider
            timeout: Seconds before the request is abandoned
        """
        self.provider = provider
        self.timeout = timeout

    async def locate(
        self,
        high_accuracy: bool = True,
        maximum_age: float = 0
    ) -> LocationResult:
        """
        Acquire the current position.

        Args:
            high_accuracy: Ask the provider for its most precise fix
            maximum_age: Oldest cached position accepted (0 = fresh only)

        Returns:
            LocationResult with coordinates, or with an error code
        """
        try:
            coordinates = await asyncio.wait_for(
                self.provider(high_accuracy, maximum_age), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Geolocation timed out after {self.timeout}s")
            return LocationResult(error=LocationError.TIMEOUT, message="Timed out")
        except GeolocationError as e:
            logger.warning(f"Geolocation failed: {e.code.value} ({e})")
            return LocationResult(error=e.code, message=str(e))
        except ValueError as e:
            logger.warning(f"Geolocation returned an invalid position: {e}")
            return LocationResult(error=LocationError.UNAVAILABLE, message=str(e))

        if coordinates is None or not is_valid_coordinate(coordinates.latitude, coordinates.longitude):
            return LocationResult(error=LocationError.UNAVAILABLE, message="No position")

        logger.info(f"Position acquired: {coordinates.format()}")
        return LocationResult(coordinates=coordinates)


async def get_current_position(
    url: Optional[str] = None,
    timeout: Optional[float] = None
) -> LocationResult:
    """Convenience function to locate via the configured IP service."""
    from geofuite.core.config import settings

    client = GeolocationClient(
        IPGeolocationProvider(url or settings.geolocation_url),
        timeout=timeout if timeout is not None else settings.geolocation_timeout_seconds,
    )
    return await client.locate()
