"""
Tests for the geolocation client
"""
import asyncio

import httpx
import pytest

import sys
sys.path.insert(0, '.')

from geofuite.core.geo_utils import Coordinates
from geofuite.ingestion.geolocation_client import (
    GeolocationClient,
    GeolocationError,
    IPGeolocationProvider,
    LocationError,
    StaticPositionProvider,
)


def locate(provider, timeout=1.0):
    return asyncio.run(GeolocationClient(provider, timeout=timeout).locate())


def ip_provider(handler):
    return IPGeolocationProvider(url="https://geo.test/json/", transport=httpx.MockTransport(handler))


class TestGeolocationClient:
    """Test position acquisition."""

    def test_static_position(self):
        result = locate(StaticPositionProvider(Coordinates(48.8566, 2.3522)))

        assert result.ok
        assert result.coordinates == Coordinates(48.8566, 2.3522)
        assert result.error is None

    def test_unset_static_position_unavailable(self):
        result = locate(StaticPositionProvider())

        assert not result.ok
        assert result.error == LocationError.UNAVAILABLE

    def test_timeout(self):
        async def slow_provider(high_accuracy, maximum_age):
            await asyncio.sleep(5)
            return Coordinates(0.0, 0.0)

        result = locate(slow_provider, timeout=0.05)

        assert result.coordinates is None
        assert result.error == LocationError.TIMEOUT

    def test_permission_denied(self):
        async def refusing_provider(high_accuracy, maximum_age):
            raise GeolocationError(LocationError.PERMISSION_DENIED)

        result = locate(refusing_provider)

        assert result.error == LocationError.PERMISSION_DENIED
        assert result.to_dict()["error"] == "permission_denied"

    def test_provider_receives_options(self):
        seen = {}

        async def provider(high_accuracy, maximum_age):
            seen["args"] = (high_accuracy, maximum_age)
            return Coordinates(1.0, 2.0)

        asyncio.run(GeolocationClient(provider).locate(high_accuracy=True, maximum_age=0))

        assert seen["args"] == (True, 0)


class TestIPGeolocationProvider:
    """Test the IP geolocation provider."""

    @pytest.mark.parametrize("payload", [
        {"latitude": 45.764, "longitude": 4.8357},
        {"lat": 45.764, "lon": 4.8357},
        {"latitude": "45.764", "longitude": "4.8357"},
    ])
    def test_parses_payload(self, payload):
        result = locate(ip_provider(lambda request: httpx.Response(200, json=payload)))

        assert result.coordinates == Coordinates(45.764, 4.8357)

    def test_forbidden_is_permission_denied(self):
        result = locate(ip_provider(lambda request: httpx.Response(403)))
        assert result.error == LocationError.PERMISSION_DENIED

    def test_server_error_is_unavailable(self):
        result = locate(ip_provider(lambda request: httpx.Response(503)))
        assert result.error == LocationError.UNAVAILABLE

    def test_network_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        result = locate(ip_provider(handler))
        assert result.error == LocationError.UNAVAILABLE

    def test_missing_fields_unavailable(self):
        result = locate(ip_provider(lambda request: httpx.Response(200, json={"city": "Lyon"})))
        assert result.error == LocationError.UNAVAILABLE

    def test_out_of_range_unavailable(self):
        payload = {"latitude": 123.0, "longitude": 4.0}
        result = locate(ip_provider(lambda request: httpx.Response(200, json=payload)))

        assert result.coordinates is None
        assert result.error == LocationError.UNAVAILABLE
