"""Tests for NominatimAdapter against a mocked transport (no network)."""

import httpx
import pytest

from helpdesk.adapters.geocoder.nominatim_adapter import NominatimAdapter
from helpdesk.domain.value_objects.geo_point import GeoPoint

POINT = GeoPoint(latitude=-6.2, longitude=106.816666)


def _adapter(handler, calls=None):
    def recording(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    return NominatimAdapter(user_agent="test-agent", transport=httpx.MockTransport(recording))


# ─── locate ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_locate_parses_coordinates_without_network():
    calls = []
    adapter = _adapter(lambda request: httpx.Response(500), calls)
    point = await adapter.locate("https://www.google.com/maps/@-6.2,106.816666,17z")
    assert point == POINT
    assert calls == []


@pytest.mark.asyncio
async def test_locate_follows_short_link_redirects():
    def handler(request):
        if request.url.host == "maps.app.goo.gl":
            return httpx.Response(
                302, headers={"Location": "https://www.google.com/maps/place/X/@-6.25,106.85,17z"}
            )
        return httpx.Response(200, text="<html></html>")

    point = await _adapter(handler).locate("https://maps.app.goo.gl/AbC123")
    assert point == GeoPoint(latitude=-6.25, longitude=106.85)


@pytest.mark.asyncio
async def test_locate_without_coordinates_behind_link():
    point = await _adapter(lambda request: httpx.Response(200)).locate("https://maps.app.goo.gl/AbC123")
    assert point is None


@pytest.mark.asyncio
async def test_locate_network_failure_returns_none():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    assert await _adapter(handler).locate("https://maps.app.goo.gl/AbC123") is None


# ─── reverse_area ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reverse_area_prefers_most_specific_field():
    calls = []

    def handler(request):
        return httpx.Response(
            200, json={"address": {"city": "Jakarta", "suburb": "Menteng", "county": "Jakarta Pusat"}}
        )

    adapter = _adapter(handler, calls)
    assert await adapter.reverse_area(POINT) == "Menteng"

    request = calls[0]
    assert request.headers["User-Agent"] == "test-agent"
    assert request.url.params["zoom"] == "16"
    assert request.url.params["format"] == "json"


@pytest.mark.asyncio
async def test_reverse_area_is_cached():
    calls = []
    adapter = _adapter(lambda request: httpx.Response(200, json={"address": {"village": "Gondangdia"}}), calls)
    assert await adapter.reverse_area(POINT) == "Gondangdia"
    assert await adapter.reverse_area(GeoPoint(latitude=-6.2000001, longitude=106.8166661)) == "Gondangdia"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_reverse_area_without_named_area():
    adapter = _adapter(lambda request: httpx.Response(200, json={"address": {"country": "Indonesia"}}))
    assert await adapter.reverse_area(POINT) is None


@pytest.mark.asyncio
async def test_reverse_area_server_error_returns_none():
    adapter = _adapter(lambda request: httpx.Response(503))
    assert await adapter.reverse_area(POINT) is None
