"""Nominatim geocoder adapter — implements GeocoderPort."""

from __future__ import annotations

import logging

import httpx

from helpdesk.application.ports.geocoder_port import GeocoderPort
from helpdesk.config import settings
from helpdesk.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# Most specific first
AREA_FIELDS = (
    "village",
    "suburb",
    "neighbourhood",
    "quarter",
    "city_district",
    "town",
    "city",
    "county",
)


class NominatimAdapter(GeocoderPort):
    """Reverse geocoding through Nominatim, with short-link resolution and caching."""

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._user_agent = user_agent or settings.geocoder_user_agent
        self._timeout = timeout
        self._transport = transport
        self._cache: dict[tuple[float, float], str | None] = {}

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": self._user_agent},
            timeout=self._timeout,
            transport=self._transport,
            **kwargs,
        )

    async def locate(self, location_url: str) -> GeoPoint | None:
        """Coordinates from the link, following redirects of short links.

        Strategy:
        1. Parse coordinates straight from the URL
        2. Follow the redirect chain (maps.app.goo.gl, goo.gl) and parse the final URL
        """
        point = GeoPoint.from_maps_url(location_url)
        if point is not None:
            return point

        try:
            async with self._client(follow_redirects=True) as client:
                response = await client.get(location_url)
                final_url = str(response.url)
        except httpx.HTTPError:
            logger.exception("Could not resolve location link '%s'", location_url)
            return None

        point = GeoPoint.from_maps_url(final_url)
        if point is None:
            logger.info("No coordinates behind '%s' (resolved to '%s')", location_url, final_url)
        return point

    async def reverse_area(self, point: GeoPoint) -> str | None:
        """Most specific named area around the point.

        Strategy:
        1. Check in-memory cache
        2. Nominatim reverse lookup at neighbourhood zoom
        """
        cache_key = (round(point.latitude, 5), round(point.longitude, 5))
        if cache_key in self._cache:
            logger.debug("Cache hit for %s", cache_key)
            return self._cache[cache_key]

        area = await self._nominatim_reverse(point)
        self._cache[cache_key] = area
        return area

    async def _nominatim_reverse(self, point: GeoPoint) -> str | None:
        try:
            async with self._client() as client:
                response = await client.get(
                    NOMINATIM_REVERSE_URL,
                    params={
                        "format": "json",
                        "lat": point.latitude,
                        "lon": point.longitude,
                        "zoom": 16,
                        "addressdetails": 1,
                    },
                )
                response.raise_for_status()
                address = response.json().get("address") or {}
        except (httpx.HTTPError, ValueError):
            logger.exception("Nominatim reverse lookup failed for (%f, %f)", point.latitude, point.longitude)
            return None

        for name in AREA_FIELDS:
            if address.get(name):
                logger.info(
                    "Nominatim resolved (%f, %f) → %s (%s)",
                    point.latitude, point.longitude, address[name], name,
                )
                return address[name]

        logger.warning("Nominatim returned no area for (%f, %f)", point.latitude, point.longitude)
        return None
