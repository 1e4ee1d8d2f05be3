"""Tests for MaintenanceService backfill jobs."""

import pytest

from fakes import FakeGeocoder, add_ticket, add_user, build_services
from helpdesk.domain.value_objects.geo_point import GeoPoint


@pytest.mark.asyncio
async def test_backfill_areas(services, store):
    plain = add_ticket(store)
    add_ticket(store, area="Kemang")
    short = add_ticket(store, customer_location_url="https://maps.app.goo.gl/xyz")

    result = await services.maintenance.backfill_areas()

    assert (result.processed, result.total) == (1, 2)
    assert plain.area == "Menteng"
    assert (plain.latitude, plain.longitude) == (-6.2, 106.8)
    assert short.area is None
    assert len(result.errors) == 1 and short.ticket_number in result.errors[0]


@pytest.mark.asyncio
async def test_backfill_follows_short_links(store, clock):
    geocoder = FakeGeocoder(point=GeoPoint(latitude=-6.25, longitude=106.85), area="Tebet")
    services = build_services(store, clock, geocoder=geocoder)
    ticket = add_ticket(store, customer_location_url="https://maps.app.goo.gl/xyz")

    result = await services.maintenance.backfill_areas()

    assert result.processed == 1
    assert ticket.area == "Tebet"
    assert geocoder.located == ["https://maps.app.goo.gl/xyz"]


@pytest.mark.asyncio
async def test_backfill_reports_missing_area(store, clock):
    services = build_services(store, clock, geocoder=FakeGeocoder(area=None))
    add_ticket(store)
    result = await services.maintenance.backfill_areas()
    assert result.processed == 0
    assert "no area" in result.errors[0]


@pytest.mark.asyncio
async def test_backfill_areas_nothing_to_do(services):
    result = await services.maintenance.backfill_areas()
    assert (result.processed, result.total, result.errors) == (0, 0, [])


@pytest.mark.asyncio
async def test_backfill_names(services, store):
    add_user(store, "Tech One")
    shouty = add_user(store, "BUDI santoso")
    ticket = add_ticket(store)
    ticket.customer_name = "dewi  LESTARI"
    add_ticket(store)

    result = await services.maintenance.backfill_names()

    assert (result.users_updated, result.tickets_updated) == (1, 1)
    assert shouty.name == "Budi Santoso"
    assert ticket.customer_name == "Dewi  Lestari"
