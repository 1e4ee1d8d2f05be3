"""Tests for TicketLifecycleService with in-memory fakes."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from fakes import NOW, FakeGeocoder, add_ticket, attach, build_services, set_fees
from helpdesk.application.use_cases.ticket_lifecycle import ClosingReport, NewTicket
from helpdesk.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from helpdesk.domain.value_objects.enums import (
    AssignmentType,
    ClosedReason,
    PerformStatus,
    ReopenMode,
    TicketPriority,
    TicketStatus,
    TicketType,
)
from helpdesk.domain.value_objects.geo_point import GeoPoint

REPORT = ClosingReport(
    action_description="Re-spliced drop cable",
    proof_image_urls=["https://cdn.example.com/proof-1.jpg"],
    speedtest_result="98 Mbps",
)


def _new_ticket(**overrides) -> NewTicket:
    data = dict(
        type=TicketType.HOME_MAINTENANCE,
        priority=TicketPriority.HIGH,
        title=" No Internet Connection ",
        description="Red LOS light on modem",
        customer_name="alice johnson",
        customer_phone="0812-3456-7890",
        customer_location_url="https://maps.google.com/?q=-6.200000,106.816666",
    )
    data.update(overrides)
    return NewTicket(**data)


def _working(store, *technicians, status=TicketStatus.IN_PROGRESS, **kwargs):
    ticket = add_ticket(store, status=status, **kwargs)
    for technician in technicians:
        attach(store, ticket, technician)
    return ticket


def _active_ids(store, ticket):
    return [a.user_id for a in store.active_rows(ticket.id)]


# ─── Creation ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_numbers_ticket_and_fixes_sla(services, admin):
    ticket = await services.lifecycle.create(_new_ticket(), admin)

    assert ticket.id == 1
    assert ticket.ticket_number == "INC-260310-0001"
    assert ticket.ticket_id_custom == "2603100001"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.title == "No Internet Connection"
    assert ticket.customer_name == "Alice Johnson"
    assert ticket.created_at == NOW
    assert ticket.sla_deadline - ticket.created_at == timedelta(hours=24)


@pytest.mark.asyncio
async def test_installation_gets_72_hour_sla(services, helpdesk):
    ticket = await services.lifecycle.create(_new_ticket(type=TicketType.INSTALLATION), helpdesk)
    assert ticket.sla_deadline - ticket.created_at == timedelta(hours=72)


@pytest.mark.asyncio
async def test_sequence_continues_within_the_day(services, admin):
    await services.lifecycle.create(_new_ticket(), admin)
    second = await services.lifecycle.create(_new_ticket(ticket_id_custom="EXT-77"), admin)
    assert second.ticket_number == "INC-260310-0002"
    assert second.ticket_id_custom == "EXT-77"


@pytest.mark.asyncio
async def test_create_resolves_coordinates_and_area(services, admin):
    ticket = await services.lifecycle.create(_new_ticket(), admin)
    assert (ticket.latitude, ticket.longitude) == (-6.2, 106.816666)
    assert ticket.area == "Menteng"
    # Coordinates came straight from the link
    assert services.geocoder.located == []


@pytest.mark.asyncio
async def test_create_follows_short_links(store, clock, admin):
    geocoder = FakeGeocoder(point=GeoPoint(latitude=-6.3, longitude=106.9), area="Cilandak")
    services = build_services(store, clock, geocoder=geocoder)

    ticket = await services.lifecycle.create(
        _new_ticket(customer_location_url="https://maps.app.goo.gl/AbC123"), admin
    )
    assert geocoder.located == ["https://maps.app.goo.gl/AbC123"]
    assert (ticket.latitude, ticket.longitude) == (-6.3, 106.9)
    assert ticket.area == "Cilandak"


@pytest.mark.asyncio
async def test_explicit_area_is_kept(services, admin):
    ticket = await services.lifecycle.create(_new_ticket(area="Kemang"), admin)
    assert ticket.area == "Kemang"
    assert services.geocoder.reversed == []


@pytest.mark.asyncio
async def test_technician_cannot_create(services, tech_a):
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.create(_new_ticket(), tech_a)


@pytest.mark.asyncio
async def test_create_requires_customer_phone(services, admin):
    with pytest.raises(ValidationError) as exc:
        await services.lifecycle.create(_new_ticket(customer_phone="  "), admin)
    assert exc.value.field == "customer_phone"


@pytest.mark.asyncio
async def test_get_missing_ticket(services):
    with pytest.raises(NotFoundError):
        await services.lifecycle.get(999)


# ─── Manual assignment ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_assign_open_ticket(services, store, admin, tech_a):
    ticket = add_ticket(store)
    result = await services.lifecycle.assign(ticket.id, tech_a.id, admin)

    assert result.status == TicketStatus.ASSIGNED
    rows = store.active_rows(ticket.id)
    assert [r.user_id for r in rows] == [tech_a.id]
    assert rows[0].assignment_type == AssignmentType.MANUAL
    assert rows[0].assigned_at == NOW


@pytest.mark.asyncio
async def test_assign_second_technician_as_partner(services, store, admin, tech_a, tech_b):
    ticket = add_ticket(store)
    await services.lifecycle.assign(ticket.id, tech_a.id, admin)
    await services.lifecycle.assign(ticket.id, tech_b.id, admin)
    assert _active_ids(store, ticket) == [tech_a.id, tech_b.id]


@pytest.mark.asyncio
async def test_third_technician_is_refused(services, store, admin, tech_a, tech_b, backbone_tech):
    ticket = _working(store, tech_a, tech_b, status=TicketStatus.ASSIGNED)
    with pytest.raises(ConflictError):
        await services.lifecycle.assign(ticket.id, backbone_tech.id, admin)
    assert len(store.active_rows(ticket.id)) == 2


@pytest.mark.asyncio
async def test_assign_same_technician_twice(services, store, admin, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.ASSIGNED)
    with pytest.raises(ConflictError):
        await services.lifecycle.assign(ticket.id, tech_a.id, admin)


@pytest.mark.asyncio
async def test_assign_busy_technician(services, store, admin, tech_a):
    _working(store, tech_a)
    other = add_ticket(store)
    with pytest.raises(ConflictError):
        await services.lifecycle.assign(other.id, tech_a.id, admin)


@pytest.mark.asyncio
async def test_assign_non_technician(services, store, admin, helpdesk):
    ticket = add_ticket(store)
    with pytest.raises(ValidationError) as exc:
        await services.lifecycle.assign(ticket.id, helpdesk.id, admin)
    assert exc.value.field == "user_id"


@pytest.mark.asyncio
async def test_assign_unknown_user(services, store, admin):
    ticket = add_ticket(store)
    with pytest.raises(NotFoundError):
        await services.lifecycle.assign(ticket.id, 404, admin)


@pytest.mark.asyncio
async def test_technician_cannot_assign(services, store, tech_a, tech_b):
    ticket = add_ticket(store)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.assign(ticket.id, tech_b.id, tech_a)


@pytest.mark.asyncio
async def test_assign_closed_ticket_conflicts(services, store, admin, tech_a):
    ticket = add_ticket(store, status=TicketStatus.CLOSED)
    with pytest.raises(ConflictError):
        await services.lifecycle.assign(ticket.id, tech_a.id, admin)


@pytest.mark.asyncio
async def test_helpdesk_leaves_general_leads_to_auto_assign(services, store, helpdesk, tech_a):
    ticket = add_ticket(store)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.assign(ticket.id, tech_a.id, helpdesk)


@pytest.mark.asyncio
async def test_helpdesk_may_send_backbone_specialist(services, store, helpdesk, backbone_tech):
    ticket = add_ticket(store)
    result = await services.lifecycle.assign(ticket.id, backbone_tech.id, helpdesk)
    assert result.status == TicketStatus.ASSIGNED
    assert _active_ids(store, ticket) == [backbone_tech.id]


# ─── Reassign / unassign ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reassign_replaces_crew_and_keeps_history(services, store, admin, tech_a, tech_b):
    ticket = _working(store, tech_a)
    result = await services.lifecycle.reassign(ticket.id, [tech_b.id], admin)

    assert result.status == TicketStatus.ASSIGNED
    assert _active_ids(store, ticket) == [tech_b.id]
    history = [a for a in store.assignments if a.ticket_id == ticket.id]
    assert [(a.user_id, a.active) for a in history] == [(tech_a.id, False), (tech_b.id, True)]


@pytest.mark.asyncio
async def test_reassign_locks_crew_rows_in_id_order(services, store, admin, tech_a, tech_b):
    ticket = _working(store, tech_a, status=TicketStatus.ASSIGNED)
    await services.lifecycle.reassign(ticket.id, [tech_b.id, tech_a.id], admin)

    assert store.locks == [f"user:{tech_a.id}", f"user:{tech_b.id}"]
    # Lead order follows the request, not the lock order
    assert _active_ids(store, ticket) == [tech_b.id, tech_a.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("ids", [[], [1, 2, 3], [5, 5]])
async def test_reassign_rejects_bad_crews(services, store, admin, tech_a, ids):
    ticket = _working(store, tech_a)
    with pytest.raises(ValidationError) as exc:
        await services.lifecycle.reassign(ticket.id, ids, admin)
    assert exc.value.field == "technician_ids"


@pytest.mark.asyncio
async def test_helpdesk_reassign_keeps_lead(services, store, helpdesk, tech_a, tech_b):
    ticket = _working(store, tech_a)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.reassign(ticket.id, [tech_b.id], helpdesk)


@pytest.mark.asyncio
async def test_helpdesk_reassign_partner_must_be_specialist(services, store, helpdesk, tech_a, tech_b):
    ticket = _working(store, tech_a)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.reassign(ticket.id, [tech_a.id, tech_b.id], helpdesk)


@pytest.mark.asyncio
async def test_helpdesk_adds_specialist_partner(services, store, helpdesk, tech_a, backbone_tech):
    ticket = _working(store, tech_a)
    await services.lifecycle.reassign(ticket.id, [tech_a.id, backbone_tech.id], helpdesk)
    assert _active_ids(store, ticket) == [tech_a.id, backbone_tech.id]


@pytest.mark.asyncio
async def test_helpdesk_reassign_needs_existing_lead(services, store, helpdesk, backbone_tech):
    ticket = add_ticket(store)
    with pytest.raises(ValidationError):
        await services.lifecycle.reassign(ticket.id, [backbone_tech.id], helpdesk)


@pytest.mark.asyncio
async def test_unassign_returns_ticket_to_pool(services, store, admin, tech_a, tech_b):
    ticket = _working(store, tech_a, tech_b, status=TicketStatus.ASSIGNED)
    result = await services.lifecycle.unassign(ticket.id, admin)
    assert result.status == TicketStatus.OPEN
    assert store.active_rows(ticket.id) == []


@pytest.mark.asyncio
async def test_helpdesk_cannot_unassign(services, store, helpdesk, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.ASSIGNED)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.unassign(ticket.id, helpdesk)


# ─── Start / close ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_assignee_starts_ticket(services, store, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.ASSIGNED)
    result = await services.lifecycle.start(ticket.id, tech_a)
    assert result.status == TicketStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_only_assignee_may_start(services, store, tech_a, tech_b):
    ticket = _working(store, tech_a, status=TicketStatus.ASSIGNED)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.start(ticket.id, tech_b)


@pytest.mark.asyncio
async def test_start_twice_conflicts(services, store, tech_a):
    ticket = _working(store, tech_a)
    with pytest.raises(ConflictError):
        await services.lifecycle.start(ticket.id, tech_a)


@pytest.mark.asyncio
async def test_close_on_time_pays_every_assignee_in_full(services, store, clock, tech_a, tech_b):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    ticket = _working(store, tech_a, tech_b)
    clock.advance(hours=10)

    result = await services.lifecycle.close(ticket.id, REPORT, tech_b)

    assert result.status == TicketStatus.CLOSED
    assert result.closed_reason == ClosedReason.COMPLETED
    assert result.closed_at == clock.now
    assert result.duration_minutes == 600
    assert result.perform_status == PerformStatus.PERFORM
    assert result.ticket_fee == Decimal("50000.00")
    assert result.transport_fee == Decimal("20000.00")
    assert result.bonus == Decimal("70000.00")
    assert result.proof_image_url == "https://cdn.example.com/proof-1.jpg"

    logs = sorted(store.logs, key=lambda log: log.user_id)
    assert [log.user_id for log in logs] == [tech_a.id, tech_b.id]
    for log in logs:
        assert log.completed_within_sla
        assert log.ticket_fee == Decimal("50000.00")
        assert log.transport_fee == Decimal("20000.00")
        assert log.bonus == Decimal("70000.00")
        assert log.created_at == clock.now


@pytest.mark.asyncio
async def test_close_after_deadline_withholds_fees(services, store, clock, tech_a, tech_b):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    ticket = _working(store, tech_a, tech_b)
    clock.advance(hours=26)

    result = await services.lifecycle.close(ticket.id, REPORT, tech_a)

    assert result.perform_status == PerformStatus.NOT_PERFORM
    assert result.bonus == 0
    assert len(store.logs) == 2
    assert all(log.bonus == 0 and not log.completed_within_sla for log in store.logs)


@pytest.mark.asyncio
async def test_close_requires_proof(services, store, tech_a):
    ticket = _working(store, tech_a)
    with pytest.raises(ValidationError) as exc:
        await services.lifecycle.close(ticket.id, ClosingReport(action_description="done"), tech_a)
    assert exc.value.field == "proof_image_urls"
    assert store.tickets[ticket.id].status == TicketStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_close_requires_action_description(services, store, tech_a):
    ticket = _working(store, tech_a)
    report = ClosingReport(action_description=" ", proof_image_url="https://cdn.example.com/a.jpg")
    with pytest.raises(ValidationError) as exc:
        await services.lifecycle.close(ticket.id, report, tech_a)
    assert exc.value.field == "action_description"


@pytest.mark.asyncio
async def test_close_from_assigned_conflicts(services, store, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.ASSIGNED)
    with pytest.raises(ConflictError):
        await services.lifecycle.close(ticket.id, REPORT, tech_a)


# ─── No response / rejection ────────────────────────────────────────


@pytest.mark.asyncio
async def test_no_response_parks_ticket(services, store, tech_a):
    ticket = _working(store, tech_a)
    result = await services.lifecycle.report_no_response(ticket.id, "Customer not home", tech_a)
    assert result.status == TicketStatus.PENDING_REJECTION
    assert result.status_before_rejection == TicketStatus.IN_PROGRESS
    assert result.rejection_reason == "Customer not home"
    # Crew stays attached while staff review
    assert _active_ids(store, ticket) == [tech_a.id]


@pytest.mark.asyncio
async def test_no_response_requires_reason(services, store, tech_a):
    ticket = _working(store, tech_a)
    with pytest.raises(ValidationError):
        await services.lifecycle.report_no_response(ticket.id, "", tech_a)


@pytest.mark.asyncio
async def test_parked_ticket_is_frozen_for_technician(services, store, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.PENDING_REJECTION)
    with pytest.raises(ConflictError):
        await services.lifecycle.close(ticket.id, REPORT, tech_a)


@pytest.mark.asyncio
async def test_cancel_reject_restores_previous_status(services, store, admin, tech_a):
    ticket = _working(
        store, tech_a, status=TicketStatus.PENDING_REJECTION,
        status_before_rejection=TicketStatus.IN_PROGRESS, rejection_reason="Not home",
    )
    result = await services.lifecycle.cancel_reject(ticket.id, admin)
    assert result.status == TicketStatus.IN_PROGRESS
    assert result.rejection_reason is None
    assert result.status_before_rejection is None


@pytest.mark.asyncio
async def test_cancel_reject_refuses_when_crew_took_other_work(services, store, admin, tech_a):
    parked = _working(
        store, tech_a, status=TicketStatus.PENDING_REJECTION,
        status_before_rejection=TicketStatus.ASSIGNED, rejection_reason="Not home",
    )
    add_ticket(store, type=TicketType.INSTALLATION)
    # A parked ticket does not count as active work, so the technician can take another
    second = await services.lifecycle.auto_assign(tech_a)
    assert second.id != parked.id

    with pytest.raises(ConflictError) as exc:
        await services.lifecycle.cancel_reject(parked.id, admin)
    assert exc.value.details == {"user_id": tech_a.id, "ticket_id": second.id}
    assert store.tickets[parked.id].status == TicketStatus.PENDING_REJECTION
    assert store.tickets[parked.id].rejection_reason == "Not home"


@pytest.mark.asyncio
async def test_reject_confirms_and_appends_reason(services, store, helpdesk, tech_a):
    ticket = _working(
        store, tech_a, status=TicketStatus.PENDING_REJECTION,
        status_before_rejection=TicketStatus.ASSIGNED, rejection_reason="Not home",
    )
    result = await services.lifecycle.reject(ticket.id, "Called twice", helpdesk)
    assert result.status == TicketStatus.REJECTED
    assert result.rejection_reason == "Not home\n[Confirmed] Called twice"
    assert result.perform_status is None
    assert result.bonus == 0


@pytest.mark.asyncio
async def test_technician_cannot_reject(services, store, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.PENDING_REJECTION)
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.reject(ticket.id, "no", tech_a)


@pytest.mark.asyncio
async def test_close_by_helpdesk_pays_nothing(services, store, helpdesk, tech_a):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    ticket = _working(
        store, tech_a, status=TicketStatus.PENDING_REJECTION, rejection_reason="Not home",
    )
    result = await services.lifecycle.close_by_helpdesk(ticket.id, "Customer cancelled", helpdesk)

    assert result.status == TicketStatus.CLOSED
    assert result.closed_reason == ClosedReason.CLOSED_BY_HELPDESK
    assert result.closed_note == "Customer cancelled"
    assert result.perform_status == PerformStatus.NOT_PERFORM
    assert result.bonus == 0 and result.ticket_fee == 0 and result.transport_fee == 0
    assert result.rejection_reason.endswith("[Closed by helpdesk] Customer cancelled")
    assert [log.bonus for log in store.logs] == [0]


@pytest.mark.asyncio
async def test_close_by_helpdesk_requires_reason(services, store, helpdesk, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.PENDING_REJECTION)
    with pytest.raises(ValidationError):
        await services.lifecycle.close_by_helpdesk(ticket.id, " ", helpdesk)


# ─── Reopen ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reopen_closed_ticket_with_new_crew(services, store, clock, admin, tech_a, tech_b):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    ticket = _working(store, tech_a)
    clock.advance(hours=2)
    await services.lifecycle.close(ticket.id, REPORT, tech_a)
    assert len(store.logs) == 1

    reopened_at = clock.advance(hours=5)
    result = await services.lifecycle.reopen(ticket.id, "Signal dropped again", [tech_b.id], admin)

    assert result.status == TicketStatus.ASSIGNED
    assert result.sla_deadline == reopened_at + timedelta(hours=24)
    assert result.closed_at is None and result.perform_status is None
    assert result.bonus == 0
    assert result.reopen_reason == "[Reopened 2026-03-10 16:00] Signal dropped again"
    assert store.logs == []
    assert _active_ids(store, ticket) == [tech_b.id]


@pytest.mark.asyncio
async def test_reopen_needs_technicians(services, store, admin):
    ticket = add_ticket(store, status=TicketStatus.REJECTED)
    with pytest.raises(ValidationError):
        await services.lifecycle.reopen(ticket.id, "Try again", [], admin)


@pytest.mark.asyncio
async def test_reopen_open_ticket_conflicts(services, store, admin, tech_a):
    ticket = add_ticket(store)
    with pytest.raises(ConflictError):
        await services.lifecycle.reopen(ticket.id, "?", [tech_a.id], admin)


@pytest.mark.asyncio
async def test_reopen_rejected_keeps_current_crew(services, store, clock, admin, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.REJECTED, rejection_reason="Not home")
    now = clock.advance(days=1)

    result = await services.lifecycle.reopen_rejected(ticket.id, "Customer called back", ReopenMode.CURRENT, admin)

    assert result.status == TicketStatus.ASSIGNED
    assert result.rejection_reason is None
    assert result.sla_deadline == now + timedelta(hours=24)
    assert "CURRENT_ASSIGNMENT" in result.reopen_reason
    assert _active_ids(store, ticket) == [tech_a.id]


@pytest.mark.asyncio
async def test_reopen_rejected_current_without_crew(services, store, admin):
    ticket = add_ticket(store, status=TicketStatus.REJECTED)
    with pytest.raises(ConflictError):
        await services.lifecycle.reopen_rejected(ticket.id, "again", ReopenMode.CURRENT, admin)


@pytest.mark.asyncio
async def test_reopen_rejected_auto_returns_to_pool(services, store, admin, tech_a):
    ticket = _working(store, tech_a, status=TicketStatus.REJECTED)
    result = await services.lifecycle.reopen_rejected(ticket.id, "again", ReopenMode.AUTO, admin)
    assert result.status == TicketStatus.OPEN
    assert "AUTO_OPEN" in result.reopen_reason
    assert store.active_rows(ticket.id) == []


# ─── Stale reset ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reset_only_touches_old_assigned_tickets(services, store, clock, admin, tech_a, tech_b, backbone_tech):
    stale = add_ticket(store, status=TicketStatus.ASSIGNED)
    attach(store, stale, tech_a, assigned_at=NOW - timedelta(hours=25))
    working = add_ticket(store, status=TicketStatus.IN_PROGRESS)
    attach(store, working, tech_b, assigned_at=NOW - timedelta(hours=30))
    fresh = add_ticket(store, type=TicketType.BACKBONE_MAINTENANCE, status=TicketStatus.ASSIGNED)
    attach(store, fresh, backbone_tech, assigned_at=NOW - timedelta(hours=2))

    count = await services.lifecycle.reset_stale_assignments(max_age_hours=24, actor=admin)

    assert count == 1
    assert store.tickets[stale.id].status == TicketStatus.OPEN
    assert store.active_rows(stale.id) == []
    assert store.tickets[working.id].status == TicketStatus.IN_PROGRESS
    assert store.tickets[fresh.id].status == TicketStatus.ASSIGNED


@pytest.mark.asyncio
async def test_scheduled_reset_needs_no_actor(services, store, tech_a):
    stale = add_ticket(store, status=TicketStatus.ASSIGNED)
    attach(store, stale, tech_a, assigned_at=NOW - timedelta(days=2))
    assert await services.lifecycle.reset_stale_assignments() == 1


@pytest.mark.asyncio
async def test_reset_is_admin_only(services, helpdesk):
    with pytest.raises(UnauthorizedError):
        await services.lifecycle.reset_stale_assignments(actor=helpdesk)


@pytest.mark.asyncio
async def test_reset_threshold_must_be_positive(services, admin):
    with pytest.raises(ValidationError):
        await services.lifecycle.reset_stale_assignments(max_age_hours=0, actor=admin)
