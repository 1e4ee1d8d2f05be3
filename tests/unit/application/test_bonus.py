"""Tests for BonusService settlement and recalculation."""

from datetime import timedelta
from decimal import Decimal

import pytest

from fakes import NOW, add_ticket, attach, set_fees
from helpdesk.application.use_cases.ticket_lifecycle import ClosingReport
from helpdesk.domain.entities.setting import Setting
from helpdesk.domain.errors import ConflictError
from helpdesk.domain.value_objects.enums import ClosedReason, PerformStatus, TicketStatus, TicketType

REPORT = ClosingReport(action_description="Replaced ONT", proof_image_url="https://cdn.example.com/p.jpg")


async def _close(services, store, ticket_type, *technicians, after_hours=1):
    ticket = add_ticket(store, type=ticket_type, status=TicketStatus.IN_PROGRESS)
    for technician in technicians:
        attach(store, ticket, technician)
    services.clock.now = NOW + timedelta(hours=after_hours)
    return await services.lifecycle.close(ticket.id, REPORT, technicians[0])


@pytest.mark.asyncio
async def test_legacy_bonus_key_is_the_ticket_fee(services, store, tech_a):
    store.settings["bonus_installation"] = Setting(key="bonus_installation", value="90000")
    ticket = await _close(services, store, TicketType.INSTALLATION, tech_a)
    assert ticket.ticket_fee == Decimal("90000.00")
    assert ticket.transport_fee == 0
    assert ticket.bonus == Decimal("90000.00")


@pytest.mark.asyncio
async def test_unconfigured_type_pays_zero_but_performs(services, store, tech_a):
    ticket = await _close(services, store, TicketType.BACKBONE_MAINTENANCE, tech_a)
    assert ticket.perform_status == PerformStatus.PERFORM
    assert ticket.bonus == 0
    assert store.logs[0].completed_within_sla


@pytest.mark.asyncio
async def test_settle_requires_closed_at(services, store):
    ticket = add_ticket(store, status=TicketStatus.CLOSED)
    with pytest.raises(ConflictError):
        await services.bonus.settle(ticket)


@pytest.mark.asyncio
async def test_recalculate_applies_new_fees(services, store, tech_a, tech_b):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    on_time = await _close(services, store, TicketType.HOME_MAINTENANCE, tech_a, tech_b)
    late = await _close(services, store, TicketType.HOME_MAINTENANCE, tech_a, after_hours=30)

    set_fees(store, TicketType.HOME_MAINTENANCE, "60000", "25000")
    result = await services.bonus.recalculate_all()

    assert result.tickets_updated == 2
    assert result.logs_written == 3
    assert on_time.bonus == Decimal("85000.00")
    assert late.bonus == 0
    assert late.perform_status == PerformStatus.NOT_PERFORM
    on_time_logs = [log for log in store.logs if log.ticket_id == on_time.id]
    assert sorted(log.user_id for log in on_time_logs) == [tech_a.id, tech_b.id]
    assert all(log.bonus == Decimal("85000.00") for log in on_time_logs)


@pytest.mark.asyncio
async def test_recalculate_keeps_helpdesk_closures_at_zero(services, store, helpdesk, tech_a):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    ticket = add_ticket(store, status=TicketStatus.PENDING_REJECTION)
    attach(store, ticket, tech_a)
    await services.lifecycle.close_by_helpdesk(ticket.id, "Duplicate report", helpdesk)

    await services.bonus.recalculate_all()

    assert ticket.closed_reason == ClosedReason.CLOSED_BY_HELPDESK
    assert ticket.bonus == 0
    assert [log.bonus for log in store.logs] == [0]


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(services, store, tech_a):
    set_fees(store, TicketType.HOME_MAINTENANCE, "50000", "20000")
    await _close(services, store, TicketType.HOME_MAINTENANCE, tech_a)
    await services.bonus.recalculate_all()
    await services.bonus.recalculate_all()
    assert len(store.logs) == 1


@pytest.mark.asyncio
async def test_revoke_removes_logs(services, store, tech_a):
    ticket = await _close(services, store, TicketType.HOME_MAINTENANCE, tech_a)
    assert await services.bonus.revoke(ticket) == 1
    assert store.logs == []
