"""BonusService — settles fees and performance logs for closed tickets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from helpdesk.application.ports.assignment_repo import AssignmentRepository
from helpdesk.application.ports.performance_repo import PerformanceLogRepository
from helpdesk.application.ports.settings_repo import SettingsRepository
from helpdesk.application.ports.ticket_repo import TicketFilter, TicketRepository
from helpdesk.domain.entities.performance_log import PerformanceLog
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.errors import ConflictError
from helpdesk.domain.policies.fees import (
    WITHHELD,
    BonusBreakdown,
    FeeSchedule,
    compute_bonus,
    is_within_sla,
)
from helpdesk.domain.value_objects.enums import ClosedReason, PerformStatus, TicketStatus

logger = logging.getLogger(__name__)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() // 60))


@dataclass
class RecalculationResult:
    tickets_updated: int
    logs_written: int


class BonusService:
    """Writes the fee fields on a closed ticket and one log per assignee."""

    def __init__(
        self,
        settings_repo: SettingsRepository,
        assignment_repo: AssignmentRepository,
        performance_repo: PerformanceLogRepository,
        ticket_repo: TicketRepository,
    ):
        self._settings = settings_repo
        self._assignments = assignment_repo
        self._performance = performance_repo
        self._tickets = ticket_repo

    async def load_schedule(self) -> FeeSchedule:
        return FeeSchedule.from_settings(await self._settings.as_mapping())

    async def settle(self, ticket: Ticket, breakdown: BonusBreakdown | None = None) -> BonusBreakdown:
        """Apply the fee outcome of a closure to *ticket* and its assignees.

        *ticket.closed_at* must already be set. Without an explicit
        *breakdown* the configured fees apply when the ticket closed on time.
        The caller persists the ticket.
        """
        if ticket.closed_at is None:
            raise ConflictError(f"Ticket {ticket.ticket_number} has no closed_at", details={"ticket_id": ticket.id})

        if breakdown is None:
            schedule = await self.load_schedule()
            on_time = is_within_sla(ticket.closed_at, ticket.sla_deadline)
            breakdown = compute_bonus(ticket.type, on_time, schedule)

        ticket.duration_minutes = elapsed_minutes(ticket.created_at, ticket.closed_at)
        ticket.perform_status = breakdown.perform_status
        ticket.ticket_fee = breakdown.ticket_fee
        ticket.transport_fee = breakdown.transport_fee
        ticket.bonus = breakdown.total_per_technician

        written = await self._write_logs(ticket, breakdown)
        logger.info(
            "Ticket %s settled: %s, %s per technician, %d log(s)",
            ticket.ticket_number, breakdown.perform_status.value,
            breakdown.total_per_technician, written,
        )
        return breakdown

    async def revoke(self, ticket: Ticket) -> int:
        """Remove the logs of a previous closure (used on reopen)."""
        removed = await self._performance.delete_for_ticket(ticket.id)
        if removed:
            logger.info("Ticket %s: removed %d performance log(s)", ticket.ticket_number, removed)
        return removed

    async def recalculate_all(self) -> RecalculationResult:
        """Re-derive fees for every closed ticket from the current settings.

        Perform/not-perform is kept as recorded; only the amounts change.
        Helpdesk closures stay at zero.
        """
        schedule = await self.load_schedule()
        closed = await self._tickets.list(TicketFilter(status=TicketStatus.CLOSED))

        tickets_updated = 0
        logs_written = 0
        for ticket in closed:
            if ticket.closed_at is None:
                logger.warning("Closed ticket %s has no closed_at, skipping", ticket.ticket_number)
                continue
            if ticket.closed_reason == ClosedReason.CLOSED_BY_HELPDESK:
                breakdown = WITHHELD
            else:
                if ticket.perform_status is None:
                    on_time = is_within_sla(ticket.closed_at, ticket.sla_deadline)
                else:
                    on_time = ticket.perform_status == PerformStatus.PERFORM
                breakdown = compute_bonus(ticket.type, on_time, schedule)

            ticket.perform_status = breakdown.perform_status
            ticket.ticket_fee = breakdown.ticket_fee
            ticket.transport_fee = breakdown.transport_fee
            ticket.bonus = breakdown.total_per_technician
            await self._tickets.update(ticket)
            logs_written += await self._write_logs(ticket, breakdown)
            tickets_updated += 1

        logger.info("Recalculated %d closed ticket(s), %d log(s)", tickets_updated, logs_written)
        return RecalculationResult(tickets_updated=tickets_updated, logs_written=logs_written)

    async def _write_logs(self, ticket: Ticket, breakdown: BonusBreakdown) -> int:
        # One row per (ticket, technician): replace whatever a prior closure left
        await self._performance.delete_for_ticket(ticket.id)
        assignees = await self._assignments.get_active(ticket.id)
        for assignment in assignees:
            await self._performance.add(
                PerformanceLog(
                    id=None,
                    user_id=assignment.user_id,
                    ticket_id=ticket.id,
                    result=breakdown.perform_status,
                    completed_within_sla=breakdown.completed_within_sla,
                    duration_minutes=ticket.duration_minutes or 0,
                    ticket_fee=breakdown.ticket_fee,
                    transport_fee=breakdown.transport_fee,
                    bonus=breakdown.total_per_technician,
                    created_at=ticket.closed_at,
                )
            )
        return len(assignees)
