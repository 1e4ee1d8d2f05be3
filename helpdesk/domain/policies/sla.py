"""SlaPolicy — ticket type → resolution deadline."""

from __future__ import annotations

from datetime import datetime, timedelta

from helpdesk.domain.value_objects.enums import TicketType

DEFAULT_SLA_HOURS = 24
INSTALLATION_SLA_HOURS = 72


def sla_duration(
    ticket_type: TicketType,
    default_hours: int = DEFAULT_SLA_HOURS,
    installation_hours: int = INSTALLATION_SLA_HOURS,
) -> timedelta:
    if ticket_type == TicketType.INSTALLATION:
        return timedelta(hours=installation_hours)
    return timedelta(hours=default_hours)


def compute_deadline(
    ticket_type: TicketType,
    created_at: datetime,
    default_hours: int = DEFAULT_SLA_HOURS,
    installation_hours: int = INSTALLATION_SLA_HOURS,
) -> datetime:
    """Pure function: installation → +72h, every other type → +24h.

    Used at creation and again, anchored on the reopen instant, when a ticket
    is reopened.
    """
    return created_at + sla_duration(ticket_type, default_hours, installation_hours)
