"""Ticket status state machine — which actions each status admits."""

from __future__ import annotations

from enum import Enum

from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.errors import ConflictError
from helpdesk.domain.value_objects.enums import TicketStatus

S = TicketStatus


class TicketAction(str, Enum):
    ASSIGN = "assign"
    REASSIGN = "reassign"
    UNASSIGN = "unassign"
    AUTO_ASSIGN = "auto_assign"
    START = "start"
    CLOSE = "close"
    NO_RESPONSE = "no_response"
    REJECT = "reject"
    CANCEL_REJECT = "cancel_reject"
    CLOSE_BY_HELPDESK = "close_by_helpdesk"
    REOPEN = "reopen"
    REOPEN_REJECTED = "reopen_rejected"
    RESET_STALE = "reset_stale"


ALLOWED_FROM: dict[TicketAction, frozenset[TicketStatus]] = {
    TicketAction.ASSIGN: frozenset({S.OPEN, S.WAITING_ASSIGNMENT, S.ASSIGNED}),
    TicketAction.REASSIGN: frozenset({S.OPEN, S.WAITING_ASSIGNMENT, S.ASSIGNED, S.IN_PROGRESS}),
    TicketAction.UNASSIGN: frozenset({S.OPEN, S.WAITING_ASSIGNMENT, S.ASSIGNED, S.IN_PROGRESS}),
    TicketAction.AUTO_ASSIGN: frozenset({S.OPEN}),
    TicketAction.START: frozenset({S.ASSIGNED}),
    TicketAction.CLOSE: frozenset({S.IN_PROGRESS}),
    TicketAction.NO_RESPONSE: frozenset({S.ASSIGNED, S.IN_PROGRESS}),
    TicketAction.REJECT: frozenset({S.PENDING_REJECTION}),
    TicketAction.CANCEL_REJECT: frozenset({S.PENDING_REJECTION}),
    TicketAction.CLOSE_BY_HELPDESK: frozenset({S.PENDING_REJECTION}),
    TicketAction.REOPEN: frozenset({S.CLOSED, S.REJECTED}),
    TicketAction.REOPEN_REJECTED: frozenset({S.REJECTED}),
    TicketAction.RESET_STALE: frozenset({S.ASSIGNED}),
}


def can_transition(status: TicketStatus, action: TicketAction) -> bool:
    return status in ALLOWED_FROM[action]


def ensure_transition(ticket: Ticket, action: TicketAction) -> None:
    """Raise ConflictError unless *ticket*'s status is a legal predecessor."""
    if can_transition(ticket.status, action):
        return
    allowed = sorted(s.value for s in ALLOWED_FROM[action])
    raise ConflictError(
        f"Cannot {action.value.replace('_', ' ')} ticket {ticket.ticket_number} "
        f"in status '{ticket.status.value}'",
        details={"status": ticket.status.value, "action": action.value, "allowed": allowed},
    )
