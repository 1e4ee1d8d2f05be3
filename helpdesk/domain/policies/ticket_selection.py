"""TicketSelectionPolicy — which open ticket a technician gets next."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User
from helpdesk.domain.value_objects.enums import TicketClass, TicketStatus, TicketType
from helpdesk.domain.value_objects.geo_point import GeoPoint

PROXIMITY_RADIUS_KM = 2.0

BACKBONE_TYPES = frozenset({TicketType.BACKBONE_MAINTENANCE})
GENERAL_TYPES = frozenset({TicketType.HOME_MAINTENANCE, TicketType.INSTALLATION})


@dataclass(frozen=True)
class TicketChoice:
    """Result of the selection policy."""

    ticket: Ticket
    preferred_class: TicketClass | None
    fallback_used: bool
    reason: str


def eligible_types(technician: User) -> frozenset[TicketType]:
    """Backbone specialists only take backbone work; everyone else never does."""
    if technician.is_backbone_specialist:
        return BACKBONE_TYPES
    return GENERAL_TYPES


def is_eligible(technician: User, ticket: Ticket) -> bool:
    return ticket.status == TicketStatus.OPEN and ticket.type in eligible_types(technician)


def oldest_first_key(ticket: Ticket) -> tuple:
    """Oldest first, then most urgent priority, then id for determinism."""
    return (ticket.created_at, ticket.priority.rank, ticket.id or 0)


def most_overdue(candidates: list[Ticket], now: datetime) -> Ticket | None:
    overdue = [t for t in candidates if t.is_overdue(now)]
    if not overdue:
        return None
    return min(overdue, key=lambda t: (t.sla_deadline, t.id or 0))


def pick_best_candidate(
    candidates: list[Ticket],
    now: datetime,
    last_location: GeoPoint | None = None,
    radius_km: float = PROXIMITY_RADIUS_KM,
) -> Ticket | None:
    """Pick one ticket from a same-class candidate list.

    1. Overdue tickets first, earliest deadline first.
    2. With a known last job location, the oldest ticket within *radius_km*.
    3. Otherwise the oldest ticket (priority, then id break ties).
    """
    if not candidates:
        return None

    overdue = most_overdue(candidates, now)
    if overdue is not None:
        return overdue

    if last_location is not None:
        nearby = [
            t for t in candidates
            if t.location is not None and last_location.haversine_km(t.location) <= radius_km
        ]
        if nearby:
            return min(nearby, key=oldest_first_key)

    return min(candidates, key=oldest_first_key)


def select_ticket(
    open_tickets: list[Ticket],
    technician: User,
    preferred_class: TicketClass,
    now: datetime,
    last_location: GeoPoint | None = None,
    radius_km: float = PROXIMITY_RADIUS_KM,
    overdue_first: bool = True,
) -> TicketChoice | None:
    """Choose the next ticket for *technician*, or None if nothing is eligible.

    Backbone specialists draw from the backbone queue only, ignoring the class
    cycle. Everyone else gets the most overdue eligible ticket if any (when
    *overdue_first*), otherwise a ticket of *preferred_class*, falling back to
    the other class so nobody is left idle while work is queued.
    """
    pool = [t for t in open_tickets if is_eligible(technician, t)]
    if not pool:
        return None

    if technician.is_backbone_specialist:
        ticket = pick_best_candidate(pool, now, last_location, radius_km)
        return TicketChoice(ticket=ticket, preferred_class=None, fallback_used=False, reason="Backbone queue")

    if overdue_first:
        overdue = most_overdue(pool, now)
        if overdue is not None:
            return TicketChoice(
                ticket=overdue,
                preferred_class=preferred_class,
                fallback_used=overdue.ticket_class != preferred_class,
                reason=f"Most overdue ticket (deadline {overdue.sla_deadline.isoformat()})",
            )

    preferred = [t for t in pool if t.ticket_class == preferred_class]
    if preferred:
        ticket = pick_best_candidate(preferred, now, last_location, radius_km)
        return TicketChoice(
            ticket=ticket,
            preferred_class=preferred_class,
            fallback_used=False,
            reason=f"Cycle prefers {preferred_class.value}",
        )

    others = [t for t in pool if t.ticket_class != preferred_class]
    ticket = pick_best_candidate(others, now, last_location, radius_km)
    return TicketChoice(
        ticket=ticket,
        preferred_class=preferred_class,
        fallback_used=True,
        reason=f"No {preferred_class.value} ticket queued, fell back to {ticket.ticket_class.value}",
    )
