"""AssignmentEngine — decides who works which ticket.

Manual assignment validates a staff choice; auto-assignment picks the next
ticket for a technician using the maintenance/installation cycle. Neither
writes assignment rows; the lifecycle service applies the decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time

from helpdesk.application.ports.assignment_repo import AssignmentRepository
from helpdesk.application.ports.round_robin_repo import RoundRobinRepository
from helpdesk.application.ports.settings_repo import SettingsRepository
from helpdesk.application.ports.ticket_repo import TicketRepository
from helpdesk.application.ports.user_repo import UserRepository
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User
from helpdesk.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from helpdesk.domain.policies.round_robin import AssignRatio, pick_next
from helpdesk.domain.policies.ticket_selection import (
    GENERAL_TYPES,
    PROXIMITY_RADIUS_KM,
    eligible_types,
    select_ticket,
)
from helpdesk.domain.value_objects.enums import AssignmentType, TicketType, UserRole

logger = logging.getLogger(__name__)

MAX_ASSIGNEES = 2

# round_robin_state keys
CLASS_CYCLE_KEY = "auto-assign:class-cycle"
BACKBONE_CYCLE_KEY = "auto-assign:backbone"
PARTNER_CYCLE_KEY = "auto-assign:partner"


@dataclass
class AssignmentDecision:
    """Ticket plus the crew to attach, lead first."""

    ticket: Ticket
    technicians: list[User]
    assignment_type: AssignmentType
    reason: str
    counter: int | None = None
    notes: list[str] = field(default_factory=list)

    @property
    def lead(self) -> User:
        return self.technicians[0]

    @property
    def partner(self) -> User | None:
        return self.technicians[1] if len(self.technicians) > 1 else None


class AssignmentEngine:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        user_repo: UserRepository,
        assignment_repo: AssignmentRepository,
        settings_repo: SettingsRepository,
        rr_repo: RoundRobinRepository,
        auto_pair_partner: bool = True,
        proximity_radius_km: float = PROXIMITY_RADIUS_KM,
        overdue_first: bool = True,
    ):
        self._tickets = ticket_repo
        self._users = user_repo
        self._assignments = assignment_repo
        self._settings = settings_repo
        self._rr = rr_repo
        self._auto_pair_partner = auto_pair_partner
        self._radius_km = proximity_radius_km
        self._overdue_first = overdue_first

    # ── Manual ──────────────────────────────────────────────────────────

    async def plan_manual(self, ticket: Ticket, technician_id: int, actor: User) -> AssignmentDecision:
        """Validate adding *technician_id* to the ticket's crew.

        Staff are trusted to pick the right specialization; only the crew size
        and the one-active-ticket rule are enforced.
        """
        technician = await self._load_technician(technician_id, field_name="user_id")

        current = await self._assignments.get_active(ticket.id)
        if any(a.user_id == technician.id for a in current):
            raise ConflictError(
                f"{technician.name} is already assigned to ticket {ticket.ticket_number}",
                details={"user_id": technician.id},
            )
        if len(current) >= MAX_ASSIGNEES:
            raise ConflictError(
                f"Ticket {ticket.ticket_number} already has {MAX_ASSIGNEES} technicians",
                details={"assignees": [a.user_id for a in current]},
            )

        # Other technicians take general work through auto-assign
        if (
            actor.role == UserRole.HELPDESK
            and ticket.type in GENERAL_TYPES
            and not current
            and not technician.is_backbone_specialist
        ):
            raise UnauthorizedError(
                "Helpdesk can only manually assign backbone specialists to home maintenance "
                "and installation tickets; other technicians use auto-assign"
            )

        await self._ensure_idle(technician, ticket)

        return AssignmentDecision(
            ticket=ticket,
            technicians=[technician],
            assignment_type=AssignmentType.MANUAL,
            reason=f"Assigned by {actor.name}",
        )

    async def plan_team(self, ticket: Ticket, technician_ids: list[int]) -> list[User]:
        """Validate a full replacement crew of one or two technicians."""
        if not technician_ids:
            raise ValidationError("At least one technician is required", field="technician_ids")
        if len(technician_ids) > MAX_ASSIGNEES:
            raise ValidationError(
                f"At most {MAX_ASSIGNEES} technicians per ticket", field="technician_ids"
            )
        if len(set(technician_ids)) != len(technician_ids):
            raise ValidationError("Technicians must be distinct", field="technician_ids")

        loaded = {}
        for technician_id in sorted(technician_ids):
            loaded[technician_id] = await self._load_technician(technician_id, field_name="technician_ids")
        team = [loaded[technician_id] for technician_id in technician_ids]
        for technician in team:
            await self._ensure_idle(technician, ticket)
        return team

    async def ensure_crew_idle(self, ticket: Ticket, user_ids: list[int]) -> None:
        """Lock the crew rows and refuse if any of them works another ticket."""
        for user_id in sorted(user_ids):
            technician = await self._users.get_by_id(user_id, for_update=True)
            if technician is None:
                raise NotFoundError("user", user_id)
            await self._ensure_idle(technician, ticket)

    # ── Auto ────────────────────────────────────────────────────────────

    async def plan_auto(
        self,
        technician_id: int,
        now: datetime,
        partner_id: int | None = None,
    ) -> AssignmentDecision:
        """Pick the next ticket for a technician who asked for work.

        1. Lock the cycle counter row; concurrent auto-assigns queue here
        2. Refuse if the technician already holds an active ticket
        3. Preferred class from the counter and the configured ratio
        4. Overdue first, then preferred class near the last job, then oldest
        5. Attach the requested partner, or pick an idle one
        6. Lock the crew's user rows in id order and re-check they are idle

        No user row is locked before the counter, and user rows are always
        locked in ascending id order, matching ``plan_team``.
        """
        technician = await self._users.get_by_id(technician_id)
        if technician is None:
            raise NotFoundError("user", technician_id)
        if not technician.is_technician():
            raise UnauthorizedError("Only technicians can request auto-assignment")
        if not technician.is_active:
            raise UnauthorizedError("Inactive technicians cannot take tickets")

        rr_key = BACKBONE_CYCLE_KEY if technician.is_backbone_specialist else CLASS_CYCLE_KEY
        counter = await self._rr.increment_counter(rr_key)

        active = await self._tickets.get_active_for_user(technician.id)
        if active is not None:
            raise ConflictError(
                "You already have an active ticket. Complete it before taking another.",
                details={"ticket_id": active.id, "ticket_number": active.ticket_number},
            )

        partner = None
        if partner_id is not None:
            partner = await self._validate_partner(technician, partner_id)

        ratio = AssignRatio.from_settings(await self._settings.as_mapping())
        preferred_class = ratio.class_for(counter)

        open_tickets = await self._tickets.get_open(eligible_types(technician), for_update=True)
        day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        last_closed = await self._tickets.get_last_closed_for_user(technician.id, since=day_start)
        last_location = last_closed.location if last_closed is not None else None

        choice = select_ticket(
            open_tickets,
            technician,
            preferred_class,
            now,
            last_location=last_location,
            radius_km=self._radius_km,
            overdue_first=self._overdue_first,
        )
        if choice is None:
            raise NotFoundError("ticket", message="No open tickets available for auto-assignment")

        ticket = choice.ticket
        notes = []
        requested = partner is not None
        if requested:
            self._check_isolation(partner, ticket)
        elif self._auto_pair_partner and ticket.type != TicketType.BACKBONE_MAINTENANCE:
            partner = await self._find_partner(technician)

        team = await self._lock_crew(technician, partner, requested=requested)
        partner = team[1] if len(team) > 1 else None
        if partner is None and not requested and self._auto_pair_partner \
                and ticket.type != TicketType.BACKBONE_MAINTENANCE:
            notes.append("No idle partner available, assigned alone")
        logger.info(
            "Auto-assign: %s → %s (counter=%d, %s)%s",
            technician.name, ticket.ticket_number, counter, choice.reason,
            f" with partner {partner.name}" if partner else "",
        )
        return AssignmentDecision(
            ticket=ticket,
            technicians=team,
            assignment_type=AssignmentType.AUTO,
            reason=choice.reason,
            counter=counter,
            notes=notes,
        )

    async def _idle_technicians(self, exclude_id: int | None = None) -> list[User]:
        """Active technicians with no assigned/in-progress ticket."""
        busy = await self._assignments.get_busy_user_ids()
        technicians = await self._users.list(role=UserRole.TECHNICIAN, active_only=True)
        return [t for t in technicians if t.id not in busy and t.id != exclude_id]

    # ── Helpers ─────────────────────────────────────────────────────────

    async def _load_technician(self, technician_id: int, field_name: str) -> User:
        technician = await self._users.get_by_id(technician_id, for_update=True)
        if technician is None:
            raise NotFoundError("user", technician_id)
        if not technician.is_assignable():
            raise ValidationError(
                f"{technician.name} is not an active technician", field=field_name
            )
        return technician

    async def _ensure_idle(self, technician: User, ticket: Ticket) -> None:
        active = await self._tickets.get_active_for_user(technician.id)
        if active is not None and active.id != ticket.id:
            raise ConflictError(
                f"{technician.name} is already working on ticket {active.ticket_number}",
                details={"user_id": technician.id, "ticket_id": active.id},
            )

    @staticmethod
    def _check_isolation(technician: User, ticket: Ticket) -> None:
        if ticket.type not in eligible_types(technician):
            kind = "backbone specialist" if technician.is_backbone_specialist else "general technician"
            raise ConflictError(
                f"A {kind} cannot work {ticket.type.value} tickets",
                details={"user_id": technician.id, "ticket_type": ticket.type.value},
            )

    async def _validate_partner(self, technician: User, partner_id: int) -> User:
        if partner_id == technician.id:
            raise ValidationError("Partner must be a different technician", field="partner_id")
        partner = await self._users.get_by_id(partner_id)
        if partner is None or not partner.is_assignable():
            raise ValidationError("Selected partner is not an active technician", field="partner_id")
        active = await self._tickets.get_active_for_user(partner.id)
        if active is not None:
            raise ConflictError(
                f"{partner.name} is already working on ticket {active.ticket_number}",
                details={"user_id": partner.id, "ticket_id": active.id},
            )
        return partner

    async def _find_partner(self, technician: User) -> User | None:
        candidates = [
            t for t in await self._idle_technicians(exclude_id=technician.id)
            if not t.is_backbone_specialist
        ]
        if not candidates:
            logger.warning("Auto-assign: no idle partner for %s", technician.name)
            return None

        counter = await self._rr.increment_counter(PARTNER_CYCLE_KEY)
        chosen, _ = pick_next(candidates, counter)
        return chosen

    async def _lock_crew(self, technician: User, partner: User | None, requested: bool) -> list[User]:
        """Lock the crew rows in id order and re-check both are still idle.

        A requested partner who became busy is a conflict; an auto-picked one
        is dropped and the requester works alone.
        """
        members = [technician] if partner is None else [technician, partner]
        locked = {}
        for member in sorted(members, key=lambda u: u.id):
            locked[member.id] = await self._users.get_by_id(member.id, for_update=True)

        lead = locked[technician.id]
        if lead is None:
            raise NotFoundError("user", technician.id)
        active = await self._tickets.get_active_for_user(lead.id)
        if active is not None:
            raise ConflictError(
                "You already have an active ticket. Complete it before taking another.",
                details={"ticket_id": active.id, "ticket_number": active.ticket_number},
            )
        if partner is None:
            return [lead]

        mate = locked[partner.id]
        active = await self._tickets.get_active_for_user(partner.id) if mate is not None else None
        if mate is not None and active is None:
            return [lead, mate]
        if requested:
            raise ConflictError(
                f"{partner.name} is already working on ticket {active.ticket_number}"
                if active is not None else f"{partner.name} is no longer available",
                details={"user_id": partner.id},
            )
        logger.warning("Auto-assign: partner %s became busy, assigning alone", partner.name)
        return [lead]
