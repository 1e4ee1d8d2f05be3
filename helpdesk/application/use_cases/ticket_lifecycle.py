"""TicketLifecycleService — every status transition of a ticket.

Each public method is one unit of work: the caller commits on success and
rolls back when a HelpdeskError propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from helpdesk.application.ports.assignment_repo import AssignmentRepository
from helpdesk.application.ports.geocoder_port import GeocoderPort
from helpdesk.application.ports.ticket_repo import TicketRepository
from helpdesk.application.ports.user_repo import UserRepository
from helpdesk.application.use_cases.assignment_engine import AssignmentDecision, AssignmentEngine
from helpdesk.application.use_cases.bonus import BonusService
from helpdesk.domain.clock import utcnow
from helpdesk.domain.entities.assignment import Assignment
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User
from helpdesk.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from helpdesk.domain.policies.fees import WITHHELD, ZERO
from helpdesk.domain.policies.sla import DEFAULT_SLA_HOURS, INSTALLATION_SLA_HOURS, compute_deadline
from helpdesk.domain.policies.state_machine import TicketAction, ensure_transition
from helpdesk.domain.value_objects.enums import (
    AssignmentType,
    ClosedReason,
    ReopenMode,
    TicketPriority,
    TicketStatus,
    TicketType,
    UserRole,
)
from helpdesk.domain.value_objects.geo_point import GeoPoint
from helpdesk.domain.value_objects.names import clean_text, title_case

logger = logging.getLogger(__name__)

STAFF_ROLES = (UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.HELPDESK)
ADMIN_ROLES = (UserRole.SUPERADMIN, UserRole.ADMIN)

DEFAULT_STALE_HOURS = 24


@dataclass
class NewTicket:
    """Input for ticket creation."""

    type: TicketType
    priority: TicketPriority
    title: str
    description: str
    customer_name: str
    customer_phone: str
    customer_location_url: str
    customer_email: str | None = None
    area: str | None = None
    odp_info: str | None = None
    odp_location: str | None = None
    ticket_id_custom: str | None = None
    description_images: list[str] = field(default_factory=list)


@dataclass
class ClosingReport:
    """What the technician submits when finishing the job."""

    action_description: str
    proof_image_url: str | None = None
    proof_image_urls: list[str] = field(default_factory=list)
    speedtest_result: str | None = None
    speedtest_image_url: str | None = None


class TicketLifecycleService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        user_repo: UserRepository,
        assignment_repo: AssignmentRepository,
        engine: AssignmentEngine,
        bonus: BonusService,
        geocoder: GeocoderPort | None = None,
        clock: Callable[[], datetime] = utcnow,
        sla_hours_default: int = DEFAULT_SLA_HOURS,
        sla_hours_installation: int = INSTALLATION_SLA_HOURS,
    ):
        self._tickets = ticket_repo
        self._users = user_repo
        self._assignments = assignment_repo
        self._engine = engine
        self._bonus = bonus
        self._geocoder = geocoder
        self._clock = clock
        self._sla_hours = (sla_hours_default, sla_hours_installation)

    # ── Queries ─────────────────────────────────────────────────────────

    async def get(self, ticket_id: int, for_update: bool = False) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id, for_update=for_update)
        if ticket is None:
            raise NotFoundError("ticket", ticket_id)
        return ticket

    # ── Creation ────────────────────────────────────────────────────────

    async def create(self, data: NewTicket, actor: User) -> Ticket:
        """Log a new ticket in ``open`` with its SLA deadline fixed."""
        _require_role(actor, STAFF_ROLES, "create tickets")

        title = _required(data.title, "title")
        description = _required(data.description, "description")
        customer_name = title_case(_required(data.customer_name, "customer_name"))
        customer_phone = _required(data.customer_phone, "customer_phone")
        location_url = _required(data.customer_location_url, "customer_location_url")

        now = self._clock()
        point, area = await self._locate(location_url, clean_text(data.area))
        day = now.strftime("%y%m%d")
        sequence = await self._tickets.max_daily_sequence(day) + 1

        ticket = Ticket(
            id=None,
            ticket_number=f"INC-{day}-{sequence:04d}",
            type=data.type,
            priority=data.priority,
            status=TicketStatus.OPEN,
            title=title,
            description=description,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_location_url=location_url,
            customer_email=clean_text(data.customer_email),
            area=area,
            odp_info=clean_text(data.odp_info),
            odp_location=clean_text(data.odp_location),
            ticket_id_custom=clean_text(data.ticket_id_custom) or f"{day}{sequence:04d}",
            latitude=point.latitude if point else None,
            longitude=point.longitude if point else None,
            description_images=[u for u in data.description_images if u and u.strip()],
            created_at=now,
            sla_deadline=self._deadline(data.type, now),
        )
        ticket = await self._tickets.add(ticket)
        logger.info(
            "Ticket %s created by %s: %s/%s, SLA %s",
            ticket.ticket_number, actor.name, ticket.type.value,
            ticket.priority.value, ticket.sla_deadline.isoformat(),
        )
        return ticket

    # ── Assignment ──────────────────────────────────────────────────────

    async def assign(
        self,
        ticket_id: int,
        user_id: int,
        actor: User,
        assigned_at: datetime | None = None,
    ) -> Ticket:
        _require_role(actor, STAFF_ROLES, "assign tickets")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.ASSIGN)
        decision = await self._engine.plan_manual(ticket, user_id, actor)
        return await self._apply(decision, assigned_at or self._clock(), actor, replace=False)

    async def reassign(
        self,
        ticket_id: int,
        technician_ids: list[int],
        actor: User,
        assigned_at: datetime | None = None,
    ) -> Ticket:
        """Replace the whole crew; an in-progress ticket drops back to assigned."""
        _require_role(actor, STAFF_ROLES, "reassign tickets")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.REASSIGN)

        if actor.role == UserRole.HELPDESK:
            await self._check_helpdesk_reassign(ticket, technician_ids)

        team = await self._engine.plan_team(ticket, technician_ids)
        decision = AssignmentDecision(
            ticket=ticket,
            technicians=team,
            assignment_type=AssignmentType.MANUAL,
            reason=f"Reassigned by {actor.name}",
        )
        return await self._apply(decision, assigned_at or self._clock(), actor, replace=True)

    async def unassign(self, ticket_id: int, actor: User) -> Ticket:
        _require_role(actor, ADMIN_ROLES, "unassign tickets")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.UNASSIGN)
        removed = await self._assignments.deactivate_all(ticket.id)
        ticket.status = TicketStatus.OPEN
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s unassigned by %s (%d assignment(s))", ticket.ticket_number, actor.name, removed)
        return ticket

    async def auto_assign(self, actor: User, partner_id: int | None = None) -> Ticket:
        """Technician "Get Ticket": hand the requester their next job."""
        _require_role(actor, (UserRole.TECHNICIAN,), "request auto-assignment")
        now = self._clock()
        decision = await self._engine.plan_auto(actor.id, now, partner_id=partner_id)
        ensure_transition(decision.ticket, TicketAction.AUTO_ASSIGN)
        return await self._apply(decision, now, actor, replace=True)

    # ── Technician actions ──────────────────────────────────────────────

    async def start(self, ticket_id: int, actor: User) -> Ticket:
        ticket = await self.get(ticket_id, for_update=True)
        await self._require_assignee(ticket, actor, "start")
        ensure_transition(ticket, TicketAction.START)
        ticket.status = TicketStatus.IN_PROGRESS
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s started by %s", ticket.ticket_number, actor.name)
        return ticket

    async def close(self, ticket_id: int, report: ClosingReport, actor: User) -> Ticket:
        """Complete the job; fees depend on whether the SLA was met."""
        ticket = await self.get(ticket_id, for_update=True)
        await self._require_assignee(ticket, actor, "close")
        ensure_transition(ticket, TicketAction.CLOSE)

        action = _required(report.action_description, "action_description")
        proofs = [u.strip() for u in [report.proof_image_url, *report.proof_image_urls] if u and u.strip()]
        if not proofs:
            raise ValidationError("At least one proof image is required", field="proof_image_urls")

        ticket.action_description = action
        ticket.proof_image_url = proofs[0]
        ticket.proof_image_urls = proofs
        ticket.speedtest_result = clean_text(report.speedtest_result)
        ticket.speedtest_image_url = clean_text(report.speedtest_image_url)
        ticket.closed_at = self._clock()
        ticket.closed_reason = ClosedReason.COMPLETED
        ticket.status = TicketStatus.CLOSED

        breakdown = await self._bonus.settle(ticket)
        ticket = await self._tickets.update(ticket)
        logger.info(
            "Ticket %s closed by %s after %d min: %s",
            ticket.ticket_number, actor.name, ticket.duration_minutes, breakdown.perform_status.value,
        )
        return ticket

    async def report_no_response(self, ticket_id: int, reason: str, actor: User) -> Ticket:
        """Customer unreachable: park the ticket for staff review."""
        ticket = await self.get(ticket_id, for_update=True)
        await self._require_assignee(ticket, actor, "report no response on")
        ensure_transition(ticket, TicketAction.NO_RESPONSE)
        reason = _required(reason, "reason")

        ticket.status_before_rejection = ticket.status
        ticket.rejection_reason = reason
        ticket.status = TicketStatus.PENDING_REJECTION
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s: no response reported by %s", ticket.ticket_number, actor.name)
        return ticket

    # ── Staff review ────────────────────────────────────────────────────

    async def reject(self, ticket_id: int, reason: str, actor: User) -> Ticket:
        _require_role(actor, STAFF_ROLES, "confirm rejections")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.REJECT)
        reason = _required(reason, "reason")

        ticket.rejection_reason = _append_line(ticket.rejection_reason, f"[Confirmed] {reason}")
        ticket.status = TicketStatus.REJECTED
        ticket.status_before_rejection = None
        ticket.perform_status = None
        ticket.bonus = ticket.ticket_fee = ticket.transport_fee = ZERO
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s rejected by %s", ticket.ticket_number, actor.name)
        return ticket

    async def cancel_reject(self, ticket_id: int, actor: User) -> Ticket:
        _require_role(actor, STAFF_ROLES, "cancel rejections")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.CANCEL_REJECT)
        # The crew may have taken other work while the ticket was parked
        crew = await self._assignments.get_active(ticket.id)
        await self._engine.ensure_crew_idle(ticket, [a.user_id for a in crew])

        ticket.status = ticket.status_before_rejection or TicketStatus.ASSIGNED
        ticket.status_before_rejection = None
        ticket.rejection_reason = None
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s: rejection cancelled by %s, back to %s",
                    ticket.ticket_number, actor.name, ticket.status.value)
        return ticket

    async def close_by_helpdesk(self, ticket_id: int, reason: str, actor: User) -> Ticket:
        """Administrative close of a parked ticket; no fees are paid."""
        _require_role(actor, STAFF_ROLES, "close tickets on behalf of technicians")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.CLOSE_BY_HELPDESK)
        reason = _required(reason, "reason")

        ticket.closed_at = self._clock()
        ticket.closed_reason = ClosedReason.CLOSED_BY_HELPDESK
        ticket.closed_note = reason
        ticket.rejection_reason = _append_line(ticket.rejection_reason, f"[Closed by helpdesk] {reason}")
        ticket.status_before_rejection = None
        ticket.status = TicketStatus.CLOSED

        await self._bonus.settle(ticket, WITHHELD)
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s closed by helpdesk (%s)", ticket.ticket_number, actor.name)
        return ticket

    async def reopen(self, ticket_id: int, reason: str, technician_ids: list[int], actor: User) -> Ticket:
        """Send a closed or rejected ticket back out with a fresh SLA."""
        _require_role(actor, STAFF_ROLES, "reopen tickets")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.REOPEN)
        reason = _required(reason, "reason")
        team = await self._engine.plan_team(ticket, technician_ids)

        now = self._clock()
        await self._bonus.revoke(ticket)
        ticket.clear_closure()
        ticket.rejection_reason = None
        ticket.status_before_rejection = None
        ticket.sla_deadline = self._deadline(ticket.type, now)
        ticket.reopen_reason = _append_line(ticket.reopen_reason, f"[Reopened {_stamp(now)}] {reason}")

        decision = AssignmentDecision(
            ticket=ticket,
            technicians=team,
            assignment_type=AssignmentType.MANUAL,
            reason=f"Reopened by {actor.name}",
        )
        return await self._apply(decision, now, actor, replace=True)

    async def reopen_rejected(self, ticket_id: int, reason: str, mode: ReopenMode, actor: User) -> Ticket:
        """Revive a rejected ticket, keeping its crew or returning it to the pool."""
        _require_role(actor, STAFF_ROLES, "reopen rejected tickets")
        ticket = await self.get(ticket_id, for_update=True)
        ensure_transition(ticket, TicketAction.REOPEN_REJECTED)
        reason = _required(reason, "reason")
        now = self._clock()

        if mode == ReopenMode.CURRENT:
            crew = await self._assignments.get_active(ticket.id)
            if not crew:
                raise ConflictError(
                    f"Ticket {ticket.ticket_number} has no active technicians; reopen it in auto mode",
                    details={"mode": mode.value},
                )
            await self._engine.plan_team(ticket, [a.user_id for a in crew])
            ticket.status = TicketStatus.ASSIGNED
            label = "CURRENT_ASSIGNMENT"
        else:
            await self._assignments.deactivate_all(ticket.id)
            ticket.status = TicketStatus.OPEN
            label = "AUTO_OPEN"

        ticket.clear_closure()
        ticket.rejection_reason = None
        ticket.status_before_rejection = None
        ticket.sla_deadline = self._deadline(ticket.type, now)
        ticket.reopen_reason = _append_line(
            ticket.reopen_reason, f"[Reopened from rejected {_stamp(now)} | {label}] {reason}"
        )
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s reopened from rejected by %s (%s)", ticket.ticket_number, actor.name, mode.value)
        return ticket

    # ── Housekeeping ────────────────────────────────────────────────────

    async def reset_stale_assignments(
        self,
        max_age_hours: float = DEFAULT_STALE_HOURS,
        actor: User | None = None,
    ) -> int:
        """Return abandoned ``assigned`` tickets to the open pool.

        *actor* is None when the scheduler runs the reset.
        """
        if actor is not None:
            _require_role(actor, ADMIN_ROLES, "reset stale assignments")
        if max_age_hours <= 0:
            raise ValidationError("max_age_hours must be positive", field="max_age_hours")

        cutoff = self._clock() - timedelta(hours=max_age_hours)
        stale = await self._tickets.get_stale_assigned(cutoff)
        for ticket in stale:
            ensure_transition(ticket, TicketAction.RESET_STALE)
            await self._assignments.deactivate_all(ticket.id)
            ticket.status = TicketStatus.OPEN
            await self._tickets.update(ticket)

        logger.info(
            "Stale reset by %s: %d ticket(s) assigned before %s returned to open",
            actor.name if actor else "scheduler", len(stale), cutoff.isoformat(),
        )
        return len(stale)

    # ── Helpers ─────────────────────────────────────────────────────────

    def _deadline(self, ticket_type: TicketType, anchor: datetime) -> datetime:
        default_hours, installation_hours = self._sla_hours
        return compute_deadline(ticket_type, anchor, default_hours, installation_hours)

    async def _apply(
        self,
        decision: AssignmentDecision,
        assigned_at: datetime,
        actor: User,
        replace: bool,
    ) -> Ticket:
        ticket = decision.ticket
        if replace:
            await self._assignments.deactivate_all(ticket.id)
        for technician in decision.technicians:
            await self._assignments.add(
                Assignment(
                    id=None,
                    ticket_id=ticket.id,
                    user_id=technician.id,
                    assigned_at=assigned_at,
                    active=True,
                    assignment_type=decision.assignment_type,
                )
            )
        ticket.status = TicketStatus.ASSIGNED
        ticket = await self._tickets.update(ticket)
        logger.info(
            "Ticket %s → %s by %s (%s: %s)",
            ticket.ticket_number, ", ".join(t.name for t in decision.technicians),
            actor.name, decision.assignment_type.value, decision.reason,
        )
        for note in decision.notes:
            logger.warning("Ticket %s: %s", ticket.ticket_number, note)
        return ticket

    async def _require_assignee(self, ticket: Ticket, actor: User, verb: str) -> None:
        crew = await self._assignments.get_active(ticket.id)
        if not actor.is_technician() or all(a.user_id != actor.id for a in crew):
            raise UnauthorizedError(f"Only an assigned technician can {verb} this ticket")

    async def _check_helpdesk_reassign(self, ticket: Ticket, technician_ids: list[int]) -> None:
        crew = await self._assignments.get_active(ticket.id)
        if not crew:
            raise ValidationError(
                "Helpdesk can only reassign tickets that already have a lead technician",
                field="technician_ids",
            )
        if not technician_ids or technician_ids[0] != crew[0].user_id:
            raise UnauthorizedError("Helpdesk can only change the partner; the lead technician is locked")
        for partner in await self._users.get_many(list(technician_ids[1:])):
            if not partner.is_backbone_specialist:
                raise UnauthorizedError("Helpdesk can only pick backbone specialists as partners")

    async def _locate(self, location_url: str, area: str | None) -> tuple[GeoPoint | None, str | None]:
        point = GeoPoint.from_maps_url(location_url)
        if self._geocoder is None:
            return point, area
        if point is None:
            point = await self._geocoder.locate(location_url)
        if point is not None and area is None:
            area = await self._geocoder.reverse_area(point)
        if point is None:
            logger.warning("Could not resolve coordinates from %s", location_url)
        return point, area


def _required(value: str | None, field_name: str) -> str:
    cleaned = clean_text(value)
    if cleaned is None:
        raise ValidationError(f"{field_name.replace('_', ' ').capitalize()} is required", field=field_name)
    return cleaned


def _require_role(actor: User, roles: tuple[UserRole, ...], action: str) -> None:
    if not actor.has_role(*roles):
        allowed = ", ".join(r.value for r in roles)
        raise UnauthorizedError(f"Only {allowed} can {action}", details={"role": actor.role.value})


def _append_line(existing: str | None, line: str) -> str:
    return f"{existing}\n{line}" if existing else line


def _stamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")
