"""Ticket endpoints — creation, listing and every lifecycle transition."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from helpdesk.application.ports.ticket_repo import TicketFilter
from helpdesk.application.use_cases.reporting import ReportingService
from helpdesk.application.use_cases.ticket_lifecycle import (
    ClosingReport,
    NewTicket,
    TicketLifecycleService,
)
from helpdesk.domain.clock import utcnow
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User
from helpdesk.domain.value_objects.enums import ReopenMode, TicketPriority, TicketStatus, TicketType
from helpdesk.infrastructure.api.dependencies import (
    Repositories,
    get_current_user,
    get_lifecycle,
    get_reporting,
    get_repositories,
    require_staff,
)
from helpdesk.infrastructure.api.serializers import serialize_assignment, serialize_view

router = APIRouter(prefix="/tickets", tags=["tickets"])


# ── Request schemas ─────────────────────────────────────────────────


class CreateTicketRequest(BaseModel):
    type: TicketType
    priority: TicketPriority = TicketPriority.MEDIUM
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
    description_images: list[str] = Field(default_factory=list)


class AssignRequest(BaseModel):
    user_id: int
    assigned_at: datetime | None = None


class ReassignRequest(BaseModel):
    technician_ids: list[int]
    assigned_at: datetime | None = None


class AutoAssignRequest(BaseModel):
    partner_id: int | None = None


class CloseRequest(BaseModel):
    action_description: str = ""
    proof_image_url: str | None = None
    proof_image_urls: list[str] = Field(default_factory=list)
    speedtest_result: str | None = None
    speedtest_image_url: str | None = None


class ReasonRequest(BaseModel):
    reason: str = ""


class ReopenRequest(BaseModel):
    reason: str = ""
    technician_ids: list[int] = Field(default_factory=list)


class ReopenRejectedRequest(BaseModel):
    reason: str = ""
    assignment_mode: ReopenMode = ReopenMode.CURRENT


async def _respond(ticket: Ticket, reporting: ReportingService) -> dict:
    (view,) = await reporting.views([ticket])
    return serialize_view(view, utcnow())


# ── Queries ─────────────────────────────────────────────────────────


@router.get("")
async def list_tickets(
    status: TicketStatus | None = None,
    type: TicketType | None = None,
    priority: TicketPriority | None = None,
    search: str | None = None,
    assigned_to: int | None = Query(default=None, alias="assignedTo"),
    user: User = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting),
):
    """List tickets; technicians only see their own."""
    filters = TicketFilter(
        status=status, type=type, priority=priority, search=search, assigned_to=assigned_to
    )
    views = await reporting.list_tickets(filters, user)
    now = utcnow()
    return {"total": len(views), "tickets": [serialize_view(v, now) for v in views]}


@router.post("", status_code=201)
async def create_ticket(
    body: CreateTicketRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.create(NewTicket(**body.model_dump()), user)
    return await _respond(ticket, reporting)


@router.post("/auto-assign")
async def auto_assign(
    body: AutoAssignRequest | None = None,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    """Technician "Get Ticket"."""
    partner_id = body.partner_id if body else None
    ticket = await lifecycle.auto_assign(user, partner_id=partner_id)
    return await _respond(ticket, reporting)


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    user: User = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting),
):
    view = await reporting.get_ticket(ticket_id)
    return serialize_view(view, utcnow())


@router.get("/{ticket_id}/assignments")
async def assignment_history(
    ticket_id: int,
    user: User = Depends(require_staff),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    repos: Repositories = Depends(get_repositories),
):
    """Every assignment row ever made for the ticket, oldest first."""
    ticket = await lifecycle.get(ticket_id)
    history = await repos.assignments.get_history(ticket.id)
    return {"ticket_id": ticket.id, "assignments": [serialize_assignment(a) for a in history]}


# ── Assignment ──────────────────────────────────────────────────────


@router.post("/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: int,
    body: AssignRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.assign(ticket_id, body.user_id, user, assigned_at=body.assigned_at)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/reassign")
async def reassign_ticket(
    ticket_id: int,
    body: ReassignRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.reassign(ticket_id, body.technician_ids, user, assigned_at=body.assigned_at)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/unassign")
async def unassign_ticket(
    ticket_id: int,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.unassign(ticket_id, user)
    return await _respond(ticket, reporting)


# ── Technician transitions ──────────────────────────────────────────


@router.post("/{ticket_id}/start")
async def start_ticket(
    ticket_id: int,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.start(ticket_id, user)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/close")
async def close_ticket(
    ticket_id: int,
    body: CloseRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.close(ticket_id, ClosingReport(**body.model_dump()), user)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/no-response")
async def report_no_response(
    ticket_id: int,
    body: ReasonRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.report_no_response(ticket_id, body.reason, user)
    return await _respond(ticket, reporting)


# ── Staff review ────────────────────────────────────────────────────


@router.post("/{ticket_id}/reject")
async def reject_ticket(
    ticket_id: int,
    body: ReasonRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.reject(ticket_id, body.reason, user)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/cancel-reject")
async def cancel_reject(
    ticket_id: int,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.cancel_reject(ticket_id, user)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/close-by-helpdesk")
async def close_by_helpdesk(
    ticket_id: int,
    body: ReasonRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.close_by_helpdesk(ticket_id, body.reason, user)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/reopen")
async def reopen_ticket(
    ticket_id: int,
    body: ReopenRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.reopen(ticket_id, body.reason, body.technician_ids, user)
    return await _respond(ticket, reporting)


@router.post("/{ticket_id}/reopen-rejected")
async def reopen_rejected(
    ticket_id: int,
    body: ReopenRejectedRequest,
    user: User = Depends(get_current_user),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
    reporting: ReportingService = Depends(get_reporting),
):
    ticket = await lifecycle.reopen_rejected(ticket_id, body.reason, body.assignment_mode, user)
    data = await _respond(ticket, reporting)
    data["assignment_mode"] = body.assignment_mode.value
    return data
