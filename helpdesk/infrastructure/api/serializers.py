"""Domain objects → JSON-ready dicts."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from helpdesk.application.use_cases.reporting import TicketView
from helpdesk.domain.entities.assignment import Assignment
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def money(value: Decimal | None) -> str:
    return f"{(value or Decimal('0')):.2f}"


def serialize_user(u: User) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "role": u.role.value,
        "email": u.email,
        "username": u.username,
        "phone": u.phone,
        "is_backbone_specialist": u.is_backbone_specialist,
        "is_active": u.is_active,
    }


def serialize_assignment(a: Assignment) -> dict:
    return {
        "id": a.id,
        "ticket_id": a.ticket_id,
        "user_id": a.user_id,
        "assignment_type": a.assignment_type.value,
        "active": a.active,
        "assigned_at": iso(a.assigned_at),
    }


def serialize_ticket(t: Ticket, now: datetime | None = None) -> dict:
    data = {
        "id": t.id,
        "ticket_number": t.ticket_number,
        "ticket_id_custom": t.ticket_id_custom,
        "type": t.type.value,
        "priority": t.priority.value,
        "status": t.status.value,
        "title": t.title,
        "description": t.description,
        "description_images": list(t.description_images),
        "customer_name": t.customer_name,
        "customer_phone": t.customer_phone,
        "customer_email": t.customer_email,
        "customer_location_url": t.customer_location_url,
        "area": t.area,
        "odp_info": t.odp_info,
        "odp_location": t.odp_location,
        "latitude": t.latitude,
        "longitude": t.longitude,
        "created_at": iso(t.created_at),
        "sla_deadline": iso(t.sla_deadline),
        "action_description": t.action_description,
        "proof_image_url": t.proof_image_url,
        "proof_image_urls": list(t.proof_image_urls),
        "speedtest_result": t.speedtest_result,
        "speedtest_image_url": t.speedtest_image_url,
        "closed_at": iso(t.closed_at),
        "duration_minutes": t.duration_minutes,
        "closed_reason": t.closed_reason.value if t.closed_reason else None,
        "closed_note": t.closed_note,
        "perform_status": t.perform_status.value if t.perform_status else None,
        "bonus": money(t.bonus),
        "ticket_fee": money(t.ticket_fee),
        "transport_fee": money(t.transport_fee),
        "rejection_reason": t.rejection_reason,
        "reopen_reason": t.reopen_reason,
    }
    if now is not None:
        data["is_overdue"] = t.is_overdue(now)
    return data


def serialize_view(view: TicketView, now: datetime | None = None) -> dict:
    data = serialize_ticket(view.ticket, now)
    data["assignees"] = [serialize_user(u) for u in view.assignees]
    data["assignee"] = data["assignees"][0] if data["assignees"] else None
    data["assignment_type"] = view.assignments[0].assignment_type.value if view.assignments else None
    data["assigned_at"] = iso(view.assignments[0].assigned_at) if view.assignments else None
    return data
