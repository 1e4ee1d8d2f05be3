"""Reporting endpoints — dashboard, payroll and per-technician summaries."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from helpdesk.application.ports.ticket_repo import TicketFilter
from helpdesk.application.use_cases.reporting import DEFAULT_PER_PAGE, MAX_PER_PAGE, ReportingService
from helpdesk.domain.clock import utcnow
from helpdesk.domain.entities.user import User
from helpdesk.domain.value_objects.enums import TicketStatus, TicketType
from helpdesk.infrastructure.api.dependencies import get_current_user, get_reporting, require_staff
from helpdesk.infrastructure.api.serializers import money, serialize_user, serialize_view

router = APIRouter(tags=["reports"])


@router.get("/dashboard/stats")
async def dashboard_stats(
    user: User = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting),
):
    stats = await reporting.dashboard_stats()
    return {
        "total_open": stats.total_open,
        "total_assigned": stats.total_assigned,
        "total_closed": stats.total_closed,
        "sla_breach_count": stats.sla_breach_count,
        "pending_rejection": stats.pending_rejection,
    }


@router.get("/performance/me")
async def my_performance(
    user: User = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting),
):
    perf = await reporting.technician_performance(user.id)
    return {
        "total_completed": perf.total_completed,
        "sla_compliance_rate": perf.sla_compliance_rate,
        "avg_resolution_minutes": perf.avg_resolution_minutes,
        "total_overdue": perf.total_overdue,
    }


@router.get("/technician/bonus-total")
async def my_bonus_total(
    user: User = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting),
):
    total = await reporting.technician_bonus_total(user.id)
    return {
        "total_bonus": money(total.total_bonus),
        "ticket_count": total.ticket_count,
        "total_ticket_fee": money(total.total_ticket_fee),
        "total_transport_fee": money(total.total_transport_fee),
    }


@router.get("/technicians/free")
async def free_technicians(
    user: User = Depends(get_current_user),
    reporting: ReportingService = Depends(get_reporting),
):
    """Idle technicians, excluding the caller (used to pick a partner)."""
    technicians = await reporting.free_technicians(exclude_id=user.id)
    return [serialize_user(t) for t in technicians]


# ── /reports ────────────────────────────────────────────────────────


@router.get("/reports/tickets")
async def ticket_report(
    date_from: date | None = Query(default=None, alias="dateFrom"),
    date_to: date | None = Query(default=None, alias="dateTo"),
    type: TicketType | None = None,
    status: TicketStatus | None = None,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE, alias="perPage"),
    user: User = Depends(require_staff),
    reporting: ReportingService = Depends(get_reporting),
):
    created_from, created_to = reporting.day_range(date_from, date_to)
    filters = TicketFilter(type=type, status=status, created_from=created_from, created_to=created_to)
    report = await reporting.ticket_report(filters, page=page, per_page=per_page)
    now = utcnow()
    return {
        "tickets": [serialize_view(v, now) for v in report.tickets],
        "total": report.total,
        "page": report.page,
        "per_page": report.per_page,
    }


@router.get("/reports/bonus-summary")
async def bonus_summary(
    date_from: date | None = Query(default=None, alias="dateFrom"),
    date_to: date | None = Query(default=None, alias="dateTo"),
    user: User = Depends(require_staff),
    reporting: ReportingService = Depends(get_reporting),
):
    rows = await reporting.bonus_summary(date_from, date_to)
    return [
        {
            "ticket_id": r.ticket.id,
            "ticket_number": r.ticket.ticket_number,
            "ticket_type": r.ticket.type.value,
            "closed_at": r.ticket.closed_at.isoformat() if r.ticket.closed_at else None,
            "perform_status": r.ticket.perform_status.value if r.ticket.perform_status else None,
            "technician_id": r.technician.id,
            "technician_name": r.technician.name,
            "ticket_fee": money(r.ticket_fee),
            "transport_fee": money(r.transport_fee),
            "bonus": money(r.bonus),
        }
        for r in rows
    ]


@router.get("/reports/performance-summary")
async def performance_summary(
    date_from: date | None = Query(default=None, alias="dateFrom"),
    date_to: date | None = Query(default=None, alias="dateTo"),
    user: User = Depends(require_staff),
    reporting: ReportingService = Depends(get_reporting),
):
    rows = await reporting.performance_summary(date_from, date_to)
    return [
        {
            "technician_id": r.technician.id,
            "technician_name": r.technician.name,
            "total_completed": r.total_completed,
            "sla_compliance_rate": r.sla_compliance_rate,
            "avg_resolution_minutes": r.avg_resolution_minutes,
            "total_overdue": r.total_overdue,
            "total_ticket_fee": money(r.total_ticket_fee),
            "total_transport_fee": money(r.total_transport_fee),
            "total_bonus": money(r.total_bonus),
        }
        for r in rows
    ]


@router.get("/reports/technician-period")
async def technician_period(
    user: User = Depends(require_staff),
    reporting: ReportingService = Depends(get_reporting),
):
    report = await reporting.technician_period()
    return {
        "period_start": report.period_start.isoformat(),
        "period_end": report.period_end.isoformat(),
        "cutoff_day": report.cutoff_day,
        "daily_target": report.daily_target,
        "monthly_target": report.monthly_target,
        "days": [d.isoformat() for d in report.days],
        "technicians": [
            {
                "technician_id": r.technician.id,
                "technician_name": r.technician.name,
                "daily_counts": {d.isoformat(): n for d, n in r.daily_counts.items()},
                "total": r.total,
                "target": r.target,
                "percentage": r.percentage,
            }
            for r in report.rows
        ],
    }
