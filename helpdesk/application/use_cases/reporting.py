"""ReportingService — read-only projections over tickets and performance logs."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from zoneinfo import ZoneInfo

from helpdesk.application.ports.assignment_repo import AssignmentRepository
from helpdesk.application.ports.performance_repo import PerformanceLogRepository
from helpdesk.application.ports.settings_repo import SettingsRepository
from helpdesk.application.ports.ticket_repo import TicketFilter, TicketRepository
from helpdesk.application.ports.user_repo import UserRepository
from helpdesk.domain.clock import utcnow
from helpdesk.domain.entities.assignment import Assignment
from helpdesk.domain.entities.performance_log import PerformanceLog
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User
from helpdesk.domain.errors import NotFoundError
from helpdesk.domain.policies.fees import ZERO
from helpdesk.domain.policies.performance_period import clamp_cutoff_day, compute_period, period_days
from helpdesk.domain.policies.round_robin import AssignRatio
from helpdesk.domain.value_objects.enums import TicketStatus, UserRole
from helpdesk.domain.value_objects.setting_keys import SettingKey

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


@dataclass
class TicketView:
    """A ticket with its active crew, lead first."""

    ticket: Ticket
    assignments: list[Assignment]
    assignees: list[User]

    @property
    def lead(self) -> User | None:
        return self.assignees[0] if self.assignees else None


@dataclass
class TicketReport:
    tickets: list[TicketView]
    total: int
    page: int
    per_page: int


@dataclass
class DashboardStats:
    total_open: int
    total_assigned: int
    total_closed: int
    sla_breach_count: int
    pending_rejection: int


@dataclass
class TechnicianPerformance:
    total_completed: int
    sla_compliance_rate: int
    avg_resolution_minutes: int
    total_overdue: int


@dataclass
class BonusRow:
    ticket: Ticket
    technician: User
    ticket_fee: Decimal
    transport_fee: Decimal
    bonus: Decimal


@dataclass
class PerformanceRow:
    technician: User
    total_completed: int
    sla_compliance_rate: int
    avg_resolution_minutes: int
    total_overdue: int
    total_ticket_fee: Decimal = ZERO
    total_transport_fee: Decimal = ZERO
    total_bonus: Decimal = ZERO


@dataclass
class BonusTotal:
    total_bonus: Decimal
    ticket_count: int
    total_ticket_fee: Decimal
    total_transport_fee: Decimal


@dataclass
class PeriodRow:
    technician: User
    daily_counts: dict[date, int]
    total: int
    target: int
    percentage: float


@dataclass
class TechnicianPeriodReport:
    period_start: date
    period_end: date
    cutoff_day: int
    daily_target: int
    monthly_target: int
    days: list[date]
    rows: list[PeriodRow] = field(default_factory=list)


class ReportingService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        user_repo: UserRepository,
        assignment_repo: AssignmentRepository,
        performance_repo: PerformanceLogRepository,
        settings_repo: SettingsRepository,
        clock: Callable[[], datetime] = utcnow,
        timezone: str | tzinfo = "UTC",
    ):
        self._tickets = ticket_repo
        self._users = user_repo
        self._assignments = assignment_repo
        self._performance = performance_repo
        self._settings = settings_repo
        self._clock = clock
        self._tz = ZoneInfo(timezone) if isinstance(timezone, str) else timezone

    # ── Ticket listings ─────────────────────────────────────────────────

    async def views(self, tickets: list[Ticket]) -> list[TicketView]:
        ids = [t.id for t in tickets]
        active = await self._assignments.get_active_for_tickets(ids) if ids else {}
        user_ids = sorted({a.user_id for rows in active.values() for a in rows})
        users = {u.id: u for u in await self._users.get_many(user_ids)} if user_ids else {}
        views = []
        for ticket in tickets:
            rows = active.get(ticket.id, [])
            views.append(
                TicketView(
                    ticket=ticket,
                    assignments=rows,
                    assignees=[users[a.user_id] for a in rows if a.user_id in users],
                )
            )
        return views

    async def get_ticket(self, ticket_id: int) -> TicketView:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError("ticket", ticket_id)
        (view,) = await self.views([ticket])
        return view

    async def list_tickets(self, filters: TicketFilter, actor: User) -> list[TicketView]:
        """Technicians only see tickets they are actively assigned to."""
        if actor.is_technician():
            filters.assigned_to = actor.id
        return await self.views(await self._tickets.list(filters))

    async def ticket_report(
        self,
        filters: TicketFilter,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> TicketReport:
        page = max(1, page)
        per_page = max(1, min(MAX_PER_PAGE, per_page))
        total = await self._tickets.count(filters)
        tickets = await self._tickets.list(filters, offset=(page - 1) * per_page, limit=per_page)
        return TicketReport(tickets=await self.views(tickets), total=total, page=page, per_page=per_page)

    # ── Dashboard ───────────────────────────────────────────────────────

    async def dashboard_stats(self) -> DashboardStats:
        now = self._clock()
        tickets = await self._tickets.list()
        by_status: dict[TicketStatus, int] = defaultdict(int)
        for ticket in tickets:
            by_status[ticket.status] += 1
        return DashboardStats(
            total_open=by_status[TicketStatus.OPEN] + by_status[TicketStatus.WAITING_ASSIGNMENT],
            total_assigned=by_status[TicketStatus.ASSIGNED] + by_status[TicketStatus.IN_PROGRESS],
            total_closed=by_status[TicketStatus.CLOSED],
            sla_breach_count=sum(1 for t in tickets if t.is_overdue(now)),
            pending_rejection=by_status[TicketStatus.PENDING_REJECTION],
        )

    async def technician_performance(self, user_id: int) -> TechnicianPerformance:
        logs = await self._performance.list(user_id=user_id)
        completed, compliance, avg_minutes, overdue = _summarize(logs)
        return TechnicianPerformance(
            total_completed=completed,
            sla_compliance_rate=compliance,
            avg_resolution_minutes=avg_minutes,
            total_overdue=overdue,
        )

    async def technician_bonus_total(self, user_id: int) -> BonusTotal:
        logs = await self._performance.list(user_id=user_id)
        return BonusTotal(
            total_bonus=sum((log.bonus for log in logs), ZERO),
            ticket_count=len(logs),
            total_ticket_fee=sum((log.ticket_fee for log in logs), ZERO),
            total_transport_fee=sum((log.transport_fee for log in logs), ZERO),
        )

    async def free_technicians(self, exclude_id: int | None = None) -> list[User]:
        busy = await self._assignments.get_busy_user_ids()
        technicians = await self._users.list(role=UserRole.TECHNICIAN, active_only=True)
        return [t for t in technicians if t.id not in busy and t.id != exclude_id]

    # ── Reports ─────────────────────────────────────────────────────────

    def day_range(self, date_from: date | None, date_to: date | None) -> tuple[datetime | None, datetime | None]:
        """Local calendar days → [start, end) instants; *date_to* is inclusive."""
        start = datetime.combine(date_from, time.min, tzinfo=self._tz) if date_from else None
        end = datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=self._tz) if date_to else None
        return start, end

    async def bonus_summary(self, date_from: date | None = None, date_to: date | None = None) -> list[BonusRow]:
        closed_from, closed_to = self.day_range(date_from, date_to)
        tickets = await self._tickets.list(
            TicketFilter(status=TicketStatus.CLOSED, closed_from=closed_from, closed_to=closed_to)
        )
        views = await self.views(tickets)
        logs = {
            (log.ticket_id, log.user_id): log
            for log in await self._performance.get_for_tickets([t.id for t in tickets])
        } if tickets else {}

        rows = []
        for view in views:
            ticket = view.ticket
            for technician in view.assignees:
                log = logs.get((ticket.id, technician.id))
                if log is not None:
                    rows.append(BonusRow(ticket, technician, log.ticket_fee, log.transport_fee, log.bonus))
                else:
                    rows.append(
                        BonusRow(
                            ticket, technician, ticket.ticket_fee, ticket.transport_fee,
                            ticket.ticket_fee + ticket.transport_fee,
                        )
                    )
        return rows

    async def performance_summary(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[PerformanceRow]:
        created_from, created_to = self.day_range(date_from, date_to)
        technicians = await self._users.list(role=UserRole.TECHNICIAN)
        logs = await self._performance.list(created_from=created_from, created_to=created_to)
        by_user: dict[int, list[PerformanceLog]] = defaultdict(list)
        for log in logs:
            by_user[log.user_id].append(log)

        rows = []
        for technician in technicians:
            user_logs = by_user.get(technician.id, [])
            completed, compliance, avg_minutes, overdue = _summarize(user_logs)
            rows.append(
                PerformanceRow(
                    technician=technician,
                    total_completed=completed,
                    sla_compliance_rate=compliance,
                    avg_resolution_minutes=avg_minutes,
                    total_overdue=overdue,
                    total_ticket_fee=sum((log.ticket_fee for log in user_logs), ZERO),
                    total_transport_fee=sum((log.transport_fee for log in user_logs), ZERO),
                    total_bonus=sum((log.bonus for log in user_logs), ZERO),
                )
            )
        return rows

    async def technician_period(self) -> TechnicianPeriodReport:
        """Solved tickets per technician per day in the current payroll period."""
        settings = await self._settings.as_mapping()
        cutoff_day = clamp_cutoff_day(settings.get(SettingKey.CUTOFF_DAY.value) or "")
        ratio = AssignRatio.from_settings(settings)
        daily_target = max(1, ratio.cycle_size)

        today = self._clock().astimezone(self._tz).date()
        start, end = compute_period(today, cutoff_day)
        days = period_days(start, end)
        monthly_target = daily_target * len(days)

        closed_from, closed_to = self.day_range(start, end)
        tickets = await self._tickets.list(
            TicketFilter(status=TicketStatus.CLOSED, closed_from=closed_from, closed_to=closed_to)
        )
        closed_on = {t.id: t.closed_at.astimezone(self._tz).date() for t in tickets if t.closed_at}
        logs = await self._performance.get_for_tickets(list(closed_on)) if closed_on else []

        solved: dict[int, dict[date, set[int]]] = defaultdict(lambda: defaultdict(set))
        for log in logs:
            solved[log.user_id][closed_on[log.ticket_id]].add(log.ticket_id)

        report = TechnicianPeriodReport(
            period_start=start,
            period_end=end,
            cutoff_day=cutoff_day,
            daily_target=daily_target,
            monthly_target=monthly_target,
            days=days,
        )
        for technician in await self._users.list(role=UserRole.TECHNICIAN):
            per_day = solved.get(technician.id, {})
            daily_counts = {day: len(per_day.get(day, ())) for day in days}
            total = sum(daily_counts.values())
            report.rows.append(
                PeriodRow(
                    technician=technician,
                    daily_counts=daily_counts,
                    total=total,
                    target=monthly_target,
                    percentage=round(total / monthly_target * 100, 2),
                )
            )
        report.rows.sort(key=lambda r: (-r.total, r.technician.name))
        return report


def _summarize(logs: list[PerformanceLog]) -> tuple[int, int, int, int]:
    """(completed, compliance %, average minutes, overdue); 100% with no work."""
    completed = len(logs)
    if not completed:
        return 0, 100, 0, 0
    within = sum(1 for log in logs if log.completed_within_sla)
    compliance = round(within / completed * 100)
    avg_minutes = round(sum(log.duration_minutes for log in logs) / completed)
    return completed, compliance, avg_minutes, completed - within
