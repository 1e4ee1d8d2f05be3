"""SQLAlchemy repository implementations."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.models import (
    AssignmentModel,
    PerformanceLogModel,
    RoundRobinStateModel,
    SettingModel,
    TicketModel,
    UserModel,
)
from helpdesk.application.ports.assignment_repo import AssignmentRepository
from helpdesk.application.ports.performance_repo import PerformanceLogRepository
from helpdesk.application.ports.round_robin_repo import RoundRobinRepository
from helpdesk.application.ports.settings_repo import SettingsRepository
from helpdesk.application.ports.ticket_repo import TicketFilter, TicketRepository
from helpdesk.application.ports.user_repo import UserRepository
from helpdesk.domain.entities.assignment import Assignment
from helpdesk.domain.entities.performance_log import PerformanceLog
from helpdesk.domain.entities.setting import Setting
from helpdesk.domain.entities.ticket import Ticket
from helpdesk.domain.entities.user import User
from helpdesk.domain.value_objects.enums import (
    ACTIVE_WORK_STATUSES,
    AssignmentType,
    ClosedReason,
    PerformStatus,
    TicketPriority,
    TicketStatus,
    TicketType,
    UserRole,
)

_ACTIVE_WORK = [s.value for s in ACTIVE_WORK_STATUSES]

# ─── Mappers ─────────────────────────────────────────────────────────


def _user_to_domain(m: UserModel) -> User:
    return User(
        id=m.id,
        name=m.name,
        role=UserRole(m.role),
        email=m.email,
        username=m.username,
        phone=m.phone,
        is_backbone_specialist=m.is_backbone_specialist,
        is_active=m.is_active,
        created_at=m.created_at,
    )


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        ticket_number=m.ticket_number,
        ticket_id_custom=m.ticket_id_custom,
        type=TicketType(m.type),
        priority=TicketPriority(m.priority),
        status=TicketStatus(m.status),
        title=m.title,
        description=m.description,
        description_images=list(m.description_images or []),
        customer_name=m.customer_name,
        customer_phone=m.customer_phone,
        customer_email=m.customer_email,
        customer_location_url=m.customer_location_url,
        area=m.area,
        odp_info=m.odp_info,
        odp_location=m.odp_location,
        latitude=m.latitude,
        longitude=m.longitude,
        created_at=m.created_at,
        sla_deadline=m.sla_deadline,
        action_description=m.action_description,
        proof_image_url=m.proof_image_url,
        proof_image_urls=list(m.proof_image_urls or []),
        speedtest_result=m.speedtest_result,
        speedtest_image_url=m.speedtest_image_url,
        closed_at=m.closed_at,
        duration_minutes=m.duration_minutes,
        closed_reason=ClosedReason(m.closed_reason) if m.closed_reason else None,
        closed_note=m.closed_note,
        perform_status=PerformStatus(m.perform_status) if m.perform_status else None,
        bonus=m.bonus,
        ticket_fee=m.ticket_fee,
        transport_fee=m.transport_fee,
        rejection_reason=m.rejection_reason,
        reopen_reason=m.reopen_reason,
        status_before_rejection=(
            TicketStatus(m.status_before_rejection) if m.status_before_rejection else None
        ),
    )


def _ticket_columns(ticket: Ticket) -> dict:
    return {
        "ticket_number": ticket.ticket_number,
        "ticket_id_custom": ticket.ticket_id_custom,
        "type": ticket.type.value,
        "priority": ticket.priority.value,
        "status": ticket.status.value,
        "title": ticket.title,
        "description": ticket.description,
        "description_images": list(ticket.description_images),
        "customer_name": ticket.customer_name,
        "customer_phone": ticket.customer_phone,
        "customer_email": ticket.customer_email,
        "customer_location_url": ticket.customer_location_url,
        "area": ticket.area,
        "odp_info": ticket.odp_info,
        "odp_location": ticket.odp_location,
        "latitude": ticket.latitude,
        "longitude": ticket.longitude,
        "created_at": ticket.created_at,
        "sla_deadline": ticket.sla_deadline,
        "action_description": ticket.action_description,
        "proof_image_url": ticket.proof_image_url,
        "proof_image_urls": list(ticket.proof_image_urls),
        "speedtest_result": ticket.speedtest_result,
        "speedtest_image_url": ticket.speedtest_image_url,
        "closed_at": ticket.closed_at,
        "duration_minutes": ticket.duration_minutes,
        "closed_reason": ticket.closed_reason.value if ticket.closed_reason else None,
        "closed_note": ticket.closed_note,
        "perform_status": ticket.perform_status.value if ticket.perform_status else None,
        "bonus": ticket.bonus,
        "ticket_fee": ticket.ticket_fee,
        "transport_fee": ticket.transport_fee,
        "rejection_reason": ticket.rejection_reason,
        "reopen_reason": ticket.reopen_reason,
        "status_before_rejection": (
            ticket.status_before_rejection.value if ticket.status_before_rejection else None
        ),
    }


def _assignment_to_domain(m: AssignmentModel) -> Assignment:
    return Assignment(
        id=m.id,
        ticket_id=m.ticket_id,
        user_id=m.user_id,
        assigned_at=m.assigned_at,
        active=m.active,
        assignment_type=AssignmentType(m.assignment_type),
    )


def _log_to_domain(m: PerformanceLogModel) -> PerformanceLog:
    return PerformanceLog(
        id=m.id,
        user_id=m.user_id,
        ticket_id=m.ticket_id,
        result=PerformStatus(m.result),
        completed_within_sla=m.completed_within_sla,
        duration_minutes=m.duration_minutes,
        ticket_fee=m.ticket_fee,
        transport_fee=m.transport_fee,
        bonus=m.bonus,
        created_at=m.created_at,
    )


def _setting_to_domain(m: SettingModel) -> Setting:
    return Setting(key=m.key, value=m.value, updated_at=m.updated_at)


# ─── Repositories ────────────────────────────────────────────────────


class SqlUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, user: User) -> User:
        m = UserModel(
            name=user.name,
            email=user.email,
            username=user.username,
            phone=user.phone,
            role=user.role.value,
            is_backbone_specialist=user.is_backbone_specialist,
            is_active=user.is_active,
        )
        self._s.add(m)
        await self._s.flush()
        user.id = m.id
        user.created_at = m.created_at
        return user

    async def get_by_id(self, user_id: int, for_update: bool = False) -> User | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        m = (await self._s.execute(stmt)).scalar_one_or_none()
        return _user_to_domain(m) if m else None

    async def get_many(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        result = await self._s.execute(
            select(UserModel).where(UserModel.id.in_(user_ids)).order_by(UserModel.id)
        )
        return [_user_to_domain(m) for m in result.scalars()]

    async def list(self, role: UserRole | None = None, active_only: bool = False) -> list[User]:
        stmt = select(UserModel).order_by(UserModel.id)
        if role is not None:
            stmt = stmt.where(UserModel.role == role.value)
        if active_only:
            stmt = stmt.where(UserModel.is_active.is_(True))
        result = await self._s.execute(stmt)
        return [_user_to_domain(m) for m in result.scalars()]

    async def update(self, user: User) -> User:
        await self._s.execute(
            update(UserModel)
            .where(UserModel.id == user.id)
            .values(
                name=user.name,
                email=user.email,
                username=user.username,
                phone=user.phone,
                role=user.role.value,
                is_backbone_specialist=user.is_backbone_specialist,
                is_active=user.is_active,
            )
        )
        await self._s.flush()
        return user


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, ticket: Ticket) -> Ticket:
        m = TicketModel(**_ticket_columns(ticket))
        self._s.add(m)
        await self._s.flush()
        ticket.id = m.id
        return ticket

    async def get_by_id(self, ticket_id: int, for_update: bool = False) -> Ticket | None:
        stmt = select(TicketModel).where(TicketModel.id == ticket_id)
        if for_update:
            stmt = stmt.with_for_update()
        m = (await self._s.execute(stmt)).scalar_one_or_none()
        return _ticket_to_domain(m) if m else None

    async def update(self, ticket: Ticket) -> Ticket:
        await self._s.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket.id)
            .values(**_ticket_columns(ticket))
        )
        await self._s.flush()
        return ticket

    async def list(
        self,
        filters: TicketFilter | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Ticket]:
        stmt = _filtered(select(TicketModel), filters).order_by(
            TicketModel.created_at.desc(), TicketModel.id.desc()
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._s.execute(stmt)
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def count(self, filters: TicketFilter | None = None) -> int:
        stmt = _filtered(select(func.count(TicketModel.id)), filters)
        return (await self._s.execute(stmt)).scalar() or 0

    async def get_open(self, types: frozenset[TicketType], for_update: bool = False) -> list[Ticket]:
        stmt = (
            select(TicketModel)
            .where(
                TicketModel.status == TicketStatus.OPEN.value,
                TicketModel.type.in_([t.value for t in types]),
            )
            .order_by(TicketModel.created_at, TicketModel.id)
        )
        if for_update:
            stmt = stmt.with_for_update(skip_locked=True)
        result = await self._s.execute(stmt)
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def get_active_for_user(self, user_id: int) -> Ticket | None:
        result = await self._s.execute(
            select(TicketModel)
            .join(AssignmentModel, AssignmentModel.ticket_id == TicketModel.id)
            .where(
                AssignmentModel.user_id == user_id,
                AssignmentModel.active.is_(True),
                TicketModel.status.in_(_ACTIVE_WORK),
            )
            .order_by(TicketModel.id)
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _ticket_to_domain(m) if m else None

    async def get_last_closed_for_user(self, user_id: int, since: datetime) -> Ticket | None:
        result = await self._s.execute(
            select(TicketModel)
            .join(AssignmentModel, AssignmentModel.ticket_id == TicketModel.id)
            .where(
                AssignmentModel.user_id == user_id,
                AssignmentModel.active.is_(True),
                TicketModel.status == TicketStatus.CLOSED.value,
                TicketModel.closed_at >= since,
            )
            .order_by(TicketModel.closed_at.desc())
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _ticket_to_domain(m) if m else None

    async def get_stale_assigned(self, cutoff: datetime) -> list[Ticket]:
        stale_ids = select(AssignmentModel.ticket_id).where(
            AssignmentModel.active.is_(True),
            AssignmentModel.assigned_at < cutoff,
        )
        result = await self._s.execute(
            select(TicketModel)
            .where(
                TicketModel.status == TicketStatus.ASSIGNED.value,
                TicketModel.id.in_(stale_ids),
            )
            .order_by(TicketModel.id)
            .with_for_update(skip_locked=True)
        )
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def max_daily_sequence(self, day_prefix: str) -> int:
        # Numbers are zero-padded, so the string max is the numeric max
        result = await self._s.execute(
            select(func.max(TicketModel.ticket_number)).where(
                TicketModel.ticket_number.like(f"INC-{day_prefix}-%")
            )
        )
        last = result.scalar()
        if not last:
            return 0
        return int(last.rsplit("-", 1)[-1])


def _filtered(stmt: Select, filters: TicketFilter | None) -> Select:
    if filters is None:
        return stmt
    if filters.status is not None:
        stmt = stmt.where(TicketModel.status == filters.status.value)
    if filters.type is not None:
        stmt = stmt.where(TicketModel.type == filters.type.value)
    if filters.priority is not None:
        stmt = stmt.where(TicketModel.priority == filters.priority.value)
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        stmt = stmt.where(
            or_(
                TicketModel.ticket_number.ilike(pattern),
                TicketModel.ticket_id_custom.ilike(pattern),
                TicketModel.title.ilike(pattern),
                TicketModel.customer_name.ilike(pattern),
                TicketModel.area.ilike(pattern),
            )
        )
    if filters.assigned_to is not None:
        stmt = stmt.where(
            TicketModel.id.in_(
                select(AssignmentModel.ticket_id).where(
                    AssignmentModel.user_id == filters.assigned_to,
                    AssignmentModel.active.is_(True),
                )
            )
        )
    if filters.created_from is not None:
        stmt = stmt.where(TicketModel.created_at >= filters.created_from)
    if filters.created_to is not None:
        stmt = stmt.where(TicketModel.created_at < filters.created_to)
    if filters.closed_from is not None:
        stmt = stmt.where(TicketModel.closed_at >= filters.closed_from)
    if filters.closed_to is not None:
        stmt = stmt.where(TicketModel.closed_at < filters.closed_to)
    return stmt


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, assignment: Assignment) -> Assignment:
        m = AssignmentModel(
            ticket_id=assignment.ticket_id,
            user_id=assignment.user_id,
            assignment_type=assignment.assignment_type.value,
            active=assignment.active,
            assigned_at=assignment.assigned_at,
        )
        self._s.add(m)
        await self._s.flush()
        assignment.id = m.id
        return assignment

    async def get_active(self, ticket_id: int) -> list[Assignment]:
        result = await self._s.execute(
            select(AssignmentModel)
            .where(AssignmentModel.ticket_id == ticket_id, AssignmentModel.active.is_(True))
            .order_by(AssignmentModel.id)
        )
        return [_assignment_to_domain(m) for m in result.scalars()]

    async def get_active_for_tickets(self, ticket_ids: list[int]) -> dict[int, list[Assignment]]:
        grouped: dict[int, list[Assignment]] = defaultdict(list)
        if not ticket_ids:
            return grouped
        result = await self._s.execute(
            select(AssignmentModel)
            .where(AssignmentModel.ticket_id.in_(ticket_ids), AssignmentModel.active.is_(True))
            .order_by(AssignmentModel.id)
        )
        for m in result.scalars():
            grouped[m.ticket_id].append(_assignment_to_domain(m))
        return grouped

    async def get_history(self, ticket_id: int) -> list[Assignment]:
        result = await self._s.execute(
            select(AssignmentModel)
            .where(AssignmentModel.ticket_id == ticket_id)
            .order_by(AssignmentModel.assigned_at, AssignmentModel.id)
        )
        return [_assignment_to_domain(m) for m in result.scalars()]

    async def deactivate_all(self, ticket_id: int) -> int:
        result = await self._s.execute(
            update(AssignmentModel)
            .where(AssignmentModel.ticket_id == ticket_id, AssignmentModel.active.is_(True))
            .values(active=False)
        )
        await self._s.flush()
        return result.rowcount or 0

    async def get_busy_user_ids(self) -> set[int]:
        result = await self._s.execute(
            select(AssignmentModel.user_id)
            .join(TicketModel, TicketModel.id == AssignmentModel.ticket_id)
            .where(AssignmentModel.active.is_(True), TicketModel.status.in_(_ACTIVE_WORK))
            .distinct()
        )
        return set(result.scalars())


class SqlPerformanceLogRepository(PerformanceLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def add(self, log: PerformanceLog) -> PerformanceLog:
        m = PerformanceLogModel(
            user_id=log.user_id,
            ticket_id=log.ticket_id,
            result=log.result.value,
            completed_within_sla=log.completed_within_sla,
            duration_minutes=log.duration_minutes,
            ticket_fee=log.ticket_fee,
            transport_fee=log.transport_fee,
            bonus=log.bonus,
        )
        if log.created_at is not None:
            m.created_at = log.created_at
        self._s.add(m)
        await self._s.flush()
        log.id = m.id
        return log

    async def delete_for_ticket(self, ticket_id: int) -> int:
        result = await self._s.execute(
            delete(PerformanceLogModel).where(PerformanceLogModel.ticket_id == ticket_id)
        )
        await self._s.flush()
        return result.rowcount or 0

    async def list(
        self,
        user_id: int | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> list[PerformanceLog]:
        stmt = select(PerformanceLogModel).order_by(PerformanceLogModel.created_at, PerformanceLogModel.id)
        if user_id is not None:
            stmt = stmt.where(PerformanceLogModel.user_id == user_id)
        if created_from is not None:
            stmt = stmt.where(PerformanceLogModel.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(PerformanceLogModel.created_at < created_to)
        result = await self._s.execute(stmt)
        return [_log_to_domain(m) for m in result.scalars()]

    async def get_for_tickets(self, ticket_ids: list[int]) -> list[PerformanceLog]:
        if not ticket_ids:
            return []
        result = await self._s.execute(
            select(PerformanceLogModel)
            .where(PerformanceLogModel.ticket_id.in_(ticket_ids))
            .order_by(PerformanceLogModel.id)
        )
        return [_log_to_domain(m) for m in result.scalars()]


class SqlSettingsRepository(SettingsRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get(self, key: str) -> Setting | None:
        m = await self._s.get(SettingModel, key)
        return _setting_to_domain(m) if m else None

    async def set(self, key: str, value: str | None) -> Setting:
        m = await self._s.get(SettingModel, key)
        if m is None:
            m = SettingModel(key=key, value=value)
            self._s.add(m)
        else:
            m.value = value
        await self._s.flush()
        await self._s.refresh(m)
        return _setting_to_domain(m)

    async def get_all(self) -> list[Setting]:
        result = await self._s.execute(select(SettingModel).order_by(SettingModel.key))
        return [_setting_to_domain(m) for m in result.scalars()]


class SqlRoundRobinRepository(RoundRobinRepository):
    """Persisted counters; one row per cycle key."""

    def __init__(self, session: AsyncSession):
        self._s = session

    async def increment_counter(self, rr_key: str) -> int:
        # The row lock is held until commit, so callers serialize on it
        result = await self._s.execute(
            select(RoundRobinStateModel)
            .where(RoundRobinStateModel.rr_key == rr_key)
            .with_for_update()
        )
        m = result.scalar_one_or_none()
        if m is None:
            m = RoundRobinStateModel(rr_key=rr_key, counter=1)
            self._s.add(m)
            await self._s.flush()
            return 0
        old_value = m.counter
        m.counter += 1
        await self._s.flush()
        return old_value
