"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.geocoder.nominatim_adapter import NominatimAdapter
from helpdesk.adapters.persistence.database import get_session
from helpdesk.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlPerformanceLogRepository,
    SqlRoundRobinRepository,
    SqlSettingsRepository,
    SqlTicketRepository,
    SqlUserRepository,
)
from helpdesk.application.ports.assignment_repo import AssignmentRepository
from helpdesk.application.ports.geocoder_port import GeocoderPort
from helpdesk.application.ports.performance_repo import PerformanceLogRepository
from helpdesk.application.ports.round_robin_repo import RoundRobinRepository
from helpdesk.application.ports.settings_repo import SettingsRepository
from helpdesk.application.ports.ticket_repo import TicketRepository
from helpdesk.application.ports.user_repo import UserRepository
from helpdesk.application.use_cases.assignment_engine import AssignmentEngine
from helpdesk.application.use_cases.bonus import BonusService
from helpdesk.application.use_cases.maintenance import MaintenanceService
from helpdesk.application.use_cases.reporting import ReportingService
from helpdesk.application.use_cases.ticket_lifecycle import TicketLifecycleService
from helpdesk.config import settings
from helpdesk.domain.entities.user import User
from helpdesk.domain.errors import UnauthorizedError
from helpdesk.domain.value_objects.enums import UserRole

_geocoder_adapter = NominatimAdapter()


@dataclass
class Repositories:
    """Every repository bound to one request's session."""

    tickets: TicketRepository
    users: UserRepository
    assignments: AssignmentRepository
    performance: PerformanceLogRepository
    settings: SettingsRepository
    round_robin: RoundRobinRepository


def repositories_for(session: AsyncSession) -> Repositories:
    return Repositories(
        tickets=SqlTicketRepository(session),
        users=SqlUserRepository(session),
        assignments=SqlAssignmentRepository(session),
        performance=SqlPerformanceLogRepository(session),
        settings=SqlSettingsRepository(session),
        round_robin=SqlRoundRobinRepository(session),
    )


def build_bonus_service(repos: Repositories) -> BonusService:
    return BonusService(
        settings_repo=repos.settings,
        assignment_repo=repos.assignments,
        performance_repo=repos.performance,
        ticket_repo=repos.tickets,
    )


def build_lifecycle(repos: Repositories, geocoder: GeocoderPort | None) -> TicketLifecycleService:
    engine = AssignmentEngine(
        ticket_repo=repos.tickets,
        user_repo=repos.users,
        assignment_repo=repos.assignments,
        settings_repo=repos.settings,
        rr_repo=repos.round_robin,
        auto_pair_partner=settings.auto_pair_partner,
        proximity_radius_km=settings.proximity_radius_km,
    )
    return TicketLifecycleService(
        ticket_repo=repos.tickets,
        user_repo=repos.users,
        assignment_repo=repos.assignments,
        engine=engine,
        bonus=build_bonus_service(repos),
        geocoder=geocoder,
        sla_hours_default=settings.sla_hours_default,
        sla_hours_installation=settings.sla_hours_installation,
    )


# ── Providers ───────────────────────────────────────────────────────


def get_repositories(session: AsyncSession = Depends(get_session)) -> Repositories:
    return repositories_for(session)


def get_geocoder() -> GeocoderPort:
    return _geocoder_adapter


def get_lifecycle(
    repos: Repositories = Depends(get_repositories),
    geocoder: GeocoderPort = Depends(get_geocoder),
) -> TicketLifecycleService:
    return build_lifecycle(repos, geocoder)


def get_reporting(repos: Repositories = Depends(get_repositories)) -> ReportingService:
    return ReportingService(
        ticket_repo=repos.tickets,
        user_repo=repos.users,
        assignment_repo=repos.assignments,
        performance_repo=repos.performance,
        settings_repo=repos.settings,
        timezone=settings.timezone,
    )


def get_bonus_service(repos: Repositories = Depends(get_repositories)) -> BonusService:
    return build_bonus_service(repos)


def get_maintenance(
    repos: Repositories = Depends(get_repositories),
    geocoder: GeocoderPort = Depends(get_geocoder),
) -> MaintenanceService:
    return MaintenanceService(ticket_repo=repos.tickets, user_repo=repos.users, geocoder=geocoder)


# ── Acting user ─────────────────────────────────────────────────────


async def get_current_user(
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
    repos: Repositories = Depends(get_repositories),
) -> User:
    """Resolve the acting user from the X-User-Id header."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = await repos.users.get_by_id(x_user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_roles(*roles: UserRole):
    async def _check(user: User = Depends(get_current_user)) -> User:
        if not user.has_role(*roles):
            allowed = ", ".join(r.value for r in roles)
            raise UnauthorizedError(f"Only {allowed} can access this resource", details={"role": user.role.value})
        return user

    return _check


require_staff = require_roles(UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.HELPDESK)
require_admin = require_roles(UserRole.SUPERADMIN, UserRole.ADMIN)
