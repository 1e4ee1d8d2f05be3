"""Seed the database with demo users, default settings and sample tickets.

Usage:
    python -m helpdesk.tools.seed_db
    python -m helpdesk.tools.seed_db --drop  # drop existing data first
    python -m helpdesk.tools.seed_db --verify-only
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.adapters.persistence.database import async_session_factory
from helpdesk.adapters.persistence.models import (
    AssignmentModel,
    PerformanceLogModel,
    RoundRobinStateModel,
    SettingModel,
    TicketModel,
    UserModel,
)
from helpdesk.application.use_cases.ticket_lifecycle import NewTicket
from helpdesk.domain.entities.user import User
from helpdesk.domain.value_objects.enums import TicketPriority, TicketType, UserRole
from helpdesk.domain.value_objects.setting_keys import SettingKey
from helpdesk.infrastructure.api.dependencies import build_lifecycle, repositories_for

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

DEMO_USERS: list[dict] = [
    {"name": "Super Admin", "username": "superadmin", "email": "superadmin@isp.com", "role": UserRole.SUPERADMIN},
    {"name": "Admin User", "username": "admin", "email": "admin@isp.com", "role": UserRole.ADMIN},
    {"name": "Helpdesk Helen", "username": "helpdesk", "email": "helpdesk@isp.com", "role": UserRole.HELPDESK},
    {"name": "Tech One", "username": "tech1", "email": "tech1@isp.com", "role": UserRole.TECHNICIAN},
    {"name": "Tech Two", "username": "tech2", "email": "tech2@isp.com", "role": UserRole.TECHNICIAN},
    {
        "name": "Backbone Bob",
        "username": "backbone",
        "email": "backbone@isp.com",
        "role": UserRole.TECHNICIAN,
        "is_backbone_specialist": True,
    },
]

DEFAULT_SETTINGS: dict[SettingKey, str] = {
    SettingKey.TICKET_FEE_HOME_MAINTENANCE: "50000.00",
    SettingKey.TRANSPORT_FEE_HOME_MAINTENANCE: "20000.00",
    SettingKey.TICKET_FEE_BACKBONE_MAINTENANCE: "75000.00",
    SettingKey.TRANSPORT_FEE_BACKBONE_MAINTENANCE: "25000.00",
    SettingKey.TICKET_FEE_INSTALLATION: "100000.00",
    SettingKey.TRANSPORT_FEE_INSTALLATION: "20000.00",
    SettingKey.PREFERENCE_RATIO_MAINTENANCE: "4",
    SettingKey.PREFERENCE_RATIO_INSTALLATION: "2",
    SettingKey.CUTOFF_DAY: "25",
}

DEMO_TICKETS: list[NewTicket] = [
    NewTicket(
        type=TicketType.HOME_MAINTENANCE,
        priority=TicketPriority.HIGH,
        title="No Internet Connection",
        description="Customer reports red LOS light on modem.",
        customer_name="alice johnson",
        customer_phone="123-456-7890",
        customer_location_url="https://maps.google.com/?q=-6.200000,106.816666",
    ),
    NewTicket(
        type=TicketType.INSTALLATION,
        priority=TicketPriority.MEDIUM,
        title="New Installation",
        description="Install 100Mbps plan.",
        customer_name="bob smith",
        customer_phone="987-654-3210",
        customer_location_url="https://maps.google.com/?q=-6.210000,106.820000",
    ),
    NewTicket(
        type=TicketType.BACKBONE_MAINTENANCE,
        priority=TicketPriority.CRITICAL,
        title="Feeder cable cut",
        description="ODC-07 feeder down, 48 customers affected.",
        customer_name="pt mitra area",
        customer_phone="555-111-2222",
        customer_location_url="https://maps.google.com/?q=-6.190000,106.830000",
    ),
]


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in correct order (respecting FK constraints)."""
    for model in [
        PerformanceLogModel,
        AssignmentModel,
        TicketModel,
        UserModel,
        SettingModel,
        RoundRobinStateModel,
    ]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


async def seed(drop: bool = False) -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    counts = {"users": 0, "settings": 0, "tickets": 0}

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        repos = repositories_for(session)

        # 1. Users
        actor: User | None = None
        for data in DEMO_USERS:
            existing = await session.execute(
                select(UserModel).where(UserModel.username == data["username"])
            )
            if existing.scalar_one_or_none():
                logger.debug("User '%s' already exists, skipping", data["username"])
                continue
            user = await repos.users.add(User(id=None, **data))
            counts["users"] += 1
            if user.role == UserRole.ADMIN:
                actor = user

        # 2. Settings (never overwrite an admin's value)
        for key, value in DEFAULT_SETTINGS.items():
            if await repos.settings.get(key.value) is None:
                await repos.settings.set(key.value, value)
                counts["settings"] += 1

        # 3. Sample tickets, only into an empty table
        has_tickets = (await session.execute(select(func.count(TicketModel.id)))).scalar() or 0
        if actor is not None and not has_tickets:
            lifecycle = build_lifecycle(repos, geocoder=None)
            for new_ticket in DEMO_TICKETS:
                await lifecycle.create(new_ticket, actor)
                counts["tickets"] += 1

        await session.commit()

    logger.info(
        "Seeded %d users, %d settings, %d tickets",
        counts["users"], counts["settings"], counts["tickets"],
    )
    return counts


async def _verify_data() -> None:
    """Print row counts for every table."""
    async with async_session_factory() as session:
        for model in [UserModel, TicketModel, AssignmentModel, PerformanceLogModel, SettingModel]:
            total = (await session.execute(select(func.count()).select_from(model))).scalar()
            logger.info("%-20s %d", model.__tablename__, total)


def main():
    parser = argparse.ArgumentParser(description="Seed the helpdesk database with demo data")
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(drop=args.drop)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
