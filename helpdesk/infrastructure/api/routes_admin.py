"""Admin maintenance endpoints — stale reset, bonus recalculation, data backfills."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from helpdesk.application.use_cases.bonus import BonusService
from helpdesk.application.use_cases.maintenance import MaintenanceService
from helpdesk.application.use_cases.ticket_lifecycle import TicketLifecycleService
from helpdesk.config import settings
from helpdesk.domain.entities.user import User
from helpdesk.infrastructure.api.dependencies import (
    get_bonus_service,
    get_lifecycle,
    get_maintenance,
    require_admin,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


class BulkResetRequest(BaseModel):
    max_age_hours: float | None = Field(default=None, alias="maxAgeHours")

    model_config = {"populate_by_name": True}


@router.post("/bulk-reset-assignments")
async def bulk_reset_assignments(
    body: BulkResetRequest | None = None,
    user: User = Depends(require_admin),
    lifecycle: TicketLifecycleService = Depends(get_lifecycle),
):
    """Return tickets stuck in ``assigned`` back to the open pool."""
    hours = body.max_age_hours if body and body.max_age_hours is not None else settings.stale_assignment_hours
    count = await lifecycle.reset_stale_assignments(max_age_hours=hours, actor=user)
    return {"reset_count": count, "max_age_hours": hours}


@router.post("/recalculate-bonuses")
async def recalculate_bonuses(
    user: User = Depends(require_admin),
    bonus: BonusService = Depends(get_bonus_service),
):
    result = await bonus.recalculate_all()
    logger.info("Bonus recalculation requested by %s", user.name)
    return {"tickets_updated": result.tickets_updated, "logs_written": result.logs_written}


@router.post("/tickets/backfill-areas")
async def backfill_areas(
    user: User = Depends(require_admin),
    maintenance: MaintenanceService = Depends(get_maintenance),
):
    result = await maintenance.backfill_areas()
    return {"processed": result.processed, "total": result.total, "errors": result.errors}


@router.post("/backfill-names")
async def backfill_names(
    user: User = Depends(require_admin),
    maintenance: MaintenanceService = Depends(get_maintenance),
):
    result = await maintenance.backfill_names()
    return {"users_updated": result.users_updated, "tickets_updated": result.tickets_updated}
