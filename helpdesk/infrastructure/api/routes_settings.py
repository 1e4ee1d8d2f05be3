"""Settings endpoints — fee amounts, assignment ratio and payroll cutoff."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from helpdesk.domain.entities.setting import Setting
from helpdesk.domain.entities.user import User
from helpdesk.domain.errors import NotFoundError
from helpdesk.domain.value_objects.setting_keys import normalize_setting
from helpdesk.infrastructure.api.dependencies import (
    Repositories,
    get_repositories,
    require_admin,
    require_staff,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingRequest(BaseModel):
    key: str
    value: str | None = None


def _serialize(s: Setting) -> dict:
    return {
        "key": s.key,
        "value": s.value,
        "updated_at": s.updated_at.isoformat() if s.updated_at else None,
    }


@router.get("")
async def list_settings(
    user: User = Depends(require_staff),
    repos: Repositories = Depends(get_repositories),
):
    return [_serialize(s) for s in await repos.settings.get_all()]


@router.get("/{key}")
async def get_setting(
    key: str,
    user: User = Depends(require_staff),
    repos: Repositories = Depends(get_repositories),
):
    setting = await repos.settings.get(key)
    if setting is None:
        raise NotFoundError("setting", key)
    return _serialize(setting)


@router.put("")
async def put_setting(
    body: SettingRequest,
    user: User = Depends(require_admin),
    repos: Repositories = Depends(get_repositories),
):
    """Store a setting; fee and ratio values are validated first."""
    key = body.key.strip()
    value = normalize_setting(key, body.value)
    setting = await repos.settings.set(key, value)
    logger.info("Setting %s = %r by %s", key, value, user.name)
    return _serialize(setting)
