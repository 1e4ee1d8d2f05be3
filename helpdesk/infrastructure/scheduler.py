"""Nightly stale-assignment reset, run by APScheduler inside the app's event loop."""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from helpdesk.infrastructure.api.dependencies import build_lifecycle, repositories_for

logger = logging.getLogger(__name__)

JOB_ID = "midnight-reset"


def midnight_trigger(timezone: str) -> CronTrigger:
    return CronTrigger(hour=0, minute=0, second=0, timezone=ZoneInfo(timezone))


class MidnightResetScheduler:
    """Returns stale ``assigned`` tickets to the pool every local midnight."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timezone: str,
        max_age_hours: float,
    ):
        self._session_factory = session_factory
        self._timezone = timezone
        self._max_age_hours = max_age_hours
        self._scheduler: AsyncIOScheduler | None = None

    def start(self) -> None:
        if self._scheduler is not None:
            logger.warning("Midnight reset already scheduled")
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._job,
            midnight_trigger(self._timezone),
            id=JOB_ID,
            name="Stale assignment reset",
            misfire_grace_time=3600,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Midnight reset scheduled (%s, threshold %sh)", self._timezone, self._max_age_hours)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Midnight reset stopped")

    async def run_once(self) -> int:
        async with self._session_factory() as session:
            lifecycle = build_lifecycle(repositories_for(session), geocoder=None)
            count = await lifecycle.reset_stale_assignments(max_age_hours=self._max_age_hours)
            await session.commit()
        return count

    async def _job(self) -> None:
        try:
            count = await self.run_once()
        except Exception:
            logger.exception("Midnight reset failed")
            return
        logger.info("Midnight reset: %d ticket(s) returned to open", count)
