"""FTTH Helpdesk — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from helpdesk.adapters.persistence.database import async_session_factory, engine
from helpdesk.config import settings
from helpdesk.domain.errors import (
    ConflictError,
    HelpdeskError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from helpdesk.infrastructure.api.routes_admin import router as admin_router
from helpdesk.infrastructure.api.routes_health import router as health_router
from helpdesk.infrastructure.api.routes_reports import router as reports_router
from helpdesk.infrastructure.api.routes_settings import router as settings_router
from helpdesk.infrastructure.api.routes_tickets import router as tickets_router
from helpdesk.infrastructure.scheduler import MidnightResetScheduler

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[HelpdeskError], int] = {
    ValidationError: 400,
    UnauthorizedError: 403,
    NotFoundError: 404,
    ConflictError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database not available on startup: %s", e)

    scheduler = None
    if settings.enable_midnight_reset:
        scheduler = MidnightResetScheduler(
            async_session_factory,
            timezone=settings.timezone,
            max_age_hours=settings.stale_assignment_hours,
        )
        scheduler.start()
    yield
    if scheduler is not None:
        scheduler.stop()
    await engine.dispose()


async def handle_helpdesk_error(request: Request, exc: HelpdeskError) -> JSONResponse:
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
        400,
    )
    logger.info("%s %s → %d: %s", request.method, request.url.path, status_code, exc.message)
    return JSONResponse(status_code=status_code, content={"message": exc.message, "details": exc.details})


def create_app(use_lifespan: bool = True) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="FTTH Helpdesk",
        description="Ticket lifecycle, SLA tracking and technician assignment for an FTTH ISP",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(HelpdeskError, handle_helpdesk_error)

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(tickets_router, prefix="/api")
    app.include_router(reports_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")

    return app


app = create_app()
