"""
Attendance Metrics application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from attendance_metrics.api.v1.api import api_router
from attendance_metrics.core.config import settings
from attendance_metrics.core.exceptions import register_exception_handlers
from attendance_metrics.db.base import Base
from attendance_metrics.db.session import engine

# Ensure all models are imported so metadata.create_all can see them
from attendance_metrics.models.attendance import AttendanceRecord  # noqa: F401
from attendance_metrics.models.employee import BiometricExemption, Employee  # noqa: F401
from attendance_metrics.models.user import User  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    logger.info(
        "%s v%s started (auto punch-out %.1fh, TEE basis %s)",
        settings.PROJECT_NAME, settings.VERSION,
        settings.AUTO_PUNCHOUT_HOURS, settings.TEE_BASIS,
    )
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Daily and multi-day attendance reconciliation",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
