"""
Daily and multi-day attendance metrics.

Nothing is cached: every request recomputes from the Punch Store.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.api.v1.deps import get_db
from attendance_metrics.core.config import settings
from attendance_metrics.schemas.metrics import (AttendanceMetrics,
                                                RangeMetricsResponse)
from attendance_metrics.services.aggregator import (range_metrics,
                                                    summarize_range)
from attendance_metrics.services.engine import AttendanceEngine

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/daily", response_model=AttendanceMetrics)
async def daily_metrics(
    target_date: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
) -> AttendanceMetrics:
    """Metrics for ``date`` (default today), or the latest earlier day with data."""
    return await AttendanceEngine(db).compute_metrics(target_date)


@router.get("/range", response_model=RangeMetricsResponse)
async def metrics_range(
    days: int = Query(default=7, ge=1, le=settings.MAX_RANGE_DAYS),
    db: AsyncSession = Depends(get_db),
) -> RangeMetricsResponse:
    series = await range_metrics(AttendanceEngine(db), days)
    return RangeMetricsResponse(days=series, summary=summarize_range(series))
