"""
Multi-day series built from independent daily computations.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from fastapi import status

from attendance_metrics.core.clock import local_now
from attendance_metrics.core.config import settings
from attendance_metrics.core.exceptions import ServiceError
from attendance_metrics.schemas.metrics import (AttendanceMetrics, DayRate,
                                                RangeSummary)
from attendance_metrics.services.engine import AttendanceEngine

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 2.0


async def range_metrics(
    engine: AttendanceEngine,
    days_back: int,
    today: date | None = None,
    now: datetime | None = None,
) -> list[AttendanceMetrics]:
    """Daily metrics for the last *days_back* days, oldest first.

    Each day goes through ``compute_metrics`` on its own, so a day without
    rows reports the fallback day just like a single-day request would.
    """
    if not 1 <= days_back <= settings.MAX_RANGE_DAYS:
        raise ServiceError(
            f"days must be between 1 and {settings.MAX_RANGE_DAYS}",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    if now is None:
        now = local_now()
    if today is None:
        today = now.date()

    series: list[AttendanceMetrics] = []
    for offset in range(days_back - 1, -1, -1):
        series.append(await engine.compute_metrics(today - timedelta(days=offset), now))
    logger.info("Range metrics: %d day(s) ending %s", len(series), today)
    return series


def summarize_range(metrics: list[AttendanceMetrics]) -> RangeSummary:
    if not metrics:
        return RangeSummary(period_days=0, average_attendance_rate=0.0, total_hours_worked=0.0)

    rates = [m.attendance_rate for m in metrics]
    best = max(metrics, key=lambda m: m.attendance_rate)
    worst = min(metrics, key=lambda m: m.attendance_rate)

    return RangeSummary(
        period_days=len(metrics),
        average_attendance_rate=round(sum(rates) / len(rates), 2),
        total_hours_worked=round(float(sum(m.total_hours_worked for m in metrics)), 2),
        best_day=DayRate(target_date=best.target_date, attendance_rate=best.attendance_rate),
        worst_day=DayRate(target_date=worst.target_date, attendance_rate=worst.attendance_rate),
        trend_direction=trend_direction(rates),
    )


def trend_direction(rates: list[float]) -> str:
    """Compare the mean rate of the later half of the period with the earlier half."""
    if len(rates) < 2:
        return "stable"
    half = len(rates) // 2
    first = sum(rates[:half]) / half
    second = sum(rates[half:]) / (len(rates) - half)
    if second > first + TREND_THRESHOLD:
        return "improving"
    if second < first - TREND_THRESHOLD:
        return "declining"
    return "stable"
