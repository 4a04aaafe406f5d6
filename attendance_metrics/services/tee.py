"""
Expected-attendance model (TEE, "Total Expected Employees").

For the target's weekday, the distinct punch-in counts of the same weekday
inside a trailing window give a baseline headcount. Monday and Saturday
baselines differ, so each weekday is estimated on its own.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Mapping
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.core.config import settings
from attendance_metrics.schemas.metrics import TEEEstimate
from attendance_metrics.services import punch_store

logger = logging.getLogger(__name__)


def estimate_from_history(
    target: date,
    actual_punch_ins: int,
    history: Mapping[date, int],
    *,
    min_samples: int = 1,
    basis: str = "average",
) -> TEEEstimate:
    """Pure TEE estimate from per-day punch-in counts.

    Only days sharing the target's weekday are used. With fewer than
    ``min_samples`` such days the estimate falls back to the actual count,
    so the day reports zero TEE absentees rather than a made-up gap.
    """
    day_name = calendar.day_name[target.weekday()]
    samples = [n for d, n in history.items() if d.weekday() == target.weekday() and d < target]

    if len(samples) < max(1, min_samples):
        logger.info(
            "TEE: %d %s sample(s) before %s, using actual punch-ins %d",
            len(samples), day_name, target, actual_punch_ins,
        )
        return TEEEstimate(
            day_of_week=day_name,
            expected=actual_punch_ins,
            absentees=0,
            samples=len(samples),
        )

    average = round(sum(samples) / len(samples))
    maximum = max(samples)
    expected = maximum if basis == "maximum" else average
    return TEEEstimate(
        day_of_week=day_name,
        expected=expected,
        absentees=max(0, expected - actual_punch_ins),
        average=average,
        maximum=maximum,
        samples=len(samples),
    )


class ExpectedAttendanceModel:
    """Trailing-window TEE estimator backed by the Punch Store."""

    def __init__(
        self,
        window_days: int | None = None,
        min_samples: int | None = None,
        basis: str | None = None,
    ) -> None:
        self.window_days = window_days if window_days is not None else settings.TEE_WINDOW_DAYS
        self.min_samples = min_samples if min_samples is not None else settings.TEE_MIN_SAMPLES
        self.basis = basis or settings.TEE_BASIS

    async def estimate(self, db: AsyncSession, target: date, actual_punch_ins: int) -> TEEEstimate:
        start = target - timedelta(days=self.window_days)
        history = await punch_store.punch_in_counts_by_date(db, start, target)
        tee = estimate_from_history(
            target,
            actual_punch_ins,
            history,
            min_samples=self.min_samples,
            basis=self.basis,
        )
        logger.info(
            "TEE %s %s: expected=%d (avg=%d max=%d, %d samples) actual=%d absentees=%d",
            tee.day_of_week, target, tee.expected, tee.average, tee.maximum,
            tee.samples, actual_punch_ins, tee.absentees,
        )
        return tee
