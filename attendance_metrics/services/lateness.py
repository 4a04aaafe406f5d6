"""
The two lateness signals.

``late_by_threshold`` works from the check-in time alone and is always
available. ``late_by_classifier`` reads the arrival status written by the
upstream timing job, which may not have run.
"""

from __future__ import annotations

from datetime import datetime

from attendance_metrics.core.clock import minutes_since_midnight
from attendance_metrics.core.config import settings
from attendance_metrics.core.enums import ArrivalStatus


def late_by_threshold(check_in: datetime | None, threshold_minutes: int | None = None) -> bool:
    if check_in is None:
        return False
    if threshold_minutes is None:
        threshold_minutes = settings.LATE_THRESHOLD_MINUTES
    return minutes_since_midnight(check_in) > threshold_minutes


def late_by_classifier(arrival_status: str | None) -> bool:
    return arrival_status == ArrivalStatus.LATE.value
