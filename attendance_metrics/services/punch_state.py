"""
Read-time punch state.

No present/closed flag is stored; the state of a record is derived from
its timestamps and the current time, using the auto punch-out window as
the implicit shift length.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from attendance_metrics.core.config import settings


class PunchState(str, Enum):
    OPEN_ACTIVE = "open_active"  # punched in, still inside the window
    OPEN_STALE = "open_stale"  # punched in, window elapsed, pending auto-closure
    CLOSED = "closed"  # checkout recorded


def default_window() -> timedelta:
    return timedelta(hours=settings.AUTO_PUNCHOUT_HOURS)


def classify(
    check_in: datetime | None,
    check_out: datetime | None,
    now: datetime,
    window: timedelta | None = None,
) -> PunchState | None:
    """Return the state of one record, or ``None`` when it has no check-in."""
    if check_in is None:
        return None
    if check_out is not None:
        return PunchState.CLOSED
    if window is None:
        window = default_window()
    if check_in + window > now:
        return PunchState.OPEN_ACTIVE
    return PunchState.OPEN_STALE
