"""
Operating-timezone helpers.

Punch timestamps are stored as naive local wall-clock values, so "now" has
to be expressed the same way before it is compared against them.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from attendance_metrics.core.config import settings


def parse_offset(tz_offset: str) -> timezone:
    """Turn ``"+05:00"`` / ``"-03:30"`` / ``"+5"`` into a fixed ``timezone``."""
    tz_offset = tz_offset.strip()
    sign = -1 if tz_offset.startswith("-") else 1
    parts = tz_offset.lstrip("+-").split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 else 0
    return timezone(timedelta(hours=sign * hours, minutes=sign * minutes))


def local_now() -> datetime:
    """Current wall-clock time in the operating timezone, tz-naive."""
    tz = parse_offset(settings.TIMEZONE_OFFSET)
    return datetime.now(timezone.utc).astimezone(tz).replace(tzinfo=None)


def minutes_since_midnight(ts: datetime) -> int:
    return ts.hour * 60 + ts.minute


def format_elapsed(delta: timedelta) -> str:
    """Render an elapsed duration as ``"3h 12m"`` or ``"45m"``."""
    total_minutes = max(0, int(delta.total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
