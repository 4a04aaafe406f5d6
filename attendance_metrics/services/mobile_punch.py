"""
Mobile punch ingestion.

The one write path this service owns. A punch becomes a single
``INSERT ... ON CONFLICT (employee_code, date) DO UPDATE`` against the
Punch Store, so a retried request cannot create a second row for the day.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from fastapi import status
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.core.clock import local_now
from attendance_metrics.core.enums import PunchSource, PunchType, RecordStatus
from attendance_metrics.core.exceptions import (InvalidPunchError,
                                                NotFoundError,
                                                PunchConflictError,
                                                ServiceError)
from attendance_metrics.models.attendance import AttendanceRecord
from attendance_metrics.models.employee import Employee
from attendance_metrics.schemas.attendance import (MobilePunchRequest,
                                                   MobilePunchResponse)

logger = logging.getLogger(__name__)

_HOURS = Decimal("0.01")


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise ServiceError(
        f"Mobile punches are not supported on the {dialect} backend",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _coord(value: float | None) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def worked_hours(check_in: datetime, check_out: datetime) -> Decimal:
    seconds = Decimal(int((check_out - check_in).total_seconds()))
    return (seconds / Decimal(3600)).quantize(_HOURS)


async def _require_active_employee(db: AsyncSession, code: str) -> None:
    result = await db.execute(
        select(Employee.is_active).where(Employee.employee_code == code)
    )
    is_active = result.scalar_one_or_none()
    if not is_active:
        raise NotFoundError(f"Employee '{code}' not found or inactive")


async def _day_record(db: AsyncSession, code: str, day: date):
    result = await db.execute(
        select(AttendanceRecord.id, AttendanceRecord.check_in, AttendanceRecord.check_out)
        .where(AttendanceRecord.employee_code == code, AttendanceRecord.date == day)
    )
    return result.first()


async def _open_record(db: AsyncSession, code: str, day: date):
    """Open record on *day*, else an overnight one left open on the day before."""
    result = await db.execute(
        select(AttendanceRecord.date, AttendanceRecord.check_in)
        .where(
            AttendanceRecord.employee_code == code,
            AttendanceRecord.date.in_((day, day - timedelta(days=1))),
            AttendanceRecord.check_in.is_not(None),
            AttendanceRecord.check_out.is_(None),
        )
        .order_by(AttendanceRecord.date.desc())
        .limit(1)
    )
    return result.first()


async def record_punch(
    db: AsyncSession,
    body: MobilePunchRequest,
    now: datetime | None = None,
) -> MobilePunchResponse:
    """Validate and store one mobile check-in or check-out."""
    ts = body.timestamp or now or local_now()
    code = body.employee_code
    await _require_active_employee(db, code)

    location = {
        "latitude": _coord(body.latitude),
        "longitude": _coord(body.longitude),
        "gps_accuracy": _coord(body.accuracy),
    }
    insert = _insert_for(db)
    hours: Decimal | None = None

    if body.punch_type is PunchType.CHECKIN:
        day = ts.date()
        existing = await _day_record(db, code, day)
        if existing is not None and existing.check_in is not None:
            raise PunchConflictError(f"Employee '{code}' already checked in on {day}")
        if existing is not None and existing.check_out is not None:
            if ts > existing.check_out:
                raise InvalidPunchError("Check-in time is later than the recorded checkout")
            hours = worked_hours(ts, existing.check_out)

        stmt = insert(AttendanceRecord).values(
            employee_code=code,
            date=day,
            check_in=ts,
            punch_source=PunchSource.MOBILE.value,
            status=RecordStatus.ACTIVE.value,
            total_hours=hours,
            **location,
        )
        # Only a row without a check-in may take one.
        stmt = stmt.on_conflict_do_update(
            index_elements=["employee_code", "date"],
            set_={
                "check_in": stmt.excluded.check_in,
                "total_hours": stmt.excluded.total_hours,
                "punch_source": stmt.excluded.punch_source,
                "status": stmt.excluded.status,
                "latitude": stmt.excluded.latitude,
                "longitude": stmt.excluded.longitude,
                "gps_accuracy": stmt.excluded.gps_accuracy,
                "updated_at": datetime.now(timezone.utc),
            },
            where=AttendanceRecord.check_in.is_(None),
        )
        conflict = f"Employee '{code}' already checked in on {day}"
    else:
        open_row = await _open_record(db, code, ts.date())
        if open_row is None:
            raise PunchConflictError(f"Employee '{code}' has no open check-in to close")
        day = open_row.date
        if ts < open_row.check_in:
            raise InvalidPunchError("Checkout time is earlier than the check-in time")

        hours = worked_hours(open_row.check_in, ts)
        stmt = insert(AttendanceRecord).values(
            employee_code=code,
            date=day,
            check_out=ts,
            total_hours=hours,
            punch_source=PunchSource.MOBILE.value,
            **location,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["employee_code", "date"],
            set_={
                "check_out": stmt.excluded.check_out,
                "total_hours": stmt.excluded.total_hours,
                "punch_source": stmt.excluded.punch_source,
                "latitude": stmt.excluded.latitude,
                "longitude": stmt.excluded.longitude,
                "gps_accuracy": stmt.excluded.gps_accuracy,
                "updated_at": datetime.now(timezone.utc),
            },
            where=AttendanceRecord.check_out.is_(None),
        )
        conflict = f"Employee '{code}' already checked out on {day}"

    result = await db.execute(stmt)
    if result.rowcount == 0:
        # Another punch for the same day won the race.
        await db.rollback()
        raise PunchConflictError(conflict)
    await db.commit()

    saved = await _day_record(db, code, day)
    logger.info(
        "Mobile %s for %s on %s at %s", body.punch_type.value, code, day, ts.strftime("%H:%M")
    )
    return MobilePunchResponse(
        success=True,
        punch_id=saved.id,
        employee_code=code,
        punch_type=body.punch_type,
        punch_date=day,
        check_in=saved.check_in,
        check_out=saved.check_out,
        total_hours=float(hours) if hours is not None else None,
    )
