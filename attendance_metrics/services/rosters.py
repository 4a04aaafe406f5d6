"""
Drill-down rosters behind the dashboard counters.

They use the engine's date fallback and punch-state rules, but return
one row per employee instead of counts. Shift lookups only supply display
context; the lateness decision was already made upstream.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.core.clock import format_elapsed, local_now
from attendance_metrics.core.config import settings
from attendance_metrics.core.enums import ArrivalStatus, DepartureStatus
from attendance_metrics.models.attendance import AttendanceRecord
from attendance_metrics.models.employee import BiometricExemption, Employee
from attendance_metrics.schemas.attendance import (ArrivalEntry,
                                                   DepartureEntry,
                                                   EarlyDeparturesResponse,
                                                   LateArrivalsResponse,
                                                   PresentEmployee,
                                                   PresentRosterResponse)
from attendance_metrics.services import punch_store
from attendance_metrics.services.engine import AttendanceEngine
from attendance_metrics.services.punch_state import PunchState, classify

logger = logging.getLogger(__name__)

UNKNOWN_DEPARTMENT = "Unknown"
NO_SHIFT = "No Shift"
DEFAULT_ARRIVAL = "9:00 AM"
DEFAULT_DEPARTURE = "5:00 PM"

SHIFT_ARRIVALS: dict[str, str] = {
    "SYS-EARLY": "6:30 AM",
    "SYS-STANDARD": "9:00 AM",
    "SYS-LATE-MORNING": "10:00 AM",
    "SYS-AFTERNOON": "11:30 AM",
    "SYS-TECH": "2:30 PM",
    "PSCA-Morning": "7:00 AM",
    "PSCA-Evening": "3:00 PM",
    "PSCA-Night": "11:00 PM",
}

SHIFT_DEPARTURES: dict[str, str] = {
    "SYS-EARLY": "2:30 PM",
    "SYS-STANDARD": "5:00 PM",
    "SYS-LATE-MORNING": "6:00 PM",
    "SYS-AFTERNOON": "7:30 PM",
    "SYS-TECH": "10:30 PM",
    "PSCA-Morning": "3:00 PM",
    "PSCA-Evening": "11:00 PM",
    "PSCA-Night": "7:00 AM",
}


def expected_arrival(shift: str | None) -> str:
    return SHIFT_ARRIVALS.get(shift or NO_SHIFT, DEFAULT_ARRIVAL)


def expected_departure(shift: str | None) -> str:
    return SHIFT_DEPARTURES.get(shift or NO_SHIFT, DEFAULT_DEPARTURE)


def _display_name(code: str, first: str | None, last: str | None) -> str:
    """Employee name, or the code itself when the registry has no match."""
    name = " ".join(p for p in (first, last) if p)
    return name or code


async def _resolve(db: AsyncSession, target: date | None, now: datetime) -> date | None:
    return await AttendanceEngine(db).resolve_target_date(target or now.date())


# ── Present roster ──────────────────────────────────────────────────
async def present_roster(
    db: AsyncSession,
    target_date: date | None = None,
    now: datetime | None = None,
) -> PresentRosterResponse:
    """Employees still inside the punch-out window, plus the imputed non-bio list."""
    if now is None:
        now = local_now()
    day = await _resolve(db, target_date, now)

    present: list[PresentEmployee] = []
    if day is not None:
        result = await db.execute(
            select(
                AttendanceRecord.employee_code,
                AttendanceRecord.check_in,
                AttendanceRecord.check_out,
                AttendanceRecord.total_hours,
                Employee.first_name,
                Employee.last_name,
                Employee.department,
            )
            .outerjoin(Employee, AttendanceRecord.employee_code == Employee.employee_code)
            .where(
                AttendanceRecord.date == day,
                AttendanceRecord.check_in.is_not(None),
                AttendanceRecord.check_out.is_(None),
            )
            .order_by(AttendanceRecord.check_in.asc())
        )
        for r in result.all():
            if classify(r.check_in, r.check_out, now) is not PunchState.OPEN_ACTIVE:
                continue
            present.append(
                PresentEmployee(
                    employee_code=r.employee_code,
                    employee_name=_display_name(r.employee_code, r.first_name, r.last_name),
                    department=r.department or UNKNOWN_DEPARTMENT,
                    punch_in_time=r.check_in,
                    punch_out_time=r.check_out,
                    hours_worked=float(r.total_hours or 0),
                    status="present",
                    time_since_punch_in=format_elapsed(now - r.check_in),
                )
            )

    non_bio = await non_bio_roster(db)
    registered = await punch_store.count_registered_employees(db)
    logger.info(
        "Present roster %s: %d observed, %d non-bio", day, len(present), len(non_bio)
    )
    return PresentRosterResponse(
        target_date=day or target_date or now.date(),
        registered_employees=registered,
        present=present,
        non_bio=non_bio,
    )


async def non_bio_roster(db: AsyncSession) -> list[PresentEmployee]:
    """Active biometric exemptions as synthetic full-day entries."""
    result = await db.execute(
        select(
            BiometricExemption.employee_code,
            BiometricExemption.department_name,
            Employee.first_name,
            Employee.last_name,
            Employee.department,
        )
        .outerjoin(Employee, BiometricExemption.employee_code == Employee.employee_code)
        .where(BiometricExemption.is_active.is_(True))
        .order_by(
            func.coalesce(Employee.department, BiometricExemption.department_name),
            BiometricExemption.employee_code,
        )
    )
    return [
        PresentEmployee(
            employee_code=r.employee_code,
            employee_name=_display_name(r.employee_code, r.first_name, r.last_name),
            department=r.department or r.department_name or UNKNOWN_DEPARTMENT,
            hours_worked=float(settings.STANDARD_SHIFT_HOURS),
            status="non_bio",
        )
        for r in result.all()
    ]


# ── Late / grace arrivals ───────────────────────────────────────────
async def late_arrivals_roster(
    db: AsyncSession,
    target_date: date | None = None,
    now: datetime | None = None,
) -> LateArrivalsResponse:
    """Rows the timing classifier marked late or grace, with shift context."""
    if now is None:
        now = local_now()
    day = await _resolve(db, target_date, now)
    if day is None:
        return LateArrivalsResponse(
            target_date=target_date or now.date(),
            late_arrivals=[],
            grace_arrivals=[],
            total_late=0,
            total_grace=0,
            total_on_time=0,
            total_early=0,
        )

    result = await db.execute(
        select(
            AttendanceRecord.employee_code,
            AttendanceRecord.check_in,
            AttendanceRecord.arrival_status,
            AttendanceRecord.late_minutes,
            AttendanceRecord.grace_minutes,
            Employee.first_name,
            Employee.last_name,
            Employee.department,
            Employee.shift,
        )
        .outerjoin(Employee, AttendanceRecord.employee_code == Employee.employee_code)
        .where(
            AttendanceRecord.date == day,
            AttendanceRecord.check_in.is_not(None),
        )
        .order_by(AttendanceRecord.check_in.asc())
    )
    rows = result.all()

    late: list[ArrivalEntry] = []
    grace: list[ArrivalEntry] = []
    totals = {s.value: 0 for s in ArrivalStatus}
    for r in rows:
        if r.arrival_status in totals:
            totals[r.arrival_status] += 1
        if r.arrival_status == ArrivalStatus.LATE.value:
            bucket, minutes = late, r.late_minutes
        elif r.arrival_status == ArrivalStatus.GRACE.value:
            bucket, minutes = grace, r.grace_minutes
        else:
            continue
        bucket.append(
            ArrivalEntry(
                employee_code=r.employee_code,
                employee_name=_display_name(r.employee_code, r.first_name, r.last_name),
                department=r.department or UNKNOWN_DEPARTMENT,
                check_in=r.check_in,
                expected_arrival=expected_arrival(r.shift),
                minutes=minutes or 0,
                shift=r.shift or NO_SHIFT,
            )
        )

    return LateArrivalsResponse(
        target_date=day,
        late_arrivals=late,
        grace_arrivals=grace,
        total_late=totals[ArrivalStatus.LATE.value],
        total_grace=totals[ArrivalStatus.GRACE.value],
        total_on_time=totals[ArrivalStatus.ON_TIME.value],
        total_early=totals[ArrivalStatus.EARLY.value],
    )


# ── Early departures ────────────────────────────────────────────────
async def early_departures_roster(
    db: AsyncSession,
    target_date: date | None = None,
    now: datetime | None = None,
) -> EarlyDeparturesResponse:
    if now is None:
        now = local_now()
    day = await _resolve(db, target_date, now)
    if day is None:
        return EarlyDeparturesResponse(
            target_date=target_date or now.date(),
            early_departures=[],
            total_early_departures=0,
            total_late_departures=0,
            total_on_time_departures=0,
        )

    result = await db.execute(
        select(
            AttendanceRecord.employee_code,
            AttendanceRecord.check_out,
            AttendanceRecord.departure_status,
            AttendanceRecord.early_departure_minutes,
            Employee.first_name,
            Employee.last_name,
            Employee.department,
            Employee.shift,
        )
        .outerjoin(Employee, AttendanceRecord.employee_code == Employee.employee_code)
        .where(
            AttendanceRecord.date == day,
            AttendanceRecord.check_out.is_not(None),
        )
        .order_by(AttendanceRecord.check_out.asc())
    )
    rows = result.all()

    totals = {s.value: 0 for s in DepartureStatus}
    early: list[DepartureEntry] = []
    for r in rows:
        if r.departure_status in totals:
            totals[r.departure_status] += 1
        if r.departure_status != DepartureStatus.EARLY.value:
            continue
        early.append(
            DepartureEntry(
                employee_code=r.employee_code,
                employee_name=_display_name(r.employee_code, r.first_name, r.last_name),
                department=r.department or UNKNOWN_DEPARTMENT,
                check_out=r.check_out,
                expected_departure=expected_departure(r.shift),
                early_minutes=r.early_departure_minutes or 0,
                shift=r.shift or NO_SHIFT,
            )
        )

    return EarlyDeparturesResponse(
        target_date=day,
        early_departures=early,
        total_early_departures=totals[DepartureStatus.EARLY.value],
        total_late_departures=totals[DepartureStatus.LATE.value],
        total_on_time_departures=totals[DepartureStatus.ON_TIME.value],
    )
