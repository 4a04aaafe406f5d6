"""
Narrow read queries against the Punch Store and the Employee/Account registry.

Each function issues one short aggregate or indexed query; aggregation
beyond plain counts happens in Python in the calling service.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.core.enums import AccountType
from attendance_metrics.models.attendance import AttendanceRecord
from attendance_metrics.models.employee import (MIGRATED_DEPARTMENT,
                                                PLACEHOLDER_FIRST_NAME,
                                                BiometricExemption, Employee)
from attendance_metrics.models.user import User


@dataclass(frozen=True)
class PunchRow:
    """The fields of one AttendanceRecord that reconciliation looks at."""

    employee_code: str
    check_in: datetime | None = None
    check_out: datetime | None = None
    punch_source: str | None = None
    status: str | None = None
    arrival_status: str | None = None
    total_hours: Decimal | None = None


_PUNCH_COLUMNS = (
    AttendanceRecord.employee_code,
    AttendanceRecord.check_in,
    AttendanceRecord.check_out,
    AttendanceRecord.punch_source,
    AttendanceRecord.status,
    AttendanceRecord.arrival_status,
    AttendanceRecord.total_hours,
)


# ── Punch Store ─────────────────────────────────────────────────────
async def count_records(db: AsyncSession, day: date) -> int:
    result = await db.execute(
        select(func.count(AttendanceRecord.id)).where(AttendanceRecord.date == day)
    )
    return result.scalar() or 0


async def latest_date_before(db: AsyncSession, day: date) -> date | None:
    """Most recent date strictly before *day* that has at least one row."""
    result = await db.execute(
        select(AttendanceRecord.date)
        .where(AttendanceRecord.date < day)
        .order_by(AttendanceRecord.date.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def fetch_day(db: AsyncSession, day: date) -> list[PunchRow]:
    result = await db.execute(
        select(*_PUNCH_COLUMNS).where(AttendanceRecord.date == day)
    )
    return [PunchRow(**row._mapping) for row in result.all()]


async def punch_in_counts_by_date(
    db: AsyncSession, start: date, end: date
) -> dict[date, int]:
    """Distinct punched-in employees per day for ``start <= date < end``."""
    result = await db.execute(
        select(
            AttendanceRecord.date,
            func.count(func.distinct(AttendanceRecord.employee_code)).label("punch_ins"),
        )
        .where(
            AttendanceRecord.date >= start,
            AttendanceRecord.date < end,
            AttendanceRecord.check_in.is_not(None),
        )
        .group_by(AttendanceRecord.date)
    )
    return {r.date: r.punch_ins for r in result.all()}


# ── Registry ────────────────────────────────────────────────────────
async def count_active_accounts(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(User.id)).where(User.is_active.is_(True))
    )
    return result.scalar() or 0


async def count_active_system_accounts(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(User.id)).where(
            User.is_active.is_(True),
            User.account_type == AccountType.SYSTEM.value,
        )
    )
    return result.scalar() or 0


async def count_active_exemptions(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(BiometricExemption.id)).where(
            BiometricExemption.is_active.is_(True)
        )
    )
    return result.scalar() or 0


def eligible_employee_filter():
    """Registry predicate for real, current employees with an active account."""
    return and_(
        User.is_active.is_(True),
        User.account_type == AccountType.EMPLOYEE.value,
        Employee.system_account.is_(False),
        func.coalesce(Employee.department, "") != MIGRATED_DEPARTMENT,
        func.lower(Employee.first_name) != PLACEHOLDER_FIRST_NAME,
    )


async def count_registered_employees(db: AsyncSession) -> int:
    """Active employee accounts backed by an eligible employee record."""
    result = await db.execute(
        select(func.count(User.id))
        .join(Employee, User.employee_code == Employee.employee_code)
        .where(eligible_employee_filter())
    )
    return result.scalar() or 0
