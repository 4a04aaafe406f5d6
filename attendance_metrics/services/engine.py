"""
Attendance reconciliation engine.

Turns one day of punch records (terminal and mobile), the account registry
and the biometric-exemption pool into an ``AttendanceMetrics`` snapshot.

The work is split in two:

* ``reconcile`` is a pure function over already-fetched rows, so every
  counting rule can be exercised without a database and with a fixed
  ``now``;
* ``AttendanceEngine`` resolves the target date (falling back to the most
  recent day that has data), gathers the inputs through ``punch_store`` and
  asks the TEE model for the expected headcount.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.core.clock import local_now
from attendance_metrics.core.config import settings
from attendance_metrics.core.enums import FORCED_CLOSURE_STATUSES, PunchSource
from attendance_metrics.schemas.metrics import AttendanceMetrics, TEEEstimate
from attendance_metrics.services import punch_store
from attendance_metrics.services.lateness import (late_by_classifier,
                                                  late_by_threshold)
from attendance_metrics.services.punch_state import (PunchState, classify,
                                                     default_window)
from attendance_metrics.services.punch_store import PunchRow
from attendance_metrics.services.tee import ExpectedAttendanceModel

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


def is_mobile(row: PunchRow) -> bool:
    return row.punch_source == PunchSource.MOBILE.value


def is_terminal(row: PunchRow) -> bool:
    # Rows written before source tagging existed carry NULL.
    return row.punch_source is None or row.punch_source == PunchSource.TERMINAL.value


@dataclass(frozen=True)
class Reconciliation:
    """Counts derived from one day of punch rows, before TEE and headcount."""

    biometric_punch_in: int
    mobile_punch_in: int
    biometric_punch_out: int
    mobile_punch_out: int
    still_present: int
    needing_auto_punch_out: int
    recorded_forced_punch_out: int
    completed: int
    missed_punchouts: int
    late_by_threshold: int
    late_by_classifier: int
    actual_hours: Decimal
    overtime_hours: Decimal

    @property
    def total_punch_in(self) -> int:
        return self.biometric_punch_in + self.mobile_punch_in

    @property
    def total_punch_out(self) -> int:
        return self.biometric_punch_out + self.mobile_punch_out + self.needing_auto_punch_out


def reconcile(
    rows: list[PunchRow],
    now: datetime,
    *,
    window: timedelta | None = None,
    standard_hours: int | None = None,
    late_threshold_minutes: int | None = None,
) -> Reconciliation:
    """Apply the day's counting rules to *rows*.

    Every count is over distinct employee codes, so a stray duplicate row
    never inflates a tally.
    """
    if window is None:
        window = default_window()
    if standard_hours is None:
        standard_hours = settings.STANDARD_SHIFT_HOURS

    bio_in: set[str] = set()
    mobile_in: set[str] = set()
    bio_out: set[str] = set()
    mobile_out: set[str] = set()
    active: set[str] = set()
    stale: set[str] = set()
    forced: set[str] = set()
    completed: set[str] = set()
    late_manual: set[str] = set()
    late_official: set[str] = set()
    actual_hours = _ZERO
    overtime = _ZERO
    shift = Decimal(standard_hours)

    for row in rows:
        code = row.employee_code
        if row.check_in is not None:
            if is_terminal(row):
                bio_in.add(code)
            elif is_mobile(row):
                mobile_in.add(code)
        if row.check_out is not None:
            if is_terminal(row):
                bio_out.add(code)
            elif is_mobile(row):
                mobile_out.add(code)

        state = classify(row.check_in, row.check_out, now, window)
        if state is PunchState.OPEN_ACTIVE:
            active.add(code)
        elif state is PunchState.OPEN_STALE:
            stale.add(code)
        elif state is PunchState.CLOSED and row.check_out > row.check_in:
            completed.add(code)

        if row.status in FORCED_CLOSURE_STATUSES:
            forced.add(code)
        if late_by_threshold(row.check_in, late_threshold_minutes):
            late_manual.add(code)
        if late_by_classifier(row.arrival_status):
            late_official.add(code)

        if row.check_in is not None:
            hours = Decimal(row.total_hours) if row.total_hours is not None else _ZERO
            actual_hours += hours
            if hours > shift:
                overtime += hours - shift

    return Reconciliation(
        biometric_punch_in=len(bio_in),
        mobile_punch_in=len(mobile_in),
        biometric_punch_out=len(bio_out),
        mobile_punch_out=len(mobile_out),
        still_present=len(active),
        needing_auto_punch_out=len(stale),
        recorded_forced_punch_out=len(forced),
        completed=len(completed),
        # Open rows are exactly the active and stale buckets.
        missed_punchouts=len(active | stale),
        late_by_threshold=len(late_manual),
        late_by_classifier=len(late_official),
        actual_hours=actual_hours,
        overtime_hours=overtime,
    )


def build_metrics(
    target: date,
    rec: Reconciliation,
    *,
    total_employees: int,
    non_bio: int,
    tee: TEEEstimate | None,
    calculated_at: datetime,
    standard_hours: int | None = None,
) -> AttendanceMetrics:
    """Combine reconciled counts with headcount, non-bio pool and TEE."""
    if standard_hours is None:
        standard_hours = settings.STANDARD_SHIFT_HOURS
    total_employees = max(0, total_employees)
    non_bio = max(0, non_bio)

    total_attendance = rec.total_punch_in + non_bio
    total_hours = rec.actual_hours + Decimal(non_bio * standard_hours)
    average = total_hours / total_attendance if total_attendance > 0 else _ZERO
    rate = total_attendance * 100 / total_employees if total_employees > 0 else 0.0

    return AttendanceMetrics(
        total_employees=total_employees,
        total_punch_in=rec.total_punch_in,
        total_punch_out=rec.total_punch_out,
        total_forced_punch_out=rec.needing_auto_punch_out,
        recorded_forced_punch_out=rec.recorded_forced_punch_out,
        total_biometric_punch_in=rec.biometric_punch_in,
        total_biometric_punch_out=rec.biometric_punch_out,
        total_mobile_punch_in=rec.mobile_punch_in,
        total_mobile_punch_out=rec.mobile_punch_out,
        total_attendance=total_attendance,
        completed_today=rec.completed,
        present_today=rec.still_present,
        absent_today=max(0, total_employees - total_attendance),
        non_bio_employees=non_bio,
        late_arrivals=rec.late_by_threshold,
        classified_late_arrivals=rec.late_by_classifier,
        missed_punchouts=rec.missed_punchouts,
        overtime_hours=rec.overtime_hours,
        actual_hours_worked=rec.actual_hours,
        total_hours_worked=total_hours,
        average_working_hours=average,
        attendance_rate=rate,
        tee_value=tee.expected if tee else 0,
        tee_absentees=tee.absentees if tee else 0,
        target_date=target,
        calculated_at=calculated_at,
    )


def empty_metrics(target: date, total_employees: int, calculated_at: datetime) -> AttendanceMetrics:
    """Snapshot for a Punch Store that holds no data at all."""
    total_employees = max(0, total_employees)
    return AttendanceMetrics(
        total_employees=total_employees,
        absent_today=total_employees,
        target_date=target,
        calculated_at=calculated_at,
    )


class AttendanceEngine:
    """Computes daily metrics for one database session.

    ``auto_punchout_after`` and ``tee_model`` are injectable so callers and
    tests can change the shift window or replace the baseline model.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        tee_model: ExpectedAttendanceModel | None = None,
        auto_punchout_after: timedelta | None = None,
    ) -> None:
        self.db = db
        self.tee_model = tee_model or ExpectedAttendanceModel()
        self.window = auto_punchout_after or default_window()

    async def resolve_target_date(self, target: date | None = None) -> date | None:
        """Return the day to report on.

        That is *target* (today when omitted) if it has rows, else the most
        recent earlier day with rows, else ``None``.
        """
        if target is None:
            target = local_now().date()
        if await punch_store.count_records(self.db, target) > 0:
            return target
        latest = await punch_store.latest_date_before(self.db, target)
        if latest is not None:
            logger.info("No attendance rows for %s, falling back to %s", target, latest)
        else:
            logger.warning("No attendance rows on or before %s", target)
        return latest

    async def total_employees(self) -> int:
        active = await punch_store.count_active_accounts(self.db)
        system = await punch_store.count_active_system_accounts(self.db)
        return max(0, active - system)

    async def compute_metrics(
        self, target_date: date | None = None, now: datetime | None = None
    ) -> AttendanceMetrics:
        """Daily metrics for *target_date*, or for the latest day with data."""
        if now is None:
            now = local_now()
        if target_date is None:
            target_date = now.date()

        day = await self.resolve_target_date(target_date)
        if day is None:
            total = await self.total_employees()
            logger.warning(
                "Punch Store is empty up to %s, returning headcount-only metrics (%d employees)",
                target_date, total,
            )
            return empty_metrics(target_date, total, now)
        return await self._compute_day(day, now)

    async def _compute_day(self, day: date, now: datetime) -> AttendanceMetrics:
        total_employees = await self.total_employees()
        non_bio = await punch_store.count_active_exemptions(self.db)
        rows = await punch_store.fetch_day(self.db, day)

        rec = reconcile(rows, now, window=self.window)

        if rec.late_by_threshold != rec.late_by_classifier:
            logger.warning(
                "Late arrivals disagree for %s: threshold=%d classifier=%d",
                day, rec.late_by_threshold, rec.late_by_classifier,
            )

        tee = await self._estimate_tee(day, rec.total_punch_in)

        metrics = build_metrics(
            day,
            rec,
            total_employees=total_employees,
            non_bio=non_bio,
            tee=tee,
            calculated_at=now,
        )
        logger.info(
            "Metrics %s: %d terminal + %d mobile = %d in | %d terminal + %d mobile + %d auto = %d out"
            " | %d present | %d attending / %d employees = %.1f%%",
            day,
            rec.biometric_punch_in, rec.mobile_punch_in, rec.total_punch_in,
            rec.biometric_punch_out, rec.mobile_punch_out, rec.needing_auto_punch_out,
            rec.total_punch_out, rec.still_present,
            metrics.total_attendance, metrics.total_employees, metrics.attendance_rate,
        )
        return metrics

    async def _estimate_tee(self, day: date, punch_ins: int) -> TEEEstimate | None:
        try:
            return await self.tee_model.estimate(self.db, day, punch_ins)
        except Exception as e:
            logger.warning("TEE estimate failed for %s, reporting 0: %s", day, e)
            return None
