"""Pydantic schemas for computed attendance metrics."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer
from pydantic.alias_generators import to_camel

# Consumers read these payloads with camelCase keys.
CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class CamelModel(BaseModel):
    model_config = CAMEL_CONFIG


# ── Daily snapshot ─────────────────────────────────────────────────
class AttendanceMetrics(BaseModel):
    """Immutable daily attendance snapshot. Recomputed on every request."""

    total_employees: int
    total_punch_in: int = 0
    total_punch_out: int = 0
    total_forced_punch_out: int = 0
    recorded_forced_punch_out: int = 0
    total_biometric_punch_in: int = 0
    total_biometric_punch_out: int = 0
    total_mobile_punch_in: int = 0
    total_mobile_punch_out: int = 0
    total_attendance: int = 0
    completed_today: int = 0
    present_today: int = 0
    absent_today: int = 0
    non_bio_employees: int = 0
    late_arrivals: int = 0
    classified_late_arrivals: int = 0
    missed_punchouts: int = 0
    overtime_hours: Decimal = Decimal("0")
    actual_hours_worked: Decimal = Decimal("0")
    total_hours_worked: Decimal = Decimal("0")
    average_working_hours: Decimal = Decimal("0")
    attendance_rate: float = 0.0
    tee_value: int = 0
    tee_absentees: int = 0
    target_date: date
    calculated_at: datetime

    model_config = {**CAMEL_CONFIG, "frozen": True}

    @field_serializer(
        "overtime_hours",
        "actual_hours_worked",
        "total_hours_worked",
        "average_working_hours",
    )
    def _hours_as_number(self, v: Decimal) -> float:
        return round(float(v), 2)


# ── Expected attendance ────────────────────────────────────────────
class TEEEstimate(CamelModel):
    day_of_week: str
    expected: int
    absentees: int
    average: int = 0
    maximum: int = 0
    samples: int = 0


# ── Multi-day ──────────────────────────────────────────────────────
class DayRate(CamelModel):
    target_date: date
    attendance_rate: float


class RangeSummary(CamelModel):
    period_days: int
    average_attendance_rate: float
    total_hours_worked: float
    best_day: DayRate | None = None
    worst_day: DayRate | None = None
    trend_direction: str = "stable"  # improving | declining | stable


class RangeMetricsResponse(CamelModel):
    days: list[AttendanceMetrics]
    summary: RangeSummary
