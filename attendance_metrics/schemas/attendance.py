"""Pydantic schemas for drill-down rosters, mobile punches and health."""

from __future__ import annotations

import re
from datetime import date, datetime

from pydantic import Field, field_validator

from attendance_metrics.core.clock import parse_offset
from attendance_metrics.core.config import settings
from attendance_metrics.core.enums import PunchType
from attendance_metrics.schemas.metrics import CamelModel

_CODE_RE = re.compile(r"^[A-Za-z0-9._/-]{1,50}$")


# ── Present roster ─────────────────────────────────────────────────
class PresentEmployee(CamelModel):
    employee_code: str
    employee_name: str
    department: str
    punch_in_time: datetime | None = None
    punch_out_time: datetime | None = None
    hours_worked: float
    status: str  # present | non_bio
    time_since_punch_in: str | None = None


class PresentRosterResponse(CamelModel):
    target_date: date
    registered_employees: int  # eligible registry entries, for context only
    present: list[PresentEmployee]
    non_bio: list[PresentEmployee]  # imputed, never observed


# ── Late / grace roster ────────────────────────────────────────────
class ArrivalEntry(CamelModel):
    employee_code: str
    employee_name: str
    department: str
    check_in: datetime
    expected_arrival: str
    minutes: int  # late minutes or grace minutes, per list
    shift: str


class LateArrivalsResponse(CamelModel):
    target_date: date
    late_arrivals: list[ArrivalEntry]
    grace_arrivals: list[ArrivalEntry]
    total_late: int
    total_grace: int
    total_on_time: int
    total_early: int


# ── Early departures ───────────────────────────────────────────────
class DepartureEntry(CamelModel):
    employee_code: str
    employee_name: str
    department: str
    check_out: datetime
    expected_departure: str
    early_minutes: int
    shift: str


class EarlyDeparturesResponse(CamelModel):
    target_date: date
    early_departures: list[DepartureEntry]
    total_early_departures: int
    total_late_departures: int
    total_on_time_departures: int


# ── Mobile punch ───────────────────────────────────────────────────
class MobilePunchRequest(CamelModel):
    employee_code: str
    punch_type: PunchType
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)
    timestamp: datetime | None = None  # local wall-clock; defaults to now

    @field_validator("employee_code")
    @classmethod
    def _code(cls, v: str) -> str:
        v = v.strip()
        if not _CODE_RE.match(v):
            raise ValueError("Employee code must be 1-50 characters (letters, digits, . _ / -)")
        return v

    @field_validator("timestamp")
    @classmethod
    def _naive_local(cls, v: datetime | None) -> datetime | None:
        # Stored punches are naive local wall-clock; aware values are converted first.
        if v is not None and v.tzinfo is not None:
            return v.astimezone(parse_offset(settings.TIMEZONE_OFFSET)).replace(tzinfo=None)
        return v


class MobilePunchResponse(CamelModel):
    success: bool
    punch_id: int
    employee_code: str
    punch_type: PunchType
    punch_date: date
    check_in: datetime | None
    check_out: datetime | None
    total_hours: float | None = None


# ── Health ─────────────────────────────────────────────────────────
class HealthResponse(CamelModel):
    db: bool
    redis: bool
