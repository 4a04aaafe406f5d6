"""
AttendanceRecord model: one row per employee per punch-in day.

Rows are created by the ingestion pipelines (biometric polling, mobile
punch API) and patched in place on punch-out or forced closure.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (Column, Date, DateTime, Index, Integer, Numeric,
                        String, UniqueConstraint)

from attendance_metrics.db.base import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("employee_code", "date", name="uq_attendance_code_date"),
        Index("ix_attendance_date_source", "date", "punch_source"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_code: str = Column(String(50), nullable=False, index=True)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    # Local wall-clock time; a checkout after midnight stays on the punch-in day.
    check_in: datetime | None = Column(DateTime, nullable=True)  # type: ignore[assignment]
    check_out: datetime | None = Column(DateTime, nullable=True)  # type: ignore[assignment]
    punch_source: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    # terminal | mobile   (NULL is read as terminal)
    status: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    # active | auto_punchout | admin_terminated

    # Populated by the timing classifier; may be absent.
    arrival_status: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    departure_status: str | None = Column(String(20), nullable=True)  # type: ignore[assignment]
    late_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    grace_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    early_departure_minutes: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]

    total_hours: Decimal | None = Column(Numeric(5, 2), nullable=True)  # type: ignore[assignment]

    latitude: Decimal | None = Column(Numeric(10, 8), nullable=True)  # type: ignore[assignment]
    longitude: Decimal | None = Column(Numeric(11, 8), nullable=True)  # type: ignore[assignment]
    gps_accuracy: Decimal | None = Column(Numeric(8, 2), nullable=True)  # type: ignore[assignment]

    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
