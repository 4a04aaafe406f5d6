"""
Employee registry & biometric exemption models.

Both tables are maintained by HR data-management flows; the metrics
engine only reads them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from attendance_metrics.db.base import Base

# Department assigned to employees who left but whose history is retained.
MIGRATED_DEPARTMENT = "MIGRATED_TO_FORMER_EMPLOYEES"
# Placeholder first name used by the network-operations shared account.
PLACEHOLDER_FIRST_NAME = "noc"


class Employee(Base):
    __tablename__ = "employee_records"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_code: str = Column(String(50), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    department: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    designation: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    shift: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    system_account: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    non_bio: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class BiometricExemption(Base):
    __tablename__ = "biometric_exemptions"
    __table_args__ = (Index("ix_exemption_code_active", "employee_code", "is_active"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_code: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    department_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    exemption_type: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="individual",
        server_default="individual",
    )  # individual | department
    reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
