"""Enumerations shared by models, services and schemas."""

from __future__ import annotations

from enum import Enum


class PunchSource(str, Enum):
    TERMINAL = "terminal"
    MOBILE = "mobile"


class RecordStatus(str, Enum):
    ACTIVE = "active"
    AUTO_PUNCHOUT = "auto_punchout"
    ADMIN_TERMINATED = "admin_terminated"


class ArrivalStatus(str, Enum):
    EARLY = "early"
    ON_TIME = "on_time"
    GRACE = "grace"
    LATE = "late"


class DepartureStatus(str, Enum):
    EARLY = "early"
    ON_TIME = "on_time"
    LATE = "late"


class AccountType(str, Enum):
    EMPLOYEE = "employee"
    SYSTEM = "system"


class PunchType(str, Enum):
    CHECKIN = "checkin"
    CHECKOUT = "checkout"


# Records closed by the auto punch-out job or by an administrator.
FORCED_CLOSURE_STATUSES = (RecordStatus.AUTO_PUNCHOUT.value, RecordStatus.ADMIN_TERMINATED.value)
