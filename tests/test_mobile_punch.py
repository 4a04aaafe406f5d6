"""Tests for the mobile punch write path."""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from attendance_metrics.core.exceptions import (InvalidPunchError,
                                                NotFoundError,
                                                PunchConflictError,
                                                ServiceError)
from attendance_metrics.models.attendance import AttendanceRecord
from attendance_metrics.schemas.attendance import MobilePunchRequest
from attendance_metrics.services import mobile_punch
from attendance_metrics.services.mobile_punch import record_punch, worked_hours

DAY = date(2026, 3, 10)


def _punch(kind: str, ts: datetime, code: str = "E100") -> MobilePunchRequest:
    return MobilePunchRequest(
        employee_code=code,
        punch_type=kind,
        latitude=31.5204,
        longitude=74.3587,
        accuracy=12.5,
        timestamp=ts,
    )


async def _rows(db, code: str = "E100"):
    result = await db.execute(
        select(
            AttendanceRecord.date,
            AttendanceRecord.check_in,
            AttendanceRecord.check_out,
            AttendanceRecord.punch_source,
            AttendanceRecord.status,
            AttendanceRecord.total_hours,
            AttendanceRecord.latitude,
        ).where(AttendanceRecord.employee_code == code)
    )
    return result.all()


def test_worked_hours_rounds_to_cents():
    assert worked_hours(datetime(2026, 3, 10, 9), datetime(2026, 3, 10, 17, 20)) == Decimal("8.33")


def test_request_validates_coordinates():
    with pytest.raises(ValidationError):
        MobilePunchRequest(employee_code="E1", punch_type="checkin", latitude=91, longitude=0)
    with pytest.raises(ValidationError):
        MobilePunchRequest(employee_code="E1", punch_type="checkin", latitude=0, longitude=-181)
    with pytest.raises(ValidationError):
        MobilePunchRequest(employee_code="bad code!", punch_type="checkin", latitude=0, longitude=0)


def test_request_accepts_camel_case():
    body = MobilePunchRequest.model_validate(
        {"employeeCode": " E1 ", "punchType": "checkout", "latitude": 1, "longitude": 2}
    )
    assert body.employee_code == "E1"
    assert body.timestamp is None


@pytest.mark.asyncio
async def test_check_in_then_check_out(seed, db_session):
    await seed.employee("E100")

    first = await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))
    assert first.success is True
    assert first.punch_date == DAY
    assert first.check_out is None

    second = await record_punch(db_session, _punch("checkout", datetime(2026, 3, 10, 17, 30)))
    assert second.punch_id == first.punch_id
    assert second.total_hours == 8.5

    rows = await _rows(db_session)
    assert len(rows) == 1
    row = rows[0]
    assert row.punch_source == "mobile"
    assert row.status == "active"
    assert row.check_in == datetime(2026, 3, 10, 9, 0)
    assert row.check_out == datetime(2026, 3, 10, 17, 30)
    assert row.total_hours == Decimal("8.50")
    assert row.latitude is not None


@pytest.mark.asyncio
async def test_second_check_in_conflicts(seed, db_session):
    await seed.employee("E100")
    await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))
    with pytest.raises(PunchConflictError):
        await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 5)))
    assert len(await _rows(db_session)) == 1


@pytest.mark.asyncio
async def test_check_in_after_terminal_check_in_conflicts(seed, db_session):
    await seed.employee("E100")
    await seed.punch("E100", DAY, datetime(2026, 3, 10, 8, 50))
    with pytest.raises(PunchConflictError):
        await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))


@pytest.mark.asyncio
async def test_checkout_before_check_in_is_rejected(seed, db_session):
    await seed.employee("E100")
    await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))
    with pytest.raises(InvalidPunchError):
        await record_punch(db_session, _punch("checkout", datetime(2026, 3, 10, 8, 0)))


@pytest.mark.asyncio
async def test_checkout_without_open_record_conflicts(seed, db_session):
    await seed.employee("E100")
    with pytest.raises(PunchConflictError):
        await record_punch(db_session, _punch("checkout", datetime(2026, 3, 10, 17, 0)))


@pytest.mark.asyncio
async def test_overnight_checkout_closes_previous_day(seed, db_session):
    await seed.employee("E100")
    await record_punch(db_session, _punch("checkin", datetime(2026, 3, 9, 22, 0)))

    out = await record_punch(db_session, _punch("checkout", datetime(2026, 3, 10, 6, 15)))

    assert out.punch_date == date(2026, 3, 9)
    assert out.total_hours == 8.25
    rows = await _rows(db_session)
    assert len(rows) == 1
    assert rows[0].date == date(2026, 3, 9)


@pytest.mark.asyncio
async def test_unknown_employee(db_session):
    with pytest.raises(NotFoundError):
        await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0), code="NOPE"))


@pytest.mark.asyncio
async def test_inactive_employee(seed, db_session):
    await seed.employee("E100", is_active=False)
    with pytest.raises(NotFoundError):
        await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))
    count = await db_session.execute(select(func.count(AttendanceRecord.id)))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_timestamp_defaults_to_now(seed, db_session):
    await seed.employee("E100")
    body = MobilePunchRequest(employee_code="E100", punch_type="checkin", latitude=0, longitude=0)
    res = await record_punch(db_session, body, now=datetime(2026, 3, 10, 8, 0))
    assert res.check_in == datetime(2026, 3, 10, 8, 0)


def test_utc_timestamp_is_converted_to_local_time():
    body = MobilePunchRequest.model_validate(
        {"employeeCode": "E1", "punchType": "checkin", "latitude": 0, "longitude": 0,
         "timestamp": "2026-03-10T04:00:00Z"}
    )
    assert body.timestamp == datetime(2026, 3, 10, 9, 0)
    assert body.timestamp.tzinfo is None


@pytest.mark.asyncio
async def test_late_evening_utc_check_in_lands_on_local_day(seed, db_session):
    await seed.employee("E100")
    body = MobilePunchRequest.model_validate(
        {"employeeCode": "E100", "punchType": "checkin", "latitude": 0, "longitude": 0,
         "timestamp": "2026-03-09T20:30:00Z"}
    )
    res = await record_punch(db_session, body)
    assert res.punch_date == DAY
    assert res.check_in == datetime(2026, 3, 10, 1, 30)


@pytest.mark.asyncio
async def test_racing_check_in_keeps_first_arrival(seed, db_session, monkeypatch):
    """A check-in whose pre-read missed the stored row must not overwrite it."""
    await seed.employee("E100")
    await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))

    real_day_record = mobile_punch._day_record
    calls = []

    async def stale_read(db, code, day):
        calls.append(day)
        if len(calls) == 1:
            return None
        return await real_day_record(db, code, day)

    monkeypatch.setattr(mobile_punch, "_day_record", stale_read)
    with pytest.raises(PunchConflictError):
        await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 11, 45)))

    rows = await _rows(db_session)
    assert len(rows) == 1
    assert rows[0].check_in == datetime(2026, 3, 10, 9, 0)


@pytest.mark.asyncio
async def test_check_in_after_recorded_checkout_is_rejected(seed, db_session):
    await seed.employee("E100")
    await seed.punch("E100", DAY, None, datetime(2026, 3, 10, 8, 0))
    with pytest.raises(InvalidPunchError):
        await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))
    rows = await _rows(db_session)
    assert rows[0].check_in is None


@pytest.mark.asyncio
async def test_check_in_before_recorded_checkout_completes_row(seed, db_session):
    await seed.employee("E100")
    await seed.punch("E100", DAY, None, datetime(2026, 3, 10, 17, 0))
    res = await record_punch(db_session, _punch("checkin", datetime(2026, 3, 10, 9, 0)))
    assert res.check_out == datetime(2026, 3, 10, 17, 0)
    assert res.total_hours == 8.0


def test_unsupported_backend_raises_service_error():
    db = SimpleNamespace(get_bind=lambda: SimpleNamespace(dialect=SimpleNamespace(name="mssql")))
    with pytest.raises(ServiceError) as exc:
        mobile_punch._insert_for(db)
    assert exc.value.status_code == 500
