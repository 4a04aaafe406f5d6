"""
Shared test fixtures for the Attendance Metrics test suite.

Every test gets its own in-memory SQLite database (aiosqlite + StaticPool),
shared by the direct ``db_session`` and the app's ``get_db`` override.
"""

import os
import sys
from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
# Use async sqlite driver
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
# CORS fix (JSON format)
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from attendance_metrics.api.v1.deps import get_db
from attendance_metrics.db.base import Base
from attendance_metrics.main import app
from attendance_metrics.models.attendance import AttendanceRecord
from attendance_metrics.models.employee import BiometricExemption, Employee
from attendance_metrics.models.user import User


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    await test_engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── Seeding ─────────────────────────────────────────────────────────
class Seeder:
    """Small helpers that write registry and punch rows and commit."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._users = 0

    async def accounts(self, count: int, *, account_type: str = "employee", active: bool = True) -> None:
        for _ in range(count):
            self._users += 1
            self.db.add(
                User(
                    username=f"user{self._users:05d}",
                    account_type=account_type,
                    is_active=active,
                )
            )
        await self.db.commit()

    async def account(self, code: str, *, account_type: str = "employee", active: bool = True) -> User:
        self._users += 1
        user = User(
            username=f"user{self._users:05d}",
            account_type=account_type,
            employee_code=code,
            is_active=active,
        )
        self.db.add(user)
        await self.db.commit()
        return user

    async def employee(
        self,
        code: str,
        first_name: str = "Test",
        last_name: str | None = "Employee",
        department: str | None = "Operations",
        shift: str | None = None,
        is_active: bool = True,
        system_account: bool = False,
    ) -> Employee:
        emp = Employee(
            employee_code=code,
            first_name=first_name,
            last_name=last_name,
            department=department,
            shift=shift,
            is_active=is_active,
            system_account=system_account,
        )
        self.db.add(emp)
        await self.db.commit()
        return emp

    async def exemptions(self, count: int, *, prefix: str = "NB", active: bool = True) -> None:
        for i in range(count):
            self.db.add(
                BiometricExemption(
                    employee_code=f"{prefix}{i:04d}",
                    department_name="Field",
                    is_active=active,
                )
            )
        await self.db.commit()

    async def punch(
        self,
        code: str,
        day: date,
        check_in: datetime | None = None,
        check_out: datetime | None = None,
        *,
        source: str | None = "terminal",
        status: str | None = None,
        arrival_status: str | None = None,
        departure_status: str | None = None,
        total_hours: str | float | None = None,
        late_minutes: int | None = None,
        grace_minutes: int | None = None,
        early_departure_minutes: int | None = None,
        commit: bool = True,
    ) -> AttendanceRecord:
        rec = AttendanceRecord(
            employee_code=code,
            date=day,
            check_in=check_in,
            check_out=check_out,
            punch_source=source,
            status=status,
            arrival_status=arrival_status,
            departure_status=departure_status,
            total_hours=Decimal(str(total_hours)) if total_hours is not None else None,
            late_minutes=late_minutes,
            grace_minutes=grace_minutes,
            early_departure_minutes=early_departure_minutes,
        )
        self.db.add(rec)
        if commit:
            await self.db.commit()
        return rec

    async def commit(self) -> None:
        await self.db.commit()


@pytest.fixture
def seed(db_session: AsyncSession) -> Seeder:
    return Seeder(db_session)
