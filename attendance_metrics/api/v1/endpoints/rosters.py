"""
Drill-down lists behind the dashboard counters.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.api.v1.deps import get_db
from attendance_metrics.schemas.attendance import (EarlyDeparturesResponse,
                                                   LateArrivalsResponse,
                                                   PresentRosterResponse)
from attendance_metrics.services import rosters

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("/present", response_model=PresentRosterResponse)
async def present_employees(
    target_date: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
) -> PresentRosterResponse:
    """Employees inside the punch-out window, plus the non-bio pool."""
    return await rosters.present_roster(db, target_date)


@router.get("/late", response_model=LateArrivalsResponse)
async def late_arrivals(
    target_date: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
) -> LateArrivalsResponse:
    return await rosters.late_arrivals_roster(db, target_date)


@router.get("/early-departures", response_model=EarlyDeparturesResponse)
async def early_departures(
    target_date: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
) -> EarlyDeparturesResponse:
    return await rosters.early_departures_roster(db, target_date)
