"""
Mobile punch endpoint (PUBLIC, the mobile app has no session here).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_metrics.api.v1.deps import get_db
from attendance_metrics.schemas.attendance import (MobilePunchRequest,
                                                   MobilePunchResponse)
from attendance_metrics.services.mobile_punch import record_punch

router = APIRouter(prefix="/mobile", tags=["mobile"])


@router.post("/punch", response_model=MobilePunchResponse, status_code=status.HTTP_201_CREATED)
async def mobile_punch(
    body: MobilePunchRequest,
    db: AsyncSession = Depends(get_db),
) -> MobilePunchResponse:
    """Record a GPS-tagged check-in or check-out.

    404 for an unknown or inactive employee, 409 for a duplicate check-in
    or a checkout with nothing open, 422 for a checkout before the check-in.
    """
    return await record_punch(db, body)
