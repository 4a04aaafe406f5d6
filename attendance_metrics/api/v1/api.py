"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from attendance_metrics.api.v1.endpoints import health, metrics, mobile, rosters

api_router = APIRouter()

# Daily and multi-day metrics
api_router.include_router(metrics.router)

# Present / late / early-departure drill-downs
api_router.include_router(rosters.router)

# Mobile punch write path
api_router.include_router(mobile.router)

# Liveness
api_router.include_router(health.router)
