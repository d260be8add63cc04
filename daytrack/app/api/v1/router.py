"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from daytrack.app.api.v1.endpoints import db_health, driver_day, drivers, tracker

router = APIRouter()

# Driver history dashboard
router.include_router(drivers.router)
router.include_router(driver_day.router)
router.include_router(db_health.router)

# Baby activity tracker
router.include_router(tracker.router)
