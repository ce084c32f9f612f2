"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetops.app.api.v1.endpoints import (
    auth, vehicles, drivers,
    trips, maintenance, fuel_logs, expenses,
    analytics, meta, audit_logs
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Registry
router.include_router(vehicles.router)
router.include_router(drivers.router)

# Lifecycle workflows
router.include_router(trips.router)
router.include_router(maintenance.router)
router.include_router(fuel_logs.router)
router.include_router(expenses.router)

# Read-only views
router.include_router(analytics.router)
router.include_router(meta.router)
router.include_router(audit_logs.router)
