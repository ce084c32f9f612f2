"""
Analytics API Endpoints.

Read-only dashboard data for all roles, computed from current entity state.
"""

from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from fleetops.app.db.session import get_db
from fleetops.app.core.dependencies import get_current_user
from fleetops.app.services.analytics import AnalyticsService
from fleetops.app.schemas.analytics import (
    FleetUtilization, FuelEfficiency, VehicleCostPerKm, VehicleROI,
    MonthlyExpenseBreakdown, TripAnalytics
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/fleet-utilization", response_model=FleetUtilization)
async def get_fleet_utilization(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Vehicle counts by status and the ON_TRIP share of the non-retired fleet."""
    return await AnalyticsService.fleet_utilization(db)


@router.get("/fuel-efficiency", response_model=List[FuelEfficiency])
async def get_fuel_efficiency(
    vehicle_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """km per litre from consecutive fills, per vehicle."""
    return await AnalyticsService.fuel_efficiency(db, vehicle_id, date_from, date_to)


@router.get("/cost-per-km", response_model=List[VehicleCostPerKm])
async def get_cost_per_km(
    vehicle_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AnalyticsService.cost_per_km(db, vehicle_id, date_from, date_to)


@router.get("/vehicle-roi", response_model=List[VehicleROI])
async def get_vehicle_roi(
    vehicle_id: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AnalyticsService.vehicle_roi(db, vehicle_id)


@router.get("/monthly-expenses", response_model=MonthlyExpenseBreakdown)
async def get_monthly_expenses(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    vehicle_id: Optional[int] = Query(None, ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Expenses of one year (default: current UTC year) by month and category."""
    return await AnalyticsService.monthly_expense_breakdown(db, year, vehicle_id)


@router.get("/trips", response_model=TripAnalytics)
async def get_trip_analytics(
    vehicle_id: Optional[int] = Query(None, ge=1),
    driver_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AnalyticsService.trip_analytics(db, vehicle_id, driver_id, date_from, date_to)
