"""
Fuel log API endpoints.

Each fill creates exactly one FUEL expense and may advance the vehicle
odometer; corrections to total_cost are mirrored onto that expense.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.db.pagination import page_meta
from fleetops.app.models.fuel_enums import FuelType
from fleetops.app.schemas.fuel_log import (
    FuelLogCreate, FuelLogUpdate, FuelLogResponse, FuelLogListResponse, FuelLogCreatedResponse
)
from fleetops.app.schemas.expense import ExpenseResponse
from fleetops.app.core.dependencies import get_current_user, Pagination
from fleetops.app.core.guards import require_role, FUEL_RECORDERS
from fleetops.app.domain.lifecycle.fuel_service import FuelLogService
from fleetops.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/fuel-logs", tags=["Fuel Logs"])


@router.post("", response_model=FuelLogCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_fuel_log(
    fuel_data: FuelLogCreate,
    current_user: dict = Depends(require_role(FUEL_RECORDERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a fuel fill.

    The fill reading may not be behind the vehicle odometer. The response
    carries the FUEL expense created with it.
    """
    fuel_log, expense = await FuelLogService.create(db, fuel_data)

    await log_user_action(
        db, current_user, AuditAction.FUEL_LOG_CREATED, "fuel_log", fuel_log.id,
        {"vehicle_id": fuel_log.vehicle_id, "expense_id": expense.id, "total_cost": fuel_log.total_cost}
    )

    return FuelLogCreatedResponse(
        **FuelLogResponse.model_validate(fuel_log).model_dump(),
        expense=ExpenseResponse.model_validate(expense)
    )


@router.get("", response_model=FuelLogListResponse)
async def list_fuel_logs(
    vehicle_id: Optional[int] = Query(None, ge=1),
    driver_id: Optional[int] = Query(None, ge=1),
    trip_id: Optional[int] = Query(None, ge=1),
    fuel_type: Optional[FuelType] = Query(None),
    pagination: Pagination = Depends(),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    fuel_logs, total = await FuelLogService.list(
        db, pagination.page, pagination.limit,
        vehicle_id=vehicle_id, driver_id=driver_id, trip_id=trip_id, fuel_type=fuel_type
    )
    return FuelLogListResponse(
        items=[FuelLogResponse.model_validate(f) for f in fuel_logs],
        **page_meta(total, pagination.page, pagination.limit)
    )


@router.get("/{fuel_log_id}", response_model=FuelLogResponse)
async def get_fuel_log(
    fuel_log_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    fuel_log = await FuelLogService.get(db, fuel_log_id)
    return FuelLogResponse.model_validate(fuel_log)


@router.get("/{fuel_log_id}/expense", response_model=ExpenseResponse)
async def get_fuel_log_expense(
    fuel_log_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expense = await FuelLogService.get_expense(db, fuel_log_id)
    return ExpenseResponse.model_validate(expense)


@router.patch("/{fuel_log_id}", response_model=FuelLogResponse)
async def update_fuel_log(
    fuel_data: FuelLogUpdate,
    fuel_log_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(FUEL_RECORDERS)),
    db: AsyncSession = Depends(get_db)
):
    fuel_log = await FuelLogService.update(db, fuel_log_id, fuel_data)

    await log_user_action(
        db, current_user, AuditAction.FUEL_LOG_UPDATED, "fuel_log", fuel_log.id,
        {"fields": sorted(fuel_data.model_dump(exclude_unset=True).keys())}
    )

    return FuelLogResponse.model_validate(fuel_log)
