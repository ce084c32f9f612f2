"""
Driver registry API endpoints.

Managers register drivers; managers and safety officers maintain them.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.db.pagination import page_meta
from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.vehicle_enums import VehicleType
from fleetops.app.schemas.driver import (
    DriverCreate, DriverUpdate, DriverResponse, DriverListResponse, DriverAssignability
)
from fleetops.app.core.dependencies import get_current_user, Pagination
from fleetops.app.core.guards import require_role, MANAGERS, DRIVER_SUPERVISORS
from fleetops.app.domain.fleet.driver_service import DriverService
from fleetops.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Register a driver. New drivers start OFF_DUTY with a safety score of 100."""
    driver = await DriverService.create(db, driver_data)

    await log_user_action(
        db, current_user, AuditAction.DRIVER_CREATED, "driver", driver.id,
        {"employee_id": driver.employee_id}
    )

    return DriverResponse.model_validate(driver)


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    status_filter: Optional[DriverStatus] = Query(None, alias="status"),
    license_category: Optional[VehicleType] = Query(None),
    pagination: Pagination = Depends(),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    drivers, total = await DriverService.list(
        db, pagination.page, pagination.limit, status=status_filter, license_category=license_category
    )
    return DriverListResponse(
        items=[DriverResponse.model_validate(d) for d in drivers],
        **page_meta(total, pagination.page, pagination.limit)
    )


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    driver = await DriverService.get(db, driver_id)
    return DriverResponse.model_validate(driver)


@router.get("/{driver_id}/assignable", response_model=DriverAssignability)
async def check_driver_assignable(
    driver_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Report whether the driver could be put on a new trip today.

    `reasons` lists every blocking condition; it is empty when assignable.
    """
    reasons = await DriverService.check_assignable(db, driver_id)
    return DriverAssignability(driver_id=driver_id, assignable=not reasons, reasons=reasons)


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: DriverUpdate,
    driver_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(DRIVER_SUPERVISORS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update a driver.

    ON_TRIP is owned by the trip workflow and cannot be set or cleared here.
    """
    driver = await DriverService.update(db, driver_id, driver_data)

    await log_user_action(
        db, current_user, AuditAction.DRIVER_UPDATED, "driver", driver.id,
        {"fields": sorted(driver_data.model_dump(exclude_unset=True).keys())}
    )

    return DriverResponse.model_validate(driver)
