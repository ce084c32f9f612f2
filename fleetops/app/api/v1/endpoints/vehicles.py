"""
Vehicle registry API endpoints.

Managers register and edit vehicles; every authenticated role can read them.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.db.pagination import page_meta
from fleetops.app.models.vehicle_enums import VehicleStatus, VehicleType
from fleetops.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse, VehicleListResponse
from fleetops.app.core.dependencies import get_current_user, Pagination
from fleetops.app.core.guards import require_role, MANAGERS
from fleetops.app.domain.fleet.vehicle_service import VehicleService
from fleetops.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a vehicle (Manager only).

    New vehicles start AVAILABLE. License plate and VIN must be unique.
    """
    vehicle = await VehicleService.create(db, vehicle_data)

    await log_user_action(
        db, current_user, AuditAction.VEHICLE_CREATED, "vehicle", vehicle.id,
        {"license_plate": vehicle.license_plate, "vehicle_type": vehicle.vehicle_type.value}
    )

    return VehicleResponse.model_validate(vehicle)


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    vehicle_type: Optional[VehicleType] = Query(None),
    pagination: Pagination = Depends(),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicles, total = await VehicleService.list(
        db, pagination.page, pagination.limit, status=status_filter, vehicle_type=vehicle_type
    )
    return VehicleListResponse(
        items=[VehicleResponse.model_validate(v) for v in vehicles],
        **page_meta(total, pagination.page, pagination.limit)
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await VehicleService.get(db, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Partially update a vehicle (Manager only).

    ON_TRIP and IN_SHOP are owned by the trip and maintenance workflows and
    cannot be set or cleared here. The odometer never moves backwards.
    """
    vehicle = await VehicleService.update(db, vehicle_id, vehicle_data)

    await log_user_action(
        db, current_user, AuditAction.VEHICLE_UPDATED, "vehicle", vehicle.id,
        {"fields": sorted(vehicle_data.model_dump(exclude_unset=True).keys())}
    )

    return VehicleResponse.model_validate(vehicle)
