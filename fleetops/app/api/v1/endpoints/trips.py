"""
Trip lifecycle API endpoints.

DRAFT -> DISPATCHED -> COMPLETED, with cancellation from DRAFT or DISPATCHED.
Dispatch, completion and cancellation move the vehicle and driver in the same
transaction as the trip.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.db.pagination import page_meta
from fleetops.app.models.trip_enums import TripStatus
from fleetops.app.schemas.trip import TripCreate, TripComplete, TripCancel, TripResponse, TripListResponse
from fleetops.app.core.dependencies import get_current_user, Pagination
from fleetops.app.core.guards import require_role, TRIP_OPERATORS
from fleetops.app.domain.lifecycle.trip_service import TripService
from fleetops.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a DRAFT trip.

    The vehicle must be AVAILABLE with enough capacity for the cargo, and the
    driver must hold an unexpired licence while not SUSPENDED or already
    ON_TRIP.
    """
    trip = await TripService.create(db, trip_data, actor_id=current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.TRIP_CREATED, "trip", trip.id,
        {"trip_number": trip.trip_number, "vehicle_id": trip.vehicle_id, "driver_id": trip.driver_id}
    )

    return TripResponse.model_validate(trip)


@router.get("", response_model=TripListResponse)
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    vehicle_id: Optional[int] = Query(None, ge=1),
    driver_id: Optional[int] = Query(None, ge=1),
    pagination: Pagination = Depends(),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    trips, total = await TripService.list(
        db, pagination.page, pagination.limit,
        status=status_filter, vehicle_id=vehicle_id, driver_id=driver_id
    )
    return TripListResponse(
        items=[TripResponse.model_validate(t) for t in trips],
        **page_meta(total, pagination.page, pagination.limit)
    )


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    trip = await TripService.get(db, trip_id)
    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/dispatch", response_model=TripResponse)
async def dispatch_trip(
    trip_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """Dispatch a DRAFT trip; vehicle and driver become ON_TRIP."""
    trip = await TripService.dispatch(db, trip_id, actor_id=current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.TRIP_DISPATCHED, "trip", trip.id,
        {"odometer_start_km": trip.odometer_start_km}
    )

    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/complete", response_model=TripResponse)
async def complete_trip(
    completion: TripComplete,
    trip_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete a DISPATCHED trip.

    The vehicle returns to AVAILABLE with its odometer set to the end reading;
    the driver returns to ON_DUTY.
    """
    trip = await TripService.complete(
        db, trip_id,
        odometer_end_km=completion.odometer_end_km,
        distance_km=completion.distance_km,
        notes=completion.notes
    )

    await log_user_action(
        db, current_user, AuditAction.TRIP_COMPLETED, "trip", trip.id,
        {"odometer_end_km": trip.odometer_end_km, "distance_km": trip.distance_km}
    )

    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/cancel", response_model=TripResponse)
async def cancel_trip(
    cancellation: Optional[TripCancel] = None,
    trip_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """Cancel a DRAFT or DISPATCHED trip, releasing resources if it was dispatched."""
    reason = cancellation.reason if cancellation else None
    trip = await TripService.cancel(db, trip_id, reason=reason)

    await log_user_action(
        db, current_user, AuditAction.TRIP_CANCELLED, "trip", trip.id,
        {"reason": reason} if reason else None
    )

    return TripResponse.model_validate(trip)
