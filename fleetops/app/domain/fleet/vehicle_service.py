"""
Vehicle registry service.

Registration, lookup, listing and direct edits. Status changes made here go
through the vehicle transition graph; ON_TRIP and IN_SHOP are owned by the
trip and maintenance lifecycles and cannot be entered or left directly.
"""

import logging
from typing import Optional, List, Tuple

from sqlalchemy import select, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.db.lookups import get_or_raise
from fleetops.app.db.pagination import paginate
from fleetops.app.db.transaction import transaction, compare_and_set, advance_odometer
from fleetops.app.domain.errors import ConflictError, InvalidInputError, PreconditionFailedError
from fleetops.app.domain.lifecycle.transitions import VEHICLE_TRANSITIONS, ensure_transition
from fleetops.app.models.vehicle import Vehicle
from fleetops.app.models.vehicle_enums import VehicleStatus, VehicleType
from fleetops.app.schemas.vehicle import VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)

# Entered and left only through trip / maintenance orchestration
LIFECYCLE_OWNED_STATUSES = frozenset({VehicleStatus.ON_TRIP, VehicleStatus.IN_SHOP})

# Columns a PATCH may explicitly clear
_NULLABLE_FIELDS = {"vin", "acquisition_date"}


class VehicleService:

    @staticmethod
    async def get(db: AsyncSession, vehicle_id: int, lock: bool = False) -> Vehicle:
        return await get_or_raise(db, Vehicle, vehicle_id, "Vehicle", lock=lock)

    @staticmethod
    async def _ensure_unique(db: AsyncSession, license_plate: Optional[str], vin: Optional[str], exclude_id: Optional[int] = None):
        if license_plate is not None:
            query = select(Vehicle.id).where(Vehicle.license_plate == license_plate)
            if exclude_id is not None:
                query = query.where(Vehicle.id != exclude_id)
            if (await db.execute(query)).first():
                raise ConflictError("A vehicle with this license_plate already exists", "license_plate")

        if vin is not None:
            query = select(Vehicle.id).where(Vehicle.vin == vin)
            if exclude_id is not None:
                query = query.where(Vehicle.id != exclude_id)
            if (await db.execute(query)).first():
                raise ConflictError("A vehicle with this VIN already exists", "vin")

    @staticmethod
    async def create(db: AsyncSession, data: VehicleCreate) -> Vehicle:
        """Register a vehicle. Status starts AVAILABLE with a zero odometer."""
        vehicle = Vehicle(**data.model_dump())

        try:
            async with transaction(db):
                await VehicleService._ensure_unique(db, data.license_plate, data.vin)
                db.add(vehicle)
        except IntegrityError:
            raise ConflictError("A vehicle with this license_plate or VIN already exists")

        await db.refresh(vehicle)
        logger.info("Vehicle %s registered as %s", vehicle.id, vehicle.license_plate)
        return vehicle

    @staticmethod
    async def list(
        db: AsyncSession,
        page: int,
        limit: int,
        status: Optional[VehicleStatus] = None,
        vehicle_type: Optional[VehicleType] = None,
    ) -> Tuple[List[Vehicle], int]:
        query = select(Vehicle)
        if status:
            query = query.where(Vehicle.status == status)
        if vehicle_type:
            query = query.where(Vehicle.vehicle_type == vehicle_type)
        query = query.order_by(desc(Vehicle.created_at), desc(Vehicle.id))
        return await paginate(db, query, page, limit)

    @staticmethod
    async def update(db: AsyncSession, vehicle_id: int, data: VehicleUpdate) -> Vehicle:
        """
        Apply a partial update.

        Rules:
        - odometer_km may not decrease
        - status must be a legal edge of the vehicle graph and may not enter
          or leave a lifecycle-owned status
        """
        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }
        if not changes:
            raise InvalidInputError("No valid fields provided")

        try:
            async with transaction(db):
                vehicle = await VehicleService.get(db, vehicle_id, lock=True)

                await VehicleService._ensure_unique(
                    db,
                    changes.get("license_plate"),
                    changes.get("vin"),
                    exclude_id=vehicle.id,
                )

                odometer_km = changes.pop("odometer_km", None)
                if odometer_km is not None and odometer_km < vehicle.odometer_km:
                    raise PreconditionFailedError(
                        f"odometer_km cannot decrease (current: {vehicle.odometer_km}, provided: {odometer_km})",
                        {"current": vehicle.odometer_km, "provided": odometer_km},
                    )

                requested = changes.pop("status", None)
                if requested is not None and requested != vehicle.status:
                    ensure_transition("vehicle", VEHICLE_TRANSITIONS, vehicle.status, requested)
                    if requested in LIFECYCLE_OWNED_STATUSES or vehicle.status in LIFECYCLE_OWNED_STATUSES:
                        raise PreconditionFailedError(
                            f"Vehicle status {vehicle.status.value} -> {requested.value} is managed by "
                            "trip and maintenance operations"
                        )
                    await compare_and_set(db, Vehicle, vehicle.id, [vehicle.status], "Vehicle", status=requested)

                for key, value in changes.items():
                    setattr(vehicle, key, value)

                if odometer_km is not None and not await advance_odometer(db, Vehicle, vehicle.id, odometer_km):
                    raise PreconditionFailedError("odometer_km cannot decrease")
        except IntegrityError:
            raise ConflictError("A vehicle with this license_plate or VIN already exists")

        await db.refresh(vehicle)
        logger.info("Vehicle %s updated: %s", vehicle.id, sorted(data.model_dump(exclude_unset=True)))
        return vehicle
