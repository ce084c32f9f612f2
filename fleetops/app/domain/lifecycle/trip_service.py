"""
Trip Lifecycle Service (Domain Logic).

DRAFT --dispatch--> DISPATCHED --complete--> COMPLETED
DRAFT | DISPATCHED --cancel--> CANCELLED

Every operation re-reads the trip, its vehicle and its driver inside one
transaction and writes shared status rows with guarded updates, so a stale
read can never reserve a vehicle or driver twice.
"""

import logging
from datetime import date
from typing import Optional, List, Tuple

from sqlalchemy import select, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.timeutils import utcnow, as_utc
from fleetops.app.db.lookups import get_or_raise
from fleetops.app.db.pagination import paginate
from fleetops.app.db.transaction import transaction, compare_and_set
from fleetops.app.domain.errors import ConflictError, PreconditionFailedError
from fleetops.app.domain.fleet.driver_service import license_is_valid
from fleetops.app.domain.lifecycle.transitions import TRIP_TRANSITIONS, ensure_transition
from fleetops.app.models.driver import Driver
from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.trip import Trip
from fleetops.app.models.trip_enums import TripStatus
from fleetops.app.models.vehicle import Vehicle
from fleetops.app.models.vehicle_enums import VehicleStatus
from fleetops.app.schemas.trip import TripCreate

logger = logging.getLogger(__name__)

TRIP_NUMBER_PREFIX = "TRP"
ASSIGNABLE_DRIVER_STATUSES = (DriverStatus.ON_DUTY, DriverStatus.OFF_DUTY)


def trip_number_prefix(day: date) -> str:
    return f"{TRIP_NUMBER_PREFIX}-{day.strftime('%Y%m%d')}-"


async def lock_trip_numbering(db: AsyncSession, day: date) -> None:
    """
    Serialize numbering for `day` until the surrounding transaction ends.

    PostgreSQL takes a transaction-scoped advisory lock keyed on the day's
    prefix. SQLite already serializes writers, so nothing is taken there.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    prefix = trip_number_prefix(day)
    await db.execute(select(func.pg_advisory_xact_lock(func.hashtext(prefix))))


async def next_trip_number(db: AsyncSession, day: date) -> str:
    """
    Next number in the day's sequence: TRP-YYYYMMDD-0001, -0002, ...

    Ordered by length first so that -10000 sorts after -9999.
    """
    prefix = trip_number_prefix(day)
    result = await db.execute(
        select(Trip.trip_number)
        .where(Trip.trip_number.like(f"{prefix}%"))
        .order_by(desc(func.length(Trip.trip_number)), desc(Trip.trip_number))
        .limit(1)
    )
    last = result.scalar_one_or_none()
    sequence = int(last[len(prefix):]) + 1 if last else 1
    return f"{prefix}{sequence:04d}"


def _require_vehicle_available(vehicle: Vehicle) -> None:
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise PreconditionFailedError(
            f"Vehicle {vehicle.license_plate} is not AVAILABLE (current: {vehicle.status.value})",
            {"vehicle_id": vehicle.id, "status": vehicle.status.value},
        )


def _require_license_valid(driver: Driver, today: date) -> None:
    if not license_is_valid(driver, today):
        raise PreconditionFailedError(
            f"Driver {driver.employee_id} license expired on {driver.license_expiry_date.isoformat()}",
            {"driver_id": driver.id, "license_expiry_date": driver.license_expiry_date.isoformat()},
        )


class TripService:

    @staticmethod
    async def get(db: AsyncSession, trip_id: int, lock: bool = False) -> Trip:
        return await get_or_raise(db, Trip, trip_id, "Trip", lock=lock)

    @staticmethod
    async def list(
        db: AsyncSession,
        page: int,
        limit: int,
        status: Optional[TripStatus] = None,
        vehicle_id: Optional[int] = None,
        driver_id: Optional[int] = None,
    ) -> Tuple[List[Trip], int]:
        query = select(Trip)
        if status:
            query = query.where(Trip.status == status)
        if vehicle_id is not None:
            query = query.where(Trip.vehicle_id == vehicle_id)
        if driver_id is not None:
            query = query.where(Trip.driver_id == driver_id)
        query = query.order_by(desc(Trip.created_at), desc(Trip.id))
        return await paginate(db, query, page, limit)

    @staticmethod
    async def create(db: AsyncSession, data: TripCreate, actor_id: Optional[int]) -> Trip:
        """
        Create a DRAFT trip.

        Preconditions:
        1. Vehicle is AVAILABLE
        2. Driver is ON_DUTY or OFF_DUTY with a licence valid today
        3. Cargo weight does not exceed the vehicle's max load

        Nothing is reserved; vehicle and driver statuses are untouched.
        Numbering is serialized per day on PostgreSQL. Elsewhere a unique
        violation on trip_number surfaces as ConflictError and the caller
        retries.
        """
        now = utcnow()
        try:
            async with transaction(db):
                vehicle = await get_or_raise(db, Vehicle, data.vehicle_id, "Vehicle", lock=True)
                _require_vehicle_available(vehicle)

                driver = await get_or_raise(db, Driver, data.driver_id, "Driver", lock=True)
                if driver.status not in ASSIGNABLE_DRIVER_STATUSES:
                    raise PreconditionFailedError(
                        f"Driver {driver.employee_id} is not assignable (current: {driver.status.value})",
                        {"driver_id": driver.id, "status": driver.status.value},
                    )
                _require_license_valid(driver, now.date())

                if data.cargo_weight_kg > vehicle.max_load_kg:
                    raise PreconditionFailedError(
                        f"Cargo weight {data.cargo_weight_kg} kg exceeds vehicle max load {vehicle.max_load_kg} kg",
                        {"cargo_weight_kg": data.cargo_weight_kg, "max_load_kg": vehicle.max_load_kg},
                    )

                await lock_trip_numbering(db, now.date())
                values = data.model_dump()
                values["scheduled_at"] = as_utc(data.scheduled_at)
                trip = Trip(
                    **values,
                    trip_number=await next_trip_number(db, now.date()),
                    status=TripStatus.DRAFT,
                    created_by_id=actor_id,
                )
                db.add(trip)
        except IntegrityError:
            raise ConflictError("Trip number already taken, retry the request", "trip_number")

        await db.refresh(trip)
        logger.info("Trip %s created (%s)", trip.id, trip.trip_number)
        return trip

    @staticmethod
    async def dispatch(db: AsyncSession, trip_id: int, actor_id: Optional[int]) -> Trip:
        """
        Dispatch a DRAFT trip.

        Vehicle and driver are re-validated because time has passed since
        creation. Trip, vehicle and driver move together or not at all:
        Trip -> DISPATCHED (odometer_start_km snapshot), Vehicle -> ON_TRIP,
        Driver -> ON_TRIP.
        """
        async with transaction(db):
            trip = await TripService.get(db, trip_id, lock=True)
            ensure_transition("trip", TRIP_TRANSITIONS, trip.status, TripStatus.DISPATCHED)

            vehicle = await get_or_raise(db, Vehicle, trip.vehicle_id, "Vehicle", lock=True)
            _require_vehicle_available(vehicle)

            driver = await get_or_raise(db, Driver, trip.driver_id, "Driver", lock=True)
            if driver.status != DriverStatus.ON_DUTY:
                raise PreconditionFailedError(
                    f"Driver {driver.employee_id} must be ON_DUTY to dispatch (current: {driver.status.value})",
                    {"driver_id": driver.id, "status": driver.status.value},
                )

            now = utcnow()
            _require_license_valid(driver, now.date())

            await compare_and_set(
                db, Trip, trip.id, [TripStatus.DRAFT], "Trip",
                status=TripStatus.DISPATCHED,
                dispatched_at=now,
                dispatched_by_id=actor_id,
                odometer_start_km=vehicle.odometer_km,
            )
            await compare_and_set(db, Vehicle, vehicle.id, [VehicleStatus.AVAILABLE], "Vehicle", status=VehicleStatus.ON_TRIP)
            await compare_and_set(db, Driver, driver.id, [DriverStatus.ON_DUTY], "Driver", status=DriverStatus.ON_TRIP)

        await db.refresh(trip)
        logger.info("Trip %s dispatched: vehicle %s and driver %s ON_TRIP", trip.id, trip.vehicle_id, trip.driver_id)
        return trip

    @staticmethod
    async def complete(
        db: AsyncSession,
        trip_id: int,
        odometer_end_km: float,
        distance_km: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> Trip:
        """
        Complete a DISPATCHED trip.

        The end reading must not be below the start snapshot, nor below the
        vehicle's current odometer (a fuel fill may have advanced it mid-trip).
        Vehicle -> AVAILABLE with odometer_km = odometer_end_km; Driver -> ON_DUTY.
        """
        async with transaction(db):
            trip = await TripService.get(db, trip_id, lock=True)
            ensure_transition("trip", TRIP_TRANSITIONS, trip.status, TripStatus.COMPLETED)

            start_km = trip.odometer_start_km or 0.0
            if odometer_end_km < start_km:
                raise PreconditionFailedError(
                    f"odometer_end_km ({odometer_end_km}) must be >= odometer_start_km ({start_km})",
                    {"odometer_end_km": odometer_end_km, "odometer_start_km": start_km},
                )

            vehicle = await get_or_raise(db, Vehicle, trip.vehicle_id, "Vehicle", lock=True)
            if odometer_end_km < vehicle.odometer_km:
                raise PreconditionFailedError(
                    f"odometer_end_km ({odometer_end_km}) is behind the vehicle odometer ({vehicle.odometer_km})",
                    {"odometer_end_km": odometer_end_km, "vehicle_odometer_km": vehicle.odometer_km},
                )

            if distance_km is None:
                distance_km = trip.distance_km if trip.distance_km is not None else odometer_end_km - start_km

            values = {
                "status": TripStatus.COMPLETED,
                "completed_at": utcnow(),
                "odometer_end_km": odometer_end_km,
                "distance_km": distance_km,
            }
            if notes is not None:
                values["notes"] = notes

            await compare_and_set(db, Trip, trip.id, [TripStatus.DISPATCHED], "Trip", **values)
            await compare_and_set(
                db, Vehicle, vehicle.id, [VehicleStatus.ON_TRIP], "Vehicle",
                status=VehicleStatus.AVAILABLE,
                odometer_km=odometer_end_km,
            )
            await TripService._release_driver(db, trip)

        await db.refresh(trip)
        logger.info("Trip %s completed at %s km", trip.id, odometer_end_km)
        return trip

    @staticmethod
    async def cancel(db: AsyncSession, trip_id: int, reason: Optional[str] = None) -> Trip:
        """
        Cancel a DRAFT or DISPATCHED trip.

        Vehicle and driver are released only when the trip had been
        dispatched; a DRAFT never reserved them.
        """
        async with transaction(db):
            trip = await TripService.get(db, trip_id, lock=True)
            ensure_transition("trip", TRIP_TRANSITIONS, trip.status, TripStatus.CANCELLED)
            was_dispatched = trip.status == TripStatus.DISPATCHED

            values = {"status": TripStatus.CANCELLED, "cancelled_at": utcnow()}
            if reason:
                values["notes"] = f"{trip.notes}\n{reason}" if trip.notes else reason
            await compare_and_set(db, Trip, trip.id, [trip.status], "Trip", **values)

            if was_dispatched:
                await compare_and_set(
                    db, Vehicle, trip.vehicle_id, [VehicleStatus.ON_TRIP], "Vehicle",
                    status=VehicleStatus.AVAILABLE,
                )
                await TripService._release_driver(db, trip)

        await db.refresh(trip)
        logger.info("Trip %s cancelled (was_dispatched=%s)", trip.id, was_dispatched)
        return trip

    @staticmethod
    async def _release_driver(db: AsyncSession, trip: Trip) -> None:
        # Only an ON_TRIP driver is put back ON_DUTY; any other status set
        # by a manager in the meantime is left alone.
        released = await compare_and_set(
            db, Driver, trip.driver_id, [DriverStatus.ON_TRIP], "Driver",
            strict=False,
            status=DriverStatus.ON_DUTY,
        )
        if not released:
            logger.warning("Trip %s: driver %s was no longer ON_TRIP, status left unchanged", trip.id, trip.driver_id)
