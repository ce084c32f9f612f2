"""
Fuel Log Service (Domain Logic).

Fuel log -> expense -> odometer pipeline. A fill is recorded together with
its FUEL expense and may advance the vehicle odometer, all in one
transaction. The expense amount always mirrors the fill's total cost.
"""

import logging
from typing import Optional, List, Tuple

from sqlalchemy import select, desc, update
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.timeutils import utcnow, as_utc
from fleetops.app.db.lookups import get_or_raise, exists
from fleetops.app.db.pagination import paginate
from fleetops.app.db.transaction import transaction, advance_odometer
from fleetops.app.domain.errors import InvalidInputError, NotFoundError, PreconditionFailedError
from fleetops.app.models.driver import Driver
from fleetops.app.models.expense import Expense
from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.models.fuel_enums import FuelType
from fleetops.app.models.fuel_log import FuelLog
from fleetops.app.models.trip import Trip
from fleetops.app.models.vehicle import Vehicle
from fleetops.app.schemas.fuel_log import FuelLogCreate, FuelLogUpdate

logger = logging.getLogger(__name__)

_NULLABLE_FIELDS = {"driver_id", "trip_id", "station_name", "station_address"}


def fuel_expense_description(fuel_type: FuelType, liters: float, license_plate: str) -> str:
    return f"Fuel fill - {fuel_type.value} - {liters}L @ {license_plate}"


async def _ensure_references(db: AsyncSession, driver_id: Optional[int], trip_id: Optional[int]) -> None:
    if driver_id is not None and not await exists(db, Driver, driver_id):
        raise NotFoundError("Driver", driver_id)
    if trip_id is not None and not await exists(db, Trip, trip_id):
        raise NotFoundError("Trip", trip_id)


class FuelLogService:

    @staticmethod
    async def get(db: AsyncSession, fuel_log_id: int, lock: bool = False) -> FuelLog:
        return await get_or_raise(db, FuelLog, fuel_log_id, "FuelLog", lock=lock)

    @staticmethod
    async def list(
        db: AsyncSession,
        page: int,
        limit: int,
        vehicle_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        trip_id: Optional[int] = None,
        fuel_type: Optional[FuelType] = None,
    ) -> Tuple[List[FuelLog], int]:
        query = select(FuelLog)
        if vehicle_id is not None:
            query = query.where(FuelLog.vehicle_id == vehicle_id)
        if driver_id is not None:
            query = query.where(FuelLog.driver_id == driver_id)
        if trip_id is not None:
            query = query.where(FuelLog.trip_id == trip_id)
        if fuel_type:
            query = query.where(FuelLog.fuel_type == fuel_type)
        query = query.order_by(desc(FuelLog.filled_at), desc(FuelLog.id))
        return await paginate(db, query, page, limit)

    @staticmethod
    async def create(db: AsyncSession, data: FuelLogCreate) -> Tuple[FuelLog, Expense]:
        """
        Record a fuel fill.

        Flow:
        1. Fill reading must not be behind the vehicle's current odometer
        2. Referenced driver / trip must exist
        3. Insert the fuel log and its FUEL expense
        4. Advance the vehicle odometer to the fill reading
        """
        async with transaction(db):
            vehicle = await get_or_raise(db, Vehicle, data.vehicle_id, "Vehicle", lock=True)
            if data.odometer_at_fill_km < vehicle.odometer_km:
                raise PreconditionFailedError(
                    f"odometer_at_fill_km ({data.odometer_at_fill_km}) must be >= vehicle current "
                    f"odometer_km ({vehicle.odometer_km})",
                    {"odometer_at_fill_km": data.odometer_at_fill_km, "vehicle_odometer_km": vehicle.odometer_km},
                )
            await _ensure_references(db, data.driver_id, data.trip_id)

            filled_at = as_utc(data.filled_at) or utcnow()
            values = data.model_dump()
            values["filled_at"] = filled_at
            fuel_log = FuelLog(**values)
            db.add(fuel_log)
            await db.flush()

            expense = Expense(
                category=ExpenseCategory.FUEL,
                description=fuel_expense_description(data.fuel_type, data.liters, vehicle.license_plate),
                amount=data.total_cost,
                vehicle_id=vehicle.id,
                trip_id=data.trip_id,
                fuel_log_id=fuel_log.id,
                incurred_at=filled_at,
            )
            db.add(expense)

            if data.odometer_at_fill_km > vehicle.odometer_km:
                if not await advance_odometer(db, Vehicle, vehicle.id, data.odometer_at_fill_km):
                    raise PreconditionFailedError("Vehicle odometer moved past the fill reading")

        await db.refresh(fuel_log)
        await db.refresh(expense)
        logger.info(
            "Fuel log %s recorded for vehicle %s (expense %s, %s)",
            fuel_log.id, fuel_log.vehicle_id, expense.id, expense.amount,
        )
        return fuel_log, expense

    @staticmethod
    async def update(db: AsyncSession, fuel_log_id: int, data: FuelLogUpdate) -> FuelLog:
        """
        Correct a recorded fill.

        A changed total_cost is copied to the linked expense in the same
        transaction. The odometer reading is only checked for being
        non-negative; corrections do not touch the vehicle odometer.
        """
        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }
        if not changes:
            raise InvalidInputError("No valid fields provided")
        if "filled_at" in changes:
            changes["filled_at"] = as_utc(changes["filled_at"])

        async with transaction(db):
            fuel_log = await FuelLogService.get(db, fuel_log_id, lock=True)
            await _ensure_references(db, changes.get("driver_id"), changes.get("trip_id"))

            for key, value in changes.items():
                setattr(fuel_log, key, value)

            if "total_cost" in changes:
                result = await db.execute(
                    update(Expense)
                    .where(Expense.fuel_log_id == fuel_log.id)
                    .values(amount=changes["total_cost"])
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise PreconditionFailedError(
                        f"Fuel log {fuel_log.id} has no linked expense",
                        {"fuel_log_id": fuel_log.id},
                    )

        await db.refresh(fuel_log)
        logger.info("Fuel log %s updated: %s", fuel_log.id, sorted(changes))
        return fuel_log

    @staticmethod
    async def get_expense(db: AsyncSession, fuel_log_id: int) -> Expense:
        await FuelLogService.get(db, fuel_log_id)
        result = await db.execute(
            select(Expense)
            .where(Expense.fuel_log_id == fuel_log_id)
            .execution_options(populate_existing=True)
        )
        expense = result.scalar_one_or_none()
        if expense is None:
            raise NotFoundError("Expense for FuelLog", fuel_log_id)
        return expense
