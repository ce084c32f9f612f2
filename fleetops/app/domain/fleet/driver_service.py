"""
Driver registry service.
"""

import logging
from datetime import date
from typing import Optional, List, Tuple

from sqlalchemy import select, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.timeutils import utctoday
from fleetops.app.db.lookups import get_or_raise
from fleetops.app.db.pagination import paginate
from fleetops.app.db.transaction import transaction, compare_and_set
from fleetops.app.domain.errors import ConflictError, InvalidInputError, PreconditionFailedError
from fleetops.app.domain.lifecycle.transitions import DRIVER_TRANSITIONS, ensure_transition
from fleetops.app.models.driver import Driver
from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.vehicle_enums import VehicleType
from fleetops.app.schemas.driver import DriverCreate, DriverUpdate

logger = logging.getLogger(__name__)

_UNIQUE_FIELDS = ("employee_id", "phone", "email", "license_number")
_NULLABLE_FIELDS = {"email", "hire_date"}


def license_is_valid(driver: Driver, on: Optional[date] = None) -> bool:
    """A licence is valid through its expiry date (UTC calendar day)."""
    return driver.license_expiry_date >= (on or utctoday())


def assignability_reasons(driver: Driver, on: Optional[date] = None) -> List[str]:
    """Why a driver cannot be put on a trip right now; empty when eligible."""
    reasons = []
    if driver.status == DriverStatus.SUSPENDED:
        reasons.append("Driver is suspended")
    if driver.status == DriverStatus.ON_TRIP:
        reasons.append("Driver is already on a trip")
    if not license_is_valid(driver, on):
        reasons.append(f"Driver license expired on {driver.license_expiry_date.isoformat()}")
    return reasons


class DriverService:

    @staticmethod
    async def get(db: AsyncSession, driver_id: int, lock: bool = False) -> Driver:
        return await get_or_raise(db, Driver, driver_id, "Driver", lock=lock)

    @staticmethod
    async def _ensure_unique(db: AsyncSession, values: dict, exclude_id: Optional[int] = None):
        for field in _UNIQUE_FIELDS:
            value = values.get(field)
            if value is None:
                continue
            column = getattr(Driver, field)
            query = select(Driver.id).where(column == value)
            if exclude_id is not None:
                query = query.where(Driver.id != exclude_id)
            if (await db.execute(query)).first():
                raise ConflictError(f"A driver with this {field} already exists", field)

    @staticmethod
    async def create(db: AsyncSession, data: DriverCreate) -> Driver:
        """Register a driver. Status starts OFF_DUTY."""
        values = data.model_dump()
        if values.get("email"):
            values["email"] = values["email"].lower()

        driver = Driver(**values)
        try:
            async with transaction(db):
                await DriverService._ensure_unique(db, values)
                db.add(driver)
        except IntegrityError:
            raise ConflictError("A driver with these identifiers already exists")

        await db.refresh(driver)
        logger.info("Driver %s registered (employee %s)", driver.id, driver.employee_id)
        return driver

    @staticmethod
    async def list(
        db: AsyncSession,
        page: int,
        limit: int,
        status: Optional[DriverStatus] = None,
        license_category: Optional[VehicleType] = None,
    ) -> Tuple[List[Driver], int]:
        query = select(Driver)
        if status:
            query = query.where(Driver.status == status)
        if license_category:
            query = query.where(Driver.license_category == license_category)
        query = query.order_by(desc(Driver.created_at), desc(Driver.id))
        return await paginate(db, query, page, limit)

    @staticmethod
    async def update(db: AsyncSession, driver_id: int, data: DriverUpdate) -> Driver:
        """
        Apply a partial update.

        Duty status follows the driver graph; ON_TRIP is entered and left only
        by trip dispatch, completion and cancellation.
        """
        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }
        if not changes:
            raise InvalidInputError("No valid fields provided")
        if changes.get("email"):
            changes["email"] = changes["email"].lower()

        try:
            async with transaction(db):
                driver = await DriverService.get(db, driver_id, lock=True)
                await DriverService._ensure_unique(db, changes, exclude_id=driver.id)

                requested = changes.pop("status", None)
                if requested is not None and requested != driver.status:
                    ensure_transition("driver", DRIVER_TRANSITIONS, driver.status, requested)
                    if DriverStatus.ON_TRIP in (requested, driver.status):
                        raise PreconditionFailedError(
                            f"Driver status {driver.status.value} -> {requested.value} is managed by trip operations"
                        )
                    await compare_and_set(db, Driver, driver.id, [driver.status], "Driver", status=requested)

                for key, value in changes.items():
                    setattr(driver, key, value)
        except IntegrityError:
            raise ConflictError("A driver with these identifiers already exists")

        await db.refresh(driver)
        logger.info("Driver %s updated: %s", driver.id, sorted(data.model_dump(exclude_unset=True)))
        return driver

    @staticmethod
    async def check_assignable(db: AsyncSession, driver_id: int) -> List[str]:
        driver = await DriverService.get(db, driver_id)
        return assignability_reasons(driver)
