"""
Maintenance Lifecycle Service (Domain Logic).

SCHEDULED --start--> IN_PROGRESS --complete--> COMPLETED
SCHEDULED | IN_PROGRESS --cancel--> CANCELLED

Opening a log puts the vehicle IN_SHOP. The vehicle goes back to AVAILABLE
only when its last active (SCHEDULED / IN_PROGRESS) log is closed.
"""

import logging
from typing import Optional, List, Tuple

from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.timeutils import utcnow, as_utc
from fleetops.app.db.lookups import get_or_raise
from fleetops.app.db.pagination import paginate
from fleetops.app.db.transaction import transaction, compare_and_set
from fleetops.app.domain.errors import InvalidInputError, PreconditionFailedError
from fleetops.app.domain.lifecycle.transitions import (
    MAINTENANCE_TRANSITIONS, ensure_transition, is_terminal
)
from fleetops.app.models.expense import Expense
from fleetops.app.models.maintenance_enums import (
    ACTIVE_MAINTENANCE_STATUSES, MaintenanceStatus, MaintenanceType, MaintenancePriority
)
from fleetops.app.models.maintenance_log import MaintenanceLog
from fleetops.app.models.vehicle import Vehicle
from fleetops.app.models.vehicle_enums import VehicleStatus
from fleetops.app.schemas.maintenance import (
    MaintenanceCreate, MaintenanceUpdate, MaintenanceComplete, MaintenanceExpenseCreate
)

logger = logging.getLogger(__name__)

SHOP_ELIGIBLE_VEHICLE_STATUSES = (VehicleStatus.AVAILABLE, VehicleStatus.IN_SHOP)
_NULLABLE_FIELDS = {"odometer_at_service_km", "scheduled_date", "vendor_name", "invoice_number", "notes"}


async def count_other_active_logs(db: AsyncSession, vehicle_id: int, exclude_log_id: int) -> int:
    result = await db.execute(
        select(func.count(MaintenanceLog.id)).where(
            MaintenanceLog.vehicle_id == vehicle_id,
            MaintenanceLog.status.in_(ACTIVE_MAINTENANCE_STATUSES),
            MaintenanceLog.id != exclude_log_id,
        )
    )
    return result.scalar() or 0


class MaintenanceService:

    @staticmethod
    async def get(db: AsyncSession, log_id: int, lock: bool = False) -> MaintenanceLog:
        return await get_or_raise(db, MaintenanceLog, log_id, "MaintenanceLog", lock=lock)

    @staticmethod
    async def list(
        db: AsyncSession,
        page: int,
        limit: int,
        vehicle_id: Optional[int] = None,
        status: Optional[MaintenanceStatus] = None,
        type: Optional[MaintenanceType] = None,
        priority: Optional[MaintenancePriority] = None,
    ) -> Tuple[List[MaintenanceLog], int]:
        query = select(MaintenanceLog)
        if vehicle_id is not None:
            query = query.where(MaintenanceLog.vehicle_id == vehicle_id)
        if status:
            query = query.where(MaintenanceLog.status == status)
        if type:
            query = query.where(MaintenanceLog.type == type)
        if priority:
            query = query.where(MaintenanceLog.priority == priority)
        query = query.order_by(desc(MaintenanceLog.created_at), desc(MaintenanceLog.id))
        return await paginate(db, query, page, limit)

    @staticmethod
    async def create(db: AsyncSession, data: MaintenanceCreate) -> MaintenanceLog:
        """
        Open a SCHEDULED log and put the vehicle IN_SHOP.

        The vehicle may already be IN_SHOP for other work.
        """
        async with transaction(db):
            vehicle = await get_or_raise(db, Vehicle, data.vehicle_id, "Vehicle", lock=True)
            if vehicle.status not in SHOP_ELIGIBLE_VEHICLE_STATUSES:
                raise PreconditionFailedError(
                    f"Vehicle {vehicle.license_plate} must be AVAILABLE or IN_SHOP for maintenance "
                    f"(current: {vehicle.status.value})",
                    {"vehicle_id": vehicle.id, "status": vehicle.status.value},
                )

            values = data.model_dump()
            values["scheduled_date"] = as_utc(data.scheduled_date)
            log = MaintenanceLog(**values, status=MaintenanceStatus.SCHEDULED)
            db.add(log)

            await compare_and_set(
                db, Vehicle, vehicle.id, SHOP_ELIGIBLE_VEHICLE_STATUSES, "Vehicle",
                status=VehicleStatus.IN_SHOP,
            )

        await db.refresh(log)
        logger.info("Maintenance log %s opened; vehicle %s IN_SHOP", log.id, log.vehicle_id)
        return log

    @staticmethod
    async def start(db: AsyncSession, log_id: int) -> MaintenanceLog:
        async with transaction(db):
            log = await MaintenanceService.get(db, log_id, lock=True)
            ensure_transition("maintenance_log", MAINTENANCE_TRANSITIONS, log.status, MaintenanceStatus.IN_PROGRESS)
            await compare_and_set(
                db, MaintenanceLog, log.id, [MaintenanceStatus.SCHEDULED], "MaintenanceLog",
                status=MaintenanceStatus.IN_PROGRESS,
                started_at=utcnow(),
            )

        await db.refresh(log)
        logger.info("Maintenance log %s started", log.id)
        return log

    @staticmethod
    async def complete(db: AsyncSession, log_id: int, data: Optional[MaintenanceComplete] = None) -> MaintenanceLog:
        """
        Complete an IN_PROGRESS log, optionally overwriting costs and vendor
        details, then release the vehicle if no other log keeps it in the shop.
        """
        overrides = {}
        if data is not None:
            overrides = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

        async with transaction(db):
            log = await MaintenanceService.get(db, log_id, lock=True)
            ensure_transition("maintenance_log", MAINTENANCE_TRANSITIONS, log.status, MaintenanceStatus.COMPLETED)
            await MaintenanceService._close(db, log, MaintenanceStatus.COMPLETED, completed_at=utcnow(), **overrides)

        await db.refresh(log)
        logger.info("Maintenance log %s completed", log.id)
        return log

    @staticmethod
    async def cancel(db: AsyncSession, log_id: int) -> MaintenanceLog:
        async with transaction(db):
            log = await MaintenanceService.get(db, log_id, lock=True)
            ensure_transition("maintenance_log", MAINTENANCE_TRANSITIONS, log.status, MaintenanceStatus.CANCELLED)
            await MaintenanceService._close(db, log, MaintenanceStatus.CANCELLED)

        await db.refresh(log)
        logger.info("Maintenance log %s cancelled", log.id)
        return log

    @staticmethod
    async def _close(db: AsyncSession, log: MaintenanceLog, new_status: MaintenanceStatus, **values) -> None:
        # Vehicle row lock first: concurrent closes on the same vehicle
        # serialize here, so the count below sees the other one's commit.
        vehicle = await get_or_raise(db, Vehicle, log.vehicle_id, "Vehicle", lock=True)

        await compare_and_set(
            db, MaintenanceLog, log.id, [log.status], "MaintenanceLog",
            status=new_status,
            **values,
        )

        remaining = await count_other_active_logs(db, vehicle.id, log.id)
        if remaining:
            logger.info("Vehicle %s stays IN_SHOP (%s active logs)", vehicle.id, remaining)
            return

        released = await compare_and_set(
            db, Vehicle, vehicle.id, [VehicleStatus.IN_SHOP], "Vehicle",
            strict=False,
            status=VehicleStatus.AVAILABLE,
        )
        if released:
            logger.info("Vehicle %s released from shop", vehicle.id)

    @staticmethod
    async def update(db: AsyncSession, log_id: int, data: MaintenanceUpdate) -> MaintenanceLog:
        """Edit a log that is still SCHEDULED or IN_PROGRESS."""
        changes = {
            key: value for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }
        if not changes:
            raise InvalidInputError("No valid fields provided")
        if "scheduled_date" in changes:
            changes["scheduled_date"] = as_utc(changes["scheduled_date"])

        async with transaction(db):
            log = await MaintenanceService.get(db, log_id, lock=True)
            if is_terminal(MAINTENANCE_TRANSITIONS, log.status):
                raise PreconditionFailedError(
                    f"Maintenance log {log.id} is {log.status.value} and can no longer be edited",
                    {"id": log.id, "status": log.status.value},
                )
            for key, value in changes.items():
                setattr(log, key, value)

        await db.refresh(log)
        return log

    @staticmethod
    async def add_expense(db: AsyncSession, log_id: int, data: MaintenanceExpenseCreate) -> Expense:
        """Record an expense against a log and its vehicle, at any log status."""
        async with transaction(db):
            log = await MaintenanceService.get(db, log_id)
            expense = Expense(
                category=data.category,
                description=data.description,
                amount=data.amount,
                vehicle_id=log.vehicle_id,
                maintenance_log_id=log.id,
                receipt_url=data.receipt_url,
                incurred_at=as_utc(data.incurred_at) or utcnow(),
            )
            db.add(expense)

        await db.refresh(expense)
        logger.info("Expense %s (%s) added to maintenance log %s", expense.id, expense.amount, log.id)
        return expense

    @staticmethod
    async def list_expenses(db: AsyncSession, log_id: int) -> List[Expense]:
        await MaintenanceService.get(db, log_id)
        result = await db.execute(
            select(Expense)
            .where(Expense.maintenance_log_id == log_id)
            .order_by(desc(Expense.incurred_at), desc(Expense.id))
        )
        return list(result.scalars().all())
