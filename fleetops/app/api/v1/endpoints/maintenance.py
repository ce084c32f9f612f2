"""
Maintenance lifecycle API endpoints (Manager writes).

SCHEDULED -> IN_PROGRESS -> COMPLETED, with cancellation from either open
state. Opening a log puts the vehicle IN_SHOP; closing the last open log on a
vehicle returns it to AVAILABLE.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.db.pagination import page_meta
from fleetops.app.models.maintenance_enums import MaintenanceStatus, MaintenanceType, MaintenancePriority
from fleetops.app.schemas.maintenance import (
    MaintenanceCreate, MaintenanceUpdate, MaintenanceComplete, MaintenanceExpenseCreate,
    MaintenanceResponse, MaintenanceListResponse
)
from fleetops.app.schemas.expense import ExpenseResponse
from fleetops.app.core.dependencies import get_current_user, Pagination
from fleetops.app.core.guards import require_role, MANAGERS
from fleetops.app.domain.lifecycle.maintenance_service import MaintenanceService
from fleetops.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_log(
    log_data: MaintenanceCreate,
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Open a SCHEDULED log. The vehicle must be AVAILABLE or already IN_SHOP."""
    log = await MaintenanceService.create(db, log_data)

    await log_user_action(
        db, current_user, AuditAction.MAINTENANCE_CREATED, "maintenance_log", log.id,
        {"vehicle_id": log.vehicle_id, "type": log.type.value, "priority": log.priority.value}
    )

    return MaintenanceResponse.model_validate(log)


@router.get("", response_model=MaintenanceListResponse)
async def list_maintenance_logs(
    vehicle_id: Optional[int] = Query(None, ge=1),
    status_filter: Optional[MaintenanceStatus] = Query(None, alias="status"),
    type_filter: Optional[MaintenanceType] = Query(None, alias="type"),
    priority: Optional[MaintenancePriority] = Query(None),
    pagination: Pagination = Depends(),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    logs, total = await MaintenanceService.list(
        db, pagination.page, pagination.limit,
        vehicle_id=vehicle_id, status=status_filter, type=type_filter, priority=priority
    )
    return MaintenanceListResponse(
        items=[MaintenanceResponse.model_validate(log) for log in logs],
        **page_meta(total, pagination.page, pagination.limit)
    )


@router.get("/{log_id}", response_model=MaintenanceResponse)
async def get_maintenance_log(
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    log = await MaintenanceService.get(db, log_id)
    return MaintenanceResponse.model_validate(log)


@router.patch("/{log_id}", response_model=MaintenanceResponse)
async def update_maintenance_log(
    log_data: MaintenanceUpdate,
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Edit details of an open log. Status moves only through the action endpoints."""
    log = await MaintenanceService.update(db, log_id, log_data)

    await log_user_action(
        db, current_user, AuditAction.MAINTENANCE_UPDATED, "maintenance_log", log.id,
        {"fields": sorted(log_data.model_dump(exclude_unset=True).keys())}
    )

    return MaintenanceResponse.model_validate(log)


@router.post("/{log_id}/start", response_model=MaintenanceResponse)
async def start_maintenance(
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    log = await MaintenanceService.start(db, log_id)
    await log_user_action(db, current_user, AuditAction.MAINTENANCE_STARTED, "maintenance_log", log.id)
    return MaintenanceResponse.model_validate(log)


@router.post("/{log_id}/complete", response_model=MaintenanceResponse)
async def complete_maintenance(
    completion: Optional[MaintenanceComplete] = None,
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete an IN_PROGRESS log.

    Costs and vendor details in the body overwrite the stored values.
    """
    log = await MaintenanceService.complete(db, log_id, completion)

    await log_user_action(
        db, current_user, AuditAction.MAINTENANCE_COMPLETED, "maintenance_log", log.id,
        {"labor_cost": log.labor_cost, "parts_cost": log.parts_cost}
    )

    return MaintenanceResponse.model_validate(log)


@router.post("/{log_id}/cancel", response_model=MaintenanceResponse)
async def cancel_maintenance(
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    log = await MaintenanceService.cancel(db, log_id)
    await log_user_action(db, current_user, AuditAction.MAINTENANCE_CANCELLED, "maintenance_log", log.id)
    return MaintenanceResponse.model_validate(log)


@router.post("/{log_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_maintenance_expense(
    expense_data: MaintenanceExpenseCreate,
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_role(MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Attach an expense to the log and its vehicle. Allowed at any log status."""
    expense = await MaintenanceService.add_expense(db, log_id, expense_data)

    await log_user_action(
        db, current_user, AuditAction.EXPENSE_ADDED, "expense", expense.id,
        {"maintenance_log_id": log_id, "category": expense.category.value, "amount": expense.amount}
    )

    return ExpenseResponse.model_validate(expense)


@router.get("/{log_id}/expenses", response_model=List[ExpenseResponse])
async def list_maintenance_expenses(
    log_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expenses = await MaintenanceService.list_expenses(db, log_id)
    return [ExpenseResponse.model_validate(e) for e in expenses]
