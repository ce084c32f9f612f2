"""
Expense API endpoints (read-only).

Expenses are written by the fuel-log and maintenance workflows.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from fleetops.app.db.session import get_db
from fleetops.app.db.pagination import page_meta
from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.schemas.expense import ExpenseResponse, ExpenseListResponse, ExpenseCategoryTotal
from fleetops.app.core.dependencies import get_current_user, Pagination
from fleetops.app.services.expenses import ExpenseService

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    category: Optional[ExpenseCategory] = Query(None),
    vehicle_id: Optional[int] = Query(None, ge=1),
    trip_id: Optional[int] = Query(None, ge=1),
    maintenance_log_id: Optional[int] = Query(None, ge=1),
    fuel_log_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    pagination: Pagination = Depends(),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List expenses, newest first. `from`/`to` bound incurred_at inclusively."""
    expenses, total = await ExpenseService.list(
        db, pagination.page, pagination.limit,
        category=category, vehicle_id=vehicle_id, trip_id=trip_id,
        maintenance_log_id=maintenance_log_id, fuel_log_id=fuel_log_id,
        date_from=date_from, date_to=date_to
    )
    return ExpenseListResponse(
        items=[ExpenseResponse.model_validate(e) for e in expenses],
        **page_meta(total, pagination.page, pagination.limit)
    )


@router.get("/summary", response_model=List[ExpenseCategoryTotal])
async def expense_summary(
    vehicle_id: Optional[int] = Query(None, ge=1),
    trip_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ExpenseService.summary_by_category(
        db, vehicle_id=vehicle_id, trip_id=trip_id, date_from=date_from, date_to=date_to
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    expense = await ExpenseService.get(db, expense_id)
    return ExpenseResponse.model_validate(expense)
