"""
Expense read service.

Expenses are written by the maintenance and fuel pipelines; this module
only lists and summarizes them.
"""

from datetime import datetime
from typing import Optional, List, Tuple

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.db.lookups import get_or_raise
from fleetops.app.core.rounding import round_half_up
from fleetops.app.db.pagination import paginate, apply_window
from fleetops.app.models.expense import Expense
from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.schemas.expense import ExpenseCategoryTotal


class ExpenseService:

    @staticmethod
    async def get(db: AsyncSession, expense_id: int) -> Expense:
        return await get_or_raise(db, Expense, expense_id, "Expense")

    @staticmethod
    async def list(
        db: AsyncSession,
        page: int,
        limit: int,
        category: Optional[ExpenseCategory] = None,
        vehicle_id: Optional[int] = None,
        trip_id: Optional[int] = None,
        maintenance_log_id: Optional[int] = None,
        fuel_log_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Tuple[List[Expense], int]:
        query = select(Expense)
        if category:
            query = query.where(Expense.category == category)
        if vehicle_id is not None:
            query = query.where(Expense.vehicle_id == vehicle_id)
        if trip_id is not None:
            query = query.where(Expense.trip_id == trip_id)
        if maintenance_log_id is not None:
            query = query.where(Expense.maintenance_log_id == maintenance_log_id)
        if fuel_log_id is not None:
            query = query.where(Expense.fuel_log_id == fuel_log_id)
        query = apply_window(query, Expense.incurred_at, date_from, date_to)
        query = query.order_by(desc(Expense.incurred_at), desc(Expense.id))
        return await paginate(db, query, page, limit)

    @staticmethod
    async def summary_by_category(
        db: AsyncSession,
        vehicle_id: Optional[int] = None,
        trip_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[ExpenseCategoryTotal]:
        """Total and count per category, largest total first."""
        query = select(
            Expense.category,
            func.sum(Expense.amount).label("total_amount"),
            func.count(Expense.id).label("count"),
        )
        if vehicle_id is not None:
            query = query.where(Expense.vehicle_id == vehicle_id)
        if trip_id is not None:
            query = query.where(Expense.trip_id == trip_id)
        query = apply_window(query, Expense.incurred_at, date_from, date_to)
        query = query.group_by(Expense.category)

        rows = (await db.execute(query)).all()
        totals = [
            ExpenseCategoryTotal(category=row.category, total_amount=round_half_up(row.total_amount or 0.0), count=row.count)
            for row in rows
        ]
        return sorted(totals, key=lambda t: (-t.total_amount, t.category.value))
