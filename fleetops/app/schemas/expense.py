"""
Expense schemas.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.schemas.common import PageMeta


class ExpenseResponse(BaseModel):
    id: int
    category: ExpenseCategory
    description: str
    amount: float
    vehicle_id: Optional[int]
    trip_id: Optional[int]
    maintenance_log_id: Optional[int]
    fuel_log_id: Optional[int]
    receipt_url: Optional[str]
    incurred_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseListResponse(PageMeta):
    items: List[ExpenseResponse]


class ExpenseCategoryTotal(BaseModel):
    """One row of the per-category summary."""
    category: ExpenseCategory
    total_amount: float
    count: int
