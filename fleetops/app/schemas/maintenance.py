"""
Maintenance schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.models.maintenance_enums import (
    MaintenanceStatus, MaintenanceType, MaintenancePriority
)
from fleetops.app.schemas.common import PageMeta


class MaintenanceCreate(BaseModel):
    """Schema for opening a maintenance log. The vehicle goes IN_SHOP."""
    vehicle_id: int
    type: MaintenanceType
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    description: str = Field(..., min_length=1, max_length=1000)
    odometer_at_service_km: Optional[float] = Field(None, ge=0)
    labor_cost: float = Field(0.0, ge=0)
    parts_cost: float = Field(0.0, ge=0)
    scheduled_date: Optional[datetime] = None
    vendor_name: Optional[str] = Field(None, max_length=200)
    invoice_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class MaintenanceUpdate(BaseModel):
    """Editable fields while the log is SCHEDULED or IN_PROGRESS."""
    type: Optional[MaintenanceType] = None
    priority: Optional[MaintenancePriority] = None
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    odometer_at_service_km: Optional[float] = Field(None, ge=0)
    labor_cost: Optional[float] = Field(None, ge=0)
    parts_cost: Optional[float] = Field(None, ge=0)
    scheduled_date: Optional[datetime] = None
    vendor_name: Optional[str] = Field(None, max_length=200)
    invoice_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class MaintenanceComplete(BaseModel):
    """Optional cost and vendor overwrite applied on completion."""
    labor_cost: Optional[float] = Field(None, ge=0)
    parts_cost: Optional[float] = Field(None, ge=0)
    vendor_name: Optional[str] = Field(None, max_length=200)
    invoice_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class MaintenanceExpenseCreate(BaseModel):
    category: ExpenseCategory = ExpenseCategory.MAINTENANCE
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., ge=0)
    incurred_at: Optional[datetime] = None
    receipt_url: Optional[str] = Field(None, max_length=1000)


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    type: MaintenanceType
    priority: MaintenancePriority
    status: MaintenanceStatus
    description: str
    odometer_at_service_km: Optional[float]
    labor_cost: float
    parts_cost: float
    scheduled_date: Optional[datetime]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    vendor_name: Optional[str]
    invoice_number: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MaintenanceListResponse(PageMeta):
    items: List[MaintenanceResponse]
