"""
Driver Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import date, datetime
from typing import Optional, List

from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.vehicle_enums import VehicleType
from fleetops.app.schemas.common import PageMeta


class DriverCreate(BaseModel):
    """Schema for registering a driver. Status starts at OFF_DUTY."""
    employee_id: str = Field(..., min_length=1, max_length=30)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    license_number: str = Field(..., min_length=1, max_length=50)
    license_category: VehicleType
    license_expiry_date: date
    hire_date: Optional[date] = None
    safety_score: float = Field(100.0, ge=0, le=100)

    class Config:
        str_strip_whitespace = True


class DriverUpdate(BaseModel):
    """Partial driver update. Duty status changes follow the driver graph."""
    employee_id: Optional[str] = Field(None, min_length=1, max_length=30)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    license_number: Optional[str] = Field(None, min_length=1, max_length=50)
    license_category: Optional[VehicleType] = None
    license_expiry_date: Optional[date] = None
    hire_date: Optional[date] = None
    safety_score: Optional[float] = Field(None, ge=0, le=100)
    status: Optional[DriverStatus] = None

    class Config:
        str_strip_whitespace = True


class DriverResponse(BaseModel):
    """Schema for driver response."""
    id: int
    employee_id: str
    first_name: str
    last_name: str
    phone: str
    email: Optional[str]
    license_number: str
    license_category: VehicleType
    license_expiry_date: date
    hire_date: Optional[date]
    safety_score: float
    status: DriverStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DriverListResponse(PageMeta):
    items: List[DriverResponse]


class DriverAssignability(BaseModel):
    """Result of the trip-assignment eligibility check."""
    driver_id: int
    assignable: bool
    reasons: List[str] = []
