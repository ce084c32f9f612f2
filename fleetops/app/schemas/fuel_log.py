"""
Fuel log schemas.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from fleetops.app.models.fuel_enums import FuelType
from fleetops.app.schemas.common import PageMeta
from fleetops.app.schemas.expense import ExpenseResponse


class FuelLogCreate(BaseModel):
    """Schema for recording a fuel fill. A FUEL expense is created alongside."""
    vehicle_id: int
    driver_id: Optional[int] = None
    trip_id: Optional[int] = None
    fuel_type: FuelType
    liters: float = Field(..., gt=0)
    cost_per_liter: float = Field(..., gt=0)
    total_cost: float = Field(..., gt=0)
    odometer_at_fill_km: float = Field(..., ge=0)
    station_name: Optional[str] = Field(None, max_length=200)
    station_address: Optional[str] = Field(None, max_length=500)
    filled_at: Optional[datetime] = None

    class Config:
        str_strip_whitespace = True


class FuelLogUpdate(BaseModel):
    """Correction of a recorded fill."""
    driver_id: Optional[int] = None
    trip_id: Optional[int] = None
    fuel_type: Optional[FuelType] = None
    liters: Optional[float] = Field(None, gt=0)
    cost_per_liter: Optional[float] = Field(None, gt=0)
    total_cost: Optional[float] = Field(None, gt=0)
    odometer_at_fill_km: Optional[float] = Field(None, ge=0)
    station_name: Optional[str] = Field(None, max_length=200)
    station_address: Optional[str] = Field(None, max_length=500)
    filled_at: Optional[datetime] = None

    class Config:
        str_strip_whitespace = True


class FuelLogResponse(BaseModel):
    id: int
    vehicle_id: int
    driver_id: Optional[int]
    trip_id: Optional[int]
    fuel_type: FuelType
    liters: float
    cost_per_liter: float
    total_cost: float
    odometer_at_fill_km: float
    station_name: Optional[str]
    station_address: Optional[str]
    filled_at: datetime
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FuelLogListResponse(PageMeta):
    items: List[FuelLogResponse]


class FuelLogCreatedResponse(FuelLogResponse):
    """A new fill together with the FUEL expense recorded for it."""
    expense: ExpenseResponse
