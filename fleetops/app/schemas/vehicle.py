"""
Vehicle Pydantic schemas.

Defines request and response models for the vehicle registry.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List

from fleetops.app.core.timeutils import utctoday
from fleetops.app.models.vehicle_enums import VehicleStatus, VehicleType
from fleetops.app.schemas.common import PageMeta


def _check_year(value: Optional[int]) -> Optional[int]:
    if value is None:
        return value
    upper = utctoday().year + 1
    if value < 1900 or value > upper:
        raise ValueError(f"year must be between 1900 and {upper}")
    return value


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    license_plate: str = Field(..., min_length=1, max_length=20, description="Unique licence plate")
    vehicle_type: VehicleType
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int
    vin: Optional[str] = Field(None, min_length=1, max_length=17, description="Unique VIN")
    max_load_kg: float = Field(..., gt=0, description="Maximum cargo weight in kg")
    acquisition_cost: float = Field(..., ge=0)
    acquisition_date: Optional[date] = None

    @field_validator("year")
    @classmethod
    def check_year(cls, value):
        return _check_year(value)

    class Config:
        str_strip_whitespace = True


class VehicleUpdate(BaseModel):
    """Schema for a partial vehicle update. Status changes follow the vehicle graph."""
    license_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    vehicle_type: Optional[VehicleType] = None
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = None
    vin: Optional[str] = Field(None, min_length=1, max_length=17)
    max_load_kg: Optional[float] = Field(None, gt=0)
    odometer_km: Optional[float] = Field(None, ge=0)
    acquisition_cost: Optional[float] = Field(None, ge=0)
    acquisition_date: Optional[date] = None
    status: Optional[VehicleStatus] = None

    @field_validator("year")
    @classmethod
    def check_year(cls, value):
        return _check_year(value)

    class Config:
        str_strip_whitespace = True


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    license_plate: str
    vehicle_type: VehicleType
    make: str
    model: str
    year: int
    vin: Optional[str]
    max_load_kg: float
    status: VehicleStatus
    odometer_km: float
    acquisition_cost: float
    acquisition_date: Optional[date]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(PageMeta):
    """Schema for paginated vehicle list."""
    items: List[VehicleResponse]
