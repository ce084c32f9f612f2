"""
Trip schemas.

Schemas for trip creation, lifecycle actions and visibility.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from fleetops.app.models.trip_enums import TripStatus
from fleetops.app.schemas.common import PageMeta


class TripCreate(BaseModel):
    """Schema for creating a DRAFT trip."""
    vehicle_id: int
    driver_id: int
    origin_address: str = Field(..., min_length=1, max_length=500)
    origin_lat: Optional[float] = Field(None, ge=-90, le=90)
    origin_lng: Optional[float] = Field(None, ge=-180, le=180)
    destination_address: str = Field(..., min_length=1, max_length=500)
    destination_lat: Optional[float] = Field(None, ge=-90, le=90)
    destination_lng: Optional[float] = Field(None, ge=-180, le=180)
    distance_km: Optional[float] = Field(None, ge=0)
    cargo_description: Optional[str] = Field(None, max_length=500)
    cargo_weight_kg: float = Field(..., ge=0)
    scheduled_at: datetime
    notes: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class TripComplete(BaseModel):
    """Completion payload: the end odometer reading is mandatory."""
    odometer_end_km: float = Field(..., ge=0)
    distance_km: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class TripCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    trip_number: str
    status: TripStatus
    vehicle_id: int
    driver_id: int
    origin_address: str
    origin_lat: Optional[float]
    origin_lng: Optional[float]
    destination_address: str
    destination_lat: Optional[float]
    destination_lng: Optional[float]
    distance_km: Optional[float]
    cargo_description: Optional[str]
    cargo_weight_kg: float
    odometer_start_km: Optional[float]
    odometer_end_km: Optional[float]
    scheduled_at: datetime
    dispatched_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_by_id: Optional[int]
    dispatched_by_id: Optional[int]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TripListResponse(PageMeta):
    """Schema for paginated trip list."""
    items: List[TripResponse]
