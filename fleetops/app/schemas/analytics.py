"""
Analytics Schemas.

Read-only dashboard metrics derived from current entity state.
"""

from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date

from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.models.vehicle_enums import VehicleType


class FleetUtilization(BaseModel):
    """Vehicle counts by status. utilization_rate = ON_TRIP / active fleet x 100."""
    total: int
    available: int
    on_trip: int
    in_shop: int
    retired: int
    active_fleet: int
    utilization_rate: float


class FuelEfficiency(BaseModel):
    """Per-vehicle efficiency from consecutive fills."""
    vehicle_id: int
    fill_count: int
    segments: int
    total_km: float
    total_liters: float
    total_fuel_cost: float
    km_per_liter: Optional[float]
    fuel_cost_per_km: Optional[float]


class VehicleCostPerKm(BaseModel):
    vehicle_id: int
    license_plate: Optional[str]
    odometer_km: float
    total_expenses: float
    expense_count: int
    cost_per_km: Optional[float]


class VehicleROI(BaseModel):
    vehicle_id: int
    license_plate: str
    vehicle_type: VehicleType
    acquisition_cost: float
    acquisition_date: Optional[date]
    operational_expenses: float
    total_cost: float
    odometer_km: float
    completed_trips: int
    total_distance_km: float
    cost_per_km: Optional[float]


class CategoryAmount(BaseModel):
    category: ExpenseCategory
    amount: float


class MonthlyExpenses(BaseModel):
    month: str  # YYYY-MM
    total: float
    categories: List[CategoryAmount]


class MonthlyExpenseBreakdown(BaseModel):
    year: int
    months: List[MonthlyExpenses]


class CompletedTripStats(BaseModel):
    count: int
    total_distance_km: float
    avg_distance_km: Optional[float]


class TripAnalytics(BaseModel):
    total_trips: int
    status_counts: Dict[str, int]
    completed: CompletedTripStats
    completion_rate: float
