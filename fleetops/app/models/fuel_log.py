"""
Fuel log database model.

Every fuel log owns exactly one FUEL expense (see Expense.fuel_log_id).
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.fuel_enums import FuelType


class FuelLog(Base):
    """Fuel log model."""
    __tablename__ = "fuel_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=True, index=True)

    fuel_type = Column(Enum(FuelType), nullable=False)
    liters = Column(Float, nullable=False)
    cost_per_liter = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False)
    odometer_at_fill_km = Column(Float, nullable=False)

    station_name = Column(String(200), nullable=True)
    station_address = Column(String(500), nullable=True)

    filled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<FuelLog(id={self.id}, vehicle_id={self.vehicle_id}, liters={self.liters})>"
