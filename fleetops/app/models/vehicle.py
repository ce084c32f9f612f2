"""
Vehicle database model.

Vehicles are registered by managers and never deleted; RETIRED is terminal.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.vehicle_enums import VehicleStatus, VehicleType


class Vehicle(Base):
    """
    Vehicle model.

    `status` is owned by the trip and maintenance lifecycles; `odometer_km`
    only ever moves forward.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    license_plate = Column(String(20), unique=True, nullable=False, index=True)
    vehicle_type = Column(Enum(VehicleType), nullable=False, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    vin = Column(String(17), unique=True, nullable=True)

    # Capacity
    max_load_kg = Column(Float, nullable=False)

    # Status and usage
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)
    odometer_km = Column(Float, default=0.0, nullable=False)

    # Acquisition (for ROI)
    acquisition_cost = Column(Float, default=0.0, nullable=False)
    acquisition_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
