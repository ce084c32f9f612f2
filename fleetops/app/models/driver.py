"""
Driver database model.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.vehicle_enums import VehicleType


class Driver(Base):
    """
    Driver model.

    Drivers are assignable to trips while ON_DUTY or OFF_DUTY with a licence
    that has not expired.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    employee_id = Column(String(30), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=True)

    # Licence
    license_number = Column(String(50), unique=True, nullable=False)
    license_category = Column(Enum(VehicleType), nullable=False)
    license_expiry_date = Column(Date, nullable=False)

    safety_score = Column(Float, default=100.0, nullable=False)
    status = Column(Enum(DriverStatus), default=DriverStatus.OFF_DUTY, nullable=False, index=True)
    hire_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Driver(id={self.id}, employee_id='{self.employee_id}', status='{self.status.value}')>"
