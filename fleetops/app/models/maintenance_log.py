"""
Maintenance log database model.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.maintenance_enums import (
    MaintenanceStatus, MaintenanceType, MaintenancePriority
)


class MaintenanceLog(Base):
    """
    Maintenance log model.

    A vehicle is IN_SHOP while at least one of its logs is SCHEDULED or
    IN_PROGRESS.
    """
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    type = Column(Enum(MaintenanceType), nullable=False, index=True)
    priority = Column(Enum(MaintenancePriority), default=MaintenancePriority.MEDIUM, nullable=False)
    status = Column(Enum(MaintenanceStatus), default=MaintenanceStatus.SCHEDULED, nullable=False, index=True)

    description = Column(String(1000), nullable=False)
    odometer_at_service_km = Column(Float, nullable=True)

    # Costs
    labor_cost = Column(Float, default=0.0, nullable=False)
    parts_cost = Column(Float, default=0.0, nullable=False)

    # Timeline
    scheduled_date = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    vendor_name = Column(String(200), nullable=True)
    invoice_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<MaintenanceLog(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
