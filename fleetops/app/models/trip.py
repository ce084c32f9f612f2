"""
Trip database model.

A trip binds one vehicle and one driver from creation; both are reserved
(ON_TRIP) only between dispatch and completion or cancellation.
"""

from sqlalchemy import Column, Integer, String, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.trip_enums import TripStatus


class Trip(Base):
    """Trip model."""
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # TRP-YYYYMMDD-NNNN, daily UTC sequence
    trip_number = Column(String(20), unique=True, nullable=False, index=True)
    status = Column(Enum(TripStatus), default=TripStatus.DRAFT, nullable=False, index=True)

    # Fixed at creation
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    # Route
    origin_address = Column(String(500), nullable=False)
    origin_lat = Column(Float, nullable=True)
    origin_lng = Column(Float, nullable=True)
    destination_address = Column(String(500), nullable=False)
    destination_lat = Column(Float, nullable=True)
    destination_lng = Column(Float, nullable=True)
    distance_km = Column(Float, nullable=True)

    # Cargo
    cargo_description = Column(String(500), nullable=True)
    cargo_weight_kg = Column(Float, nullable=False)

    # Odometer snapshot (start at dispatch, end at completion)
    odometer_start_km = Column(Float, nullable=True)
    odometer_end_km = Column(Float, nullable=True)

    # Timeline
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Actors
    created_by_id = Column(Integer, ForeignKey('users.id'), nullable=True)
    dispatched_by_id = Column(Integer, ForeignKey('users.id'), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, number='{self.trip_number}', status='{self.status.value}')>"
