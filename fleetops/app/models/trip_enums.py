"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "DRAFT"  # Created, nothing reserved yet
    DISPATCHED = "DISPATCHED"  # Vehicle and driver are ON_TRIP
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
