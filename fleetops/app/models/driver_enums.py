"""
Driver-related enumerations.
"""

import enum


class DriverStatus(str, enum.Enum):
    """Driver duty status enumeration."""
    ON_DUTY = "ON_DUTY"
    OFF_DUTY = "OFF_DUTY"
    SUSPENDED = "SUSPENDED"
    ON_TRIP = "ON_TRIP"  # Set only by trip dispatch
