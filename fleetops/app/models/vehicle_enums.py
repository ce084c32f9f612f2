"""
Vehicle-related enumerations.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    AVAILABLE = "AVAILABLE"  # Ready to be assigned
    ON_TRIP = "ON_TRIP"  # Held by a dispatched trip
    IN_SHOP = "IN_SHOP"  # At least one active maintenance log
    RETIRED = "RETIRED"  # Terminal, never deleted


class VehicleType(str, enum.Enum):
    """Vehicle type enumeration. Also used as the driver licence category."""
    TRUCK = "TRUCK"
    VAN = "VAN"
    BIKE = "BIKE"
