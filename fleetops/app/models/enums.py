"""
User roles enumeration.

Defines the role types for the fleet operations system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        MANAGER: Full control over fleet registry, trips and maintenance
        DISPATCHER: Creates and runs trips, records fuel fills
        SAFETY_OFFICER: Manages driver duty status and safety scores
        FINANCE_ANALYST: Read access to expenses and analytics
    """
    MANAGER = "MANAGER"
    DISPATCHER = "DISPATCHER"
    SAFETY_OFFICER = "SAFETY_OFFICER"
    FINANCE_ANALYST = "FINANCE_ANALYST"
