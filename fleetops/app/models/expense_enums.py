"""
Expense-related enumerations.
"""

import enum


class ExpenseCategory(str, enum.Enum):
    """Expense category enumeration."""
    FUEL = "FUEL"  # Created automatically from fuel logs
    MAINTENANCE = "MAINTENANCE"
    TOLL = "TOLL"
    INSURANCE = "INSURANCE"
    PARKING = "PARKING"
    FINE = "FINE"
    OTHER = "OTHER"
