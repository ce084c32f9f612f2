"""
Fuel-related enumerations.
"""

import enum


class FuelType(str, enum.Enum):
    DIESEL = "DIESEL"
    PETROL = "PETROL"
    CNG = "CNG"
    LPG = "LPG"
    ELECTRIC = "ELECTRIC"
