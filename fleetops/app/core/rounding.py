"""
Half-up rounding for reported figures.

Built-in round() sends exact halves to the even digit (10.125 -> 10.12);
reports round them away from zero (10.125 -> 10.13). The float's exact
binary value is what gets rounded.
"""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, places: int = 2) -> float:
    return float(Decimal(value).quantize(Decimal(10) ** -places, rounding=ROUND_HALF_UP))
