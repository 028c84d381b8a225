"""Cost estimation."""

from .calculator import (
    CostCalculator,
    PriceRange,
    clamp_price,
    estimate_cost,
    DEFAULT_PRICE_RANGE,
    DEFAULT_PRICE_PER_SQUARE,
)

__all__ = [
    "CostCalculator",
    "PriceRange",
    "clamp_price",
    "estimate_cost",
    "DEFAULT_PRICE_RANGE",
    "DEFAULT_PRICE_PER_SQUARE",
]
