"""
Cost Calculator - turn roof area into an installed cost.

Roofing is priced per square (100 sq ft):

    total_squares = area_sq_ft / 100
    total_cost    = total_squares * price_per_square

Pure and synchronous; the price is kept inside the slider bounds.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.models import SQ_FT_PER_SQUARE, CostEstimate

DEFAULT_PRICE_PER_SQUARE = 425
MIN_PRICE_PER_SQUARE = 350
MAX_PRICE_PER_SQUARE = 5000
PRICE_STEP = 5


@dataclass(frozen=True)
class PriceRange:
    """Slider bounds for the price per square (USD)."""
    minimum: float = MIN_PRICE_PER_SQUARE
    maximum: float = MAX_PRICE_PER_SQUARE
    step: float = PRICE_STEP
    default: float = DEFAULT_PRICE_PER_SQUARE

    def clamp(self, price: float) -> float:
        """Keep a price inside [minimum, maximum]."""
        return min(max(price, self.minimum), self.maximum)

    def snap(self, price: float) -> float:
        """Clamp and round to the nearest slider step."""
        clamped = self.clamp(price)
        steps = round((clamped - self.minimum) / self.step)
        return self.clamp(self.minimum + steps * self.step)


DEFAULT_PRICE_RANGE = PriceRange()


class CostCalculator:
    """
    Calculate roof replacement cost.

    Usage:
        calculator = CostCalculator()
        estimate = calculator.estimate(area_sq_ft=1000, price_per_square=425)
        estimate.total_cost  # 4250.0
    """

    def __init__(self, price_range: Optional[PriceRange] = None):
        self.price_range = price_range or DEFAULT_PRICE_RANGE

    def estimate(self, area_sq_ft: float, price_per_square: float) -> CostEstimate:
        price = self.price_range.clamp(price_per_square)
        total_squares = area_sq_ft / SQ_FT_PER_SQUARE
        return CostEstimate(
            area_sq_ft=area_sq_ft,
            price_per_square=price,
            total_squares=total_squares,
            total_cost=total_squares * price,
        )


def estimate_cost(area_sq_ft: float, price_per_square: float = DEFAULT_PRICE_PER_SQUARE) -> CostEstimate:
    """Convenience wrapper using the default price range."""
    return CostCalculator().estimate(area_sq_ft, price_per_square)


def clamp_price(price_per_square: float, price_range: Optional[PriceRange] = None) -> float:
    """Bound a price to the slider range and snap it to the slider step."""
    return (price_range or DEFAULT_PRICE_RANGE).snap(price_per_square)
