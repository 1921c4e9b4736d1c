"""
Default pricing — sum of item amounts plus one flat tax.

total = base + base x tax_rates.default
"""

from typing import Any, Dict, Tuple

from .base import BaseStrategy
from ..schemas import CalculationContext


class DefaultStrategy(BaseStrategy):
    type = "default"

    def aggregate(self, base_total: float,
                  context: CalculationContext) -> Tuple[float, Dict[str, Any]]:
        taxes = base_total * context.tax_rates.default
        return base_total + taxes, {"taxes": round(taxes, 2)}
