"""Price estimation for new tasks."""

from __future__ import annotations

import random
from typing import Optional, Protocol


class PriceCalculator(Protocol):
    def calculate(self) -> float:
        ...


class RandomPriceCalculator:
    """Uniformly picks a price on a 0.1 grid inside ``[min_price, max_price]``."""

    def __init__(
        self,
        min_price: float = 5.0,
        max_price: float = 50.0,
        decimals: int = 1,
        rng: Optional[random.Random] = None,
    ) -> None:
        if min_price <= 0 or max_price < min_price:
            raise ValueError(f"Invalid price range [{min_price}, {max_price}]")
        self.min_price = min_price
        self.max_price = max_price
        self.decimals = decimals
        self._rng = rng or random.Random()

    def calculate(self) -> float:
        tenths = self._rng.randint(round(self.min_price * 10), round(self.max_price * 10))
        return round(tenths / 10, self.decimals)
