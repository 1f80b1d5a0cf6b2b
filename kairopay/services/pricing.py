"""Conversion of submitted on-chain amounts into USD."""

from decimal import Decimal
from typing import Protocol


class PriceOracle(Protocol):
    def convert(self, asset: str, amount: Decimal) -> Decimal:
        """Return the USD value of ``amount`` units of ``asset``."""
        ...


class PassThroughPriceOracle:
    """Treats every asset as worth one dollar per unit.

    Correct for USD stablecoins only; no price feed is wired in yet.
    """

    def convert(self, asset: str, amount: Decimal) -> Decimal:
        return Decimal(amount)


default_price_oracle = PassThroughPriceOracle()
