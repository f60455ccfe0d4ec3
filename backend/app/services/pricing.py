"""Price models used by the transaction ledger"""
import random
from decimal import Decimal
from typing import Optional, Protocol

from app.models.transaction import TransactionType


class PriceModel(Protocol):
    """Strategy that moves a coin's price after a trade"""

    def next_price(self, current: Decimal, trade_type: str) -> Decimal:
        ...


class RandomWalkPriceModel:
    """Demo price movement: a random step up on buys, down on sells.

    The step is not derived from trade size. Prices never go below zero.
    """

    def __init__(self, max_step: Decimal = Decimal("0.001"), rng: Optional[random.Random] = None):
        self.max_step = Decimal(max_step)
        self.rng = rng or random.Random()

    def next_price(self, current: Decimal, trade_type: str) -> Decimal:
        step = (Decimal(str(self.rng.random())) * self.max_step).quantize(Decimal("0.000001"))
        if trade_type == TransactionType.SELL:
            step = -step
        return max(current + step, Decimal("0"))


class FixedStepPriceModel:
    """Deterministic model, useful where reproducible prices are needed"""

    def __init__(self, step: Decimal = Decimal("0.0005")):
        self.step = Decimal(step)

    def next_price(self, current: Decimal, trade_type: str) -> Decimal:
        if trade_type == TransactionType.SELL:
            return max(current - self.step, Decimal("0"))
        return current + self.step
