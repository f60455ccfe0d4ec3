"""Transaction ledger: append-only trades that drive coin market stats"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.coin import Coin, DEFAULT_PRICE
from app.models.transaction import Transaction, TransactionType
from app.services.coin_store import CoinStore
from app.services.errors import NotFoundError, ValidationError
from app.services.pricing import PriceModel, RandomWalkPriceModel

logger = structlog.get_logger()

TWO_PLACES = Decimal("0.01")
SIX_PLACES = Decimal("0.000001")


def _to_decimal(value: Optional[str], default: str = "0") -> Decimal:
    try:
        return Decimal(value if value not in (None, "") else default)
    except InvalidOperation:
        return Decimal(default)


class TransactionLedger:
    """Records buy/sell transactions and applies their effect to the coin.

    There is no rollback: once appended, a trade's effect on the coin stays.
    """

    def __init__(self, db: AsyncSession, price_model: Optional[PriceModel] = None):
        self.db = db
        self.coins = CoinStore(db)
        self.price_model = price_model or RandomWalkPriceModel()

    async def append(
        self,
        user_id: str,
        coin_id: int,
        tx_type: str,
        amount: str,
        sol_amount: str,
    ) -> Transaction:
        """
        Record a trade and update the coin's aggregate stats.

        Args:
            user_id: Trader (string-encoded user id)
            coin_id: Coin being traded
            tx_type: "buy" or "sell"
            amount: Token units, decimal string
            sol_amount: Settlement units, decimal string

        Returns:
            The created Transaction
        """
        if tx_type not in TransactionType.ALL:
            raise ValidationError(
                f"Invalid transaction type: {tx_type}",
                errors=[{"loc": ["type"], "msg": "must be buy or sell"}],
            )
        try:
            sol = Decimal(sol_amount)
            valid = sol.is_finite() and Decimal(amount).is_finite()
        except InvalidOperation:
            valid = False
        if not valid:
            raise ValidationError(
                "Amounts must be decimal strings",
                errors=[{"loc": ["amount", "sol_amount"], "msg": "not a decimal"}],
            )

        coin = await self.coins.get(coin_id)
        if coin is None:
            raise NotFoundError("Coin", coin_id)

        tx = Transaction(
            user_id=str(user_id),
            coin_id=coin_id,
            type=tx_type,
            amount=amount,
            sol_amount=sol_amount,
            created_at=datetime.utcnow(),
        )
        self.db.add(tx)
        await self.db.flush()

        self._apply(coin, tx_type, sol)
        coin.last_updated = tx.created_at
        await self.db.flush()

        logger.info(
            "Recorded transaction",
            tx_id=tx.id,
            tx_type=tx_type,
            coin_id=coin_id,
            sol_amount=sol_amount,
            market_cap=coin.market_cap,
        )
        return tx

    def _apply(self, coin: Coin, tx_type: str, sol: Decimal) -> None:
        """Fixed stat-update formula for one trade"""
        # int() truncates toward zero, matching integer parsing of the amount
        coin.market_cap = (coin.market_cap or 0) + int(sol)

        holders = coin.holder_count or 0
        if tx_type == TransactionType.BUY:
            holders += 1
        elif holders > 0:
            holders -= 1
        coin.holder_count = holders

        volume = _to_decimal(coin.volume_24h) + sol
        coin.volume_24h = str(volume.quantize(TWO_PLACES))

        current = _to_decimal(coin.price, DEFAULT_PRICE)
        new_price = Decimal(self.price_model.next_price(current, tx_type)).quantize(SIX_PLACES)
        coin.price = str(new_price)
        if current == 0:
            change = Decimal("0")
        else:
            change = (new_price - current) / current * 100
        coin.price_change_24h = str(change.quantize(TWO_PLACES))

    async def list(self, coin_id: int) -> List[Transaction]:
        """Transactions for a coin, newest first"""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.coin_id == coin_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        return list(result.scalars().all())

    async def list_by_user(self, user_id: str) -> List[Transaction]:
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == str(user_id))
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        return list(result.scalars().all())
