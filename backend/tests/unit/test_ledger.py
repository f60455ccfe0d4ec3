"""Unit tests for the transaction ledger and price models"""
import random
import pytest
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.coin_store import CoinStore
from app.services.errors import NotFoundError, ValidationError
from app.services.ledger import TransactionLedger
from app.services.pricing import FixedStepPriceModel, RandomWalkPriceModel


class TestPriceModels:
    """Tests for price model strategies"""

    def test_random_walk_direction(self):
        model = RandomWalkPriceModel(rng=random.Random(7))
        current = Decimal("0.5")
        assert model.next_price(current, "buy") >= current
        assert model.next_price(current, "sell") <= current

    def test_random_walk_floors_at_zero(self):
        model = RandomWalkPriceModel(max_step=Decimal("1"), rng=random.Random(1))
        assert model.next_price(Decimal("0"), "sell") == Decimal("0")

    def test_fixed_step(self):
        model = FixedStepPriceModel(step=Decimal("0.001"))
        assert model.next_price(Decimal("0.001"), "buy") == Decimal("0.002")
        assert model.next_price(Decimal("0.0005"), "sell") == Decimal("0")


class TestTransactionLedger:
    """Tests for TransactionLedger"""

    @pytest.fixture
    def ledger(self, db_session: AsyncSession):
        return TransactionLedger(db_session, price_model=FixedStepPriceModel(step=Decimal("0.001")))

    @pytest.mark.asyncio
    async def test_buy_updates_stats(self, db_session: AsyncSession, ledger):
        store = CoinStore(db_session)
        coin = await store.create(name="Alpha", symbol="ALP")
        await store.update(coin.id, market_cap=100, holder_count=5)

        tx = await ledger.append("1", coin.id, "buy", "500", "10")

        assert tx.id is not None
        assert coin.market_cap == 110
        assert coin.holder_count == 6
        assert coin.volume_24h == "10.00"
        assert coin.price == "0.002000"
        assert coin.price_change_24h == "100.00"

    @pytest.mark.asyncio
    async def test_sell_at_zero_holders_floors(self, db_session: AsyncSession, ledger):
        store = CoinStore(db_session)
        coin = await store.create(name="Alpha", symbol="ALP")
        await store.update(coin.id, market_cap=100)

        await ledger.append("1", coin.id, "sell", "5", "3.9")

        assert coin.holder_count == 0
        # Market cap moves additively, truncating the fractional part
        assert coin.market_cap == 103

    @pytest.mark.asyncio
    async def test_market_cap_is_sum_of_truncated_amounts(self, db_session: AsyncSession, ledger):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        amounts = ["1.5", "2.9", "10", "0.4"]
        for i, amount in enumerate(amounts):
            await ledger.append("1", coin.id, "buy" if i % 2 == 0 else "sell", "1", amount)

        assert coin.market_cap == sum(int(Decimal(a)) for a in amounts)
        assert coin.holder_count == 0
        assert coin.volume_24h == "14.80"

    @pytest.mark.asyncio
    async def test_price_change_zero_when_price_zero(self, db_session: AsyncSession, ledger):
        store = CoinStore(db_session)
        coin = await store.create(name="Alpha", symbol="ALP")
        await store.update(coin.id, price="0")

        await ledger.append("1", coin.id, "buy", "1", "1")

        assert coin.price_change_24h == "0.00"

    @pytest.mark.asyncio
    async def test_missing_coin(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.append("1", 999, "buy", "1", "1")

    @pytest.mark.asyncio
    async def test_invalid_input(self, db_session: AsyncSession, ledger):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        with pytest.raises(ValidationError):
            await ledger.append("1", coin.id, "hold", "1", "1")
        with pytest.raises(ValidationError):
            await ledger.append("1", coin.id, "buy", "1", "lots")
        with pytest.raises(ValidationError):
            await ledger.append("1", coin.id, "buy", "1", "NaN")
        assert await ledger.list(coin.id) == []

    @pytest.mark.asyncio
    async def test_lists_newest_first(self, db_session: AsyncSession, ledger):
        coin = await CoinStore(db_session).create(name="Alpha", symbol="ALP")
        first = await ledger.append("7", coin.id, "buy", "1", "1")
        second = await ledger.append("7", coin.id, "sell", "1", "1")
        await ledger.append("8", coin.id, "buy", "1", "1")

        assert [t.id for t in await ledger.list(coin.id)][1:] == [second.id, first.id]
        assert [t.id for t in await ledger.list_by_user("7")] == [second.id, first.id]
