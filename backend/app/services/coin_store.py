"""Coin record store: persistence, lookup and ranking of coins"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.coin import Coin, DEFAULT_PRICE
from app.services.errors import DuplicateSymbolError

logger = structlog.get_logger()
settings = get_settings()

# Fields callers may shallow-merge through update(); "metadata" maps to the JSON bag
UPDATABLE_FIELDS = {
    "name", "description", "image", "tags", "created_by",
    "market_cap", "holder_count", "previous_holder_count",
    "price", "price_change_24h", "volume_24h", "reply_count",
    "is_migrated", "is_trending", "is_withdrawn", "withdrawn_at",
    "metadata",
}


class CoinStore:
    """Authoritative local store of coins.

    Coins are never deleted; withdrawal hides them from the public listings.
    Symbol uniqueness is enforced here (and by the column constraint) rather
    than left to callers.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _set_metadata(coin: Coin, metadata: Optional[Dict[str, Any]]) -> None:
        """Replace the metadata bag and mirror its linkage keys into columns"""
        if metadata is None:
            coin.token_metadata = None
            coin.registry_address = None
            coin.job_id = None
            return
        # Always assign a fresh dict so the JSON column is flagged dirty
        coin.token_metadata = dict(metadata)
        coin.registry_address = metadata.get("address") or None
        job_id = metadata.get("jobId")
        coin.job_id = str(job_id) if job_id else None

    async def create(
        self,
        name: str,
        symbol: str,
        description: str = "",
        image: str = "",
        tags: Optional[Iterable[str]] = None,
        created_by: str = "Unknown",
        is_migrated: bool = False,
        is_trending: bool = False,
        price: str = DEFAULT_PRICE,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Coin:
        """Create a coin with zeroed market stats at the given starting price"""
        if await self.get_by_symbol(symbol) is not None:
            raise DuplicateSymbolError(symbol)

        now = datetime.utcnow()
        coin = Coin(
            name=name,
            symbol=symbol,
            description=description,
            image=image,
            tags=list(tags) if tags is not None else [],
            created_by=created_by,
            market_cap=0,
            holder_count=0,
            previous_holder_count=0,
            price=price,
            price_change_24h="0",
            volume_24h="0",
            reply_count=0,
            is_migrated=is_migrated,
            is_trending=is_trending,
            is_withdrawn=False,
            withdrawn_at=None,
            created_at=now,
            last_updated=now,
        )
        self._set_metadata(coin, metadata)
        self.db.add(coin)
        await self.db.flush()

        logger.info("Created coin", coin_id=coin.id, symbol=symbol)
        return coin

    async def get(self, coin_id: int) -> Optional[Coin]:
        return await self.db.get(Coin, coin_id)

    async def get_by_symbol(self, symbol: str) -> Optional[Coin]:
        """Exact, case-sensitive symbol match"""
        result = await self.db.execute(
            select(Coin).where(Coin.symbol == symbol).order_by(Coin.id).limit(1)
        )
        return result.scalars().first()

    async def get_by_address(self, address: str) -> Optional[Coin]:
        """Find the coin linked to a registry token address"""
        if not address:
            return None
        result = await self.db.execute(
            select(Coin).where(Coin.registry_address == address).order_by(Coin.id).limit(1)
        )
        return result.scalars().first()

    async def get_by_job_id(self, job_id: str) -> Optional[Coin]:
        """Find the placeholder for a creation job; first match wins"""
        if not job_id:
            return None
        result = await self.db.execute(
            select(Coin).where(Coin.job_id == str(job_id)).order_by(Coin.id).limit(1)
        )
        return result.scalars().first()

    async def list(self, include_withdrawn: bool = False) -> List[Coin]:
        query = select(Coin)
        if not include_withdrawn:
            query = query.where(Coin.is_withdrawn.is_(False))
        result = await self.db.execute(query.order_by(Coin.id))
        return list(result.scalars().all())

    async def list_trending(self, limit: Optional[int] = None) -> List[Coin]:
        """Rank by holder growth since the last snapshot.

        sorted() is stable, so equal growth keeps insertion (id) order.
        """
        if limit is None:
            limit = settings.trending_limit
        coins = await self.list()
        ranked = sorted(coins, key=lambda c: c.holder_growth, reverse=True)
        return ranked[:limit]

    async def list_by_tag(self, tag: str, include_withdrawn: bool = False) -> List[Coin]:
        coins = await self.list(include_withdrawn=include_withdrawn)
        tagged = [c for c in coins if tag in (c.tags or [])]
        return sorted(tagged, key=lambda c: c.market_cap or 0, reverse=True)

    async def search(self, query: str, include_withdrawn: bool = False) -> List[Coin]:
        """Case-insensitive substring match on name, symbol or description"""
        needle = (query or "").lower()
        coins = await self.list(include_withdrawn=include_withdrawn)
        return [
            c for c in coins
            if needle in (c.name or "").lower()
            or needle in (c.symbol or "").lower()
            or needle in (c.description or "").lower()
        ]

    async def list_by_creator(self, created_by: str) -> List[Coin]:
        coins = await self.list()
        return [c for c in coins if c.created_by == created_by]

    async def list_by_ids(self, ids: Iterable[Any]) -> List[Coin]:
        """Resolve a set of string-encoded ids, skipping unknown and withdrawn coins"""
        numeric = [int(i) for i in ids if str(i).isdigit()]
        if not numeric:
            return []
        result = await self.db.execute(
            select(Coin)
            .where(Coin.id.in_(numeric))
            .where(Coin.is_withdrawn.is_(False))
            .order_by(Coin.id)
        )
        return list(result.scalars().all())

    async def update(self, coin_id: int, **fields: Any) -> Optional[Coin]:
        """Shallow-merge the given fields into a coin"""
        coin = await self.get(coin_id)
        if coin is None:
            return None

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update coin fields: {sorted(unknown)}")

        for key, value in fields.items():
            if key == "metadata":
                self._set_metadata(coin, value)
            else:
                setattr(coin, key, value)
        coin.last_updated = datetime.utcnow()
        await self.db.flush()
        return coin

    async def withdraw(self, coin_id: int) -> Optional[Coin]:
        """Hide a coin from listings. Re-withdrawing re-stamps withdrawn_at."""
        coin = await self.get(coin_id)
        if coin is None:
            return None
        coin.is_withdrawn = True
        coin.withdrawn_at = datetime.utcnow()
        await self.db.flush()
        logger.info("Withdrew coin", coin_id=coin.id, symbol=coin.symbol)
        return coin

    async def latest_created(self) -> Optional[Coin]:
        result = await self.db.execute(
            select(Coin)
            .where(Coin.is_withdrawn.is_(False))
            .order_by(Coin.created_at.desc(), Coin.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def latest_withdrawn(self) -> Optional[Coin]:
        result = await self.db.execute(
            select(Coin)
            .where(Coin.is_withdrawn.is_(True))
            .where(Coin.withdrawn_at.is_not(None))
            .order_by(Coin.withdrawn_at.desc(), Coin.id.desc())
            .limit(1)
        )
        return result.scalars().first()
