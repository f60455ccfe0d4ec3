"""Reconciliation of Metal registry tokens with local coin records.

The registry creates tokens asynchronously and has no push mechanism, so the
local store is brought in line on each client poll:

- sync_all: full listing of the merchant's tokens (upsert by symbol, then by
  address)
- poll_job: status of one creation job (resolve or fail its placeholder)
- submit_creation: create a token and record a placeholder coin for it

All three are idempotent. Enrichment failures are logged and skipped so a bad
token never blocks the rest of the batch or the caller's request.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.coin import Coin
from app.services.coin_store import CoinStore
from app.services.errors import RegistryUnavailableError, ServiceError, ValidationError
from app.services.metal_client import MetalClient

logger = structlog.get_logger()
settings = get_settings()

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

DEFAULT_FAILURE_REASON = "Token creation failed"

# Placeholders carry no market data until the registry reports it
PLACEHOLDER_PRICE = "0"


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _to_int(value: Any, fallback: int) -> int:
    if value is None:
        return fallback
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return fallback


def registry_metadata(token: Dict[str, Any]) -> Dict[str, Any]:
    """Extract the linkage/supply fields kept in a coin's metadata bag.

    The registry's newer "app supply" names win over the legacy "reward
    supply" names when both are present.
    """
    return {
        "address": token.get("address"),
        "name": token.get("name"),
        "symbol": token.get("symbol"),
        "merchantAddress": token.get("merchantAddress"),
        "totalSupply": token.get("totalSupply"),
        "merchantSupply": token.get("merchantSupply"),
        "remainingRewardSupply": _first_present(
            token.get("remainingAppSupply"), token.get("remainingRewardSupply")
        ),
        "startingRewardSupply": _first_present(
            token.get("startingAppSupply"), token.get("startingRewardSupply")
        ),
        "price": token.get("price"),
    }


def merge_metadata(existing: Optional[Dict[str, Any]], token: Dict[str, Any]) -> Dict[str, Any]:
    """Merge registry fields into an existing bag, keeping local-only keys.

    Once an address is known the coin is no longer pending or failed.
    """
    merged = dict(existing or {})
    merged.update({k: v for k, v in registry_metadata(token).items() if v is not None})
    if merged.get("address"):
        if "pendingTokenCreation" in merged:
            merged["pendingTokenCreation"] = False
        merged.pop("creationFailed", None)
        merged.pop("failureReason", None)
    return merged


def job_address(status_payload: Dict[str, Any]) -> Optional[str]:
    token = status_payload.get("token") or {}
    return token.get("address") or status_payload.get("address")


class TokenReconciler:
    """Keeps local coins consistent with the Metal registry"""

    def __init__(self, db: AsyncSession, registry: MetalClient, default_image: Optional[str] = None):
        self.db = db
        self.registry = registry
        self.coins = CoinStore(db)
        self.default_image = default_image or settings.default_coin_image

    async def apply_token_details(self, coin: Coin, token: Dict[str, Any]) -> Coin:
        """Refresh a coin's stats and metadata from full registry token details.

        previous_holder_count takes the pre-update holder count so trending
        reflects one step of growth.
        """
        price = token.get("price")
        return await self.coins.update(
            coin.id,
            price=str(price) if price is not None else "0",
            market_cap=_to_int(token.get("marketCap"), coin.market_cap or 0),
            holder_count=_to_int(token.get("holders"), coin.holder_count or 0),
            previous_holder_count=coin.holder_count or 0,
            metadata=merge_metadata(coin.token_metadata, token),
        )

    async def find_match(self, token: Dict[str, Any]) -> Optional[Coin]:
        """Match by exact symbol, then by registry address.

        A symbol match already linked to a different address is a different
        token and does not count. If the symbol match and the address holder
        are different coins, the address holder wins.
        """
        address = token.get("address")
        by_address = await self.coins.get_by_address(address) if address else None

        symbol = token.get("symbol")
        by_symbol = await self.coins.get_by_symbol(symbol) if symbol else None
        if by_symbol is not None and by_symbol.registry_address and by_symbol.registry_address != address:
            by_symbol = None

        if by_address is not None:
            return by_address
        return by_symbol

    async def upsert_token(self, token: Dict[str, Any]) -> str:
        """Update the matching coin or create one. Returns "updated" or "created"."""
        existing = await self.find_match(token)
        if existing is not None:
            await self.apply_token_details(existing, token)
            logger.info("Updated coin for Metal token", symbol=token.get("symbol"), coin_id=existing.id)
            return "updated"

        if not token.get("symbol"):
            raise ValidationError("Metal token has no symbol", errors=[{"loc": ["symbol"], "msg": "missing"}])

        name = token.get("name") or token.get("symbol")
        coin = await self.coins.create(
            name=name,
            symbol=token.get("symbol"),
            description=f"{name} - A Metal token created on metal.fun",
            image=self.default_image,
            tags=["metal"],
            created_by=token.get("ownerAddress") or token.get("merchantAddress") or "Unknown",
            is_migrated=True,
        )
        await self.apply_token_details(coin, token)
        volume = token.get("volume24h")
        if volume is not None:
            await self.coins.update(coin.id, volume_24h=str(volume))
        logger.info("Created coin for Metal token", symbol=coin.symbol, coin_id=coin.id)
        return "created"

    async def sync_all(self) -> Tuple[Dict[str, Any], Dict[str, int]]:
        """
        Reconcile every completed registry token with the local store.

        Returns:
            (registry payload with completed tokens enriched by their details, stats)

        Raises:
            RegistryUnavailableError: the listing call itself failed
        """
        stats = {
            "found": 0,
            "created": 0,
            "updated": 0,
            "skipped": 0,
            "errors": 0,
        }

        payload = await self.registry.list_tokens()
        tokens = payload.get("tokens") or []
        logger.info("Syncing tokens from Metal", count=len(tokens))

        for index, token in enumerate(tokens):
            address = token.get("address")
            # Pending and failed jobs surface through poll_job only
            if token.get("status") != STATUS_COMPLETED or not address:
                continue
            stats["found"] += 1

            try:
                details = await self.registry.get_token(address)
            except RegistryUnavailableError as e:
                stats["errors"] += 1
                logger.warning("Failed to fetch token details", token_id=token.get("id"), error=str(e))
                continue

            complete = {**token, **details}
            complete["address"] = details.get("address") or address
            tokens[index] = complete

            try:
                # One savepoint per token: a conflicting write (e.g. another
                # poll created the same coin first) only undoes this token
                async with self.db.begin_nested():
                    outcome = await self.upsert_token(complete)
            except (ServiceError, IntegrityError) as e:
                stats["skipped"] += 1
                logger.warning("Skipped Metal token", symbol=complete.get("symbol"), error=str(e))
                continue
            stats[outcome] += 1

        logger.info("Token sync completed", **stats)
        return payload, stats

    async def poll_job(self, job_id: str) -> Tuple[Dict[str, Any], str]:
        """
        Check a creation job and settle its placeholder coin.

        Returns:
            (registry status payload, outcome) where outcome is one of
            "unmatched", "pending", "resolved", "resolved_partial", "merged",
            "failed", "ignored"

        Raises:
            RegistryUnavailableError: the status call itself failed
        """
        data = await self.registry.get_job_status(job_id)
        status = data.get("status")

        coin = await self.coins.get_by_job_id(job_id)
        if coin is None or not status:
            return data, "unmatched"

        if status == STATUS_COMPLETED:
            address = job_address(data)
            if not address:
                return data, "pending"
            return data, await self._resolve_placeholder(coin, address)

        if status == STATUS_FAILED:
            return data, await self._fail_placeholder(coin, data.get("error") or data.get("message"))

        return data, "pending"

    async def _resolve_placeholder(self, coin: Coin, address: str) -> str:
        holder = await self.coins.get_by_address(address)
        if holder is not None and holder.id != coin.id:
            # A full sync already created a coin for this address
            metadata = dict(coin.token_metadata or {})
            metadata["pendingTokenCreation"] = False
            metadata["mergedIntoCoinId"] = holder.id
            await self.coins.update(coin.id, metadata=metadata)
            await self.coins.withdraw(coin.id)
            logger.info("Merged placeholder into existing coin", coin_id=coin.id, into=holder.id, address=address)
            return "merged"

        # Phase 1: link the address
        metadata = dict(coin.token_metadata or {})
        metadata.update({"address": address, "pendingTokenCreation": False})
        metadata.pop("creationFailed", None)
        metadata.pop("failureReason", None)
        await self.coins.update(coin.id, metadata=metadata)
        logger.info("Linked placeholder to Metal token", coin_id=coin.id, job_id=coin.job_id, address=address)

        # Phase 2: best-effort stats refresh; a later full sync repairs a miss
        try:
            details = await self.registry.get_token(address)
        except RegistryUnavailableError as e:
            logger.warning("Token details unavailable, coin left partially resolved", coin_id=coin.id, error=str(e))
            return "resolved_partial"

        await self.apply_token_details(coin, {**details, "address": details.get("address") or address})
        return "resolved"

    async def _fail_placeholder(self, coin: Coin, reason: Optional[str]) -> str:
        metadata = dict(coin.token_metadata or {})
        if metadata.get("address"):
            return "ignored"
        metadata.update({
            "pendingTokenCreation": False,
            "creationFailed": True,
            "failureReason": reason or DEFAULT_FAILURE_REASON,
        })
        await self.coins.update(coin.id, metadata=metadata)
        logger.info("Marked placeholder as failed", coin_id=coin.id, job_id=coin.job_id)
        return "failed"

    async def submit_creation(
        self,
        name: str,
        symbol: str,
        merchant_address: str,
        can_distribute: bool = True,
        can_lp: bool = True,
    ) -> Dict[str, Any]:
        """
        Submit a token to the registry and record a placeholder coin.

        Returns the registry's raw response. Registry failures propagate;
        placeholder failures are only logged.
        """
        data = await self.registry.create_token(
            name=name,
            symbol=symbol,
            merchant_address=merchant_address,
            can_distribute=can_distribute,
            can_lp=can_lp,
        )

        try:
            async with self.db.begin_nested():
                await self._create_placeholder(name, symbol, merchant_address, data)
        except Exception as e:
            # Placeholder bookkeeping never fails the creation request; the
            # savepoint confines the failed write so the session stays usable
            logger.error("Error creating placeholder coin", symbol=symbol, error=str(e))

        return data

    async def _create_placeholder(
        self,
        name: str,
        symbol: str,
        merchant_address: str,
        data: Dict[str, Any],
    ) -> Optional[Coin]:
        """Record a zero-priced coin for a submitted job, unless the symbol is taken"""
        if await self.coins.get_by_symbol(symbol) is not None:
            return None

        metadata = {
            "name": name,
            "symbol": symbol,
            "merchantAddress": merchant_address,
            "pendingTokenCreation": True,
            "jobId": data.get("jobId") or data.get("id"),
        }
        address = data.get("address")
        if (
            address
            and data.get("status") == STATUS_COMPLETED
            and await self.coins.get_by_address(address) is None
        ):
            metadata["address"] = address
            metadata["pendingTokenCreation"] = False

        coin = await self.coins.create(
            name=name,
            symbol=symbol,
            description=f"{name} - A Metal token created on metal.fun",
            image=self.default_image,
            tags=["metal"],
            created_by=merchant_address or "Unknown",
            is_migrated=False,
            price=PLACEHOLDER_PRICE,
            metadata=metadata,
        )
        logger.info("Created placeholder coin", symbol=symbol, job_id=metadata["jobId"])
        return coin
