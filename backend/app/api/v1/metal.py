"""Metal registry proxy endpoints.

Token listing and job-status calls double as reconciliation triggers: the
registry has no push channel, so each client poll brings local coins in line.
"""
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.api.deps import get_optional_user, get_registry
from app.models.database import get_db
from app.models.user import User
from app.schemas.metal import (
    CreateTokenRequest,
    CreateLiquidityRequest,
    DistributeRequest,
    MetalTokensResponse,
    SyncStats,
)
from app.services.metal_client import MetalClient
from app.services.reconciliation import TokenReconciler
from app.services.users import UserDirectory

logger = structlog.get_logger()
router = APIRouter()


@router.get("/tokens", response_model=MetalTokensResponse)
async def list_metal_tokens(
    db: AsyncSession = Depends(get_db),
    registry: MetalClient = Depends(get_registry),
):
    """List the merchant's registry tokens and reconcile completed ones"""
    payload, stats = await TokenReconciler(db, registry).sync_all()
    return MetalTokensResponse(**{
        **payload,
        "tokens": payload.get("tokens") or [],
        "stats": SyncStats(**stats),
    })


@router.post("/create-token", status_code=201)
async def create_metal_token(
    request: CreateTokenRequest,
    db: AsyncSession = Depends(get_db),
    registry: MetalClient = Depends(get_registry),
) -> Dict[str, Any]:
    """Submit a token to the registry; a placeholder coin tracks the job"""
    return await TokenReconciler(db, registry).submit_creation(
        name=request.name,
        symbol=request.symbol,
        merchant_address=request.merchant_address,
        can_distribute=request.can_distribute,
        can_lp=request.can_lp,
    )


@router.get("/token-status/{job_id}")
async def get_token_status(
    job_id: str,
    db: AsyncSession = Depends(get_db),
    registry: MetalClient = Depends(get_registry),
) -> Dict[str, Any]:
    """Poll a creation job and settle its placeholder coin"""
    data, outcome = await TokenReconciler(db, registry).poll_job(job_id)
    logger.info("Polled token creation job", job_id=job_id, status=data.get("status"), outcome=outcome)
    return data


@router.post("/create-liquidity")
async def create_liquidity(
    request: CreateLiquidityRequest,
    registry: MetalClient = Depends(get_registry),
) -> Dict[str, Any]:
    return await registry.create_liquidity(request.token_address)


@router.post("/holder/{user_id}")
async def get_or_create_holder(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    registry: MetalClient = Depends(get_registry),
    current_user: Optional[User] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """Get or create the registry's custodial wallet for a user.

    When the holder belongs to the logged-in user, their wallet address is
    replaced with the custodial one.
    """
    holder = await registry.get_or_create_holder(user_id)
    address = holder.get("address")
    if current_user is not None and str(current_user.id) == user_id and address:
        await UserDirectory(db).update(current_user.id, metal_address=address)
        logger.info("Linked custodial wallet", user_id=current_user.id, address=address)
    return holder


@router.post("/distribute")
async def distribute_tokens(
    request: DistributeRequest,
    registry: MetalClient = Depends(get_registry),
) -> Dict[str, Any]:
    """Send tokens from the merchant's app supply to a holder"""
    return await registry.distribute(request.token_address, request.send_to, request.amount)
