"""Coin API endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user
from app.models.database import get_db
from app.models.user import User
from app.schemas.coin import CoinCreate, CoinResponse
from app.schemas.reply import ReplyResponse, ReplyThreadResponse
from app.schemas.transaction import TransactionResponse
from app.services.coin_store import CoinStore
from app.services.errors import NotFoundError
from app.services.ledger import TransactionLedger
from app.services.replies import ReplyGraph, ReplyNode
from app.services.users import UserDirectory

router = APIRouter()


def _coins(coins) -> List[CoinResponse]:
    return [CoinResponse.model_validate(c) for c in coins]


def _thread(node: ReplyNode) -> ReplyThreadResponse:
    base = ReplyResponse.model_validate(node.reply).model_dump()
    return ReplyThreadResponse(**base, children=[_thread(child) for child in node.children])


@router.get("", response_model=List[CoinResponse])
async def list_coins(
    include_withdrawn: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """List coins; withdrawn coins only on request"""
    return _coins(await CoinStore(db).list(include_withdrawn=include_withdrawn))


@router.get("/trending", response_model=List[CoinResponse])
async def list_trending(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Coins ranked by holder growth"""
    return _coins(await CoinStore(db).list_trending(limit))


@router.get("/latest-created", response_model=CoinResponse)
async def latest_created(db: AsyncSession = Depends(get_db)):
    coin = await CoinStore(db).latest_created()
    if not coin:
        raise HTTPException(status_code=404, detail="No created coins found")
    return CoinResponse.model_validate(coin)


@router.get("/latest-withdrawn", response_model=CoinResponse)
async def latest_withdrawn(db: AsyncSession = Depends(get_db)):
    coin = await CoinStore(db).latest_withdrawn()
    if not coin:
        raise HTTPException(status_code=404, detail="No withdrawn coins found")
    return CoinResponse.model_validate(coin)


@router.get("/tag/{tag}", response_model=List[CoinResponse])
async def list_by_tag(
    tag: str,
    include_withdrawn: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """Coins carrying a tag, largest market cap first"""
    return _coins(await CoinStore(db).list_by_tag(tag, include_withdrawn=include_withdrawn))


@router.get("/search", response_model=List[CoinResponse])
async def search_coins(
    q: str = Query(""),
    include_withdrawn: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return _coins(await CoinStore(db).search(q, include_withdrawn=include_withdrawn))


@router.get("/{coin_id}", response_model=CoinResponse)
async def get_coin(coin_id: int, db: AsyncSession = Depends(get_db)):
    coin = await CoinStore(db).get(coin_id)
    if not coin:
        raise HTTPException(status_code=404, detail="Coin not found")
    return CoinResponse.model_validate(coin)


@router.post("", response_model=CoinResponse, status_code=201)
async def create_coin(
    request: CoinCreate,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Create a locally simulated coin"""
    created_by = request.created_by or (user.username if user else "Unknown")
    coin = await CoinStore(db).create(
        name=request.name,
        symbol=request.symbol,
        description=request.description,
        image=request.image,
        tags=request.tags,
        created_by=created_by,
        is_migrated=request.is_migrated,
        is_trending=request.is_trending,
    )
    if user is not None:
        users = UserDirectory(db)
        await users.update(user.id, coin_ids=[*(user.coin_ids or []), str(coin.id)])
    return CoinResponse.model_validate(coin)


@router.post("/{coin_id}/withdraw", response_model=CoinResponse)
async def withdraw_coin(coin_id: int, db: AsyncSession = Depends(get_db)):
    coin = await CoinStore(db).withdraw(coin_id)
    if not coin:
        raise HTTPException(status_code=404, detail="Coin not found")
    return CoinResponse.model_validate(coin)


@router.get("/{coin_id}/transactions", response_model=List[TransactionResponse])
async def list_coin_transactions(coin_id: int, db: AsyncSession = Depends(get_db)):
    """Trades on a coin, newest first"""
    transactions = await TransactionLedger(db).list(coin_id)
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get("/{coin_id}/replies", response_model=List[ReplyResponse])
async def list_coin_replies(coin_id: int, db: AsyncSession = Depends(get_db)):
    replies = await ReplyGraph(db).list(coin_id)
    return [ReplyResponse.model_validate(r) for r in replies]


@router.get("/{coin_id}/replies/thread", response_model=List[ReplyThreadResponse])
async def get_reply_thread(coin_id: int, db: AsyncSession = Depends(get_db)):
    """Replies nested under their parents"""
    if await CoinStore(db).get(coin_id) is None:
        raise NotFoundError("Coin", coin_id)
    roots = await ReplyGraph(db).thread(coin_id)
    return [_thread(node) for node in roots]
