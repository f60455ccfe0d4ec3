"""User profile, social graph and phone verification endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.api.deps import ensure_self, get_optional_user
from app.config import get_settings
from app.models.database import get_db
from app.models.user import User
from app.schemas.coin import CoinResponse
from app.schemas.reply import ReplyResponse
from app.schemas.transaction import TransactionResponse
from app.schemas.user import (
    ProfileUpdate,
    FriendRequest,
    PhoneSendRequest,
    PhoneVerifyRequest,
    PhoneSendResponse,
    PhoneCheckResponse,
    UserResponse,
)
from app.services.coin_store import CoinStore
from app.services.errors import NotFoundError, ValidationError
from app.services.ledger import TransactionLedger
from app.services.replies import ReplyGraph
from app.services.users import UserDirectory, PROFILE_FIELDS

logger = structlog.get_logger()
settings = get_settings()
router = APIRouter()
phone_router = APIRouter()


async def _owned_user(user_id: int, current_user: Optional[User], db: AsyncSession) -> User:
    """Resolve the target user (404) then check the caller owns it (403)"""
    user = await UserDirectory(db).require(user_id)
    ensure_self(user_id, current_user)
    return user


def normalize_phone_number(phone_number: str) -> str:
    phone_number = phone_number.strip()
    if not phone_number.startswith("+"):
        phone_number = f"+{phone_number}"
    return phone_number


@router.get("/find", response_model=UserResponse)
async def find_user(username: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)):
    user = await UserDirectory(db).get_by_username(username)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await UserDirectory(db).require(user_id)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: int,
    request: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Update display name, bio or avatar"""
    await _owned_user(user_id, current_user, db)
    updates = {
        k: v for k, v in request.model_dump(exclude_unset=True).items()
        if k in PROFILE_FIELDS
    }
    user = await UserDirectory(db).update(user_id, **updates)
    return UserResponse.model_validate(user)


@router.get("/{user_id}/coins", response_model=List[CoinResponse])
async def list_user_coins(user_id: int, db: AsyncSession = Depends(get_db)):
    """Coins the user created"""
    user = await UserDirectory(db).require(user_id)
    coins = await CoinStore(db).list_by_creator(user.username)
    return [CoinResponse.model_validate(c) for c in coins]


@router.get("/{user_id}/liked-coins", response_model=List[CoinResponse])
async def list_liked_coins(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await UserDirectory(db).require(user_id)
    coins = await CoinStore(db).list_by_ids(user.liked_coin_ids or [])
    return [CoinResponse.model_validate(c) for c in coins]


@router.get("/{user_id}/replies", response_model=List[ReplyResponse])
async def list_user_replies(user_id: int, db: AsyncSession = Depends(get_db)):
    await UserDirectory(db).require(user_id)
    replies = await ReplyGraph(db).list_by_user(str(user_id))
    return [ReplyResponse.model_validate(r) for r in replies]


@router.get("/{user_id}/transactions", response_model=List[TransactionResponse])
async def list_user_transactions(user_id: int, db: AsyncSession = Depends(get_db)):
    await UserDirectory(db).require(user_id)
    transactions = await TransactionLedger(db).list_by_user(str(user_id))
    return [TransactionResponse.model_validate(t) for t in transactions]


# Friends

@router.get("/{user_id}/friends", response_model=List[UserResponse])
async def list_friends(user_id: int, db: AsyncSession = Depends(get_db)):
    friends = await UserDirectory(db).list_friends(user_id)
    return [UserResponse.model_validate(f) for f in friends]


@router.post("/{user_id}/friends", response_model=UserResponse)
async def add_friend(
    user_id: int,
    request: FriendRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    await _owned_user(user_id, current_user, db)
    users = UserDirectory(db)
    if request.friend_id == user_id:
        raise ValidationError("Cannot add yourself as a friend")
    await users.require(request.friend_id)
    user = await users.add_friend(user_id, request.friend_id)
    logger.info("Added friend", user_id=user_id, friend_id=request.friend_id)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}/friends/{friend_id}", response_model=UserResponse)
async def remove_friend(
    user_id: int,
    friend_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    await _owned_user(user_id, current_user, db)
    user = await UserDirectory(db).remove_friend(user_id, friend_id)
    return UserResponse.model_validate(user)


# Likes

@router.post("/{user_id}/liked-coins/{coin_id}", response_model=UserResponse)
async def like_coin(
    user_id: int,
    coin_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    await _owned_user(user_id, current_user, db)
    if await CoinStore(db).get(coin_id) is None:
        raise NotFoundError("Coin", coin_id)
    user = await UserDirectory(db).add_liked_coin(user_id, coin_id)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}/liked-coins/{coin_id}", response_model=UserResponse)
async def unlike_coin(
    user_id: int,
    coin_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    await _owned_user(user_id, current_user, db)
    user = await UserDirectory(db).remove_liked_coin(user_id, coin_id)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/liked-replies/{reply_id}", response_model=UserResponse)
async def like_reply_for_user(
    user_id: int,
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Record a liked reply without touching its like count"""
    await _owned_user(user_id, current_user, db)
    if await ReplyGraph(db).get(reply_id) is None:
        raise NotFoundError("Reply", reply_id)
    user = await UserDirectory(db).add_liked_reply(user_id, reply_id)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}/liked-replies/{reply_id}", response_model=UserResponse)
async def unlike_reply_for_user(
    user_id: int,
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    await _owned_user(user_id, current_user, db)
    user = await UserDirectory(db).remove_liked_reply(user_id, reply_id)
    return UserResponse.model_validate(user)


# Phone verification

@router.post("/{user_id}/phone-verification/send", response_model=PhoneSendResponse)
async def send_phone_verification(
    user_id: int,
    request: PhoneSendRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Attach a phone number and issue a verification code.

    No SMS gateway is wired in; the code is echoed back only when
    expose_verification_codes is enabled.
    """
    await _owned_user(user_id, current_user, db)
    users = UserDirectory(db)
    phone_number = normalize_phone_number(request.phone_number)

    holder = await users.get_by_phone_number(phone_number)
    if holder is not None and holder.id != user_id:
        raise ValidationError(
            "Phone number already verified by another user",
            errors=[{"loc": ["phone_number"], "msg": "already verified"}],
        )

    await users.set_phone_number(user_id, phone_number)
    code = await users.generate_phone_verification_code(user_id)
    return PhoneSendResponse(
        message="Verification code sent",
        code=code if settings.expose_verification_codes else None,
    )


@router.post("/{user_id}/phone-verification/verify", response_model=UserResponse)
async def verify_phone(
    user_id: int,
    request: PhoneVerifyRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    await _owned_user(user_id, current_user, db)
    users = UserDirectory(db)
    if not await users.verify_phone_number(user_id, request.code.strip()):
        raise ValidationError("Invalid or expired verification code")
    return UserResponse.model_validate(await users.get(user_id))


@phone_router.get("/check/{phone_number}", response_model=PhoneCheckResponse)
async def check_phone_number(phone_number: str, db: AsyncSession = Depends(get_db)):
    """Whether a number is already verified by some user"""
    holder = await UserDirectory(db).get_by_phone_number(normalize_phone_number(phone_number))
    return PhoneCheckResponse(
        is_verified=holder is not None,
        is_available=holder is None,
        user_id=holder.id if holder else None,
    )
