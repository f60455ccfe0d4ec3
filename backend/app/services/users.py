"""User directory and social graph"""
import secrets
from datetime import datetime, timedelta
from typing import Any, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.user import User
from app.services.errors import NotFoundError, ValidationError
from app.services.security import hash_password, verify_password, mock_wallet_address

logger = structlog.get_logger()
settings = get_settings()

# Fields a user may change on their own profile
PROFILE_FIELDS = ("display_name", "bio", "avatar")

UPDATABLE_FIELDS = {
    "email", "username", "password", "display_name", "bio", "avatar", "metal_address",
    "holding_ids", "friend_ids", "liked_coin_ids", "liked_reply_ids", "coin_ids",
    "phone_number", "phone_verified",
}


def _with_id(ids: Optional[List[str]], item: Any) -> List[str]:
    current = list(ids or [])
    if str(item) not in current:
        current.append(str(item))
    return current


def _without_id(ids: Optional[List[str]], item: Any) -> List[str]:
    return [i for i in (ids or []) if i != str(item)]


class UserDirectory:
    """Accounts, credentials, friends, likes and phone verification"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def require(self, user_id: int) -> User:
        user = await self.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _first(self, *criteria) -> Optional[User]:
        result = await self.db.execute(select(User).where(*criteria).order_by(User.id).limit(1))
        return result.scalars().first()

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self._first(User.username == username)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._first(User.email == email)

    async def get_by_phone_number(self, phone_number: str) -> Optional[User]:
        """Only a verified number identifies a user"""
        return await self._first(User.phone_number == phone_number, User.phone_verified.is_(True))

    async def create(
        self,
        username: str,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        bio: Optional[str] = None,
        avatar: Optional[str] = None,
        metal_address: Optional[str] = None,
    ) -> User:
        if await self.get_by_username(username):
            raise ValidationError("Username already exists", errors=[{"loc": ["username"], "msg": "taken"}])
        if await self.get_by_email(email):
            raise ValidationError("Email already exists", errors=[{"loc": ["email"], "msg": "taken"}])

        user = User(
            username=username,
            email=email,
            password=hash_password(password),
            display_name=display_name or None,
            bio=bio or None,
            avatar=avatar or None,
            metal_address=metal_address or mock_wallet_address(),
            holding_ids=[],
            friend_ids=[],
            liked_coin_ids=[],
            liked_reply_ids=[],
            coin_ids=[],
            phone_verified=False,
            created_at=datetime.utcnow(),
        )
        self.db.add(user)
        await self.db.flush()
        logger.info("Registered user", user_id=user.id, username=username)
        return user

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        user = await self.get_by_username(username)
        if user is None or not verify_password(password, user.password):
            return None
        return user

    async def update(self, user_id: int, **updates: Any) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")
        if updates.get("username") and updates["username"] != user.username:
            if await self.get_by_username(updates["username"]):
                raise ValidationError("Username already exists", errors=[{"loc": ["username"], "msg": "taken"}])
        if updates.get("email") and updates["email"] != user.email:
            if await self.get_by_email(updates["email"]):
                raise ValidationError("Email already exists", errors=[{"loc": ["email"], "msg": "taken"}])
        if "password" in updates:
            if updates["password"]:
                updates["password"] = hash_password(updates["password"])
            else:
                del updates["password"]

        for key, value in updates.items():
            setattr(user, key, value)
        await self.db.flush()
        return user

    # Social graph

    async def add_friend(self, user_id: int, friend_id: int) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None
        return await self.update(user_id, friend_ids=_with_id(user.friend_ids, friend_id))

    async def remove_friend(self, user_id: int, friend_id: int) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None
        return await self.update(user_id, friend_ids=_without_id(user.friend_ids, friend_id))

    async def list_friends(self, user_id: int) -> List[User]:
        user = await self.require(user_id)
        ids = [int(i) for i in user.friend_ids or [] if str(i).isdigit()]
        if not ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        by_id = {u.id: u for u in result.scalars().all()}
        # Keep the order friends were added in
        return [by_id[i] for i in ids if i in by_id]

    async def add_liked_coin(self, user_id: int, coin_id: int) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None
        return await self.update(user_id, liked_coin_ids=_with_id(user.liked_coin_ids, coin_id))

    async def remove_liked_coin(self, user_id: int, coin_id: int) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None
        return await self.update(user_id, liked_coin_ids=_without_id(user.liked_coin_ids, coin_id))

    async def add_liked_reply(self, user_id: int, reply_id: int) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None
        return await self.update(user_id, liked_reply_ids=_with_id(user.liked_reply_ids, reply_id))

    async def remove_liked_reply(self, user_id: int, reply_id: int) -> Optional[User]:
        user = await self.get(user_id)
        if user is None:
            return None
        return await self.update(user_id, liked_reply_ids=_without_id(user.liked_reply_ids, reply_id))

    # Phone verification: unverified -> code issued -> verified

    async def set_phone_number(self, user_id: int, phone_number: str) -> Optional[User]:
        """Attach a number and reset verification.

        If another user had verified this number, their verification is revoked.
        """
        user = await self.get(user_id)
        if user is None:
            return None

        holder = await self.get_by_phone_number(phone_number)
        if holder is not None and holder.id != user_id:
            await self.revoke_phone_verification(phone_number)

        user.phone_number = phone_number
        user.phone_verified = False
        user.phone_verification_code = None
        user.phone_verification_expiry = None
        await self.db.flush()
        return user

    async def generate_phone_verification_code(self, user_id: int) -> str:
        user = await self.get(user_id)
        if user is None or not user.phone_number:
            raise ValidationError("User not found or phone number not set")

        code = str(100000 + secrets.randbelow(900000))
        user.phone_verification_code = code
        user.phone_verification_expiry = datetime.utcnow() + timedelta(minutes=settings.phone_code_ttl_minutes)
        await self.db.flush()
        logger.info("Issued phone verification code", user_id=user_id)
        return code

    async def verify_phone_number(self, user_id: int, code: str) -> bool:
        user = await self.get(user_id)
        if user is None or not user.phone_number or not user.phone_verification_code:
            return False
        if not user.phone_verification_expiry or datetime.utcnow() > user.phone_verification_expiry:
            return False
        if user.phone_verification_code != code:
            return False

        user.phone_verified = True
        user.phone_verification_code = None
        user.phone_verification_expiry = None
        await self.db.flush()
        logger.info("Verified phone number", user_id=user_id)
        return True

    async def revoke_phone_verification(self, phone_number: str) -> None:
        user = await self.get_by_phone_number(phone_number)
        if user is not None:
            user.phone_verified = False
            await self.db.flush()
            logger.info("Revoked phone verification", user_id=user.id)
