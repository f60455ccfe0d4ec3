"""Shared API dependencies: registry client and session auth"""
from typing import Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database import get_db
from app.models.user import User
from app.services.errors import UnauthorizedError
from app.services.metal_client import MetalClient, get_metal_client
from app.services.users import UserDirectory

SESSION_USER_KEY = "user_id"


async def get_registry() -> MetalClient:
    """Metal registry client (overridden in tests)"""
    return await get_metal_client()


def login_session(request: Request, user: User) -> None:
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


async def get_optional_user(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[User]:
    """The session's user, or None when not logged in"""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    user = await UserDirectory(db).get(int(user_id))
    if user is None:
        # Account no longer exists; drop the stale session
        request.session.clear()
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def ensure_self(user_id: int, current_user: Optional[User]) -> None:
    """Only the owner may mutate their profile, friends, likes or phone"""
    if current_user is None or current_user.id != user_id:
        raise UnauthorizedError()
