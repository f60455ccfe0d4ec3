"""Reply API endpoints"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user
from app.models.database import get_db
from app.models.reply import ANONYMOUS_USER_ID
from app.models.user import User
from app.schemas.reply import ReplyCreate, ReplyResponse, LikeReplyResponse
from app.services.replies import ReplyGraph
from app.services.users import UserDirectory

router = APIRouter()


@router.post("", response_model=ReplyResponse, status_code=201)
async def create_reply(
    request: ReplyCreate,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Post a reply; the author defaults to the session user"""
    username = request.username
    user_avatar = request.user_avatar
    if request.is_anonymous:
        user_id = ANONYMOUS_USER_ID
        username, user_avatar = None, None
    elif request.user_id:
        user_id = request.user_id
    elif user is not None:
        user_id = str(user.id)
        username = username or user.display_name or user.username
        user_avatar = user_avatar or user.avatar
    else:
        user_id = ANONYMOUS_USER_ID

    reply = await ReplyGraph(db).append(
        coin_id=request.coin_id,
        user_id=user_id,
        content=request.content,
        parent_id=request.parent_id,
        is_anonymous=request.is_anonymous,
        username=username,
        user_avatar=user_avatar,
    )
    return ReplyResponse.model_validate(reply)


@router.post("/{reply_id}/like", response_model=LikeReplyResponse)
async def like_reply(
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Increment a reply's like count and remember the like for the session user"""
    reply = await ReplyGraph(db).like(reply_id)
    if user is not None:
        await UserDirectory(db).add_liked_reply(user.id, reply_id)
    return LikeReplyResponse(success=True, reply=ReplyResponse.model_validate(reply))
