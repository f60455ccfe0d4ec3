"""Reply schemas"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class ReplyCreate(BaseModel):
    coin_id: int
    user_id: Optional[str] = None  # defaults to the session user, or anonymous
    username: Optional[str] = None
    user_avatar: Optional[str] = None
    content: str = Field(..., min_length=1)
    parent_id: Optional[int] = None
    is_anonymous: bool = False


class ReplyResponse(BaseModel):
    id: int
    coin_id: int
    user_id: str
    username: Optional[str] = None
    user_avatar: Optional[str] = None
    content: str
    parent_id: Optional[int] = None
    like_count: int
    is_anonymous: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ReplyThreadResponse(ReplyResponse):
    """Reply with nested children"""
    children: List["ReplyThreadResponse"] = Field(default_factory=list)


class LikeReplyResponse(BaseModel):
    success: bool
    reply: ReplyResponse


ReplyThreadResponse.model_rebuild()
