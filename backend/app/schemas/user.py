"""User and auth schemas"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    metal_address: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class AccountUpdate(BaseModel):
    """Changes a user may make to their own account"""
    email: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None


class FriendRequest(BaseModel):
    friend_id: int


class PhoneSendRequest(BaseModel):
    phone_number: str = Field(..., min_length=1)


class PhoneVerifyRequest(BaseModel):
    code: str = Field(..., min_length=1)


class PhoneSendResponse(BaseModel):
    message: str
    code: Optional[str] = None  # only echoed when expose_verification_codes is on


class PhoneCheckResponse(BaseModel):
    is_verified: bool
    is_available: bool
    user_id: Optional[int] = None


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash"""
    id: int
    username: str
    email: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    metal_address: Optional[str] = None
    holding_ids: List[str] = Field(default_factory=list)
    friend_ids: List[str] = Field(default_factory=list)
    liked_coin_ids: List[str] = Field(default_factory=list)
    liked_reply_ids: List[str] = Field(default_factory=list)
    coin_ids: List[str] = Field(default_factory=list)
    phone_number: Optional[str] = None
    phone_verified: bool = False
    created_at: datetime

    class Config:
        from_attributes = True
