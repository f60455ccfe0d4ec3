"""Session auth endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.api.deps import get_current_user, login_session, logout_session
from app.models.database import get_db
from app.models.user import User
from app.schemas.user import RegisterRequest, LoginRequest, AccountUpdate, UserResponse
from app.services.errors import NotFoundError
from app.services.users import UserDirectory

logger = structlog.get_logger()
router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(request: RegisterRequest, http_request: Request, db: AsyncSession = Depends(get_db)):
    """Create an account and log it in"""
    user = await UserDirectory(db).create(
        username=request.username,
        email=request.email,
        password=request.password,
        display_name=request.display_name,
        bio=request.bio,
        avatar=request.avatar,
        metal_address=request.metal_address,
    )
    login_session(http_request, user)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=UserResponse)
async def login(request: LoginRequest, http_request: Request, db: AsyncSession = Depends(get_db)):
    user = await UserDirectory(db).authenticate(request.username, request.password)
    if user is None:
        logger.info("Failed login", username=request.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    login_session(http_request, user)
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(http_request: Request):
    logout_session(http_request)
    return Response(status_code=200)


@router.get("/user", response_model=UserResponse)
async def current_user(user: User = Depends(get_current_user)):
    """Get the logged-in user"""
    return UserResponse.model_validate(user)


@router.patch("/user", response_model=UserResponse)
async def update_current_user(
    request: AccountUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the logged-in user's account (password is re-hashed)"""
    updates = request.model_dump(exclude_unset=True, exclude_none=True)
    updated = await UserDirectory(db).update(user.id, **updates)
    if updated is None:
        raise NotFoundError("User", user.id)
    return UserResponse.model_validate(updated)
