"""
Auth endpoints — registration, login, token refresh, profile and
admin user management.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import delete as sa_delete
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from bookclub.api.deps import get_current_user, get_db, require_admin
from bookclub.core.config import settings
from bookclub.core.security import (create_token_pair, decode_refresh_token,
                                    get_password_hash, verify_password)
from bookclub.models.analytics import ReadingAnalytics
from bookclub.models.recommendation import BookRecommendation
from bookclub.models.user import User
from bookclub.schemas.common import ApiResponse, MessageResponse
from bookclub.schemas.token import RefreshRequest, TokenPair, TokenPayload
from bookclub.schemas.user import (AuthData, LoginRequest, PasswordChange,
                                   ProfileUpdate, UserCreate, UserRead)

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
USER_NOT_FOUND = "User not found"


def _auth_data(user: User) -> AuthData:
    token, refresh_token = create_token_pair(user)
    return AuthData(
        user=UserRead.model_validate(user),
        token=token,
        refresh_token=refresh_token,
    )


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return user


async def _duplicate_detail(db: AsyncSession, body: UserCreate) -> str | None:
    """Message for an email or username clash, ``None`` when both are free."""
    result = await db.execute(
        select(User).where(or_(User.email == body.email, User.username == body.username))
    )
    existing = result.scalars().first()
    if existing is None:
        return None
    if existing.email == body.email:
        return "Email already registered"
    return "Username already taken"


@router.post("/register", response_model=ApiResponse[AuthData], status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AuthData]:
    """Create a member account and return a fresh token pair."""
    detail = await _duplicate_detail(db, body)
    if detail is not None:
        raise HTTPException(status_code=400, detail=detail)

    user = User(
        username=body.username,
        email=body.email,
        hashed_password=await run_in_threadpool(get_password_hash, body.password),
        full_name=body.full_name,
        role="member",
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent registration claimed the email or username first
        await db.rollback()
        detail = await _duplicate_detail(db, body)
        if detail is None:
            raise
        raise HTTPException(status_code=400, detail=detail) from None
    await db.refresh(user)
    logger.info("User registered: %s (%s)", user.username, user.id)

    return ApiResponse[AuthData](message="Registration successful", data=_auth_data(user))


@router.post("/login", response_model=ApiResponse[AuthData])
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AuthData]:
    """Authenticate with email/password and stamp the last-login time."""
    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    valid = user is not None and await run_in_threadpool(
        verify_password, body.password, user.hashed_password
    )
    if not valid:
        logger.info("Failed login attempt for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)

    return ApiResponse[AuthData](message="Login successful", data=_auth_data(user))


@router.post("/refresh", response_model=ApiResponse[TokenPair])
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def refresh_tokens(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[TokenPair]:
    """Exchange a refresh token for a new pair carrying the user's current role."""
    payload = decode_refresh_token(body.refresh_token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    user = await db.get(User, payload.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=USER_NOT_FOUND)

    token, refresh_token = create_token_pair(user)
    return ApiResponse[TokenPair](data=TokenPair(token=token, refresh_token=refresh_token))


@router.get("/me", response_model=ApiResponse[UserRead])
async def read_current_user(
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[UserRead]:
    """Return profile of the currently authenticated user."""
    user = await _get_user_or_404(db, current_user.user_id)
    return ApiResponse[UserRead](data=UserRead.model_validate(user))


@router.put("/profile", response_model=ApiResponse[UserRead])
async def update_profile(
    body: ProfileUpdate,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[UserRead]:
    user = await _get_user_or_404(db, current_user.user_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return ApiResponse[UserRead](
        message="Profile updated successfully",
        data=UserRead.model_validate(user),
    )


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: PasswordChange,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    user = await _get_user_or_404(db, current_user.user_id)
    if not await run_in_threadpool(
        verify_password, body.current_password, user.hashed_password
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    user.hashed_password = await run_in_threadpool(get_password_hash, body.new_password)
    await db.commit()
    logger.info("Password changed for user %s", user.id)
    return MessageResponse(message="Password changed successfully")


# ── User management (admin-only) ───────────────────────────────────
@router.get("/users", response_model=ApiResponse[list[UserRead]])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: TokenPayload = Depends(require_admin),
) -> ApiResponse[list[UserRead]]:
    """List the 100 most recently created accounts (admin only)."""
    result = await db.execute(select(User).order_by(User.created_at.desc()).limit(100))
    users = [UserRead.model_validate(u) for u in result.scalars().all()]
    return ApiResponse[list[UserRead]](data=users, count=len(users))


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: TokenPayload = Depends(require_admin),
) -> MessageResponse:
    """Delete an account together with its analytics and recommendations."""
    user = await _get_user_or_404(db, user_id)

    await db.execute(sa_delete(ReadingAnalytics).where(ReadingAnalytics.user_id == user_id))
    await db.execute(sa_delete(BookRecommendation).where(BookRecommendation.user_id == user_id))
    await db.delete(user)
    await db.commit()
    logger.info("User %s deleted by admin %s", user_id, admin.user_id)
    return MessageResponse(message="User deleted successfully")
