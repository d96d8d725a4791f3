"""
FastAPI dependencies — auth guards and database session.

Authentication is stateless: the bearer token is verified and its
payload (user id, email, role) attached to the request without a
database round trip.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.core.security import decode_access_token
from bookclub.schemas.token import TokenPayload

# auto_error=False so a missing header produces our own 401 message
bearer_scheme = HTTPBearer(auto_error=False)

NO_TOKEN = "No token provided. Please login first."
INVALID_TOKEN = "Invalid or expired token"
ADMIN_REQUIRED = "Access denied. Admin privileges required."
OWNER_REQUIRED = "Access denied. You can only access your own data."


# ── Database session ────────────────────────────────────────────────
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.session() as session:
        yield session


# ── Predicates ──────────────────────────────────────────────────────
def is_admin(user: TokenPayload) -> bool:
    return user.role == "admin"


def is_owner_or_admin(user: TokenPayload, user_id: str) -> bool:
    return user.user_id == user_id or is_admin(user)


def ensure_owner_or_admin(user: TokenPayload, user_id: str) -> None:
    """Raise 403 unless *user* owns *user_id* or is an admin."""
    if not is_owner_or_admin(user, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=OWNER_REQUIRED)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenPayload:
    """Verify the bearer token and attach its payload to ``request.state.user``."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=NO_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.user = payload
    return payload


async def require_admin(
    current_user: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    """Only allow admin role to proceed."""
    if not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ADMIN_REQUIRED)
    return current_user


async def require_owner_or_admin(
    user_id: str,
    current_user: TokenPayload = Depends(get_current_user),
) -> TokenPayload:
    """Allow the owner of the ``{user_id}`` path parameter, or any admin."""
    ensure_owner_or_admin(current_user, user_id)
    return current_user
