"""
JWT token creation / verification and password hashing (bcrypt).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from bookclub.core.config import settings
from bookclub.schemas.token import TokenPayload

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

ACCESS = "access"
REFRESH = "refresh"


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
def _encode(user: Any, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: Any, expires_delta: timedelta | None = None) -> str:
    """Sign a short-lived access token carrying the user's id, email and role."""
    return _encode(user, ACCESS, expires_delta or settings.JWT_EXPIRES_IN)


def create_refresh_token(user: Any) -> str:
    return _encode(user, REFRESH, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def create_token_pair(user: Any) -> tuple[str, str]:
    return create_access_token(user), create_refresh_token(user)


def _decode(token: str, token_type: str) -> TokenPayload | None:
    try:
        claims = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None
    if claims.get("type") != token_type:
        return None
    try:
        return TokenPayload(
            user_id=claims.get("sub"),
            email=claims.get("email"),
            role=claims.get("role"),
        )
    except ValidationError:
        return None


def decode_access_token(token: str) -> TokenPayload | None:
    """Return the payload if *access* token is valid and unexpired, else ``None``."""
    return _decode(token, ACCESS)


def decode_refresh_token(token: str) -> TokenPayload | None:
    """Return the payload if *refresh* token is valid and unexpired, else ``None``."""
    return _decode(token, REFRESH)
