"""Pydantic schemas for JWT tokens."""

from __future__ import annotations

from pydantic import Field

from bookclub.schemas.common import CamelModel


class TokenPayload(CamelModel):
    """Identity claims embedded in every issued token."""

    user_id: str = Field(min_length=1)
    email: str
    role: str


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class TokenPair(CamelModel):
    token: str
    refresh_token: str
    token_type: str = "bearer"
