"""Pydantic schemas for registration, login and profile management."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import field_validator

from bookclub.schemas.common import CamelModel

VALID_ROLES = ("admin", "member", "guest")

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)

PASSWORD_MIN_LENGTH = 6


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if not _EMAIL_RE.match(v):
        raise ValueError("Please provide a valid email")
    return v


def _optional_text(v: str | None, limit: int, label: str) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if len(v) > limit:
        raise ValueError(f"{label} cannot exceed {limit} characters")
    return v


class UserCreate(CamelModel):
    username: str
    email: str
    password: str
    full_name: str | None = None

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if not 3 <= len(v) <= 30:
            raise ValueError("Username must be between 3 and 30 characters")
        if not _USERNAME_RE.match(v):
            raise ValueError(
                "Username can only contain letters, numbers, and underscores"
            )
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: str | None) -> str | None:
        return _optional_text(v, 100, "Full name")


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ProfileUpdate(CamelModel):
    full_name: str | None = None
    bio: str | None = None
    avatar: str | None = None

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: str | None) -> str | None:
        return _optional_text(v, 100, "Full name")

    @field_validator("bio")
    @classmethod
    def _bio(cls, v: str | None) -> str | None:
        return _optional_text(v, 500, "Bio")

    @field_validator("avatar")
    @classmethod
    def _avatar(cls, v: str | None) -> str | None:
        if v is not None and not _URL_RE.match(v.strip()):
            raise ValueError("Avatar must be a valid URL")
        return v.strip() if v is not None else None


class PasswordChange(CamelModel):
    current_password: str
    new_password: str

    @field_validator("current_password")
    @classmethod
    def _current(cls, v: str) -> str:
        if not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("new_password")
    @classmethod
    def _new(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("New password must be at least 6 characters")
        return v


class UserRead(CamelModel):
    id: str
    username: str
    email: str
    full_name: str | None = None
    role: str
    avatar: str | None = None
    bio: str | None = None
    is_email_verified: bool = False
    last_login: datetime | None = None
    created_at: datetime | None = None


class AuthData(CamelModel):
    user: UserRead
    token: str
    refresh_token: str
