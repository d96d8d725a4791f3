"""
User model — authentication & role-based access control.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String

from bookclub.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: str = Column(  # type: ignore[assignment]
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    username: str = Column(String(30), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    full_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="member",
        server_default="member",
    )  # admin | member | guest
    avatar: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    bio: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    is_email_verified: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    reset_password_token: str | None = Column(String(128), nullable=True)  # type: ignore[assignment]
    reset_password_expires: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    last_login: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        index=True,
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

