"""
Reading analytics — one row per (user, club, book) with running metrics.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (CheckConstraint, Column, DateTime, Float, ForeignKey,
                        Index, Integer, String, UniqueConstraint)

from bookclub.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadingAnalytics(Base):
    __tablename__ = "reading_analytics"
    __table_args__ = (
        UniqueConstraint("user_id", "club_id", "book_id", name="uq_analytics_user_club_book"),
        Index("ix_analytics_user_club", "user_id", "club_id"),
        Index("ix_analytics_user_book", "user_id", "book_id"),
        CheckConstraint("completion_rate >= 0 AND completion_rate <= 100", name="ck_analytics_completion"),
        CheckConstraint("sessions_count >= 0", name="ck_analytics_sessions"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: str = Column(  # type: ignore[assignment]
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    club_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    book_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    reading_speed: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]  # pages per day
    avg_session_duration: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]  # minutes
    total_reading_time: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]  # minutes
    completion_rate: float = Column(Float, nullable=False, default=0)  # type: ignore[assignment]  # percent
    sessions_count: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    last_activity: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        index=True,
    )
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
