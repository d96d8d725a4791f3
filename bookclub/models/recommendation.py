"""
Book recommendations — scored suggestions, one per (user, book).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (JSON, CheckConstraint, Column, DateTime, Float,
                        ForeignKey, Index, Integer, String, UniqueConstraint)

from bookclub.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookRecommendation(Base):
    __tablename__ = "book_recommendations"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_recommendation_user_book"),
        Index("ix_recommendation_user_score", "user_id", "score"),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_recommendation_score"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: str = Column(  # type: ignore[assignment]
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    book_id: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    title: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    author: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    genre: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    score: float = Column(Float, nullable=False)  # type: ignore[assignment]
    reason: str = Column(String(1000), nullable=False)  # type: ignore[assignment]
    based_on: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )
