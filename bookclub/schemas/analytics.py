"""Pydantic schemas for reading analytics."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from bookclub.schemas.common import CamelModel


class AnalyticsUpsert(CamelModel):
    user_id: str
    club_id: str
    book_id: str
    reading_speed: float | None = Field(default=None, ge=0)
    avg_session_duration: float | None = Field(default=None, ge=0)
    total_reading_time: float | None = Field(default=None, ge=0)
    completion_rate: float | None = Field(default=None, ge=0, le=100)

    @field_validator("user_id", "club_id", "book_id")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v

    def metrics(self) -> dict[str, float]:
        """Metric fields the client actually sent."""
        return self.model_dump(
            exclude={"user_id", "club_id", "book_id"},
            exclude_unset=True,
            exclude_none=True,
        )


class AnalyticsRead(CamelModel):
    id: int
    user_id: str
    club_id: str
    book_id: str
    reading_speed: float
    avg_session_duration: float
    total_reading_time: float
    completion_rate: float
    sessions_count: int
    last_activity: datetime | None
    created_at: datetime | None
    updated_at: datetime | None


class AnalyticsSummary(CamelModel):
    total_books: int = 0
    avg_reading_speed: float = 0
    avg_completion_rate: float = 0
    total_reading_time: float = 0
    total_sessions: int = 0
