"""Pydantic schemas for aggregate statistics and health."""

from __future__ import annotations

from bookclub.schemas.common import CamelModel


class TopReader(CamelModel):
    rank: int
    user_id: str
    total_reading_time: int
    books_read: int
    avg_completion_rate: float


class GlobalStats(CamelModel):
    total_analytics: int
    total_recommendations: int
    top_readers: list[TopReader]


class ClubStats(CamelModel):
    total_members: int = 0
    total_books: int = 0
    avg_reading_speed: float = 0
    avg_completion_rate: float = 0
    total_reading_time: int = 0


class TrendingBook(CamelModel):
    book_id: str
    readers_count: int
    avg_completion_rate: float
    total_reading_time: int
    trending_score: float


class HealthResponse(CamelModel):
    success: bool
    status: str
    database: bool
