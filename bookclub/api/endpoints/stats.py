"""
Public statistics — global leaderboard, per-club summary and trending books.

Each endpoint is one aggregate query (group key, reducers, sort, limit);
only the final rounding happens in Python.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.api.deps import get_db
from bookclub.models.analytics import ReadingAnalytics
from bookclub.models.recommendation import BookRecommendation
from bookclub.schemas.common import ApiResponse
from bookclub.schemas.stats import ClubStats, GlobalStats, TopReader, TrendingBook

router = APIRouter(prefix="/stats", tags=["stats"])
logger = logging.getLogger(__name__)

TOP_READERS_LIMIT = 10
TRENDING_LIMIT = 20
TRENDING_WINDOW = timedelta(days=30)


def _round2(value: float | None) -> float:
    return round(float(value or 0), 2)


def _round_half_up(value: float | None) -> int:
    return math.floor(float(value or 0) + 0.5)


@router.get("/global", response_model=ApiResponse[GlobalStats])
async def global_stats(db: AsyncSession = Depends(get_db)) -> ApiResponse[GlobalStats]:
    """Record counts plus the ten readers with the most reading time."""
    analytics_count = await db.scalar(select(func.count(ReadingAnalytics.id)))
    recommendations_count = await db.scalar(select(func.count(BookRecommendation.id)))

    total_time = func.sum(ReadingAnalytics.total_reading_time).label("total_reading_time")
    result = await db.execute(
        select(
            ReadingAnalytics.user_id,
            total_time,
            func.count(ReadingAnalytics.id).label("books_read"),
            func.avg(ReadingAnalytics.completion_rate).label("avg_completion_rate"),
        )
        .group_by(ReadingAnalytics.user_id)
        .order_by(total_time.desc())
        .limit(TOP_READERS_LIMIT)
    )

    top_readers = [
        TopReader(
            rank=rank,
            user_id=row.user_id,
            total_reading_time=_round_half_up(row.total_reading_time),
            books_read=row.books_read,
            avg_completion_rate=_round2(row.avg_completion_rate),
        )
        for rank, row in enumerate(result.all(), start=1)
    ]

    return ApiResponse[GlobalStats](
        data=GlobalStats(
            total_analytics=analytics_count or 0,
            total_recommendations=recommendations_count or 0,
            top_readers=top_readers,
        )
    )


@router.get("/club/{club_id}", response_model=ApiResponse[ClubStats])
async def club_stats(club_id: str, db: AsyncSession = Depends(get_db)) -> ApiResponse[ClubStats]:
    """Distinct members and books plus reading averages for one club."""
    result = await db.execute(
        select(
            func.count(func.distinct(ReadingAnalytics.user_id)).label("total_members"),
            func.count(func.distinct(ReadingAnalytics.book_id)).label("total_books"),
            func.avg(ReadingAnalytics.reading_speed).label("avg_reading_speed"),
            func.avg(ReadingAnalytics.completion_rate).label("avg_completion_rate"),
            func.sum(ReadingAnalytics.total_reading_time).label("total_reading_time"),
        ).where(ReadingAnalytics.club_id == club_id)
    )
    row = result.one()
    if not row.total_members:
        return ApiResponse[ClubStats](data=ClubStats())

    return ApiResponse[ClubStats](
        data=ClubStats(
            total_members=row.total_members,
            total_books=row.total_books,
            avg_reading_speed=_round2(row.avg_reading_speed),
            avg_completion_rate=_round2(row.avg_completion_rate),
            total_reading_time=round(row.total_reading_time or 0),
        )
    )


@router.get("/trending", response_model=ApiResponse[list[TrendingBook]])
async def trending_books(db: AsyncSession = Depends(get_db)) -> ApiResponse[list[TrendingBook]]:
    """Books read in the last 30 days, ranked by readers x completion."""
    since = datetime.now(timezone.utc) - TRENDING_WINDOW

    readers = func.count(func.distinct(ReadingAnalytics.user_id))
    avg_completion = func.avg(ReadingAnalytics.completion_rate)
    score = (readers * avg_completion / 10.0).label("trending_score")

    result = await db.execute(
        select(
            ReadingAnalytics.book_id,
            readers.label("readers_count"),
            avg_completion.label("avg_completion_rate"),
            func.sum(ReadingAnalytics.total_reading_time).label("total_reading_time"),
            score,
        )
        .where(ReadingAnalytics.last_activity >= since)
        .group_by(ReadingAnalytics.book_id)
        .order_by(score.desc())
        .limit(TRENDING_LIMIT)
    )

    books = [
        TrendingBook(
            book_id=row.book_id,
            readers_count=row.readers_count,
            avg_completion_rate=_round2(row.avg_completion_rate),
            total_reading_time=round(row.total_reading_time or 0),
            trending_score=float(row.trending_score or 0),
        )
        for row in result.all()
    ]
    return ApiResponse[list[TrendingBook]](data=books, count=len(books))
