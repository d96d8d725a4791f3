"""
Reading analytics endpoints.

Writes are a single atomic upsert on (user, club, book): the provided
metrics overwrite the stored ones and the session counter increments in
the same statement, so concurrent writers never create duplicate rows.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.api.deps import (ensure_owner_or_admin, get_current_user, get_db,
                               require_owner_or_admin)
from bookclub.db.upsert import UpsertInsert, dialect_insert
from bookclub.models.analytics import ReadingAnalytics
from bookclub.schemas.analytics import (AnalyticsRead, AnalyticsSummary,
                                        AnalyticsUpsert)
from bookclub.schemas.common import ApiResponse
from bookclub.schemas.token import TokenPayload

router = APIRouter(prefix="/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


def upsert_statement(db: AsyncSession, key: dict, values: dict) -> UpsertInsert:
    """Build ``INSERT .. ON CONFLICT (user, club, book) DO UPDATE`` incrementing the session count."""
    table = ReadingAnalytics.__table__
    stmt = dialect_insert(db, table).values(**key, **values, sessions_count=1)
    return stmt.on_conflict_do_update(
        index_elements=[table.c.user_id, table.c.club_id, table.c.book_id],
        set_={
            **values,
            "sessions_count": table.c.sessions_count + 1,
            "updated_at": values["last_activity"],
        },
    )


@router.post("", response_model=ApiResponse[AnalyticsRead], status_code=201)
async def upsert_analytics(
    body: AnalyticsUpsert,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[AnalyticsRead]:
    """Record a reading session for (user, club, book)."""
    ensure_owner_or_admin(current_user, body.user_id)

    key = {"user_id": body.user_id, "club_id": body.club_id, "book_id": body.book_id}
    values = {**body.metrics(), "last_activity": datetime.now(timezone.utc)}

    await db.execute(upsert_statement(db, key, values))
    await db.commit()

    result = await db.execute(
        select(ReadingAnalytics).where(
            ReadingAnalytics.user_id == body.user_id,
            ReadingAnalytics.club_id == body.club_id,
            ReadingAnalytics.book_id == body.book_id,
        ).execution_options(populate_existing=True)
    )
    record = result.scalar_one()
    logger.debug(
        "Analytics upserted for user=%s club=%s book=%s (sessions=%d)",
        body.user_id, body.club_id, body.book_id, record.sessions_count,
    )
    return ApiResponse[AnalyticsRead](
        message="Analytics updated successfully",
        data=AnalyticsRead.model_validate(record),
    )


@router.get("/{user_id}", response_model=ApiResponse[list[AnalyticsRead]])
async def list_user_analytics(
    user_id: str,
    club_id: str | None = Query(default=None, alias="clubId"),
    db: AsyncSession = Depends(get_db),
    _user: TokenPayload = Depends(require_owner_or_admin),
) -> ApiResponse[list[AnalyticsRead]]:
    """Return the user's 50 most recently active records, optionally per club."""
    stmt = select(ReadingAnalytics).where(ReadingAnalytics.user_id == user_id)
    if club_id:
        stmt = stmt.where(ReadingAnalytics.club_id == club_id)
    result = await db.execute(
        stmt.order_by(ReadingAnalytics.last_activity.desc()).limit(50)
    )
    records = [AnalyticsRead.model_validate(r) for r in result.scalars().all()]
    return ApiResponse[list[AnalyticsRead]](data=records, count=len(records))


@router.get("/{user_id}/summary", response_model=ApiResponse[AnalyticsSummary])
async def user_summary(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    _user: TokenPayload = Depends(require_owner_or_admin),
) -> ApiResponse[AnalyticsSummary]:
    """Totals and averages across every record the user has."""
    result = await db.execute(
        select(
            func.count(ReadingAnalytics.id).label("total_books"),
            func.avg(ReadingAnalytics.reading_speed).label("avg_reading_speed"),
            func.avg(ReadingAnalytics.completion_rate).label("avg_completion_rate"),
            func.sum(ReadingAnalytics.total_reading_time).label("total_reading_time"),
            func.sum(ReadingAnalytics.sessions_count).label("total_sessions"),
        ).where(ReadingAnalytics.user_id == user_id)
    )
    row = result.one()
    if not row.total_books:
        return ApiResponse[AnalyticsSummary](data=AnalyticsSummary())

    return ApiResponse[AnalyticsSummary](
        data=AnalyticsSummary(
            total_books=row.total_books,
            avg_reading_speed=float(row.avg_reading_speed or 0),
            avg_completion_rate=float(row.avg_completion_rate or 0),
            total_reading_time=float(row.total_reading_time or 0),
            total_sessions=int(row.total_sessions or 0),
        )
    )
