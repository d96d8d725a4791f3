"""
Book recommendation endpoints — scored suggestions per user.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.api.deps import (ensure_owner_or_admin, get_current_user, get_db,
                               require_owner_or_admin)
from bookclub.db.upsert import dialect_insert
from bookclub.models.recommendation import BookRecommendation
from bookclub.schemas.common import ApiResponse, MessageResponse
from bookclub.schemas.recommendation import (RecommendationRead,
                                             RecommendationUpsert)
from bookclub.schemas.token import TokenPayload

router = APIRouter(prefix="/recommendations", tags=["recommendations"])
logger = logging.getLogger(__name__)


async def _top_scored(
    db: AsyncSession, user_id: str, limit: int, genre: str | None = None
) -> list[RecommendationRead]:
    stmt = select(BookRecommendation).where(BookRecommendation.user_id == user_id)
    if genre is not None:
        stmt = stmt.where(BookRecommendation.genre == genre)
    result = await db.execute(stmt.order_by(BookRecommendation.score.desc()).limit(limit))
    return [RecommendationRead.model_validate(r) for r in result.scalars().all()]


@router.get("/{user_id}", response_model=ApiResponse[list[RecommendationRead]])
async def list_recommendations(
    user_id: str,
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    _user: TokenPayload = Depends(require_owner_or_admin),
) -> ApiResponse[list[RecommendationRead]]:
    """Highest-scored recommendations first."""
    recs = await _top_scored(db, user_id, limit)
    return ApiResponse[list[RecommendationRead]](data=recs, count=len(recs))


@router.get("/{user_id}/by-genre", response_model=ApiResponse[list[RecommendationRead]])
async def list_recommendations_by_genre(
    user_id: str,
    genre: str = Query(min_length=1),
    limit: int = Query(default=10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    _user: TokenPayload = Depends(require_owner_or_admin),
) -> ApiResponse[list[RecommendationRead]]:
    recs = await _top_scored(db, user_id, limit, genre=genre)
    return ApiResponse[list[RecommendationRead]](data=recs, count=len(recs))


@router.post("", response_model=ApiResponse[RecommendationRead], status_code=201)
async def upsert_recommendation(
    body: RecommendationUpsert,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[RecommendationRead]:
    """Create or replace the recommendation for (user, book)."""
    ensure_owner_or_admin(current_user, body.user_id)

    table = BookRecommendation.__table__
    key = {"user_id", "book_id"}
    fields = body.model_dump(exclude=key)
    # Only fields present in the request overwrite a stored row
    changes = body.model_dump(exclude=key, exclude_unset=True)
    stmt = dialect_insert(db, table).values(
        user_id=body.user_id, book_id=body.book_id, **fields
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_id, table.c.book_id],
        set_={**changes, "updated_at": datetime.now(timezone.utc)},
    )
    await db.execute(stmt)
    await db.commit()

    result = await db.execute(
        select(BookRecommendation)
        .where(
            BookRecommendation.user_id == body.user_id,
            BookRecommendation.book_id == body.book_id,
        )
        .execution_options(populate_existing=True)
    )
    return ApiResponse[RecommendationRead](
        message="Recommendation created successfully",
        data=RecommendationRead.model_validate(result.scalar_one()),
    )


@router.delete("/{user_id}/{book_id}", response_model=MessageResponse)
async def delete_recommendation(
    user_id: str,
    book_id: str,
    db: AsyncSession = Depends(get_db),
    _user: TokenPayload = Depends(require_owner_or_admin),
) -> MessageResponse:
    result = await db.execute(
        select(BookRecommendation).where(
            BookRecommendation.user_id == user_id,
            BookRecommendation.book_id == book_id,
        )
    )
    rec = result.scalar_one_or_none()
    if rec is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    await db.delete(rec)
    await db.commit()
    logger.info("Recommendation %s removed for user %s", book_id, user_id)
    return MessageResponse(message="Recommendation deleted successfully")
