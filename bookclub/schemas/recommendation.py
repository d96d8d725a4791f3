"""Pydantic schemas for book recommendations."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from bookclub.schemas.common import CamelModel


class RecommendationUpsert(CamelModel):
    user_id: str
    book_id: str
    title: str
    author: str
    genre: str
    score: float = Field(ge=0, le=100)
    reason: str
    based_on: list[str] = Field(default_factory=list)

    @field_validator("user_id", "book_id", "title", "author", "genre", "reason")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v


class RecommendationRead(CamelModel):
    id: int
    user_id: str
    book_id: str
    title: str
    author: str
    genre: str
    score: float
    reason: str
    based_on: list[str]
    created_at: datetime | None
    updated_at: datetime | None
