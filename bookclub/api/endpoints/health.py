"""
Liveness / database connectivity check.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from sqlalchemy.exc import SQLAlchemyError

from bookclub.schemas.stats import HealthResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Public health check — DB connectivity."""
    database = False
    try:
        database = await request.app.state.db.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.error("Health check DB failure: %s", e)

    return HealthResponse(
        success=database,
        status="ok" if database else "degraded",
        database=database,
    )
