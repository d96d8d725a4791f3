"""
Async SQLAlchemy engine & session factory (asyncpg driver).

The ``Database`` handle is built once by the app factory, stored on
``app.state.db`` and disposed on shutdown.  Nothing here is a module
level singleton, so tests can hand the app their own in-memory handle.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)

from bookclub.db.base import Base

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": False,
        "pool_pre_ping": True,
    }
    if "postgresql" in url:
        options.update(
            {
                "pool_size": 20,
                "max_overflow": 10,
                "pool_recycle": 300,
            }
        )
    return options


class Database:
    """Long-lived connection handle: one engine, one session factory."""

    def __init__(self, url: str, engine: AsyncEngine | None = None) -> None:
        self.url = url
        self.engine = engine or create_async_engine(url, **engine_options(url))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        # Ensure all models are imported so metadata sees every table
        import bookclub.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialised")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
