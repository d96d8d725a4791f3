"""
Book Club API — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import or_, select

from bookclub.api.api import api_router
from bookclub.api.endpoints.auth import limiter
from bookclub.core.config import settings
from bookclub.core.exceptions import register_exception_handlers
from bookclub.core.security import get_password_hash
from bookclub.db.session import Database
from bookclub.models.user import User

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_admin(db: Database) -> None:
    """Create the configured admin account on first run."""
    if not (settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD):
        return

    email = settings.FIRST_ADMIN_EMAIL.strip().lower()
    async with db.session() as session:
        result = await session.execute(
            select(User).where(
                or_(User.email == email, User.username == settings.FIRST_ADMIN_USERNAME)
            )
        )
        if result.scalars().first() is not None:
            return

        session.add(
            User(
                username=settings.FIRST_ADMIN_USERNAME,
                email=email,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                full_name="System Administrator",
                role="admin",
            )
        )
        await session.commit()
        logger.info("Default admin created: %s (password: <redacted>)", email)


# ── App factory ─────────────────────────────────────────────────────
def create_app(database: Database | None = None) -> FastAPI:
    db = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        settings.ensure_deployable()
        await db.create_all()
        await seed_admin(db)
        logger.info("%s v%s started (%s)", settings.PROJECT_NAME, settings.VERSION, settings.ENVIRONMENT)
        yield
        await db.dispose()
        logger.info("Shutdown complete")

    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Book club authentication, reading analytics and recommendations",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.db = db
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (uniform error envelope)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    return application


app = create_app()
