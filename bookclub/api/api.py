"""
API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from bookclub.api.endpoints import (analytics, auth, health, recommendations,
                                    stats)

api_router = APIRouter()

# Auth (register, login, profile, user management)
api_router.include_router(auth.router)

# Reading analytics and recommendations
api_router.include_router(analytics.router)
api_router.include_router(recommendations.router)

# Public aggregates and health
api_router.include_router(stats.router)
api_router.include_router(health.router)
