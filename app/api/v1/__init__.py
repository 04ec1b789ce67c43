"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import filters, health, stats

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(filters.router, prefix="/filters", tags=["filters"])
router.include_router(stats.router, prefix="/stats", tags=["stats"])
