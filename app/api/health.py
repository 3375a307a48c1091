"""
Health check endpoint.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.deps import get_watcher_service
from domains.zone_watch.service import WatcherService

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    watching: bool
    watched_directories: int
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(service: WatcherService = Depends(get_watcher_service)):
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Every enabled directory has an active observer while watching
    """
    status = service.status()
    expected = len(service.config.enabled_directories())
    degraded = status["running"] and len(status["watched_paths"]) < expected

    return HealthResponse(
        status="degraded" if degraded else "healthy",
        timestamp=datetime.now(),
        watching=status["running"],
        watched_directories=len(status["watched_paths"]),
        version=service.settings.api_version
    )
