"""
Utility endpoints: health checks and job statistics.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from vibe_server import __version__
from vibe_server.services.event_dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

# Health checks are unversioned at /health
health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
async def health_check():
    """health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "service": "vibe-builder",
    }


@health_router.get("/health/jobs")
async def job_stats():
    """Counts of background jobs by status."""
    return await EventDispatcher.get_instance().get_stats()
