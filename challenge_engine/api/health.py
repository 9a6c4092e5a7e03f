"""
Health endpoint: uptime, version, database connectivity and scheduler state.
Lightweight and requires no authentication.
"""

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter

logger = logging.getLogger(__name__)

# Start time for uptime calculation
_start_time: float = time.monotonic()


def set_start_time() -> None:
    """Reset the start time (called during app startup)."""
    global _start_time
    _start_time = time.monotonic()


def get_uptime_seconds() -> float:
    return time.monotonic() - _start_time


async def check_database_health() -> bool:
    """Return True if the challenge store is reachable."""
    from ..core.database import health_check

    try:
        return await health_check()
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return False


def _scheduler_jobs() -> list:
    from ..core.container import get_container
    from ..core.services import Services

    container = get_container()
    if not container.has(Services.SCHEDULER):
        return []
    return container.get(Services.SCHEDULER).list_jobs()


def create_health_router() -> APIRouter:
    """Create and return the health check router.

    This is a factory so the router can be included in the main app
    or used standalone in tests.
    """
    router = APIRouter()

    @router.get("/health")
    async def health_endpoint() -> Dict[str, Any]:
        from ..version import __version__

        db_healthy = await check_database_health()
        return {
            "status": "healthy" if db_healthy else "degraded",
            "service": "daily-challenge-engine",
            "version": __version__,
            "uptime_seconds": round(get_uptime_seconds(), 2),
            "database": "connected" if db_healthy else "disconnected",
            "scheduled_jobs": _scheduler_jobs(),
        }

    return router
