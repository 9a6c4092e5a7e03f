"""
Application lifespan management.

Handles startup and shutdown of all subsystems:
- Configuration validation
- Database initialization
- Service container setup
- Event subscriber registration
- Daily maintenance scheduler
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.health import set_start_time
from .core.config import get_settings
from .core.config_validator import log_config_summary, validate_config
from .core.database import close_database, init_database
from .core.services import Services, get_service, setup_services
from .domain.events import reset_event_bus
from .domain.subscribers import register_challenge_subscribers
from .services.challenge_scheduler import build_daily_maintenance_job

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Daily challenge engine starting up...")
    set_start_time()

    # Validate configuration before anything else
    settings = get_settings()
    config_errors = validate_config(settings)
    if config_errors:
        for err in config_errors:
            logger.error(f"Config validation error: {err}")
        logger.critical(
            "Aborting startup due to %d configuration error(s)", len(config_errors)
        )
        sys.exit(1)
    log_config_summary(settings)

    try:
        await init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    setup_services()
    logger.info("Service container initialized")

    register_challenge_subscribers(
        get_service(Services.EVENT_BUS),
        points=get_service(Services.POINTS_AWARDER),
        achievements=get_service(Services.ACHIEVEMENTS),
        notifications=get_service(Services.NOTIFICATIONS),
    )

    scheduler = get_service(Services.SCHEDULER)
    scheduler.schedule(
        build_daily_maintenance_job(get_service(Services.CHALLENGE_SERVICE), settings)
    )
    await scheduler.start()

    logger.info("Startup complete")
    try:
        yield
    finally:
        logger.info("Shutting down...")
        await scheduler.stop()
        await close_database()
        reset_event_bus()
        logger.info("Shutdown complete")
