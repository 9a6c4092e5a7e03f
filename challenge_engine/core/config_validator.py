"""
Startup configuration validation and redacted summary logging.

Called early in the FastAPI lifespan to fail fast on misconfiguration.
"""

import logging
import re
from typing import List

from sqlalchemy.engine import make_url

from .config import Settings

logger = logging.getLogger(__name__)

# Minimal pattern: scheme://... or scheme:///...
_SQLALCHEMY_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-.]*://")

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Drivers that work with create_async_engine
_ASYNC_DRIVERS = {"aiosqlite", "asyncpg", "psycopg", "aiomysql", "asyncmy"}


def validate_config(settings: Settings) -> List[str]:
    """
    Validate application configuration and return a list of error strings.

    An empty list means the configuration is valid.
    """
    errors: List[str] = []

    # -- DATABASE_URL format -----------------------------------------------
    db_url = (settings.database_url or "").strip()
    if not db_url:
        errors.append("DATABASE_URL is required but missing or empty")
    elif not _SQLALCHEMY_URL_RE.match(db_url):
        errors.append(
            f"DATABASE_URL format is invalid (expected SQLAlchemy URL like "
            f"'sqlite+aiosqlite:///...' or 'postgresql+asyncpg://...'): "
            f"'{db_url}'"
        )
    else:
        driver = make_url(db_url).get_driver_name()
        if driver not in _ASYNC_DRIVERS:
            errors.append(
                f"DATABASE_URL must use an async driver ({', '.join(sorted(_ASYNC_DRIVERS))}), "
                f"got '{driver}'"
            )

    # -- LOG_LEVEL ---------------------------------------------------------
    if settings.log_level.upper() not in _VALID_LOG_LEVELS:
        errors.append(
            f"LOG_LEVEL must be one of {sorted(_VALID_LOG_LEVELS)}, got '{settings.log_level}'"
        )

    # -- Condition thresholds ----------------------------------------------
    for name in (
        "time_limit_minutes",
        "time_limit_reviews",
        "streak_days",
        "variety_categories",
        "completion_rate_window_days",
        "leaderboard_limit",
        "auto_assign_page_size",
    ):
        if getattr(settings, name) < 1:
            errors.append(f"{name.upper()} must be >= 1")

    return errors


def log_config_summary(settings: Settings) -> None:
    """Log a redacted summary of the active configuration."""
    url = make_url(settings.database_url).render_as_string(hide_password=True)
    logger.info(
        "Config: environment=%s log_level=%s database=%s scheduler=%s daily_job_time=%s",
        settings.environment,
        settings.log_level,
        url,
        "on" if settings.scheduler_enabled else "off",
        settings.daily_job_time.strftime("%H:%M"),
    )
