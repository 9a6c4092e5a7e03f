"""
Application configuration using Pydantic Settings.

Centralizes all configuration with environment variable support.
"""

from datetime import time
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/challenges.db"

    # Environment
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_to_file: bool = False

    # Condition evaluator thresholds
    time_limit_minutes: int = 30
    time_limit_reviews: int = 5
    streak_days: int = 7
    variety_categories: int = 3

    # Statistics
    completion_rate_window_days: int = 30
    leaderboard_limit: int = 10

    # Daily maintenance job (reset expired + auto-assign)
    scheduler_enabled: bool = True
    daily_job_time: time = time(0, 5)
    auto_assign_page_size: int = 500


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
