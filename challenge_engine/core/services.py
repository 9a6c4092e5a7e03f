"""
Service Registry - Central service configuration and registration.

This module wires up the challenge engine's services with their dependencies.
Services are registered lazily and instantiated on first access.

Usage:
    from challenge_engine.core.services import setup_services, get_service

    # At startup
    setup_services()

    # Get a service anywhere
    challenges = get_service(Services.CHALLENGE_SERVICE)
"""

import logging
from typing import Any

from .container import get_container, reset_container

logger = logging.getLogger(__name__)


# Service name constants for type safety
class Services:
    """Constants for service names."""

    SETTINGS = "settings"
    EVENT_BUS = "event_bus"
    UNIT_OF_WORK = "unit_of_work"
    POINTS_AWARDER = "points_awarder"
    ACHIEVEMENTS = "achievements"
    NOTIFICATIONS = "notifications"
    CHALLENGE_SERVICE = "challenge_service"
    SCHEDULER = "scheduler"


def setup_services() -> None:
    """
    Register all application services in the container.

    Call this once at application startup before using any services.
    """
    container = get_container()

    # ========================================================================
    # Core Services (no dependencies)
    # ========================================================================

    def create_settings(c):
        from .config import get_settings

        return get_settings()

    container.register(Services.SETTINGS, create_settings)

    def create_event_bus(c):
        from ..domain.events import get_event_bus

        return get_event_bus()

    container.register(Services.EVENT_BUS, create_event_bus)

    # ========================================================================
    # Database Layer
    # ========================================================================

    # Note: the engine itself is initialised via init_database(); this
    # registers a factory that opens one unit of work per call.
    def create_uow_factory(c):
        from ..infrastructure.repositories import SqlAlchemyUnitOfWork

        return SqlAlchemyUnitOfWork

    container.register(Services.UNIT_OF_WORK, create_uow_factory)

    # ========================================================================
    # Collaborators (event subscribers)
    # ========================================================================

    def create_points_awarder(c):
        from ..services.points_service import ProfilePointsAwarder

        return ProfilePointsAwarder()

    container.register(Services.POINTS_AWARDER, create_points_awarder)

    def create_achievements(c):
        from ..services.achievement_service import ChallengeAchievementChecker

        return ChallengeAchievementChecker()

    container.register(Services.ACHIEVEMENTS, create_achievements)

    def create_notifications(c):
        from ..services.notification_service import LogNotificationEmitter

        return LogNotificationEmitter()

    container.register(Services.NOTIFICATIONS, create_notifications)

    # ========================================================================
    # Business Logic Services
    # ========================================================================

    def create_challenge_service(c):
        from ..services.daily_challenge_service import DailyChallengeService

        return DailyChallengeService(
            c.get(Services.UNIT_OF_WORK),
            c.get(Services.EVENT_BUS),
            settings=c.get(Services.SETTINGS),
        )

    container.register(Services.CHALLENGE_SERVICE, create_challenge_service)

    def create_scheduler(c):
        from ..services.scheduler import AsyncioScheduler

        return AsyncioScheduler()

    container.register(Services.SCHEDULER, create_scheduler)

    logger.info("All services registered in container")


def get_service(name: str) -> Any:
    """
    Get a service by name from the container.

    Raises:
        KeyError: If service is not registered
    """
    return get_container().get(name)


def reset_services() -> None:
    """
    Reset all services (useful for testing).

    This clears the container and re-registers all services.
    """
    reset_container()
    setup_services()
    logger.info("Services reset")
