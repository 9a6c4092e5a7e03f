"""
Daily maintenance job: deactivate expired challenges, then assign the new
day's challenges to every active user.
"""

import logging
from typing import Any, Dict

from ..core.config import Settings
from .daily_challenge_service import DailyChallengeService
from .scheduler import ScheduledJob, ScheduleType

logger = logging.getLogger(__name__)

DAILY_MAINTENANCE_JOB = "daily_challenge_maintenance"


async def run_daily_maintenance(service: DailyChallengeService) -> Dict[str, Any]:
    """Run one maintenance pass and return what it did."""
    expired = await service.reset_expired_challenges()
    result = await service.auto_assign_daily_challenges_to_all_users()
    logger.info(
        f"Daily maintenance: {expired} challenges expired, "
        f"{result.success} users assigned, {result.failed} failed"
    )
    return {"expired": expired, **result.as_dict()}


def build_daily_maintenance_job(
    service: DailyChallengeService, settings: Settings
) -> ScheduledJob:
    async def callback() -> None:
        await run_daily_maintenance(service)

    return ScheduledJob(
        name=DAILY_MAINTENANCE_JOB,
        callback=callback,
        schedule_type=ScheduleType.DAILY,
        daily_times=[settings.daily_job_time],
        enabled=settings.scheduler_enabled,
    )
