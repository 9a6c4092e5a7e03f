"""
DailyChallengeService - entry point for the HTTP layer and scheduled jobs.

Composes the generator, assignment engine, progress tracker, condition
evaluator, claim gate and statistics over one unit-of-work factory. Store
failures are logged with the operation name and ids, then re-raised.
Domain errors (e.g. InvalidClaim) propagate untouched.
"""

import logging
import random
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence

from ..core.config import Settings, get_settings
from ..domain.errors import DomainError
from ..domain.events import EventBus
from ..models.challenge import DailyChallenge, UserDailyChallenge
from .challenge_assignment import AutoAssignResult, ChallengeAssignmentEngine
from .challenge_conditions import ConditionEvaluator
from .challenge_generator import ChallengeGenerator, UnitOfWorkFactory
from .challenge_progress import BatchProgressResult, ProgressTracker, ProgressUpdate
from .challenge_rewards import RewardClaimGate
from .challenge_statistics import (
    ChallengeStatistics,
    LeaderboardEntry,
    LeaderboardPeriod,
    LeaderboardType,
)

logger = logging.getLogger(__name__)


class DailyChallengeService:
    """Daily challenge operations exposed to callers."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        event_bus: EventBus,
        *,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings or get_settings()
        self._uow_factory = uow_factory
        self._clock = clock

        self.generator = ChallengeGenerator(
            uow_factory,
            rng=rng,
            clock=clock,
            history_window_days=self.settings.completion_rate_window_days,
        )
        self.assignment = ChallengeAssignmentEngine(
            uow_factory,
            self.generator,
            clock=clock,
            page_size=self.settings.auto_assign_page_size,
        )
        self.progress = ProgressTracker(uow_factory, event_bus, clock=clock)
        self.conditions = ConditionEvaluator(
            uow_factory,
            clock=clock,
            time_limit_minutes=self.settings.time_limit_minutes,
            time_limit_reviews=self.settings.time_limit_reviews,
            streak_days=self.settings.streak_days,
            variety_categories=self.settings.variety_categories,
        )
        self.rewards = RewardClaimGate(uow_factory, event_bus)
        self.statistics = ChallengeStatistics(uow_factory, clock=clock)

    @asynccontextmanager
    async def _operation(self, name: str, **context: Any) -> AsyncIterator[None]:
        try:
            yield
        except DomainError:
            raise
        except Exception as e:
            details = ", ".join(f"{k}={v}" for k, v in context.items() if v is not None)
            logger.error(f"{name} failed ({details}): {e}", exc_info=True)
            raise

    def _today(self) -> date:
        return self._clock().date()

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------

    async def get_daily_challenges(
        self, challenge_date: Optional[date] = None
    ) -> List[DailyChallenge]:
        """Challenges for one day, or every active challenge from today on."""
        async with self._operation("get_daily_challenges", date=challenge_date):
            async with self._uow_factory() as uow:
                if challenge_date is not None:
                    return await uow.challenges.find_between(
                        challenge_date, challenge_date + timedelta(days=1)
                    )
                return await uow.challenges.find_active_from(self._today())

    async def get_available_daily_challenges(
        self, challenge_date: Optional[date] = None
    ) -> List[DailyChallenge]:
        """Active challenges for the day, highest reward first."""
        day = challenge_date or self._today()
        async with self._operation("get_available_daily_challenges", date=day):
            async with self._uow_factory() as uow:
                challenges = await uow.challenges.find_between(
                    day, day + timedelta(days=1), active_only=True
                )
        return sorted(challenges, key=lambda c: (-c.points, c.id))

    async def create_daily_challenges(
        self, challenge_date: Optional[date] = None, user_id: Optional[int] = None
    ) -> List[DailyChallenge]:
        async with self._operation("create_daily_challenges", date=challenge_date, user_id=user_id):
            return await self.generator.generate_challenges(challenge_date, user_id)

    async def reset_expired_challenges(self) -> int:
        """Deactivate every challenge dated before today. Returns the count."""
        today = self._today()
        async with self._operation("reset_expired_challenges", before=today):
            async with self._uow_factory() as uow:
                count = await uow.challenges.deactivate_before(today)
                await uow.commit()
        logger.info(f"Deactivated {count} expired challenges (before {today})")
        return count

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    async def assign_daily_challenges_to_user(
        self, user_id: int, challenge_date: Optional[date] = None
    ) -> List[UserDailyChallenge]:
        async with self._operation(
            "assign_daily_challenges_to_user", user_id=user_id, date=challenge_date
        ):
            return await self.assignment.assign_to_user(user_id, challenge_date)

    async def auto_assign_daily_challenges_to_all_users(
        self, challenge_date: Optional[date] = None
    ) -> AutoAssignResult:
        async with self._operation("auto_assign_daily_challenges_to_all_users"):
            return await self.assignment.auto_assign_all_users(challenge_date)

    async def get_user_challenges(self, user_id: int) -> List[UserDailyChallenge]:
        async with self._operation("get_user_challenges", user_id=user_id):
            async with self._uow_factory() as uow:
                return await uow.user_challenges.find_for_user(user_id)

    # ------------------------------------------------------------------
    # Progress and rewards
    # ------------------------------------------------------------------

    async def update_challenge_progress(
        self, user_id: int, challenge_id: int, progress: int
    ) -> UserDailyChallenge:
        async with self._operation(
            "update_challenge_progress", user_id=user_id, challenge_id=challenge_id
        ):
            return await self.progress.update_progress(user_id, challenge_id, progress)

    async def batch_update_challenge_progress(
        self,
        user_id: int,
        updates: Sequence[ProgressUpdate],
        stop_on_error: bool = False,
    ) -> BatchProgressResult:
        async with self._operation("batch_update_challenge_progress", user_id=user_id):
            return await self.progress.batch_update_progress(
                user_id, updates, stop_on_error=stop_on_error
            )

    async def record_review_completed(self, user_id: int) -> List[UserDailyChallenge]:
        async with self._operation("record_review_completed", user_id=user_id):
            return await self.progress.record_review_completed(user_id)

    async def record_memory_created(self, user_id: int) -> List[UserDailyChallenge]:
        async with self._operation("record_memory_created", user_id=user_id):
            return await self.progress.record_memory_created(user_id)

    async def claim_challenge_reward(
        self, user_id: int, challenge_id: int
    ) -> UserDailyChallenge:
        async with self._operation(
            "claim_challenge_reward", user_id=user_id, challenge_id=challenge_id
        ):
            return await self.rewards.claim(user_id, challenge_id)

    async def check_challenge_progress_condition(
        self, user_id: int, condition: str, challenge_id: Optional[int] = None
    ) -> bool:
        # Fails closed inside the evaluator; never raises for store errors
        return await self.conditions.evaluate(user_id, condition, challenge_id)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_user_challenge_stats(self, user_id: int) -> Dict[str, Any]:
        async with self._operation("get_user_challenge_stats", user_id=user_id):
            return await self.statistics.get_user_challenge_stats(user_id)

    async def get_user_challenge_completion_rate(
        self, user_id: int, days: Optional[int] = None
    ) -> Dict[str, Any]:
        days = days or self.settings.completion_rate_window_days
        async with self._operation("get_user_challenge_completion_rate", user_id=user_id):
            return await self.statistics.get_user_challenge_completion_rate(user_id, days)

    async def get_challenge_completion_stats(
        self, user_id: int, days: Optional[int] = None
    ) -> Dict[str, Any]:
        days = days or self.settings.completion_rate_window_days
        async with self._operation("get_challenge_completion_stats", user_id=user_id):
            return await self.statistics.get_challenge_completion_stats(user_id, days)

    async def get_challenge_leaderboard(
        self,
        leaderboard_type: LeaderboardType = LeaderboardType.COMPLETION,
        period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
        limit: Optional[int] = None,
    ) -> List[LeaderboardEntry]:
        limit = limit or self.settings.leaderboard_limit
        async with self._operation(
            "get_challenge_leaderboard", type=leaderboard_type, period=period
        ):
            return await self.statistics.get_challenge_leaderboard(
                leaderboard_type, period, limit
            )

