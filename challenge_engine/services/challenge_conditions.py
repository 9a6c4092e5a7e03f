"""
Condition evaluator.

Read-only predicates that gate advanced challenges. Evaluation fails
closed: a query error is logged and the condition reports False, so a
broken lookup can never grant a reward or break a progress write.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from ..domain.repositories import ChallengeUnitOfWork
from .challenge_domain import ChallengeCondition, covers_every_day, is_weekend
from .challenge_generator import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class ConditionEvaluator:
    """Evaluates a ChallengeCondition for one user."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        clock: Callable[[], datetime] = datetime.now,
        time_limit_minutes: int = 30,
        time_limit_reviews: int = 5,
        streak_days: int = 7,
        variety_categories: int = 3,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._time_limit_minutes = time_limit_minutes
        self._time_limit_reviews = time_limit_reviews
        self._streak_days = streak_days
        self._variety_categories = variety_categories

    async def evaluate(
        self,
        user_id: int,
        condition: Union[ChallengeCondition, str],
        challenge_id: Optional[int] = None,
    ) -> bool:
        """Return whether *condition* currently holds for *user_id*.

        Unknown condition tags and store errors evaluate to False.
        """
        parsed = (
            condition
            if isinstance(condition, ChallengeCondition)
            else ChallengeCondition.parse(condition)
        )
        if parsed is None:
            logger.warning(
                f"Unknown challenge condition {condition!r} (user {user_id}, "
                f"challenge {challenge_id})"
            )
            return False

        now = self._clock()
        try:
            async with self._uow_factory() as uow:
                return await self._dispatch(uow, user_id, parsed, now)
        except Exception as e:
            logger.error(
                f"Condition {parsed.value} failed for user {user_id} "
                f"(challenge {challenge_id}): {e}",
                exc_info=True,
            )
            return False

    async def _dispatch(
        self,
        uow: ChallengeUnitOfWork,
        user_id: int,
        condition: ChallengeCondition,
        now: datetime,
    ) -> bool:
        if condition == ChallengeCondition.TIME_LIMIT:
            return await self._time_limit(uow, user_id, now)
        elif condition == ChallengeCondition.CONSECUTIVE_DAYS:
            return await self._consecutive_days(uow, user_id, now)
        elif condition == ChallengeCondition.VARIETY:
            return await self._variety(uow, user_id, now)
        elif condition == ChallengeCondition.WEEKEND_ONLY:
            return is_weekend(now.date())
        elif condition == ChallengeCondition.WEEKLY_COMPLETION:
            return await self._weekly_completion(uow, user_id, now)

        logger.warning(f"No evaluator for condition {condition.value}")
        return False

    async def _time_limit(self, uow: ChallengeUnitOfWork, user_id: int, now: datetime) -> bool:
        since = now - timedelta(minutes=self._time_limit_minutes)
        reviews = await uow.activity.count_reviews_since(user_id, since)
        return reviews >= self._time_limit_reviews

    async def _consecutive_days(
        self, uow: ChallengeUnitOfWork, user_id: int, now: datetime
    ) -> bool:
        today = now.date()
        start = today - timedelta(days=self._streak_days - 1)
        completed_dates = await uow.user_challenges.completed_challenge_dates(user_id, start)
        return covers_every_day(completed_dates, today, self._streak_days)

    async def _variety(self, uow: ChallengeUnitOfWork, user_id: int, now: datetime) -> bool:
        midnight = datetime.combine(now.date(), datetime.min.time())
        categories = await uow.activity.review_categories_since(user_id, midnight)
        return len(categories) >= self._variety_categories

    async def _weekly_completion(
        self, uow: ChallengeUnitOfWork, user_id: int, now: datetime
    ) -> bool:
        today = now.date()
        start = today - timedelta(days=self._streak_days - 1)
        week = await uow.challenges.find_between(start, today + timedelta(days=1))
        completed_ids = await uow.user_challenges.completed_challenge_ids(
            user_id, [challenge.id for challenge in week]
        )
        completed_dates = {c.date for c in week if c.id in completed_ids}
        return covers_every_day(completed_dates, today, self._streak_days)
