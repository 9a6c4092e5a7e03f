"""
Challenge generator.

Produces the canonical set of DailyChallenge rows for a calendar day. The
(date, title) unique constraint makes generation idempotent: a caller that
loses a concurrent race discards its own batch and returns the winner's.
"""

import logging
import random
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

from ..domain.errors import DuplicateChallengeBatch
from ..domain.repositories import ChallengeUnitOfWork
from ..models.challenge import DailyChallenge
from .challenge_domain import (
    DEFAULT_COMPLETION_RATE,
    DEFAULT_LEVEL,
    completion_rate,
    difficulty_multiplier,
    scale_template,
    select_templates,
)

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], ChallengeUnitOfWork]


class ChallengeGenerator:
    """Creates (or reuses) the day's challenge batch."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
        history_window_days: int = 30,
    ) -> None:
        self._uow_factory = uow_factory
        self._rng = rng or random.Random()
        self._clock = clock
        self._history_window_days = history_window_days

    async def generate_challenges(
        self, challenge_date: Optional[date] = None, user_id: Optional[int] = None
    ) -> List[DailyChallenge]:
        """Return the challenges for *challenge_date* (default today), creating them once."""
        day = challenge_date or self._clock().date()
        async with self._uow_factory() as uow:
            challenges = await self.generate_in(uow, day, user_id)
            await uow.commit()
        return challenges

    async def generate_in(
        self, uow: ChallengeUnitOfWork, day: date, user_id: Optional[int] = None
    ) -> List[DailyChallenge]:
        """Generate inside an open unit of work. The caller commits."""
        existing = await uow.challenges.find_by_date(day)
        if existing:
            logger.debug(f"Reusing {len(existing)} challenges for {day}")
            return existing

        multiplier = await self._multiplier_for(uow, user_id, day)
        batch = [
            DailyChallenge(
                title=scaled.title,
                description=scaled.description,
                type=scaled.type,
                target=scaled.target,
                points=scaled.points,
                date=day,
                is_active=True,
            )
            for scaled in (
                scale_template(template, multiplier)
                for template in select_templates(day, self._rng)
            )
        ]

        try:
            created = await uow.challenges.add_batch(batch)
        except DuplicateChallengeBatch:
            logger.info(f"Challenges for {day} were generated concurrently, using stored set")
            return await uow.challenges.find_by_date(day)

        logger.info(
            f"Generated {len(created)} challenges for {day} (multiplier={multiplier})"
        )
        return created

    async def _multiplier_for(
        self, uow: ChallengeUnitOfWork, user_id: Optional[int], day: date
    ) -> Decimal:
        if user_id is None:
            return Decimal("1.0")

        level = await uow.activity.get_user_level(user_id)
        if level is None:
            level = DEFAULT_LEVEL

        since = day - timedelta(days=self._history_window_days)
        history = await uow.user_challenges.find_for_user_from(user_id, since)
        if history:
            completed = sum(1 for row in history if row.completed)
            rate = completion_rate(completed, len(history))
        else:
            rate = DEFAULT_COMPLETION_RATE

        multiplier = difficulty_multiplier(level, rate)
        logger.debug(
            f"Difficulty for user {user_id}: level={level} completion_rate={rate:.2f} "
            f"multiplier={multiplier}"
        )
        return multiplier
