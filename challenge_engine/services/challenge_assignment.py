"""
Challenge assignment engine.

Binds the day's challenges to a user exactly once per (user, challenge).
There is no application-level lock: an insert that loses a race to a
concurrent request hits the store's unique constraint, and the engine
fetches and returns the row the other request created.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from ..domain.errors import DuplicateUserChallenge
from ..domain.repositories import ChallengeUnitOfWork
from ..models.challenge import DailyChallenge, UserDailyChallenge
from ..utils.logging import log_challenge_event
from .challenge_generator import ChallengeGenerator, UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass
class AutoAssignResult:
    success: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class ChallengeAssignmentEngine:
    """Assigns generated challenges to users."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        generator: ChallengeGenerator,
        *,
        clock: Callable[[], datetime] = datetime.now,
        page_size: int = 500,
    ) -> None:
        self._uow_factory = uow_factory
        self._generator = generator
        self._clock = clock
        self._page_size = page_size

    async def assign_to_user(
        self, user_id: int, challenge_date: Optional[date] = None
    ) -> List[UserDailyChallenge]:
        """Ensure *user_id* has a progress row for every challenge of the day.

        Idempotent: existing rows are returned as they are.
        """
        day = challenge_date or self._clock().date()
        async with self._uow_factory() as uow:
            challenges = await self._generator.generate_in(uow, day)
            await uow.commit()

            rows = []
            for challenge in challenges:
                rows.append(await self._assign_one(uow, user_id, challenge))
        return rows

    async def _assign_one(
        self, uow: ChallengeUnitOfWork, user_id: int, challenge: DailyChallenge
    ) -> UserDailyChallenge:
        existing = await uow.user_challenges.find(user_id, challenge.id)
        if existing is not None:
            return existing

        row = UserDailyChallenge(
            user_id=user_id,
            challenge_id=challenge.id,
            progress=0,
            completed=False,
            claimed=False,
            challenge=challenge,
        )
        try:
            await uow.user_challenges.add(row)
        except DuplicateUserChallenge:
            logger.warning(
                f"Challenge {challenge.id} for user {user_id} was assigned concurrently, "
                "fetching existing row"
            )
            row = await uow.user_challenges.find(user_id, challenge.id)
            if row is None:
                raise
            return row

        await uow.commit()
        log_challenge_event(
            "challenge.assigned",
            {"user_id": user_id, "challenge_id": challenge.id, "date": str(challenge.date)},
        )
        return row

    async def auto_assign_all_users(
        self, challenge_date: Optional[date] = None
    ) -> AutoAssignResult:
        """Assign the day's challenges to every active user.

        Users are read page by page. A user who already has rows for the day
        counts as a success; one user's failure is counted and skipped.
        """
        day = challenge_date or self._clock().date()
        result = AutoAssignResult()
        offset = 0

        while True:
            async with self._uow_factory() as uow:
                user_ids = await uow.activity.list_active_user_ids(offset, self._page_size)

            for user_id in user_ids:
                try:
                    async with self._uow_factory() as uow:
                        assigned = await uow.user_challenges.find_for_user_on(user_id, day)
                    if not assigned:
                        await self.assign_to_user(user_id, day)
                    result.success += 1
                except Exception as e:
                    logger.error(
                        f"Failed to assign daily challenges to user {user_id}: {e}",
                        exc_info=True,
                    )
                    result.failed += 1

            if len(user_ids) < self._page_size:
                break
            offset += self._page_size

        logger.info(
            f"Auto-assigned challenges for {day}: {result.success} succeeded, "
            f"{result.failed} failed"
        )
        return result
