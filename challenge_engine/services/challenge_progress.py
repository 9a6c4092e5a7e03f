"""
Progress tracker.

Records caller-supplied progress (a 0-100 percentage) per (user, challenge)
and detects the one-way completion transition. The transition itself is a
conditional update, so among concurrent callers exactly one wins it, and
only the winner publishes ChallengeCompleted. The event is published after
commit: subscriber failures can never undo the progress write.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Sequence, Tuple

from ..domain.errors import ChallengeNotFound, DuplicateUserChallenge
from ..domain.events import ChallengeCompleted, EventBus
from ..domain.repositories import ChallengeUnitOfWork
from ..models.challenge import ChallengeType, UserDailyChallenge
from ..utils.logging import log_challenge_event
from .challenge_domain import COMPLETE_PERCENT, count_from_percent, progress_percent
from .challenge_generator import UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass
class ProgressUpdate:
    challenge_id: int
    progress: int


@dataclass
class ProgressFailure:
    challenge_id: int
    error: str


@dataclass
class BatchProgressResult:
    updated: List[UserDailyChallenge] = field(default_factory=list)
    failures: List[ProgressFailure] = field(default_factory=list)


class ProgressTracker:
    """Writes progress rows and fires completion events."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        event_bus: EventBus,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._uow_factory = uow_factory
        self._bus = event_bus
        self._clock = clock

    async def update_progress(
        self, user_id: int, challenge_id: int, progress: int
    ) -> UserDailyChallenge:
        """Record *progress* exactly as given; completion is progress >= 100."""
        async with self._uow_factory() as uow:
            just_completed = await self._apply(uow, user_id, challenge_id, progress)
            await uow.commit()
            row = await uow.user_challenges.find(user_id, challenge_id)

        if just_completed:
            await self._publish_completed(row)
        return row

    async def _apply(
        self, uow: ChallengeUnitOfWork, user_id: int, challenge_id: int, progress: int
    ) -> bool:
        """Write the progress. Returns True if this call completed the challenge."""
        is_completed = progress >= COMPLETE_PERCENT
        row = await uow.user_challenges.find(user_id, challenge_id)

        if row is None:
            challenge = await uow.challenges.get(challenge_id)
            if challenge is None:
                raise ChallengeNotFound(challenge_id)

            row = UserDailyChallenge(
                user_id=user_id,
                challenge_id=challenge_id,
                progress=progress,
                completed=is_completed,
                completed_at=self._clock() if is_completed else None,
                claimed=False,
                challenge=challenge,
            )
            try:
                await uow.user_challenges.add(row)
                return is_completed
            except DuplicateUserChallenge:
                logger.info(
                    f"Progress row for user {user_id} / challenge {challenge_id} "
                    "was created concurrently, applying as update"
                )

        if is_completed and await uow.user_challenges.mark_completed(
            user_id, challenge_id, progress, self._clock()
        ):
            return True

        # Either not complete yet or already completed earlier: completed and
        # completed_at stay as they are.
        await uow.user_challenges.set_progress(user_id, challenge_id, progress)
        return False

    async def _publish_completed(self, row: UserDailyChallenge) -> None:
        challenge = row.challenge
        log_challenge_event(
            "challenge.completed",
            {
                "user_id": row.user_id,
                "challenge_id": row.challenge_id,
                "points": challenge.points,
            },
        )
        await self._bus.publish(
            ChallengeCompleted(
                user_id=row.user_id,
                challenge_id=row.challenge_id,
                challenge_title=challenge.title,
                challenge_type=ChallengeType(challenge.type).value,
                points=challenge.points,
                completed_at=row.completed_at,
            )
        )

    async def batch_update_progress(
        self,
        user_id: int,
        updates: Sequence[ProgressUpdate],
        *,
        stop_on_error: bool = False,
    ) -> BatchProgressResult:
        """Apply updates one by one. No atomicity across items."""
        result = BatchProgressResult()
        for item in updates:
            try:
                row = await self.update_progress(user_id, item.challenge_id, item.progress)
            except Exception as e:
                if stop_on_error:
                    raise
                logger.error(
                    f"Progress update failed for user {user_id} / challenge "
                    f"{item.challenge_id}: {e}"
                )
                result.failures.append(ProgressFailure(item.challenge_id, str(e)))
                continue
            result.updated.append(row)
        return result

    # ------------------------------------------------------------------
    # Activity hooks
    # ------------------------------------------------------------------

    async def record_review_completed(self, user_id: int) -> List[UserDailyChallenge]:
        """Advance today's review-count challenges by one review."""
        return await self._increment(user_id, ChallengeType.REVIEW_COUNT)

    async def record_memory_created(self, user_id: int) -> List[UserDailyChallenge]:
        """Advance today's memory-created challenges by one memory."""
        return await self._increment(user_id, ChallengeType.MEMORY_CREATED)

    async def _increment(
        self, user_id: int, challenge_type: ChallengeType
    ) -> List[UserDailyChallenge]:
        today = self._clock().date()
        async with self._uow_factory() as uow:
            rows = await uow.user_challenges.find_for_user_on(user_id, today)
            pending: List[Tuple[int, int]] = []
            for row in rows:
                challenge = row.challenge
                if challenge.type != challenge_type or row.completed:
                    continue
                count = count_from_percent(row.progress, challenge.target) + 1
                pending.append((row.challenge_id, progress_percent(count, challenge.target)))

        updated = []
        for challenge_id, progress in pending:
            updated.append(await self.update_progress(user_id, challenge_id, progress))
        return updated

