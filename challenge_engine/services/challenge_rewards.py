"""
Reward claim gate: the only writer of ``claimed``.
"""

import logging

from ..domain.errors import InvalidClaim
from ..domain.events import ChallengeRewardClaimed, EventBus
from ..models.challenge import UserDailyChallenge
from ..utils.logging import log_challenge_event
from .challenge_generator import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class RewardClaimGate:
    """Claims a completed challenge's reward once."""

    def __init__(self, uow_factory: UnitOfWorkFactory, event_bus: EventBus) -> None:
        self._uow_factory = uow_factory
        self._bus = event_bus

    async def claim(self, user_id: int, challenge_id: int) -> UserDailyChallenge:
        """Mark the reward as claimed.

        Raises:
            InvalidClaim: no progress row, not completed, or already claimed.
                A second claim on the same row always fails.
        """
        async with self._uow_factory() as uow:
            row = await uow.user_challenges.find(user_id, challenge_id)
            if row is None:
                raise InvalidClaim(user_id, challenge_id, InvalidClaim.NOT_FOUND)
            if not row.completed:
                raise InvalidClaim(user_id, challenge_id, InvalidClaim.NOT_COMPLETED)
            if row.claimed:
                raise InvalidClaim(user_id, challenge_id, InvalidClaim.ALREADY_CLAIMED)

            # A concurrent claim may have won between the read and this update
            if not await uow.user_challenges.mark_claimed(user_id, challenge_id):
                raise InvalidClaim(user_id, challenge_id, InvalidClaim.ALREADY_CLAIMED)

            await uow.commit()
            row = await uow.user_challenges.find(user_id, challenge_id)

        points = row.challenge.points
        log_challenge_event(
            "challenge.claimed",
            {"user_id": user_id, "challenge_id": challenge_id, "points": points},
        )
        await self._bus.publish(ChallengeRewardClaimed(user_id, challenge_id, points))
        return row
