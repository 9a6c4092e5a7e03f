"""Event subscribers for the daily challenge workflow.

Each subscriber reacts to ChallengeCompleted independently: a failure in
one (e.g. the notification channel) never affects the others, and never
touches the already-committed progress row. Subscribers must be safe to
run more than once for the same event.
"""

import logging
from typing import Optional

from .events import ChallengeCompleted, ChallengeRewardClaimed, EventBus
from .interfaces import AchievementChecker, NotificationEmitter, PointsAwarder

logger = logging.getLogger(__name__)


def challenge_points_reference(challenge_id: int) -> str:
    """Idempotency key for the points awarded by one challenge."""
    return f"challenge:{challenge_id}"


class ChallengePointsSubscriber:
    """Listens for ChallengeCompleted and awards the challenge's points."""

    def __init__(self, awarder: PointsAwarder) -> None:
        self._awarder = awarder

    def register(self, bus: EventBus) -> None:
        """Subscribe to ChallengeCompleted on the given bus."""
        bus.subscribe(ChallengeCompleted, self.on_challenge_completed)

    async def on_challenge_completed(self, event: ChallengeCompleted) -> None:
        awarded = await self._awarder.award(
            event.user_id,
            event.points,
            f"Completed daily challenge: {event.challenge_title}",
            reference=challenge_points_reference(event.challenge_id),
        )
        if awarded:
            logger.info(
                "Awarded %d points to user %s for challenge %s",
                event.points,
                event.user_id,
                event.challenge_id,
            )
        else:
            logger.debug(
                "Points for challenge %s already awarded to user %s",
                event.challenge_id,
                event.user_id,
            )


class AchievementRecheckSubscriber:
    """Listens for ChallengeCompleted and asks achievements to re-evaluate."""

    def __init__(self, checker: AchievementChecker) -> None:
        self._checker = checker

    def register(self, bus: EventBus) -> None:
        bus.subscribe(ChallengeCompleted, self.on_challenge_completed)

    async def on_challenge_completed(self, event: ChallengeCompleted) -> None:
        await self._checker.recheck_for_user(event.user_id)


class ChallengeNotificationSubscriber:
    """Forwards challenge events to the notification channel."""

    def __init__(self, emitter: NotificationEmitter) -> None:
        self._emitter = emitter

    def register(self, bus: EventBus) -> None:
        bus.subscribe(ChallengeCompleted, self.on_challenge_completed)
        bus.subscribe(ChallengeRewardClaimed, self.on_reward_claimed)

    async def on_challenge_completed(self, event: ChallengeCompleted) -> None:
        await self._emitter.emit(
            "challenge_completed",
            {
                "user_id": event.user_id,
                "challenge_id": event.challenge_id,
                "challenge_title": event.challenge_title,
                "challenge_type": event.challenge_type,
                "points": event.points,
                "completed_at": event.completed_at.isoformat(),
            },
        )

    async def on_reward_claimed(self, event: ChallengeRewardClaimed) -> None:
        await self._emitter.emit(
            "challenge_reward_claimed",
            {
                "user_id": event.user_id,
                "challenge_id": event.challenge_id,
                "points": event.points,
            },
        )


def register_challenge_subscribers(
    bus: EventBus,
    *,
    points: Optional[PointsAwarder] = None,
    achievements: Optional[AchievementChecker] = None,
    notifications: Optional[NotificationEmitter] = None,
) -> int:
    """Wire the available collaborators onto *bus*. Returns how many were registered."""
    registered = 0
    if points is not None:
        ChallengePointsSubscriber(points).register(bus)
        registered += 1
    if achievements is not None:
        AchievementRecheckSubscriber(achievements).register(bus)
        registered += 1
    if notifications is not None:
        ChallengeNotificationSubscriber(notifications).register(bus)
        registered += 1
    logger.info("Registered %d challenge subscribers", registered)
    return registered
