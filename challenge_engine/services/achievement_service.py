"""
Challenge achievements.

Milestones on the number of completed daily challenges. A recheck counts
the user's completed challenges and unlocks every milestone reached that is
not unlocked yet, crediting its experience to the gamification profile.
"""

import logging
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.database import get_session_factory
from ..models.achievement import UserAchievement
from ..models.challenge import UserDailyChallenge
from ..utils.logging import get_challenge_logger
from .points_service import increment_profile

logger = logging.getLogger(__name__)

ACHIEVEMENT_DEFINITIONS: Dict[str, Dict[str, Any]] = {
    "challenge_first": {"name": "First Challenge", "target": 1, "xp": 10},
    "challenge_7": {"name": "Week of Challenges", "target": 7, "xp": 25},
    "challenge_30": {"name": "Challenge Regular", "target": 30, "xp": 60},
    "challenge_100": {"name": "Challenge Master", "target": 100, "xp": 150},
}


class ChallengeAchievementChecker:
    """AchievementChecker over completed daily challenges."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        audit_logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self._session_factory = session_factory
        self._audit = audit_logger or get_challenge_logger()

    async def recheck_for_user(self, user_id: int) -> List[str]:
        """Unlock every reached milestone. Returns the codes unlocked by this call."""
        factory = self._session_factory or get_session_factory("recheck achievements")
        unlocked: List[str] = []
        async with factory() as session:
            completed = await session.scalar(
                select(func.count(UserDailyChallenge.id)).where(
                    UserDailyChallenge.user_id == user_id,
                    UserDailyChallenge.completed.is_(True),
                )
            )
            existing = set(
                (
                    await session.scalars(
                        select(UserAchievement.code).where(UserAchievement.user_id == user_id)
                    )
                ).all()
            )

            for code, definition in ACHIEVEMENT_DEFINITIONS.items():
                if code in existing or completed < definition["target"]:
                    continue
                try:
                    async with session.begin_nested():
                        session.add(UserAchievement(user_id=user_id, code=code))
                        await session.flush()
                except IntegrityError:
                    # Unlocked by a concurrent recheck
                    continue
                await increment_profile(session, user_id, experience=definition["xp"])
                unlocked.append(code)

            await session.commit()

        for code in unlocked:
            self._audit.info(
                "achievement.unlocked",
                user_id=user_id,
                code=code,
                name=ACHIEVEMENT_DEFINITIONS[code]["name"],
            )
        if unlocked:
            logger.info(f"User {user_id} unlocked {len(unlocked)} achievement(s)")
        return unlocked
