"""
Points ledger adapter for challenge rewards.

Each award is a PointTransaction plus an increment of
GamificationProfile.points, committed together. The (user_id, reference)
unique constraint makes a re-delivered award a no-op.
"""

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.database import get_session_factory
from ..models.gamification_profile import GamificationProfile, PointTransaction

logger = logging.getLogger(__name__)


async def increment_profile(session: AsyncSession, user_id: int, **deltas: int) -> None:
    """Add *deltas* (column name -> amount) to the user's profile.

    Creates the profile when the user has none. If a concurrent writer
    creates it first, the insert conflicts on ``user_id`` and the
    increment is applied to that row instead.
    """
    values = {
        name: getattr(GamificationProfile, name) + amount for name, amount in deltas.items()
    }
    stmt = (
        update(GamificationProfile)
        .where(GamificationProfile.user_id == user_id)
        .values(values)
    )
    result = await session.execute(stmt)
    if result.rowcount:  # type: ignore[attr-defined]
        return

    try:
        async with session.begin_nested():
            session.add(GamificationProfile(user_id=user_id, **deltas))
            await session.flush()
    except IntegrityError:
        logger.info(f"Profile for user {user_id} was created concurrently, incrementing")
        await session.execute(stmt)


class ProfilePointsAwarder:
    """PointsAwarder backed by the gamification profile tables."""

    def __init__(
        self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    ) -> None:
        self._session_factory = session_factory

    async def award(
        self,
        user_id: int,
        amount: int,
        reason: str,
        *,
        reference: Optional[str] = None,
    ) -> bool:
        """Credit *amount* points. Returns False if *reference* was already awarded."""
        factory = self._session_factory or get_session_factory("award points")
        async with factory() as session:
            session.add(
                PointTransaction(
                    user_id=user_id, amount=amount, reason=reason, reference=reference
                )
            )
            try:
                await session.flush()
            except IntegrityError:
                await session.rollback()
                logger.info(f"Points for {reference} already awarded to user {user_id}")
                return False

            await increment_profile(session, user_id, points=amount)
            await session.commit()

        logger.debug(f"Awarded {amount} points to user {user_id} ({reason})")
        return True
