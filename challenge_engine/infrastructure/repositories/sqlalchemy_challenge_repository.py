"""SQLAlchemy implementation of ChallengeRepository."""

import logging
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_engine.domain.errors import DuplicateChallengeBatch
from challenge_engine.models.challenge import DailyChallenge

logger = logging.getLogger(__name__)


class SqlAlchemyChallengeRepository:
    """Concrete ChallengeRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_date(self, challenge_date: date) -> List[DailyChallenge]:
        """Get every challenge for a calendar day, ordered by ID."""
        result = await self._session.execute(
            select(DailyChallenge)
            .where(DailyChallenge.date == challenge_date)
            .order_by(DailyChallenge.id)
        )
        return list(result.scalars().all())

    async def find_active_from(self, start: date) -> List[DailyChallenge]:
        result = await self._session.execute(
            select(DailyChallenge)
            .where(DailyChallenge.is_active.is_(True), DailyChallenge.date >= start)
            .order_by(DailyChallenge.date, DailyChallenge.id)
        )
        return list(result.scalars().all())

    async def find_between(
        self, start: date, end: date, active_only: bool = False
    ) -> List[DailyChallenge]:
        query = select(DailyChallenge).where(
            DailyChallenge.date >= start, DailyChallenge.date < end
        )
        if active_only:
            query = query.where(DailyChallenge.is_active.is_(True))
        result = await self._session.execute(
            query.order_by(DailyChallenge.date, DailyChallenge.id)
        )
        return list(result.scalars().all())

    async def get(self, challenge_id: int) -> Optional[DailyChallenge]:
        result = await self._session.execute(
            select(DailyChallenge).where(DailyChallenge.id == challenge_id)
        )
        return result.scalar_one_or_none()

    async def add_batch(
        self, challenges: Sequence[DailyChallenge]
    ) -> List[DailyChallenge]:
        """Insert a day's batch inside a savepoint; all rows or none."""
        try:
            async with self._session.begin_nested():
                self._session.add_all(challenges)
                await self._session.flush()
        except IntegrityError as e:
            challenge_date = challenges[0].date if challenges else None
            logger.info(f"Challenge batch for {challenge_date} rejected by store: {e.orig}")
            raise DuplicateChallengeBatch(challenge_date) from e
        return list(challenges)

    async def deactivate_before(self, cutoff: date) -> int:
        """Deactivate challenges dated before cutoff. Returns count."""
        result = await self._session.execute(
            update(DailyChallenge)
            .where(DailyChallenge.date < cutoff, DailyChallenge.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined]
