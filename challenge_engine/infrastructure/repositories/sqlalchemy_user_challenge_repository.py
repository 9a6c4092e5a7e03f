"""SQLAlchemy implementation of UserChallengeRepository."""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_engine.domain.errors import DuplicateUserChallenge
from challenge_engine.models.challenge import DailyChallenge, UserDailyChallenge

logger = logging.getLogger(__name__)


class SqlAlchemyUserChallengeRepository:
    """Concrete UserChallengeRepository backed by SQLAlchemy async sessions.

    Transitions are single conditional UPDATE statements, so the store decides
    which of two concurrent callers wins.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find(self, user_id: int, challenge_id: int) -> Optional[UserDailyChallenge]:
        result = await self._session.execute(
            select(UserDailyChallenge)
            .where(
                UserDailyChallenge.user_id == user_id,
                UserDailyChallenge.challenge_id == challenge_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_for_user(self, user_id: int) -> List[UserDailyChallenge]:
        result = await self._session.execute(
            select(UserDailyChallenge)
            .where(UserDailyChallenge.user_id == user_id)
            .order_by(UserDailyChallenge.challenge_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_for_user_on(
        self, user_id: int, challenge_date: date
    ) -> List[UserDailyChallenge]:
        result = await self._session.execute(
            select(UserDailyChallenge)
            .join(DailyChallenge, DailyChallenge.id == UserDailyChallenge.challenge_id)
            .where(
                UserDailyChallenge.user_id == user_id,
                DailyChallenge.date == challenge_date,
            )
            .order_by(UserDailyChallenge.challenge_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_for_user_from(
        self, user_id: int, start: date
    ) -> List[UserDailyChallenge]:
        result = await self._session.execute(
            select(UserDailyChallenge)
            .join(DailyChallenge, DailyChallenge.id == UserDailyChallenge.challenge_id)
            .where(UserDailyChallenge.user_id == user_id, DailyChallenge.date >= start)
            .order_by(DailyChallenge.date, UserDailyChallenge.challenge_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def add(self, user_challenge: UserDailyChallenge) -> UserDailyChallenge:
        """Insert a progress row inside a savepoint."""
        try:
            async with self._session.begin_nested():
                self._session.add(user_challenge)
                await self._session.flush()
        except IntegrityError as e:
            logger.debug(
                f"Progress row insert for user {user_challenge.user_id} / challenge "
                f"{user_challenge.challenge_id} hit unique constraint: {e.orig}"
            )
            raise DuplicateUserChallenge(
                user_challenge.user_id, user_challenge.challenge_id
            ) from e
        return user_challenge

    async def set_progress(self, user_id: int, challenge_id: int, progress: int) -> None:
        await self._session.execute(
            update(UserDailyChallenge)
            .where(
                UserDailyChallenge.user_id == user_id,
                UserDailyChallenge.challenge_id == challenge_id,
            )
            .values(progress=progress, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )

    async def mark_completed(
        self, user_id: int, challenge_id: int, progress: int, completed_at: datetime
    ) -> bool:
        result = await self._session.execute(
            update(UserDailyChallenge)
            .where(
                UserDailyChallenge.user_id == user_id,
                UserDailyChallenge.challenge_id == challenge_id,
                UserDailyChallenge.completed.is_(False),
            )
            .values(
                progress=progress,
                completed=True,
                completed_at=completed_at,
                updated_at=datetime.now(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def mark_claimed(self, user_id: int, challenge_id: int) -> bool:
        result = await self._session.execute(
            update(UserDailyChallenge)
            .where(
                UserDailyChallenge.user_id == user_id,
                UserDailyChallenge.challenge_id == challenge_id,
                UserDailyChallenge.completed.is_(True),
                UserDailyChallenge.claimed.is_(False),
            )
            .values(claimed=True, updated_at=datetime.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def completed_challenge_dates(self, user_id: int, start: date) -> Set[date]:
        result = await self._session.execute(
            select(DailyChallenge.date)
            .join(UserDailyChallenge, UserDailyChallenge.challenge_id == DailyChallenge.id)
            .where(
                UserDailyChallenge.user_id == user_id,
                UserDailyChallenge.completed.is_(True),
                DailyChallenge.date >= start,
            )
            .distinct()
        )
        return set(result.scalars().all())

    async def completed_challenge_ids(
        self, user_id: int, challenge_ids: Iterable[int]
    ) -> Set[int]:
        ids = list(challenge_ids)
        if not ids:
            return set()
        result = await self._session.execute(
            select(UserDailyChallenge.challenge_id).where(
                UserDailyChallenge.user_id == user_id,
                UserDailyChallenge.completed.is_(True),
                UserDailyChallenge.challenge_id.in_(ids),
            )
        )
        return set(result.scalars().all())
