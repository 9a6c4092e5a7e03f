"""SQLAlchemy implementation of ChallengeUnitOfWork."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from challenge_engine.core.database import get_session_factory

from .sqlalchemy_activity_repository import SqlAlchemyActivityRepository
from .sqlalchemy_challenge_repository import SqlAlchemyChallengeRepository
from .sqlalchemy_statistics_repository import SqlAlchemyStatisticsRepository
from .sqlalchemy_user_challenge_repository import SqlAlchemyUserChallengeRepository

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    """One AsyncSession shared by all challenge repositories.

    Without an explicit session factory the application-wide factory from
    ``init_database()`` is used; entering the scope before the database is
    initialised raises StoreNotReady.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        operation: str = "challenge store access",
    ) -> None:
        self._session_factory = session_factory
        self._operation = operation
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        factory = self._session_factory or get_session_factory(self._operation)
        self._session = factory()
        self.challenges = SqlAlchemyChallengeRepository(self._session)
        self.user_challenges = SqlAlchemyUserChallengeRepository(self._session)
        self.activity = SqlAlchemyActivityRepository(self._session)
        self.statistics = SqlAlchemyStatisticsRepository(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                await self._session.rollback()
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
