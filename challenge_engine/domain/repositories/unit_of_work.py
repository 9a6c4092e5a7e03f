"""ChallengeUnitOfWork protocol — one transactional scope over all challenge repositories."""

from typing import Protocol, runtime_checkable

from .activity_repository import ActivityRepository
from .challenge_repository import ChallengeRepository
from .statistics_repository import StatisticsRepository
from .user_challenge_repository import UserChallengeRepository


@runtime_checkable
class ChallengeUnitOfWork(Protocol):
    """Async context manager grouping the repositories of one store session.

    Leaving the context without calling ``commit()`` discards pending writes.
    """

    challenges: ChallengeRepository
    user_challenges: UserChallengeRepository
    activity: ActivityRepository
    statistics: StatisticsRepository

    async def __aenter__(self) -> "ChallengeUnitOfWork": ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
