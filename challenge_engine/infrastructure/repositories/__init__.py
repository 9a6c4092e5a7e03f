from .sqlalchemy_activity_repository import SqlAlchemyActivityRepository
from .sqlalchemy_challenge_repository import SqlAlchemyChallengeRepository
from .sqlalchemy_statistics_repository import SqlAlchemyStatisticsRepository
from .sqlalchemy_unit_of_work import SqlAlchemyUnitOfWork
from .sqlalchemy_user_challenge_repository import SqlAlchemyUserChallengeRepository

__all__ = [
    "SqlAlchemyActivityRepository",
    "SqlAlchemyChallengeRepository",
    "SqlAlchemyStatisticsRepository",
    "SqlAlchemyUnitOfWork",
    "SqlAlchemyUserChallengeRepository",
]
