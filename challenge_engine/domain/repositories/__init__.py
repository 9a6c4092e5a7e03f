from .activity_repository import ActivityRepository
from .challenge_repository import ChallengeRepository
from .statistics_repository import StatisticsRepository
from .unit_of_work import ChallengeUnitOfWork
from .user_challenge_repository import UserChallengeRepository

__all__ = [
    "ActivityRepository",
    "ChallengeRepository",
    "ChallengeUnitOfWork",
    "StatisticsRepository",
    "UserChallengeRepository",
]
