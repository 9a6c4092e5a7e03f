from .achievement import UserAchievement
from .base import Base, TimestampMixin
from .challenge import ChallengeType, DailyChallenge, UserDailyChallenge
from .gamification_profile import GamificationProfile, PointTransaction
from .memory import MemoryContent, Review
from .user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "ChallengeType",
    "DailyChallenge",
    "UserDailyChallenge",
    "GamificationProfile",
    "PointTransaction",
    "MemoryContent",
    "Review",
    "User",
    "UserAchievement",
]
