"""SQLAlchemy implementation of ActivityRepository."""

import logging
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_engine.models.gamification_profile import GamificationProfile
from challenge_engine.models.memory import MemoryContent, Review
from challenge_engine.models.user import User

logger = logging.getLogger(__name__)


class SqlAlchemyActivityRepository:
    """Concrete ActivityRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_reviews_since(self, user_id: int, since: datetime) -> int:
        result = await self._session.execute(
            select(func.count(Review.id)).where(
                Review.user_id == user_id, Review.review_time >= since
            )
        )
        return result.scalar() or 0

    async def review_categories_since(self, user_id: int, since: datetime) -> Set[str]:
        result = await self._session.execute(
            select(MemoryContent.category)
            .join(Review, Review.memory_content_id == MemoryContent.id)
            .where(
                Review.user_id == user_id,
                Review.review_time >= since,
                MemoryContent.category.isnot(None),
            )
            .distinct()
        )
        return {category for category in result.scalars().all() if category}

    async def get_user_level(self, user_id: int) -> Optional[int]:
        result = await self._session.execute(
            select(GamificationProfile.level).where(GamificationProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_active_user_ids(self, offset: int = 0, limit: int = 500) -> List[int]:
        result = await self._session.execute(
            select(User.id)
            .where(User.is_active.is_(True))
            .order_by(User.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())
