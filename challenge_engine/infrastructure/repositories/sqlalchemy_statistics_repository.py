"""SQLAlchemy implementation of StatisticsRepository (grouped aggregates)."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import Float, case, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from challenge_engine.models.challenge import DailyChallenge, UserDailyChallenge
from challenge_engine.models.gamification_profile import GamificationProfile
from challenge_engine.models.user import User

logger = logging.getLogger(__name__)


class SqlAlchemyStatisticsRepository:
    """Concrete StatisticsRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _user_columns(self):
        return (
            User.id.label("user_id"),
            User.username.label("username"),
            User.avatar.label("avatar"),
        )

    async def completion_totals(
        self, since: Optional[date], limit: int
    ) -> List[Dict[str, Any]]:
        """Per-user totals ranked by completion rate, then by completed count."""
        total_expr = func.count(UserDailyChallenge.id)
        completed_expr = func.sum(
            case((UserDailyChallenge.completed.is_(True), 1), else_=0)
        )
        rate = cast(completed_expr, Float) / total_expr
        total = total_expr.label("total")
        completed = completed_expr.label("completed")

        query = (
            select(*self._user_columns(), total, completed)
            .join(UserDailyChallenge, UserDailyChallenge.user_id == User.id)
            .join(DailyChallenge, DailyChallenge.id == UserDailyChallenge.challenge_id)
            .where(User.is_active.is_(True))
        )
        if since is not None:
            query = query.where(DailyChallenge.date >= since)
        query = (
            query.group_by(User.id, User.username, User.avatar)
            .order_by(rate.desc(), completed_expr.desc(), User.id)
            .limit(limit)
        )

        result = await self._session.execute(query)
        return [dict(row._mapping) for row in result.all()]

    async def points_totals(self, since: Optional[date], limit: int) -> List[Dict[str, Any]]:
        total_points = func.coalesce(func.sum(DailyChallenge.points), 0).label(
            "total_points"
        )

        query = (
            select(*self._user_columns(), total_points)
            .join(UserDailyChallenge, UserDailyChallenge.user_id == User.id)
            .join(DailyChallenge, DailyChallenge.id == UserDailyChallenge.challenge_id)
            .where(User.is_active.is_(True), UserDailyChallenge.completed.is_(True))
        )
        if since is not None:
            query = query.where(DailyChallenge.date >= since)
        query = (
            query.group_by(User.id, User.username, User.avatar)
            .order_by(total_points.desc(), User.id)
            .limit(limit)
        )

        result = await self._session.execute(query)
        return [dict(row._mapping) for row in result.all()]

    async def streaks(self, limit: int) -> List[Dict[str, Any]]:
        result = await self._session.execute(
            select(*self._user_columns(), GamificationProfile.streak.label("streak"))
            .join(GamificationProfile, GamificationProfile.user_id == User.id)
            .where(User.is_active.is_(True))
            .order_by(GamificationProfile.streak.desc(), User.id)
            .limit(limit)
        )
        return [dict(row._mapping) for row in result.all()]
