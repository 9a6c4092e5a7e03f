"""
Read-only challenge statistics and leaderboards.

Every figure counts a progress row at most once: per-user figures iterate
the user's rows, leaderboards come from grouped aggregate queries.
"""

import calendar
import enum
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from ..models.challenge import ChallengeType
from .challenge_domain import completion_rate, recent_days
from .challenge_generator import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class LeaderboardType(str, enum.Enum):
    COMPLETION = "completion"
    POINTS = "points"
    STREAK = "streak"


class LeaderboardPeriod(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


@dataclass
class LeaderboardEntry:
    user_id: int
    username: str
    avatar: Optional[str]
    value: int
    rank: int


def period_start(period: LeaderboardPeriod, today: date) -> Optional[date]:
    """First challenge date counted for *period*; None means no lower bound."""
    if period == LeaderboardPeriod.DAILY:
        return today
    if period == LeaderboardPeriod.WEEKLY:
        return today - timedelta(days=7)
    if period == LeaderboardPeriod.MONTHLY:
        year, month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)
        day = min(today.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)
    return None


def _percent(completed: int, total: int) -> int:
    # Half-up rounding, so 2/3 -> 67 and 1/8 -> 13
    return math.floor(completion_rate(completed, total) * 100 + 0.5)


class ChallengeStatistics:
    """Per-user rollups and leaderboards."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def get_user_challenge_stats(self, user_id: int) -> Dict[str, Any]:
        """Totals over every challenge ever assigned to the user."""
        async with self._uow_factory() as uow:
            rows = await uow.user_challenges.find_for_user(user_id)

        by_type = {t.value: {"total": 0, "completed": 0} for t in ChallengeType}
        for row in rows:
            bucket = by_type[ChallengeType(row.challenge.type).value]
            bucket["total"] += 1
            if row.completed:
                bucket["completed"] += 1

        return {
            "total": len(rows),
            "completed": sum(1 for row in rows if row.completed),
            "claimed": sum(1 for row in rows if row.claimed),
            "by_type": by_type,
        }

    async def get_user_challenge_completion_rate(
        self, user_id: int, days: int = 30
    ) -> Dict[str, Any]:
        """Completion rate over the last *days* days with a per-day breakdown.

        The denominator is every challenge dated in the window, whether the
        user was assigned it or not.
        """
        today = self._clock().date()
        window = recent_days(today, days)
        async with self._uow_factory() as uow:
            challenges = await uow.challenges.find_between(
                window[-1], today + timedelta(days=1)
            )
            completed_ids = await uow.user_challenges.completed_challenge_ids(
                user_id, [c.id for c in challenges]
            )

        daily = {day: {"total": 0, "completed": 0} for day in window}
        for challenge in challenges:
            stats = daily.get(challenge.date)
            if stats is None:
                continue
            stats["total"] += 1
            if challenge.id in completed_ids:
                stats["completed"] += 1

        total = sum(s["total"] for s in daily.values())
        completed = sum(s["completed"] for s in daily.values())
        return {
            "total_challenges": total,
            "completed_challenges": completed,
            "completion_rate": completion_rate(completed, total),
            "daily_stats": [
                {"date": day.isoformat(), **stats} for day, stats in daily.items()
            ],
        }

    async def get_challenge_completion_stats(
        self, user_id: int, days: int = 30
    ) -> Dict[str, Any]:
        """Assigned, completed and earned points per type over the last *days* days."""
        start = self._clock().date() - timedelta(days=days)
        async with self._uow_factory() as uow:
            rows = await uow.user_challenges.find_for_user_from(user_id, start)

        by_type: Dict[str, Dict[str, int]] = {}
        total_points = 0
        for row in rows:
            bucket = by_type.setdefault(
                ChallengeType(row.challenge.type).value,
                {"total": 0, "completed": 0, "points": 0},
            )
            bucket["total"] += 1
            if row.completed:
                bucket["completed"] += 1
                bucket["points"] += row.challenge.points
                total_points += row.challenge.points

        completed = sum(1 for row in rows if row.completed)
        return {
            "total_challenges": len(rows),
            "completed_challenges": completed,
            "completion_rate": completion_rate(completed, len(rows)),
            "total_points": total_points,
            "by_type": by_type,
        }

    async def get_challenge_leaderboard(
        self,
        leaderboard_type: LeaderboardType = LeaderboardType.COMPLETION,
        period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
        limit: int = 10,
    ) -> List[LeaderboardEntry]:
        """Ranked users for *leaderboard_type* over *period* (rank starts at 1)."""
        leaderboard_type = LeaderboardType(leaderboard_type)
        since = period_start(LeaderboardPeriod(period), self._clock().date())

        async with self._uow_factory() as uow:
            if leaderboard_type == LeaderboardType.COMPLETION:
                rows = await uow.statistics.completion_totals(since, limit)
                values = [_percent(int(r["completed"] or 0), int(r["total"])) for r in rows]
            elif leaderboard_type == LeaderboardType.POINTS:
                rows = await uow.statistics.points_totals(since, limit)
                values = [int(r["total_points"]) for r in rows]
            else:
                rows = await uow.statistics.streaks(limit)
                values = [int(r["streak"]) for r in rows]

        return [
            LeaderboardEntry(
                user_id=row["user_id"],
                username=row["username"],
                avatar=row["avatar"],
                value=value,
                rank=index + 1,
            )
            for index, (row, value) in enumerate(zip(rows, values))
        ]
