"""Tests for ChallengeStatistics: per-user rollups and leaderboards."""

from datetime import date, timedelta

import pytest

from challenge_engine.models.challenge import ChallengeType
from challenge_engine.services.challenge_statistics import (
    ChallengeStatistics,
    LeaderboardPeriod,
    LeaderboardType,
    period_start,
)
from tests.conftest import WEDNESDAY

TODAY = WEDNESDAY.date()


@pytest.fixture
def stats(uow_factory, clock):
    return ChallengeStatistics(uow_factory, clock=clock)


class TestPeriodStart:
    def test_daily(self):
        assert period_start(LeaderboardPeriod.DAILY, TODAY) == TODAY

    def test_weekly(self):
        assert period_start(LeaderboardPeriod.WEEKLY, TODAY) == date(2026, 3, 4)

    def test_monthly(self):
        assert period_start(LeaderboardPeriod.MONTHLY, TODAY) == date(2026, 2, 11)

    def test_monthly_clamps_day(self):
        assert period_start(LeaderboardPeriod.MONTHLY, date(2026, 3, 31)) == date(2026, 2, 28)

    def test_monthly_crosses_year(self):
        assert period_start(LeaderboardPeriod.MONTHLY, date(2026, 1, 15)) == date(2025, 12, 15)

    def test_all_time(self):
        assert period_start(LeaderboardPeriod.ALL_TIME, TODAY) is None


class TestUserChallengeStats:
    async def test_totals_and_by_type(self, stats, store):
        review = store.add_challenge(TODAY, "Daily Review")
        memory = store.add_challenge(TODAY, "Memory Creator", type=ChallengeType.MEMORY_CREATED)
        store.add_row(1, review, progress=100, completed=True, completed_at=WEDNESDAY, claimed=True)
        store.add_row(1, memory, progress=33)

        result = await stats.get_user_challenge_stats(1)

        assert result["total"] == 2
        assert result["completed"] == 1
        assert result["claimed"] == 1
        assert set(result["by_type"]) == {t.value for t in ChallengeType}
        assert result["by_type"]["REVIEW_COUNT"] == {"total": 1, "completed": 1}
        assert result["by_type"]["STREAK_DAYS"] == {"total": 0, "completed": 0}

    async def test_no_rows(self, stats):
        result = await stats.get_user_challenge_stats(42)
        assert (result["total"], result["completed"], result["claimed"]) == (0, 0, 0)


class TestCompletionRate:
    async def test_window_counts_every_challenge(self, stats, store):
        today_a = store.add_challenge(TODAY, "Daily Review")
        store.add_challenge(TODAY, "Memory Creator")
        yesterday = store.add_challenge(TODAY - timedelta(days=1), "Daily Review")
        store.add_challenge(TODAY - timedelta(days=10), "Daily Review")
        store.add_row(1, today_a, progress=100, completed=True, completed_at=WEDNESDAY)
        store.add_row(1, yesterday, progress=100, completed=True, completed_at=WEDNESDAY)

        result = await stats.get_user_challenge_completion_rate(1, days=7)

        assert result["total_challenges"] == 3
        assert result["completed_challenges"] == 2
        assert result["completion_rate"] == pytest.approx(2 / 3)
        assert len(result["daily_stats"]) == 7
        assert result["daily_stats"][0] == {"date": "2026-03-11", "total": 2, "completed": 1}
        assert result["daily_stats"][1] == {"date": "2026-03-10", "total": 1, "completed": 1}

    async def test_empty_window(self, stats):
        result = await stats.get_user_challenge_completion_rate(1, days=3)
        assert result["completion_rate"] == 0.0
        assert [d["total"] for d in result["daily_stats"]] == [0, 0, 0]


class TestCompletionStats:
    async def test_points_by_type(self, stats, store):
        review = store.add_challenge(TODAY, "Daily Review", points=50)
        memory = store.add_challenge(
            TODAY, "Memory Creator", type=ChallengeType.MEMORY_CREATED, points=30
        )
        old = store.add_challenge(TODAY - timedelta(days=60), "Daily Review", points=50)
        store.add_row(1, review, progress=100, completed=True, completed_at=WEDNESDAY)
        store.add_row(1, memory, progress=66)
        store.add_row(1, old, progress=100, completed=True, completed_at=WEDNESDAY)

        result = await stats.get_challenge_completion_stats(1, days=30)

        assert result["total_challenges"] == 2
        assert result["completed_challenges"] == 1
        assert result["completion_rate"] == 0.5
        assert result["total_points"] == 50
        assert result["by_type"]["REVIEW_COUNT"] == {"total": 1, "completed": 1, "points": 50}
        assert result["by_type"]["MEMORY_CREATED"] == {"total": 1, "completed": 0, "points": 0}


class TestLeaderboard:
    def _seed(self, store):
        store.add_user(1, "ana")
        store.add_user(2, "ben", avatar="ben.png")
        store.add_user(3, "cy")
        challenges = [store.add_challenge(TODAY, f"C{i}", points=10 * (i + 1)) for i in range(3)]
        # ana: 2/3, ben: 3/3, cy: 1/8 on an old day
        for index, challenge in enumerate(challenges):
            store.add_row(1, challenge, completed=index < 2)
            store.add_row(2, challenge, completed=True)
        old = [store.add_challenge(TODAY - timedelta(days=40), f"Old{i}", points=5) for i in range(8)]
        for index, challenge in enumerate(old):
            store.add_row(3, challenge, completed=index == 0)

    async def test_completion_leaderboard(self, stats, store):
        self._seed(store)

        entries = await stats.get_challenge_leaderboard(LeaderboardType.COMPLETION)

        assert [(e.username, e.value, e.rank) for e in entries] == [
            ("ben", 100, 1),
            ("ana", 67, 2),
            ("cy", 13, 3),
        ]
        assert entries[0].avatar == "ben.png"

    async def test_completion_ranks_by_rate_not_count(self, stats, store):
        store.add_user(1, "ana")
        store.add_user(2, "ben")
        challenges = [store.add_challenge(TODAY, f"C{i}") for i in range(10)]
        store.add_row(1, challenges[0], completed=True)
        for index, challenge in enumerate(challenges):
            store.add_row(2, challenge, completed=index < 2)

        entries = await stats.get_challenge_leaderboard(LeaderboardType.COMPLETION)

        assert [(e.username, e.value, e.rank) for e in entries] == [
            ("ana", 100, 1),
            ("ben", 20, 2),
        ]

    async def test_period_excludes_old_rows(self, stats, store):
        self._seed(store)

        entries = await stats.get_challenge_leaderboard(
            LeaderboardType.COMPLETION, LeaderboardPeriod.WEEKLY
        )

        assert [e.user_id for e in entries] == [2, 1]

    async def test_points_leaderboard(self, stats, store):
        self._seed(store)

        entries = await stats.get_challenge_leaderboard(LeaderboardType.POINTS, limit=2)

        assert [(e.user_id, e.value, e.rank) for e in entries] == [(2, 60, 1), (1, 30, 2)]

    async def test_streak_leaderboard(self, stats, store):
        store.add_user(1, streak=4)
        store.add_user(2, streak=9)
        store.add_user(3, streak=12, is_active=False)

        entries = await stats.get_challenge_leaderboard("streak", "all_time")

        assert [(e.user_id, e.value, e.rank) for e in entries] == [(2, 9, 1), (1, 4, 2)]

    async def test_empty(self, stats):
        assert await stats.get_challenge_leaderboard() == []
