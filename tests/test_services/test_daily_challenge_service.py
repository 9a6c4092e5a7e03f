"""Tests for the DailyChallengeService entry point."""

from datetime import timedelta

import pytest

from challenge_engine.domain.errors import ChallengeNotFound, InvalidClaim
from challenge_engine.domain.events import ChallengeCompleted, ChallengeRewardClaimed
from challenge_engine.services.challenge_progress import ProgressUpdate
from challenge_engine.services.challenge_statistics import LeaderboardType
from tests.conftest import WEDNESDAY
from tests.fakes import RecordingHandler

TODAY = WEDNESDAY.date()


class TestChallengeQueries:
    async def test_get_daily_challenges_for_date(self, service, store):
        store.add_challenge(TODAY, "A")
        store.add_challenge(TODAY + timedelta(days=1), "B")

        challenges = await service.get_daily_challenges(TODAY)

        assert [c.title for c in challenges] == ["A"]

    async def test_get_daily_challenges_defaults_to_active_from_today(self, service, store):
        store.add_challenge(TODAY - timedelta(days=1), "Yesterday")
        store.add_challenge(TODAY, "Today")
        store.add_challenge(TODAY + timedelta(days=1), "Tomorrow")
        store.add_challenge(TODAY, "Inactive", is_active=False)

        challenges = await service.get_daily_challenges()

        assert [c.title for c in challenges] == ["Today", "Tomorrow"]

    async def test_available_sorted_by_points(self, service, store):
        store.add_challenge(TODAY, "Low", points=20)
        store.add_challenge(TODAY, "High", points=90)
        store.add_challenge(TODAY, "Gone", points=500, is_active=False)

        challenges = await service.get_available_daily_challenges()

        assert [c.title for c in challenges] == ["High", "Low"]

    async def test_create_then_assign(self, service, store):
        challenges = await service.create_daily_challenges(TODAY)
        rows = await service.assign_daily_challenges_to_user(1, TODAY)

        assert len(rows) == len(challenges) == 5
        assert await service.get_user_challenges(1) == rows


class TestResetExpired:
    async def test_deactivates_past_challenges(self, service, store):
        old = store.add_challenge(TODAY - timedelta(days=2), "Old")
        current = store.add_challenge(TODAY, "Current")

        assert await service.reset_expired_challenges() == 1
        assert old.is_active is False
        assert current.is_active is True

    async def test_second_run_is_noop(self, service, store):
        store.add_challenge(TODAY - timedelta(days=1), "Old")
        await service.reset_expired_challenges()
        assert await service.reset_expired_challenges() == 0


class TestProgressAndClaim:
    async def test_full_flow(self, service, bus, store):
        completed = RecordingHandler()
        claimed = RecordingHandler()
        bus.subscribe(ChallengeCompleted, completed)
        bus.subscribe(ChallengeRewardClaimed, claimed)
        rows = await service.assign_daily_challenges_to_user(1)
        challenge_id = rows[0].challenge_id

        await service.update_challenge_progress(1, challenge_id, 50)
        row = await service.update_challenge_progress(1, challenge_id, 100)
        claimed_row = await service.claim_challenge_reward(1, challenge_id)

        assert row.completed is True
        assert claimed_row.claimed is True
        assert len(completed.events) == 1
        assert len(claimed.events) == 1

    async def test_batch_update(self, service, store):
        challenge = store.add_challenge(TODAY, "Daily Review")

        result = await service.batch_update_challenge_progress(
            1, [ProgressUpdate(challenge.id, 40), ProgressUpdate(777, 10)]
        )

        assert len(result.updated) == 1
        assert [f.challenge_id for f in result.failures] == [777]

    async def test_domain_error_propagates_without_error_log(self, service, caplog):
        with caplog.at_level("ERROR", logger="challenge_engine.services.daily_challenge_service"):
            with pytest.raises(InvalidClaim):
                await service.claim_challenge_reward(1, 1)
            with pytest.raises(ChallengeNotFound):
                await service.update_challenge_progress(1, 404, 10)
        assert not [r for r in caplog.records if r.name.endswith("daily_challenge_service")]

    async def test_store_error_is_logged_and_reraised(self, service, store, caplog):
        store.fail("find")
        with caplog.at_level("ERROR"):
            with pytest.raises(RuntimeError):
                await service.update_challenge_progress(5, 6, 10)
        assert "update_challenge_progress failed" in caplog.text
        assert "user_id=5" in caplog.text
        assert "challenge_id=6" in caplog.text

    async def test_activity_hooks(self, service, store):
        await service.assign_daily_challenges_to_user(1)

        reviewed = await service.record_review_completed(1)
        created = await service.record_memory_created(1)

        assert reviewed and all(r.progress > 0 for r in reviewed)
        assert len(created) == 1


class TestConditionsAndStats:
    async def test_condition_never_raises(self, service, store):
        store.fail("count_reviews_since")
        assert await service.check_challenge_progress_condition(1, "time_limit") is False
        assert await service.check_challenge_progress_condition(1, "nope") is False

    async def test_stats_use_settings_window(self, service, store, settings):
        inside = store.add_challenge(TODAY - timedelta(days=settings.completion_rate_window_days - 1))
        store.add_challenge(TODAY - timedelta(days=settings.completion_rate_window_days + 5))
        store.add_row(1, inside, progress=100, completed=True, completed_at=WEDNESDAY)

        rate = await service.get_user_challenge_completion_rate(1)
        totals = await service.get_challenge_completion_stats(1)

        assert rate["total_challenges"] == 1
        assert len(rate["daily_stats"]) == settings.completion_rate_window_days
        assert totals["completed_challenges"] == 1

    async def test_leaderboard_defaults_to_settings_limit(self, service, store, settings):
        for user_id in range(1, settings.leaderboard_limit + 4):
            store.add_user(user_id, streak=user_id)

        entries = await service.get_challenge_leaderboard(LeaderboardType.STREAK)

        assert len(entries) == settings.leaderboard_limit
        assert entries[0].rank == 1

    async def test_user_stats(self, service):
        await service.assign_daily_challenges_to_user(1)
        stats = await service.get_user_challenge_stats(1)
        assert stats["total"] == 5


class TestAutoAssign:
    async def test_auto_assign(self, service, store):
        store.add_user(1)
        store.add_user(2)

        result = await service.auto_assign_daily_challenges_to_all_users()

        assert result.as_dict() == {"success": 2, "failed": 0}
        assert len(store.rows) == 10
