"""Tests for ConditionEvaluator."""

from datetime import datetime, timedelta

import pytest

from challenge_engine.services.challenge_conditions import ConditionEvaluator
from challenge_engine.services.challenge_domain import ChallengeCondition
from tests.conftest import SATURDAY, WEDNESDAY

TODAY = WEDNESDAY.date()


@pytest.fixture
def evaluator(uow_factory, clock):
    return ConditionEvaluator(uow_factory, clock=clock)


def _complete_on(store, user_id, days_ago, title="Daily Review"):
    challenge = store.add_challenge(TODAY - timedelta(days=days_ago), title)
    store.add_row(user_id, challenge, progress=100, completed=True, completed_at=WEDNESDAY)
    return challenge


class TestTimeLimit:
    async def test_enough_recent_reviews(self, evaluator, store):
        for minutes in range(5):
            store.add_review(1, WEDNESDAY - timedelta(minutes=minutes * 5))
        assert await evaluator.evaluate(1, ChallengeCondition.TIME_LIMIT) is True

    async def test_old_reviews_do_not_count(self, evaluator, store):
        for minutes in range(4):
            store.add_review(1, WEDNESDAY - timedelta(minutes=minutes))
        store.add_review(1, WEDNESDAY - timedelta(minutes=31))
        assert await evaluator.evaluate(1, "time_limit") is False

    async def test_thresholds_are_configurable(self, uow_factory, clock, store):
        store.add_review(1, WEDNESDAY - timedelta(minutes=50))
        store.add_review(1, WEDNESDAY - timedelta(minutes=5))
        evaluator = ConditionEvaluator(
            uow_factory, clock=clock, time_limit_minutes=60, time_limit_reviews=2
        )
        assert await evaluator.evaluate(1, "time_limit") is True


class TestConsecutiveDays:
    async def test_seven_days_in_a_row(self, evaluator, store):
        for days_ago in range(7):
            _complete_on(store, 1, days_ago)
        assert await evaluator.evaluate(1, "consecutive_days") is True

    async def test_gap_fails_even_with_six_completions(self, evaluator, store):
        # Six completions in the window, none two days ago
        for days_ago in (0, 1, 3, 4, 5, 6):
            _complete_on(store, 1, days_ago)
        assert await evaluator.evaluate(1, "consecutive_days") is False

    async def test_many_completions_one_day_do_not_count(self, evaluator, store):
        for index in range(7):
            _complete_on(store, 1, 0, title=f"Challenge {index}")
        assert await evaluator.evaluate(1, "consecutive_days") is False

    async def test_incomplete_rows_do_not_count(self, evaluator, store):
        for days_ago in range(7):
            challenge = store.add_challenge(TODAY - timedelta(days=days_ago))
            store.add_row(1, challenge, progress=90)
        assert await evaluator.evaluate(1, "consecutive_days") is False


class TestVariety:
    async def test_three_categories_today(self, evaluator, store):
        for category in ("science", "history", "language"):
            store.add_review(1, WEDNESDAY - timedelta(minutes=10), category)
        assert await evaluator.evaluate(1, "variety") is True

    async def test_repeated_and_missing_categories(self, evaluator, store):
        for category in ("science", "science", None, "history"):
            store.add_review(1, WEDNESDAY - timedelta(minutes=10), category)
        assert await evaluator.evaluate(1, "variety") is False

    async def test_yesterday_does_not_count(self, evaluator, store):
        yesterday = datetime.combine(TODAY, datetime.min.time()) - timedelta(minutes=1)
        store.add_review(1, yesterday, "art")
        store.add_review(1, WEDNESDAY, "science")
        store.add_review(1, WEDNESDAY, "history")
        assert await evaluator.evaluate(1, "variety") is False


class TestWeekendOnly:
    async def test_weekday(self, evaluator):
        assert await evaluator.evaluate(1, "weekend_only") is False

    async def test_weekend(self, evaluator, clock):
        clock.now = SATURDAY
        assert await evaluator.evaluate(1, "weekend_only") is True


class TestWeeklyCompletion:
    async def test_a_completion_every_day(self, evaluator, store):
        for days_ago in range(7):
            _complete_on(store, 1, days_ago)
            store.add_challenge(TODAY - timedelta(days=days_ago), "Memory Creator")
        assert await evaluator.evaluate(1, "weekly_completion") is True

    async def test_missing_day_fails(self, evaluator, store):
        for days_ago in range(6):
            _complete_on(store, 1, days_ago)
        store.add_challenge(TODAY - timedelta(days=6))
        assert await evaluator.evaluate(1, "weekly_completion") is False

    async def test_other_users_do_not_count(self, evaluator, store):
        for days_ago in range(7):
            _complete_on(store, 2, days_ago)
        assert await evaluator.evaluate(1, "weekly_completion") is False


class TestFailClosed:
    async def test_unknown_condition_is_false(self, evaluator, caplog):
        with caplog.at_level("WARNING"):
            assert await evaluator.evaluate(1, "full_moon", challenge_id=3) is False
        assert "full_moon" in caplog.text

    async def test_store_error_is_false(self, evaluator, store, caplog):
        store.fail("count_reviews_since")
        with caplog.at_level("ERROR"):
            assert await evaluator.evaluate(1, "time_limit") is False
        assert "time_limit" in caplog.text

    async def test_store_error_on_streak_is_false(self, evaluator, store):
        store.fail("completed_challenge_dates")
        assert await evaluator.evaluate(1, ChallengeCondition.CONSECUTIVE_DAYS) is False
