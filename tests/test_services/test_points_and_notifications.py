"""Tests for the points ledger adapter and the log notification emitter."""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from challenge_engine.domain.errors import StoreNotReady
from challenge_engine.models.gamification_profile import GamificationProfile, PointTransaction
from challenge_engine.models.user import User
from challenge_engine.services.notification_service import LogNotificationEmitter
from challenge_engine.services.points_service import ProfilePointsAwarder, increment_profile


@pytest.fixture
async def user(session_factory):
    async with session_factory() as session:
        session.add(User(id=1, username="ana"))
        await session.commit()
    return 1


async def _profile_points(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(
            select(GamificationProfile.points).where(GamificationProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()


class TestProfilePointsAwarder:
    async def test_award_creates_profile(self, session_factory, user):
        awarder = ProfilePointsAwarder(session_factory)

        assert await awarder.award(user, 50, "Completed daily challenge", reference="challenge:1")

        assert await _profile_points(session_factory, user) == 50

    async def test_award_increments_existing_profile(self, session_factory, user):
        async with session_factory() as session:
            session.add(GamificationProfile(user_id=user, level=3, points=100))
            await session.commit()
        awarder = ProfilePointsAwarder(session_factory)

        await awarder.award(user, 30, "Completed daily challenge", reference="challenge:2")

        assert await _profile_points(session_factory, user) == 130

    async def test_same_reference_awarded_once(self, session_factory, user):
        awarder = ProfilePointsAwarder(session_factory)

        assert await awarder.award(user, 50, "first", reference="challenge:1") is True
        assert await awarder.award(user, 50, "again", reference="challenge:1") is False

        assert await _profile_points(session_factory, user) == 50
        async with session_factory() as session:
            count = await session.scalar(select(func.count(PointTransaction.id)))
        assert count == 1

    async def test_concurrent_first_awards_both_count(self, session_factory, user):
        awarder = ProfilePointsAwarder(session_factory)

        results = await asyncio.gather(
            awarder.award(user, 50, "Daily Review", reference="challenge:1"),
            awarder.award(user, 30, "Memory Creator", reference="challenge:2"),
        )

        assert results == [True, True]
        assert await _profile_points(session_factory, user) == 80

    async def test_requires_initialised_store(self):
        from challenge_engine.core.database import close_database

        await close_database()
        with pytest.raises(StoreNotReady):
            await ProfilePointsAwarder().award(1, 10, "x")


class TestIncrementProfile:
    async def test_creates_then_increments(self, session_factory, user):
        async with session_factory() as session:
            await increment_profile(session, user, points=10, experience=5)
            await increment_profile(session, user, points=15)
            await session.commit()

        async with session_factory() as session:
            profile = await session.scalar(
                select(GamificationProfile).where(GamificationProfile.user_id == user)
            )
        assert (profile.points, profile.experience) == (25, 5)

    async def test_profile_created_concurrently_is_incremented(self):
        @asynccontextmanager
        async def savepoint():
            yield

        session = MagicMock()
        session.begin_nested = savepoint
        session.execute = AsyncMock(side_effect=[MagicMock(rowcount=0), MagicMock(rowcount=1)])
        session.flush = AsyncMock(
            side_effect=IntegrityError(
                "INSERT INTO gamification_profiles", {}, Exception("UNIQUE constraint failed")
            )
        )

        await increment_profile(session, 1, points=50)

        first, second = session.execute.await_args_list
        assert first.args[0] is second.args[0]
        assert session.add.call_args.args[0].points == 50


class TestLogNotificationEmitter:
    async def test_emit_logs_and_keeps_recent(self):
        audit = MagicMock()
        emitter = LogNotificationEmitter(audit_logger=audit)

        await emitter.emit("challenge_completed", {"user_id": 1, "points": 50})

        audit.info.assert_called_once_with(
            "notification", event_type="challenge_completed", user_id=1, points=50
        )
        assert emitter.recent == [{"event_type": "challenge_completed", "user_id": 1, "points": 50}]

    async def test_keeps_only_last_n(self):
        emitter = LogNotificationEmitter(audit_logger=MagicMock(), keep_last=2)
        for index in range(5):
            await emitter.emit("challenge_reward_claimed", {"challenge_id": index})
        assert [n["challenge_id"] for n in emitter.recent] == [3, 4]
