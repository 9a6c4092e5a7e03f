import logging
import os
from datetime import datetime

import pytest

# Set test environment variables before any settings are loaded
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SCHEDULER_ENABLED"] = "false"

from tests.fakes import FakeStore, FrozenClock  # noqa: E402

# 2026-03-11 is a Wednesday, 2026-03-14 a Saturday
WEDNESDAY = datetime(2026, 3, 11, 9, 30)
SATURDAY = datetime(2026, 3, 14, 10, 0)


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to logs/app.log."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def uow_factory(store):
    return store.uow_factory


@pytest.fixture
def clock():
    return FrozenClock(WEDNESDAY)


@pytest.fixture
def bus():
    from challenge_engine.domain.events import EventBus

    return EventBus()


@pytest.fixture
def settings():
    from challenge_engine.core.config import Settings

    return Settings(_env_file=None, database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
def service(uow_factory, bus, clock, settings):
    import random

    from challenge_engine.services.daily_challenge_service import DailyChallengeService

    return DailyChallengeService(
        uow_factory, bus, settings=settings, rng=random.Random(7), clock=clock
    )


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite with all tables; separate sessions share the data."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from challenge_engine.models.base import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/challenges.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
