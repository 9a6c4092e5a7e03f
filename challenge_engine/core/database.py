import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from ..domain.errors import StoreNotReady
from ..models.base import Base

logger = logging.getLogger(__name__)

# Global variables for database connection
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """Get database URL from settings (DATABASE_URL env var or .env)"""
    from .config import get_settings

    return get_settings().database_url


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database:
        return
    if url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def init_database(database_url: Optional[str] = None) -> None:
    """Initialize database connection and create tables"""
    global _engine, _session_factory

    database_url = database_url or get_database_url()
    logger.info(f"Initializing database: {make_url(database_url).render_as_string(hide_password=True)}")

    _ensure_sqlite_directory(database_url)

    engine_kwargs = {"echo": False, "pool_pre_ping": True}
    if "sqlite" in database_url:
        engine_kwargs["poolclass"] = NullPool

    # Create async engine
    _engine = create_async_engine(database_url, **engine_kwargs)

    # Create session factory
    _session_factory = async_sessionmaker(
        _engine, class_=AsyncSession, expire_on_commit=False
    )

    # Create all tables
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")


async def close_database() -> None:
    """Close database connection"""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        logger.info("Database connection closed")
    _engine = None
    _session_factory = None


def is_database_initialized() -> bool:
    return _session_factory is not None


def get_session_factory(operation: str = "database access") -> async_sessionmaker[AsyncSession]:
    """Return the session factory, failing fast when init_database() has not run."""
    if _session_factory is None:
        logger.error(f"{operation} attempted before database initialization")
        raise StoreNotReady(operation)
    return _session_factory


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session context manager"""
    factory = get_session_factory("get_db_session")

    async with factory() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


async def get_db_session_dependency() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database session"""
    async with get_db_session() as session:
        yield session


async def health_check() -> bool:
    """Check if database is accessible"""
    if not is_database_initialized():
        logger.warning("Database health check requested before initialization")
        return False

    try:
        async with get_db_session() as session:
            result = await session.execute(text("SELECT 1"))
            value = result.scalar()
            is_healthy = value == 1

            if is_healthy:
                logger.debug("Database health check successful")
            else:
                logger.warning(f"Database health check query returned unexpected value: {value}")

            return is_healthy
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        if "connection" in str(e).lower():
            logger.error("Connection error detected - database may be unreachable")
        elif "timeout" in str(e).lower():
            logger.error("Timeout error detected - database may be overloaded")
        return False
