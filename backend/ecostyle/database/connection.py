"""
Async PostgreSQL engine and per-request sessions.

The engine is built on first use, so importing the application (or running
the test suite with every repository mocked) never opens a connection.
Repositories own their transactions: they commit or roll back each write
themselves, and the request session only guarantees cleanup.
"""

from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from ecostyle.core.config import Settings, get_settings
from ecostyle.core.logging import get_logger

logger = get_logger(__name__)

ASYNC_DRIVER_PREFIX = "postgresql+asyncpg://"

_engine: Optional[AsyncEngine] = None
_sessions: Optional[async_sessionmaker[AsyncSession]] = None


def async_database_url(url: str) -> str:
    """Point a ``postgresql://`` or ``postgres://`` URL at the asyncpg driver."""
    for scheme in ("postgresql://", "postgres://"):
        if url.startswith(scheme):
            return ASYNC_DRIVER_PREFIX + url[len(scheme):]
    return url


def _engine_options(settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
        "connect_args": {
            "server_settings": {"application_name": settings.app_name},
            "timeout": 10,
        },
    }
    # Tests and one-off scripts must not keep pooled connections alive
    if settings.environment == "test":
        options["poolclass"] = NullPool
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_recycle"] = 3600
    return options


def get_engine() -> AsyncEngine:
    """
    Get the shared engine, creating it on first call.

    Raises:
        RuntimeError: If the engine cannot be created
    """
    global _engine

    if _engine is None:
        settings = get_settings()
        try:
            _engine = create_async_engine(
                async_database_url(settings.database_url),
                **_engine_options(settings),
            )
        except Exception as e:
            logger.error(
                "Failed to create database engine",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RuntimeError(f"Database engine initialization failed: {e}") from e

        logger.info(
            "Database engine created",
            environment=settings.environment,
            pool_size=settings.db_pool_size,
        )

    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    global _sessions

    if _sessions is None:
        _sessions = async_sessionmaker(
            get_engine(),
            expire_on_commit=False,
            autoflush=False,
        )
    return _sessions


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a session for one request.

    Anything left uncommitted when the request fails is rolled back.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Close pooled connections on application shutdown."""
    global _engine, _sessions

    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _sessions = None
