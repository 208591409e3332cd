"""Async engine, session factory and the unit-of-work boundary.

Every escrow operation runs inside exactly one transaction. It commits when
the operation returns and rolls back when it raises, so a declined transfer
or a rejected precondition leaves no partial ledger or reputation write.

    transaction()        one unit of work, for scripts and the simulation
    get_async_session()  the same boundary as a FastAPI dependency
    init_db / close_db   lifespan hooks
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from trustless_escrow.config import Settings, get_settings
from trustless_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(settings: Settings) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.db_echo_sql}
    # aiosqlite has no connection pool worth tuning.
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )
    return options


def _get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.database_url, **_engine_options(settings))
        logger.info("database.engine_created", dialect=_engine.dialect.name)
    return _engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(_get_engine())
    return _session_factory


@asynccontextmanager
async def transaction(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Run one unit of work: commit when the block exits, roll back if it raises.

    Usage:
        async with transaction() as session:
            escrow_id = await EscrowService(session).create_escrow(...)
    """
    factory = factory or _get_session_factory()
    async with factory() as session, session.begin():
        yield session


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one transaction per request."""
    async with transaction() as session:
        yield session


@retry(
    retry=retry_if_exception_type((OperationalError, OSError)),
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
async def _create_tables() -> None:
    """Create missing tables, waiting for a database that is still starting."""
    from trustless_escrow.infrastructure.database.orm_models import Base

    async with _get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create missing tables in development; other environments ship the schema."""
    if not get_settings().is_development:
        logger.info("database.skipping_create_all", reason="not in development mode")
        return

    await _create_tables()
    logger.info("database.tables_created")


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database.engine_disposed")
    _engine = None
    _session_factory = None
