"""Persistence context: the async engine and the sessions handed to handlers.

A ``PersistenceContext`` owns one pooled ``AsyncEngine`` and the session
factory bound to it. Neither exists until first requested, so importing the
application never touches the database. The process-wide instance backs the
module-level helpers used by the API layer.

Sessions opened with ``get_async_session`` form one unit of work: committed
when the block exits cleanly, rolled back when it raises.
"""

import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import DatabaseConfig, get_settings

POOL_RECYCLE_SECONDS = 3600
COMMAND_TIMEOUT_SECONDS = 60


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Create a pooled async engine from the database settings.

    Args:
        database_url: Overrides ``DatabaseConfig.database_url`` when given.

    Returns:
        AsyncEngine: The new engine; no connection is opened yet.
    """
    db_config: DatabaseConfig = get_settings().database_config

    engine = create_async_engine(
        database_url or db_config.database_url,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=db_config.pool_pre_ping,
        pool_recycle=POOL_RECYCLE_SECONDS,
        echo=db_config.echo,
        connect_args={"command_timeout": COMMAND_TIMEOUT_SECONDS},
    )
    logger.info(
        "Database engine ready (pool_size={}, max_overflow={})",
        db_config.pool_size,
        db_config.max_overflow,
    )
    return engine


class PersistenceContext:
    """Lazily created engine and session factory shared by a process."""

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None
        self._lock = threading.Lock()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            with self._lock:
                if self._engine is None:
                    self._engine = create_database_engine()
        return self._engine

    @property
    def sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            engine = self.engine
            with self._lock:
                if self._sessions is None:
                    self._sessions = async_sessionmaker(
                        engine, class_=AsyncSession, expire_on_commit=False
                    )
        return self._sessions

    @property
    def is_open(self) -> bool:
        """Whether an engine has been created and not yet disposed."""
        return self._engine is not None

    async def dispose(self) -> None:
        """Close every pooled connection and forget the engine."""
        engine, self._engine, self._sessions = self._engine, None, None
        if engine is not None:
            await engine.dispose()
            logger.info("Database engine disposed")


_context = PersistenceContext()


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    return _context.engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating it on first use."""
    return _context.sessions


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Open a session for one unit of work.

    Yields:
        AsyncSession: Committed on clean exit, rolled back if the block raises.

    Example:
        async with get_async_session() as session:
            await session.execute(text("SELECT 1"))
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.debug("Rolled back database session")
            raise
        finally:
            await session.close()


async def close_database() -> None:
    """Dispose the process-wide engine, if one was created."""
    await _context.dispose()


async def check_database_connection() -> tuple[bool, str | None]:
    """Run a trivial query to see whether the database answers.

    Returns:
        tuple[bool, str | None]: Reachability, and the error text when unreachable.
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        return False, str(e)
    return True, None
