"""Database access for the capacity store.

The connection pool is created lazily on first use so the process can boot
while the database is unreachable.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator

from sqlalchemy import func, select
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.sql import Executable

from tappark.config import get_settings

logger = logging.getLogger(__name__)


class CapacityStore:
    """
    Transactional wrapper over the relational store.

    Owns the engine (and therefore the connection pool) for the lifetime of
    the process. Every session acquired from it is returned to the pool on
    exit, whatever the outcome.
    """

    def __init__(self, database_url: str, **engine_kwargs: Any):
        """
        Initialize the store without connecting.

        Args:
            database_url: SQLAlchemy async database URL
            **engine_kwargs: Extra arguments for create_async_engine
        """
        self.database_url = database_url
        self.engine_kwargs = engine_kwargs
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get the engine, creating the pool on first access."""
        if self._engine is None:
            self._engine = create_async_engine(
                self.database_url,
                pool_pre_ping=True,
                **self.engine_kwargs,
            )
            logger.info("Database pool initialized")
        return self._engine

    @property
    def is_connected(self) -> bool:
        """Whether the pool has been created."""
        return self._engine is not None

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Acquire a session for reads.

        No transaction is begun explicitly; the driver's autobegin is rolled
        back when the session closes.
        """
        async with self._factory()() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Acquire a session inside one transaction.

        Commits on normal exit. On any exception the transaction is rolled
        back before the connection goes back to the pool, and the exception
        is re-raised.

        Usage:
            async with store.transaction() as session:
                await session.execute(...)
        """
        async with self._factory()() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    async def execute(
        self,
        statement: Executable,
        params: dict[str, Any] | None = None,
    ) -> Result[Any]:
        """Execute a single parameterized statement in its own transaction."""
        async with self.transaction() as session:
            return await session.execute(statement, params)

    async def current_timestamp(self) -> datetime:
        """
        Read the database clock.

        Reservation rows are stamped with this clock when they are inserted.
        """
        async with self.session() as session:
            result = await session.execute(select(func.now()))
            return result.scalar_one()

    async def dispose(self) -> None:
        """Close the pool. Safe to call when the pool was never created."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database pool disposed")


# Global store
_store: CapacityStore | None = None


def get_store() -> CapacityStore:
    """Get the process-wide store instance."""
    global _store
    if _store is None:
        settings = get_settings()
        engine_kwargs: dict[str, Any] = {"echo": settings.DB_ECHO}
        if not settings.database_url.startswith("sqlite"):
            engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        _store = CapacityStore(settings.database_url, **engine_kwargs)
    return _store


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Get a read session outside of a request."""
    async with get_store().session() as session:
        yield session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a read session."""
    async with get_store().session() as session:
        yield session


async def close_db() -> None:
    """Dispose the process-wide store."""
    global _store
    if _store is not None:
        await _store.dispose()
        _store = None
