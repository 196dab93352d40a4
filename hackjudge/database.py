"""
hackjudge/database.py
Database engine and session factory.

A Database is constructed explicitly and passed to whatever needs it; there
is no module-level engine. Call init() before use and close() on shutdown.

On SQLite every write transaction opens with BEGIN IMMEDIATE, so concurrent
ledger submissions are applied one after another in commit order. Readers
open a deferred transaction and never take the write lock.

An in-memory URL is backed by a private scratch file that close() removes,
so every pooled session gets its own SQLite connection.
"""
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from hackjudge.config.settings import Settings
from hackjudge.orm.base import Base
import hackjudge.orm  # noqa: F401  ensures all models are registered

logger = logging.getLogger(__name__)

# Connection execution option read by the SQLite "begin" hook
BEGIN_MODE_OPTION = "sqlite_begin_mode"


def _build_engine(settings: Settings, url: str) -> AsyncEngine:
    if settings.is_sqlite:
        return create_async_engine(
            url,
            echo=settings.database_echo,
            pool_pre_ping=True,
            connect_args={
                "timeout": 30.0,   # SQLite busy timeout in seconds
            }
        )
    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=3600,
    )


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    """Foreign keys on, and explicit BEGIN so write transactions can be IMMEDIATE."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


class Database:
    """Owns the async engine and hands out sessions."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None
        self._scratch_path: Optional[str] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not initialised; call init() first")
        return self._engine

    async def init(self) -> None:
        """Create the engine and all tables. Idempotent."""
        if self._engine is not None:
            return

        url = self.settings.database_url
        if self.settings.is_memory_database:
            fd, self._scratch_path = tempfile.mkstemp(prefix="hackjudge-", suffix=".db")
            os.close(fd)
            url = f"sqlite+aiosqlite:///{self._scratch_path}"

        self._engine = _build_engine(self.settings, url)

        if self.settings.is_sqlite:
            _install_sqlite_hooks(self._engine)

        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info(f"Database initialised at {self.settings.database_url}")

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        if self._scratch_path is not None:
            if os.path.exists(self._scratch_path):
                os.remove(self._scratch_path)
            self._scratch_path = None
        logger.info("Database connection closed")

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not initialised; call init() first")
        return self._sessionmaker()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Session wrapped in a single write transaction.

        On SQLite the transaction takes the write lock up front, so a
        read-then-insert inside it cannot interleave with another writer.
        Commits when the block exits normally; any exception rolls the whole
        transaction back and propagates.
        """
        async with self.session() as session:
            async with session.begin():
                await session.connection(execution_options={BEGIN_MODE_OPTION: "IMMEDIATE"})
                yield session

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[AsyncSession]:
        """Short-lived session for non-mutating queries."""
        async with self.session() as session:
            yield session
