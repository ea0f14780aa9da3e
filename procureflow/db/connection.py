"""Database connection management for ProcureFlow.

Engines and session factories are built explicitly by the process entry
point and passed to the ConversationStore. There is no module-level
engine: importing this module has no side effects.

Usage:
    engine = create_engine_for(settings.database_url)
    await init_db(engine)
    session_factory = create_session_factory(engine)
    async with session_scope(session_factory) as db:
        ...
    await engine.dispose()
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from procureflow.db.models import Base


def to_async_url(url: str) -> str:
    """Derive the async driver URL from a sync database URL.

    Converts sqlite:/// to sqlite+aiosqlite:/// for async support.
    URLs that already name a driver are returned unchanged.
    """
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def ensure_sqlite_parent_dir(url: str) -> None:
    """Create the directory holding a file-based SQLite database."""
    if not url.startswith("sqlite") or ":memory:" in url:
        return
    _, _, path = url.partition(":///")
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)


def create_engine_for(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given database URL.

    Args:
        url: Sync or async SQLAlchemy URL.
        echo: Echo SQL statements.

    Returns:
        Configured AsyncEngine.
    """
    async_url = to_async_url(url)
    engine = create_async_engine(async_url, echo=echo)

    if async_url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _set_sqlite_pragma)

    return engine


def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    """Configure SQLite pragmas for correctness and concurrency.

    Enables:
    - foreign_keys=ON: Referential integrity (disabled by default in SQLite).
    - journal_mode=WAL: Concurrent readers alongside a single writer.
    - busy_timeout: Writers wait for the lock instead of failing fast.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory bound to an engine."""
    return async_sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Async context manager committing on success, rolling back on error.

    Usage:
        async with session_scope(factory) as db:
            db.add(record)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. Idempotent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
