"""Tests for database connection helpers."""

import pytest
from sqlalchemy import inspect, text

from procureflow.db.connection import (
    create_engine_for,
    create_session_factory,
    ensure_sqlite_parent_dir,
    init_db,
    session_scope,
    to_async_url,
)
from procureflow.db.models import ConversationRecord


def test_to_async_url_converts_sqlite():
    assert to_async_url("sqlite:///./procureflow.db") == "sqlite+aiosqlite:///./procureflow.db"


def test_to_async_url_keeps_explicit_driver():
    url = "sqlite+aiosqlite:////tmp/x.db"
    assert to_async_url(url) == url


def test_ensure_sqlite_parent_dir_creates_directory(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "procureflow.db"
    ensure_sqlite_parent_dir(f"sqlite:///{db_path}")
    assert db_path.parent.is_dir()


def test_ensure_sqlite_parent_dir_ignores_memory_and_other_engines(tmp_path):
    ensure_sqlite_parent_dir("sqlite:///:memory:")
    ensure_sqlite_parent_dir("postgresql://localhost/procureflow")
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_init_db_creates_tables(database_url):
    engine = create_engine_for(database_url)
    try:
        await init_db(engine)
        await init_db(engine)  # idempotent
        async with engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        assert "agent_conversations" in tables
        assert "agent_conversation_messages" in tables
        assert "agent_token_usage" in tables
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_foreign_keys_enabled(database_url):
    engine = create_engine_for(database_url)
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("PRAGMA foreign_keys"))
            assert result.scalar() == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_session_scope_rolls_back_on_error(database_url):
    engine = create_engine_for(database_url)
    try:
        await init_db(engine)
        factory = create_session_factory(engine)

        with pytest.raises(RuntimeError):
            async with session_scope(factory) as db:
                db.add(ConversationRecord(id="conv-1", title="t"))
                raise RuntimeError("boom")

        async with factory() as db:
            assert await db.get(ConversationRecord, "conv-1") is None
    finally:
        await engine.dispose()
