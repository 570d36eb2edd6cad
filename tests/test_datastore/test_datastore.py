"""Tests for datastore abstraction — engines, client and migrations."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect

from cardano_scanner.config.settings import DatabaseConfig
from cardano_scanner.datastore.client import Datastore
from cardano_scanner.datastore.engines import create_engine
from cardano_scanner.datastore.migrations import drop_all_tables, run_auto_migrate
from cardano_scanner.engine.models import ALL_MODELS

_MEMORY_DSN = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------------


class TestCreateEngine:
    async def test_create_sqlite_engine(self) -> None:
        engine = create_engine(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        assert engine is not None
        await engine.dispose()

    async def test_engine_echo_flag(self) -> None:
        engine = create_engine(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN, debug_sql=True))
        assert engine.echo is True
        await engine.dispose()


# ---------------------------------------------------------------------------
# Datastore client
# ---------------------------------------------------------------------------


class TestDatastore:
    async def test_open_close(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        assert not ds.is_open
        await ds.open()
        assert ds.is_open
        await ds.close()
        assert not ds.is_open

    async def test_open_twice_keeps_engine(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        await ds.open()
        engine = ds.engine
        await ds.open()
        assert ds.engine is engine
        await ds.close()
        await ds.close()
        assert not ds.is_open

    def test_engine_before_open_raises(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        with pytest.raises(RuntimeError, match="not open"):
            _ = ds.engine

    def test_session_before_open_raises(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        with pytest.raises(RuntimeError, match="not open"):
            ds.session()

    async def test_sessions_share_memory_database(self, datastore) -> None:
        from cardano_scanner.engine.models import Webhook

        webhook = Webhook(name="w", url="https://x.example", event_types=["ada_sent"])
        async with datastore.session() as session:
            session.add(webhook)
            await session.commit()
        async with datastore.session() as session:
            found = await session.get(Webhook, webhook.id)
        assert found is not None
        assert found.event_types == ["ada_sent"]


# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------


class TestMigrations:
    async def test_auto_migrate_creates_every_table(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        await ds.open()
        await run_auto_migrate(ds.engine)
        async with ds.engine.connect() as conn:
            tables = set(await conn.run_sync(lambda c: inspect(c).get_table_names()))
        assert {m.__tablename__ for m in ALL_MODELS} <= tables
        await ds.close()

    async def test_auto_migrate_is_idempotent(self, datastore) -> None:
        await run_auto_migrate(datastore.engine)

    async def test_drop_all(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        await ds.open()
        await run_auto_migrate(ds.engine)
        await drop_all_tables(ds.engine)
        async with ds.engine.connect() as conn:
            tables = await conn.run_sync(lambda c: inspect(c).get_table_names())
        assert tables == []
        await ds.close()
