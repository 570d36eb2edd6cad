"""Shared test fixtures for the cardano-scanner test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from cardano_scanner.config.settings import DatabaseEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from cardano_scanner.datastore.client import Datastore

TEST_ADDRESS = (
    "addr_test1qz2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3jcu5d8ps7zex2k2xt3uqxgjqnnj83ws8lhrn648jjxtwq2ytjqp"
)
TEST_CONTRACT = "addr_test1wpnlxv2xv9a9ucvnvzqakwepzl9ltx7jzgm53av2e9ncv4sysemm8"


@pytest.fixture
def app_config():
    """Provide a test AppConfig: in-memory SQLite, no polling, no cron jobs."""
    from cardano_scanner.config.settings import (
        AppConfig,
        DatabaseConfig,
        MetricsConfig,
        MonitorConfig,
        TaskConfig,
    )

    return AppConfig(
        debug=True,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn="sqlite+aiosqlite:///:memory:",
        ),
        monitor=MonitorConfig(enabled=False),
        task=TaskConfig(enabled=False),
        metrics=MetricsConfig(enabled=True),
    )


@pytest.fixture
async def datastore(app_config) -> AsyncIterator[Datastore]:
    """Open an in-memory datastore with every table created."""
    from cardano_scanner.datastore.client import Datastore
    from cardano_scanner.datastore.migrations import run_auto_migrate

    ds = Datastore(app_config.db)
    await ds.open()
    await run_auto_migrate(ds.engine)
    yield ds
    await ds.close()


@pytest.fixture
def entities(datastore):
    from cardano_scanner.engine.repository import EntityRepository

    return EntityRepository(datastore)


@pytest.fixture
def events(datastore):
    from cardano_scanner.engine.repository import EventRepository

    return EventRepository(datastore)


@pytest.fixture
def webhooks(datastore):
    from cardano_scanner.engine.repository import WebhookRepository

    return WebhookRepository(datastore)


@pytest.fixture
def deliveries(datastore):
    from cardano_scanner.engine.repository import DeliveryRepository

    return DeliveryRepository(datastore)


@pytest.fixture
async def watched_address(entities):
    """A persisted, active monitored address."""
    from cardano_scanner.engine.models import MonitoredAddress

    return await entities.create(MonitoredAddress(address=TEST_ADDRESS, is_active=True))


@pytest.fixture
async def watched_contract(entities):
    """A persisted, active monitored contract."""
    from cardano_scanner.engine.models import MonitoredContract

    return await entities.create(
        MonitoredContract(address=TEST_CONTRACT, contract_type="dex", is_active=True)
    )


@pytest.fixture
def make_event(events, watched_address):
    """Factory storing a TransactionEvent for the watched address."""
    from cardano_scanner.engine.models import TransactionEvent

    async def _make(event_type: str = "ada_received", tx_hash: str = "a" * 64):
        return await events.create(
            TransactionEvent(
                tx_hash=tx_hash,
                block_height=100,
                event_type=event_type,
                event_data={"tx": {"hash": tx_hash}, "address": watched_address.address},
                address_id=watched_address.id,
            )
        )

    return _make


@pytest.fixture
def make_webhook(webhooks):
    """Factory storing a Webhook subscription."""
    from cardano_scanner.engine.models import Webhook

    async def _make(
        event_types: list[str] | None = None,
        *,
        url: str = "https://hooks.example.com/cardano",
        secret: str | None = None,
        headers: dict[str, str] | None = None,
        is_active: bool = True,
    ):
        return await webhooks.create(
            Webhook(
                name="test hook",
                url=url,
                secret=secret,
                event_types=event_types or ["ada_received"],
                headers=headers,
                is_active=is_active,
            )
        )

    return _make
