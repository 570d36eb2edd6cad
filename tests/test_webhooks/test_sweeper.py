"""Tests for the delivery queue sweeper."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from cardano_scanner.engine.models import DeliveryStatus
from cardano_scanner.webhooks.sweeper import DeliverySweeper

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def delivery_engine() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sweeper(deliveries, delivery_engine) -> DeliverySweeper:
    return DeliverySweeper(deliveries, delivery_engine, stale_after=300, clock=lambda: NOW)


@pytest.fixture
def make_delivery(deliveries, make_webhook, make_event):
    """Factory creating a delivery and forcing it into *status*."""
    counter = iter(range(1000))

    async def _make(status: DeliveryStatus, **values):
        webhook = await make_webhook()
        event = await make_event(tx_hash=f"{next(counter):064x}")
        delivery = await deliveries.create_pending(webhook.id, event.id)
        if status != DeliveryStatus.PENDING:
            assert await deliveries.claim(delivery.id, now=NOW - timedelta(hours=1), stale_before=NOW)
            if status != DeliveryStatus.IN_PROGRESS:
                await deliveries.finish_attempt(delivery.id, {"status": status.value, **values})
            elif values:
                await deliveries.finish_attempt(delivery.id, values)
        return delivery

    return _make


def _enqueued(engine: MagicMock) -> list[str]:
    return [c.args[0] for c in engine.enqueue.call_args_list]


class TestSweep:
    async def test_pending_admitted(self, sweeper, make_delivery, delivery_engine) -> None:
        delivery = await make_delivery(DeliveryStatus.PENDING)
        assert await sweeper.sweep() == 1
        assert _enqueued(delivery_engine) == [delivery.id]

    async def test_due_retry_admitted(self, sweeper, make_delivery, delivery_engine) -> None:
        due = await make_delivery(DeliveryStatus.RETRYING, next_retry_at=NOW - timedelta(seconds=1))
        await make_delivery(DeliveryStatus.RETRYING, next_retry_at=NOW + timedelta(seconds=30))

        assert await sweeper.sweep() == 1
        assert _enqueued(delivery_engine) == [due.id]

    async def test_stale_in_progress_admitted(self, sweeper, make_delivery, delivery_engine) -> None:
        stale = await make_delivery(DeliveryStatus.IN_PROGRESS)
        await make_delivery(DeliveryStatus.IN_PROGRESS, last_attempt_at=NOW - timedelta(seconds=10))

        assert await sweeper.sweep() == 1
        assert _enqueued(delivery_engine) == [stale.id]

    async def test_terminal_states_ignored(self, sweeper, make_delivery, delivery_engine) -> None:
        await make_delivery(DeliveryStatus.SUCCEEDED)
        await make_delivery(DeliveryStatus.FAILED)
        await make_delivery(DeliveryStatus.MAX_RETRIES_EXCEEDED)

        assert await sweeper.sweep() == 0
        delivery_engine.enqueue.assert_not_called()

    async def test_batch_size(self, deliveries, make_delivery, delivery_engine) -> None:
        for _ in range(4):
            await make_delivery(DeliveryStatus.PENDING)
        sweeper = DeliverySweeper(deliveries, delivery_engine, batch_size=3, clock=lambda: NOW)

        assert await sweeper.sweep() == 3

    async def test_oldest_first(self, sweeper, make_delivery, delivery_engine) -> None:
        first = await make_delivery(DeliveryStatus.PENDING)
        second = await make_delivery(DeliveryStatus.PENDING)
        await sweeper.sweep()
        assert _enqueued(delivery_engine) == [first.id, second.id]
