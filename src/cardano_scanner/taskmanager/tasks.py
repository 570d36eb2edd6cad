"""Background task definitions — cron job handlers.

- ``blockchain_monitor`` (30 s) — poll watched addresses and contracts
- ``webhook_sweeper`` (5 s) — re-admit pending and due deliveries
- ``calculate_metrics`` (15 s) — count entities for Prometheus gauges
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from cardano_scanner.engine.models.delivery import DeliveryStatus, WebhookDelivery
from cardano_scanner.engine.models.event import TransactionEvent
from cardano_scanner.engine.models.monitored import MonitoredAddress, MonitoredContract
from cardano_scanner.engine.models.webhook import Webhook

if TYPE_CHECKING:
    from cardano_scanner.datastore.client import Datastore
    from cardano_scanner.metrics.collector import ScannerMetrics
    from cardano_scanner.monitor.detector import ChangeDetector, ScanReport
    from cardano_scanner.webhooks.sweeper import DeliverySweeper

logger = logging.getLogger(__name__)

MONITOR_JOB = "blockchain_monitor"
SWEEPER_JOB = "webhook_sweeper"
METRICS_JOB = "calculate_metrics"

CALCULATE_METRICS_PERIOD = 15


async def task_monitor_cycle(detector: ChangeDetector) -> ScanReport:
    """Run one change detection cycle over every active entity."""
    return await detector.run_cycle()


async def task_sweep_deliveries(sweeper: DeliverySweeper) -> int:
    """Hand due webhook deliveries to the delivery engine."""
    return await sweeper.sweep()


async def task_calculate_metrics(datastore: Datastore, metrics: ScannerMetrics) -> None:
    """Count active entities, events and open deliveries and push them to gauges."""
    open_statuses = [DeliveryStatus.PENDING.value, DeliveryStatus.RETRYING.value]
    async with datastore.session() as session:
        address_count = (
            await session.execute(
                select(func.count(MonitoredAddress.id)).where(MonitoredAddress.is_active.is_(True))
            )
        ).scalar() or 0
        contract_count = (
            await session.execute(
                select(func.count(MonitoredContract.id)).where(
                    MonitoredContract.is_active.is_(True)
                )
            )
        ).scalar() or 0
        webhook_count = (
            await session.execute(
                select(func.count(Webhook.id)).where(Webhook.is_active.is_(True))
            )
        ).scalar() or 0
        event_count = (
            await session.execute(select(func.count(TransactionEvent.id)))
        ).scalar() or 0
        pending_count = (
            await session.execute(
                select(func.count(WebhookDelivery.id)).where(
                    WebhookDelivery.status.in_(open_statuses)
                )
            )
        ).scalar() or 0

    metrics.set_address_count(address_count)
    metrics.set_contract_count(contract_count)
    metrics.set_webhook_count(webhook_count)
    metrics.set_event_count(event_count)
    metrics.set_pending_delivery_count(pending_count)
