"""Tests for the asyncio cron task manager and the job handlers."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

from cardano_scanner.engine.models import MonitoredAddress, MonitoredContract
from cardano_scanner.metrics.collector import ScannerMetrics
from cardano_scanner.monitor.detector import ScanReport
from cardano_scanner.taskmanager import CronJob, TaskManager
from cardano_scanner.taskmanager.tasks import (
    task_calculate_metrics,
    task_monitor_cycle,
    task_sweep_deliveries,
)

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestTaskManagerLifecycle:
    async def test_start_stop(self) -> None:
        tm = TaskManager()
        tm.register("noop", CronJob(handler=AsyncMock(), period=60))
        await tm.start()
        assert tm.is_running is True
        await tm.stop()
        assert tm.is_running is False

    async def test_stop_idempotent(self) -> None:
        tm = TaskManager()
        await tm.stop()
        assert tm.is_running is False

    async def test_register_names_job(self) -> None:
        tm = TaskManager()
        tm.register("sweep", CronJob(handler=AsyncMock(), period=5))
        assert tm.jobs["sweep"].name == "sweep"


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class TestScheduling:
    async def test_runs_periodically(self) -> None:
        handler = AsyncMock()
        tm = TaskManager()
        tm.register("tick", CronJob(handler=handler, period=0.01))
        await tm.start()
        await asyncio.sleep(0.1)
        await tm.stop()
        assert handler.await_count >= 2

    async def test_run_immediately(self) -> None:
        handler = AsyncMock()
        tm = TaskManager()
        tm.register("boot", CronJob(handler=handler, period=60, run_immediately=True))
        await tm.start()
        await asyncio.sleep(0.02)
        await tm.stop()
        assert handler.await_count == 1

    async def test_failing_job_keeps_running(self) -> None:
        handler = AsyncMock(side_effect=RuntimeError("boom"))
        tm = TaskManager()
        tm.register("flaky", CronJob(handler=handler, period=0.01))
        await tm.start()
        await asyncio.sleep(0.1)
        await tm.stop()
        assert handler.await_count >= 2

    async def test_run_once(self) -> None:
        handler = AsyncMock()
        tm = TaskManager()
        tm.register("manual", CronJob(handler=handler, period=60))
        await tm.run_once("manual")
        handler.assert_awaited_once()

    async def test_cron_metrics(self) -> None:
        metrics = ScannerMetrics()
        tm = TaskManager(metrics=metrics)
        tm.register("manual", CronJob(handler=AsyncMock(), period=60))
        await tm.run_once("manual")
        registry = metrics.registry
        assert registry.get_sample_value(
            "cardano_scanner_cron_histogram_count", {"job_name": "manual"}
        ) == 1.0
        assert registry.get_sample_value(
            "cardano_scanner_cron_last_execution_gauge", {"job_name": "manual"}
        ) > 0


# ---------------------------------------------------------------------------
# Job handlers
# ---------------------------------------------------------------------------


class TestTasks:
    async def test_monitor_cycle(self) -> None:
        detector = AsyncMock()
        detector.run_cycle.return_value = ScanReport(entities_scanned=2)
        report = await task_monitor_cycle(detector)
        assert report.entities_scanned == 2

    async def test_sweep(self) -> None:
        sweeper = AsyncMock()
        sweeper.sweep.return_value = 4
        assert await task_sweep_deliveries(sweeper) == 4

    async def test_calculate_metrics(
        self, datastore, entities, deliveries, make_webhook, make_event
    ) -> None:
        await entities.create(MonitoredAddress(address="addr_test1a", is_active=True))
        inactive = await entities.create(MonitoredAddress(address="addr_test1b", is_active=True))
        await entities.deactivate(MonitoredAddress, inactive.id)
        await entities.create(MonitoredContract(address="addr_test1c", is_active=True))
        webhook = await make_webhook()
        event = await make_event()
        await deliveries.create_pending(webhook.id, event.id)

        metrics = ScannerMetrics()
        await task_calculate_metrics(datastore, metrics)

        def stat(entity: str) -> float | None:
            return metrics.registry.get_sample_value(
                "cardano_scanner_stats_total", {"entity": entity}
            )

        # make_event registers one more active address
        assert stat("addresses") == 2.0
        assert stat("contracts") == 1.0
        assert stat("webhooks") == 1.0
        assert stat("events") == 1.0
        assert stat("pending_deliveries") == 1.0
