"""ScannerEngine — central engine client owning all services."""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import TYPE_CHECKING

from cardano_scanner.chain.blockfrost.client import BlockfrostClient
from cardano_scanner.datastore.client import Datastore
from cardano_scanner.datastore.migrations import run_auto_migrate
from cardano_scanner.engine.repository import (
    ApiKeyRepository,
    DeliveryRepository,
    EntityRepository,
    EventRepository,
    WebhookRepository,
)
from cardano_scanner.engine.services.api_key_service import ApiKeyService
from cardano_scanner.engine.services.delivery_service import DeliveryService
from cardano_scanner.engine.services.monitoring_service import MonitoringService
from cardano_scanner.engine.services.webhook_service import WebhookService
from cardano_scanner.metrics.collector import ScannerMetrics
from cardano_scanner.monitor.classifier import EventClassifier
from cardano_scanner.monitor.dedup import DedupCache
from cardano_scanner.monitor.detector import ChangeDetector
from cardano_scanner.taskmanager.manager import CronJob, TaskManager
from cardano_scanner.taskmanager.tasks import (
    CALCULATE_METRICS_PERIOD,
    METRICS_JOB,
    MONITOR_JOB,
    SWEEPER_JOB,
    task_calculate_metrics,
    task_monitor_cycle,
    task_sweep_deliveries,
)
from cardano_scanner.webhooks.delivery import DeliveryEngine
from cardano_scanner.webhooks.matcher import SubscriptionMatcher
from cardano_scanner.webhooks.sweeper import DeliverySweeper

if TYPE_CHECKING:
    import httpx

    from cardano_scanner.config.settings import AppConfig

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class ScannerEngine:
    """Central engine that owns the datastore, the pipeline and the services.

    Pipeline wiring::

        ChangeDetector → EventClassifier → SubscriptionMatcher → DeliveryEngine
                                                 DeliverySweeper ┘
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        blockfrost: BlockfrostClient | None = None,
        http_client: httpx.AsyncClient | None = None,
        metrics: ScannerMetrics | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            blockfrost: Optional pre-connected upstream client. When omitted,
                one is created from ``config.blockfrost`` if a project id is set.
            http_client: Optional HTTP client for webhook deliveries.
            metrics: Optional metrics instance shared with the HTTP layer.
                When omitted, one is created if metrics are enabled.
        """
        self._config = config
        self._initialized = False
        self._owns_blockfrost = blockfrost is None
        self._blockfrost: BlockfrostClient | None = blockfrost
        self._http_client = http_client

        self._datastore: Datastore | None = None

        self._entities: EntityRepository | None = None
        self._events: EventRepository | None = None
        self._webhooks: WebhookRepository | None = None
        self._deliveries: DeliveryRepository | None = None
        self._api_keys: ApiKeyRepository | None = None

        self._metrics: ScannerMetrics | None = metrics
        self._dedup: DedupCache | None = None
        self._classifier: EventClassifier | None = None
        self._detector: ChangeDetector | None = None
        self._delivery_engine: DeliveryEngine | None = None
        self._matcher: SubscriptionMatcher | None = None
        self._sweeper: DeliverySweeper | None = None
        self._task_manager: TaskManager | None = None

        self._monitoring_service: MonitoringService | None = None
        self._webhook_service: WebhookService | None = None
        self._delivery_service: DeliveryService | None = None
        self._api_key_service: ApiKeyService | None = None

    async def initialize(self) -> None:
        """Open the datastore, build the pipeline and start background jobs.

        Raises:
            RuntimeError: If already initialized.
            ConfigError: If required settings are missing.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        if self._blockfrost is None:
            self._config.validate_for_startup()

        self._datastore = Datastore(self._config.db)
        await self._datastore.open()
        await run_auto_migrate(self._datastore.engine)

        self._entities = EntityRepository(self._datastore)
        self._events = EventRepository(self._datastore)
        self._webhooks = WebhookRepository(self._datastore)
        self._deliveries = DeliveryRepository(self._datastore)
        self._api_keys = ApiKeyRepository(self._datastore)

        if self._metrics is None and self._config.metrics.enabled:
            self._metrics = ScannerMetrics()

        if self._blockfrost is None and self._config.blockfrost.project_id:
            self._blockfrost = BlockfrostClient(self._config.blockfrost)
            await self._blockfrost.connect()

        webhook_cfg = self._config.webhook
        self._delivery_engine = DeliveryEngine(
            self._deliveries,
            self._webhooks,
            self._events,
            webhook_cfg,
            client=self._http_client,
            metrics=self._metrics,
        )
        await self._delivery_engine.start()
        self._matcher = SubscriptionMatcher(
            self._events, self._webhooks, self._deliveries, self._delivery_engine
        )
        self._sweeper = DeliverySweeper(
            self._deliveries,
            self._delivery_engine,
            batch_size=webhook_cfg.sweep_batch_size,
            stale_after=webhook_cfg.stale_after_seconds,
        )

        monitor_cfg = self._config.monitor
        self._dedup = DedupCache(max_size=monitor_cfg.dedup_cache_size)
        self._classifier = EventClassifier(
            self._events, on_event=self._matcher.schedule, metrics=self._metrics
        )
        if self._blockfrost is not None:
            self._detector = ChangeDetector(
                self._entities,
                self._blockfrost,
                self._classifier,
                self._dedup,
                transaction_window=monitor_cfg.transaction_window,
                concurrency=monitor_cfg.scan_concurrency,
                metrics=self._metrics,
            )

        self._monitoring_service = MonitoringService(self)
        self._webhook_service = WebhookService(self)
        self._delivery_service = DeliveryService(self)
        self._api_key_service = ApiKeyService(self)

        if self._config.task.enabled:
            self._task_manager = TaskManager(metrics=self._metrics)
            if self._detector is not None and monitor_cfg.enabled:
                self._task_manager.register(
                    MONITOR_JOB,
                    CronJob(
                        handler=partial(task_monitor_cycle, self._detector),
                        period=monitor_cfg.poll_interval,
                        run_immediately=True,
                    ),
                )
            self._task_manager.register(
                SWEEPER_JOB,
                CronJob(
                    handler=partial(task_sweep_deliveries, self._sweeper),
                    period=webhook_cfg.sweep_interval,
                ),
            )
            if self._metrics is not None:
                self._task_manager.register(
                    METRICS_JOB,
                    CronJob(
                        handler=partial(task_calculate_metrics, self._datastore, self._metrics),
                        period=CALCULATE_METRICS_PERIOD,
                    ),
                )
            await self._task_manager.start()

        self._initialized = True
        logger.info(
            "Scanner engine initialized (monitoring=%s, network=%s)",
            "on" if self._detector is not None and monitor_cfg.enabled else "off",
            self._config.blockfrost.network.value,
        )

    async def close(self) -> None:
        """Gracefully shut down.

        Stops the scheduler, drains in-flight matching and delivery work
        within ``webhook.shutdown_timeout`` seconds, then closes clients.
        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        if self._task_manager is not None:
            await self._task_manager.stop()
            self._task_manager = None

        deadline = time.monotonic() + self._config.webhook.shutdown_timeout
        if self._matcher is not None:
            await self._matcher.drain(timeout=max(deadline - time.monotonic(), 0))
        if self._delivery_engine is not None:
            await self._delivery_engine.drain(timeout=max(deadline - time.monotonic(), 0))
            await self._delivery_engine.close()

        self._detector = None
        self._classifier = None
        self._dedup = None
        self._sweeper = None
        self._matcher = None
        self._delivery_engine = None
        self._monitoring_service = None
        self._webhook_service = None
        self._delivery_service = None
        self._api_key_service = None
        self._metrics = None

        if self._blockfrost is not None and self._owns_blockfrost:
            await self._blockfrost.close()
            self._blockfrost = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False
        logger.info("Scanner engine closed")

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def blockfrost(self) -> BlockfrostClient | None:
        """The upstream client, or None when no project id is configured."""
        return self._blockfrost

    @property
    def metrics(self) -> ScannerMetrics | None:
        return self._metrics

    @property
    def task_manager(self) -> TaskManager | None:
        """Get the task manager (None if not enabled)."""
        return self._task_manager

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    @property
    def entities(self) -> EntityRepository:
        if self._entities is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._entities

    @property
    def events(self) -> EventRepository:
        if self._events is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._events

    @property
    def webhooks(self) -> WebhookRepository:
        if self._webhooks is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._webhooks

    @property
    def deliveries(self) -> DeliveryRepository:
        if self._deliveries is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._deliveries

    @property
    def api_keys(self) -> ApiKeyRepository:
        if self._api_keys is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._api_keys

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    @property
    def detector(self) -> ChangeDetector | None:
        """The change detector (None without an upstream client)."""
        return self._detector

    @property
    def classifier(self) -> EventClassifier:
        if self._classifier is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._classifier

    @property
    def matcher(self) -> SubscriptionMatcher:
        if self._matcher is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._matcher

    @property
    def delivery_engine(self) -> DeliveryEngine:
        if self._delivery_engine is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._delivery_engine

    @property
    def sweeper(self) -> DeliverySweeper:
        if self._sweeper is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._sweeper

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    @property
    def monitoring_service(self) -> MonitoringService:
        if self._monitoring_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._monitoring_service

    @property
    def webhook_service(self) -> WebhookService:
        if self._webhook_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._webhook_service

    @property
    def delivery_service(self) -> DeliveryService:
        if self._delivery_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._delivery_service

    @property
    def api_key_service(self) -> ApiKeyService:
        if self._api_key_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._api_key_service

    async def health_check(self) -> dict[str, str]:
        """Check health status of engine components.

        Returns:
            Dictionary with component statuses (``ok``, ``error``,
            ``disabled``, ``not_initialized``).
        """
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "datastore": "unknown",
            "blockfrost": "unknown",
            "scheduler": "unknown",
        }
        if not self._initialized:
            return status

        status["datastore"] = "ok" if self._datastore and self._datastore.is_open else "error"
        if self._blockfrost is None:
            status["blockfrost"] = "disabled"
        else:
            status["blockfrost"] = "ok" if self._blockfrost.is_connected else "error"
        if self._task_manager is None:
            status["scheduler"] = "disabled"
        else:
            status["scheduler"] = "ok" if self._task_manager.is_running else "error"
        return status
