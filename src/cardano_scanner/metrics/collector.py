"""Metrics collector — Prometheus counters, gauges, histograms.

- ``cardano_scanner_stats_total`` gauge-vec (addresses, contracts, webhooks,
  events, pending_deliveries)
- ``cardano_scanner_events_total`` counter by event type
- ``cardano_scanner_delivery_attempts_total`` counter by outcome
- ``cardano_scanner_delivery_histogram``
- ``cardano_scanner_scan_histogram``
- ``cardano_scanner_dedup_resets_total``
- ``cardano_scanner_cron_histogram`` / ``cardano_scanner_cron_last_execution_gauge``
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator


_PREFIX = "cardano_scanner"

_STAT_LABELS = ("entity",)


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`ScannerMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def gauge(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Gauge:
        return Gauge(name, doc, labels, registry=self._registry)

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        return Counter(name, doc, labels, registry=self._registry)


class ScannerMetrics:
    """High-level scanner metrics.

    Histograms track operation duration in seconds.
    """

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._stats = self._collector.gauge(
            f"{_PREFIX}_stats_total",
            "Entity counts in the scanner store",
            _STAT_LABELS,
        )
        self._events = self._collector.counter(
            f"{_PREFIX}_events",
            "Transaction events created",
            ("event_type",),
        )
        self._delivery_attempts = self._collector.counter(
            f"{_PREFIX}_delivery_attempts",
            "Webhook delivery attempts by outcome",
            ("outcome",),
        )
        self._dedup_resets = self._collector.counter(
            f"{_PREFIX}_dedup_resets",
            "Times the dedup cache was cleared after reaching its cap",
        )
        self._delivery = self._collector.histogram(
            f"{_PREFIX}_delivery_histogram",
            "Duration of webhook HTTP deliveries",
        )
        self._scan = self._collector.histogram(
            f"{_PREFIX}_scan_histogram",
            "Duration of full monitoring cycles",
        )

        self._cron_histogram = self._collector.histogram(
            f"{_PREFIX}_cron_histogram",
            "Duration of cron job executions",
            ("job_name",),
        )
        self._cron_last = self._collector.gauge(
            f"{_PREFIX}_cron_last_execution_gauge",
            "Timestamp of last cron execution",
            ("job_name",),
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    # -- Stat setters --

    def set_stat(self, entity: str, count: int) -> None:
        """Set the current count for *entity* (e.g. ``addresses``)."""
        self._stats.labels(entity=entity).set(count)

    def set_address_count(self, count: int) -> None:
        self.set_stat("addresses", count)

    def set_contract_count(self, count: int) -> None:
        self.set_stat("contracts", count)

    def set_webhook_count(self, count: int) -> None:
        self.set_stat("webhooks", count)

    def set_event_count(self, count: int) -> None:
        self.set_stat("events", count)

    def set_pending_delivery_count(self, count: int) -> None:
        self.set_stat("pending_deliveries", count)

    # -- Counters --

    def inc_event(self, event_type: str) -> None:
        self._events.labels(event_type=event_type).inc()

    def inc_delivery_attempt(self, outcome: str) -> None:
        """Count one delivery attempt; *outcome* is the resulting status."""
        self._delivery_attempts.labels(outcome=outcome).inc()

    def inc_dedup_reset(self) -> None:
        self._dedup_resets.inc()

    # -- Operation trackers (context managers) --

    @contextmanager
    def track_delivery(self) -> Iterator[None]:
        """Track the duration of one webhook HTTP request."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._delivery.observe(time.monotonic() - start)

    @contextmanager
    def track_scan(self) -> Iterator[None]:
        """Track the duration of a monitoring cycle."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._scan.observe(time.monotonic() - start)

    @contextmanager
    def track_cron(self, job_name: str) -> Iterator[None]:
        """Track the duration of a cron job and record last execution time."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._cron_histogram.labels(job_name=job_name).observe(time.monotonic() - start)
            self._cron_last.labels(job_name=job_name).set(time.time())
