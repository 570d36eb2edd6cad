"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from cardano_scanner.metrics.collector import MetricsCollector, ScannerMetrics

__all__ = ["MetricsCollector", "ScannerMetrics"]
