"""Monitor — change detection and event classification."""

from __future__ import annotations

from cardano_scanner.monitor.classifier import EventClassifier
from cardano_scanner.monitor.dedup import DedupCache
from cardano_scanner.monitor.detector import ChangeDetector, ScanReport, ScanResult

__all__ = ["ChangeDetector", "DedupCache", "EventClassifier", "ScanReport", "ScanResult"]
