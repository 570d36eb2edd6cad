"""Task manager — periodic background jobs.

Jobs registered by the engine:
- ``blockchain_monitor`` runs a change detection cycle
- ``webhook_sweeper`` re-admits due webhook deliveries
- ``calculate_metrics`` pushes store counts to Prometheus gauges
"""

from __future__ import annotations

from cardano_scanner.taskmanager.manager import CronJob, TaskManager

__all__ = ["CronJob", "TaskManager"]
