"""Webhooks — subscription matching, delivery and retry sweeping."""

from __future__ import annotations

from cardano_scanner.webhooks.delivery import DeliveryEngine, compute_retry_delay
from cardano_scanner.webhooks.matcher import SubscriptionMatcher
from cardano_scanner.webhooks.sweeper import DeliverySweeper

__all__ = ["DeliveryEngine", "DeliverySweeper", "SubscriptionMatcher", "compute_retry_delay"]
