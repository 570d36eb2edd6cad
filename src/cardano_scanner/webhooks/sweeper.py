"""Delivery queue sweeper — re-admit deliveries that are due.

Picks up PENDING deliveries the matcher never got to (for instance after
a restart), RETRYING deliveries whose backoff has elapsed, and
IN_PROGRESS deliveries abandoned by a crashed attempt.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from cardano_scanner.engine.models.base import utc_now

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from cardano_scanner.engine.repository.deliveries import DeliveryRepository
    from cardano_scanner.webhooks.delivery import DeliveryEngine

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_STALE_AFTER = 300.0  # seconds


class DeliverySweeper:
    """Periodic entry point that feeds due deliveries to the engine."""

    def __init__(
        self,
        deliveries: DeliveryRepository,
        delivery_engine: DeliveryEngine,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        stale_after: float = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._deliveries = deliveries
        self._engine = delivery_engine
        self._batch_size = batch_size
        self._stale_after = stale_after
        self._clock = clock

    async def sweep(self) -> int:
        """Enqueue up to ``batch_size`` due deliveries, oldest first.

        Returns:
            The number of deliveries handed to the engine.
        """
        now = self._clock()
        ids = await self._deliveries.list_admissible_ids(
            now=now,
            stale_before=now - timedelta(seconds=self._stale_after),
            limit=self._batch_size,
        )
        for delivery_id in ids:
            self._engine.enqueue(delivery_id)
        if ids:
            logger.info("Sweeper admitted %d webhook deliveries", len(ids))
        return len(ids)
