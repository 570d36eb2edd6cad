"""Subscription matcher — fan an event out to the webhooks that want it."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cardano_scanner.engine.repository.deliveries import DeliveryRepository
    from cardano_scanner.engine.repository.events import EventRepository
    from cardano_scanner.engine.repository.webhooks import WebhookRepository
    from cardano_scanner.webhooks.delivery import DeliveryEngine

logger = logging.getLogger(__name__)


class SubscriptionMatcher:
    """Creates PENDING deliveries for every active subscriber of an event type.

    Usage::

        matcher = SubscriptionMatcher(events, webhooks, deliveries, engine)
        matcher.schedule(event_id)          # from the classifier hook
        await matcher.drain(timeout=15)
    """

    def __init__(
        self,
        events: EventRepository,
        webhooks: WebhookRepository,
        deliveries: DeliveryRepository,
        delivery_engine: DeliveryEngine,
    ) -> None:
        self._events = events
        self._webhooks = webhooks
        self._deliveries = deliveries
        self._engine = delivery_engine
        self._tasks: set[asyncio.Task[Any]] = set()

    async def process_event(self, event_id: str) -> list[str]:
        """Mark the event processed and create its deliveries.

        Pairs that already have a delivery are left alone, so processing
        an event twice creates nothing new.

        Returns:
            Ids of the deliveries created by this call.
        """
        event = await self._events.get(event_id)
        if event is None:
            logger.error("Transaction event not found: %s", event_id)
            return []

        await self._events.mark_processed(event_id)

        webhooks = await self._webhooks.list_active_for_event_type(event.event_type)
        if not webhooks:
            logger.debug("No webhooks subscribed to %s", event.event_type)
            return []

        created: list[str] = []
        for webhook in webhooks:
            try:
                delivery = await self._deliveries.create_pending(webhook.id, event.id)
            except Exception:
                logger.exception(
                    "Failed to create delivery for webhook %s and event %s", webhook.id, event.id
                )
                continue
            if delivery is None:
                continue
            created.append(delivery.id)
            self._engine.enqueue(delivery.id)

        if created:
            logger.info(
                "Queued %d webhook deliveries for %s event %s",
                len(created),
                event.event_type,
                event.id,
            )
        return created

    def schedule(self, event_id: str) -> None:
        """Run :meth:`process_event` on a background task."""
        task = asyncio.create_task(self._run(event_id), name=f"match:{event_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: float) -> int:
        """Wait up to *timeout* seconds for scheduled events; cancel the rest."""
        if not self._tasks:
            return 0
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("Cancelled %d pending event matches on shutdown", len(pending))
        return len(pending)

    async def _run(self, event_id: str) -> None:
        try:
            await self.process_event(event_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error matching subscriptions for event %s", event_id)
