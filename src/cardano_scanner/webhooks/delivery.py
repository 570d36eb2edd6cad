"""Webhook delivery engine — one HTTP attempt per call, with retry bookkeeping.

State machine::

    PENDING ──► IN_PROGRESS ──► SUCCEEDED
    RETRYING ─┘      ├────────► RETRYING (next_retry_at = now + backoff)
                     ├────────► MAX_RETRIES_EXCEEDED
                     └────────► FAILED (processing error)

Every transition is a conditional UPDATE, so terminal states are final
even when the sweeper and the matcher race on the same delivery.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import httpx

from cardano_scanner.engine.models.base import utc_now
from cardano_scanner.engine.models.delivery import DeliveryStatus
from cardano_scanner.errors.definitions import DeliveryError
from cardano_scanner.utils.locks import KeyedLock
from cardano_scanner.webhooks.payload import build_request, event_payload, iso_now

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from cardano_scanner.config.settings import WebhookConfig
    from cardano_scanner.engine.models.delivery import WebhookDelivery
    from cardano_scanner.engine.models.webhook import Webhook
    from cardano_scanner.engine.repository.deliveries import DeliveryRepository
    from cardano_scanner.engine.repository.events import EventRepository
    from cardano_scanner.engine.repository.webhooks import WebhookRepository
    from cardano_scanner.metrics.collector import ScannerMetrics

logger = logging.getLogger(__name__)


def compute_retry_delay(attempt_count: int, base_delay_ms: int) -> timedelta:
    """Backoff before the next attempt: ``base * 2^(attempt_count - 1)``.

    >>> compute_retry_delay(3, 30_000)
    datetime.timedelta(seconds=120)
    """
    exponent = max(attempt_count, 1) - 1
    return timedelta(milliseconds=base_delay_ms * (2**exponent))


@dataclass
class WebhookTestResult:
    """Outcome of a synchronous test delivery."""

    success: bool
    status_code: int | None
    response_body: str | None
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    payload: dict[str, Any] = field(default_factory=dict)


class DeliveryEngine:
    """Performs webhook delivery attempts.

    Usage::

        engine = DeliveryEngine(deliveries, webhooks, events, config.webhook)
        await engine.start()
        engine.enqueue(delivery_id)      # fire and forget
        await engine.drain(timeout=15)
        await engine.close()
    """

    def __init__(
        self,
        deliveries: DeliveryRepository,
        webhooks: WebhookRepository,
        events: EventRepository,
        config: WebhookConfig,
        *,
        client: httpx.AsyncClient | None = None,
        metrics: ScannerMetrics | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the engine.

        Args:
            deliveries: Delivery store.
            webhooks: Webhook subscription store.
            events: Event store.
            config: Retry, timeout and header settings.
            client: Optional pre-built HTTP client (tests inject a mock
                transport here). A client created by :meth:`start` is
                closed by :meth:`close`; an injected one is not.
            metrics: Optional Prometheus metrics.
            clock: Returns the current UTC time.
        """
        self._deliveries = deliveries
        self._webhooks = webhooks
        self._events = events
        self._config = config
        self._client = client
        self._owns_client = False
        self._metrics = metrics
        self._clock = clock
        self._locks = KeyedLock()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> int:
        """Number of enqueued attempts that have not finished."""
        return len(self._tasks)

    async def start(self) -> None:
        """Create the HTTP client if none was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
            self._owns_client = True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def enqueue(self, delivery_id: str) -> None:
        """Start an attempt on a background task and return immediately."""
        task = asyncio.create_task(self._run(delivery_id), name=f"delivery:{delivery_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: float) -> int:
        """Wait up to *timeout* seconds for in-flight attempts.

        Attempts still running afterwards are cancelled; they stay
        IN_PROGRESS and are re-admitted by the sweeper once stale.

        Returns:
            The number of attempts that were cancelled.
        """
        if not self._tasks:
            return 0
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("Cancelled %d in-flight webhook deliveries on shutdown", len(pending))
        return len(pending)

    async def _run(self, delivery_id: str) -> None:
        try:
            await self.attempt(delivery_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Unhandled error attempting webhook delivery %s", delivery_id)

    # ------------------------------------------------------------------
    # Attempt
    # ------------------------------------------------------------------

    async def attempt(self, delivery_id: str) -> DeliveryStatus | None:
        """Make one delivery attempt.

        Returns:
            The status the delivery ended in, or None when the delivery
            does not exist or is not currently admissible (terminal, or
            retrying but not yet due).
        """
        async with self._locks.hold(delivery_id):
            if await self._deliveries.get(delivery_id) is None:
                logger.error("Webhook delivery not found: %s", delivery_id)
                return None

            now = self._clock()
            stale_before = now - timedelta(seconds=self._config.stale_after_seconds)
            if not await self._deliveries.claim(delivery_id, now=now, stale_before=stale_before):
                logger.debug("Webhook delivery %s is not admissible, skipping", delivery_id)
                return None

            delivery = await self._deliveries.get(delivery_id)
            if delivery is None:
                return None

            try:
                status = await self._deliver(delivery)
            except Exception as exc:
                logger.exception("Error processing webhook delivery %s", delivery_id)
                await self._deliveries.mark_failed(
                    delivery_id, self._truncate(str(exc) or type(exc).__name__), now=self._clock()
                )
                status = DeliveryStatus.FAILED

            if self._metrics:
                self._metrics.inc_delivery_attempt(status.value)
            return status

    async def _deliver(self, delivery: WebhookDelivery) -> DeliveryStatus:
        webhook = await self._webhooks.get(delivery.webhook_id)
        if webhook is None or not webhook.is_active:
            msg = f"webhook {delivery.webhook_id} is missing or inactive"
            raise DeliveryError(msg)
        event = await self._events.get(delivery.event_id)
        if event is None:
            msg = f"event {delivery.event_id} is missing"
            raise DeliveryError(msg)

        request = build_request(
            event_payload(event.id, event.event_type, event.event_data),
            webhook_id=webhook.id,
            event_id=event.id,
            event_type=event.event_type,
            delivery_id=delivery.id,
            secret=webhook.secret,
            custom_headers=webhook.headers,
            user_agent=self._config.user_agent,
        )

        try:
            response = await self._post(webhook.url, request.body, request.headers)
        except httpx.HTTPError as exc:
            logger.warning("Webhook delivery %s to %s failed: %s", delivery.id, webhook.url, exc)
            return await self._record_failure(delivery, None, str(exc) or type(exc).__name__)

        body = self._truncate(response.text)
        if response.is_success:
            await self._finish(
                delivery,
                {
                    "status": DeliveryStatus.SUCCEEDED.value,
                    "status_code": response.status_code,
                    "response_body": body,
                    "next_retry_at": None,
                    "completed_at": self._clock(),
                },
            )
            logger.info(
                "Webhook delivery %s succeeded with status %d", delivery.id, response.status_code
            )
            return DeliveryStatus.SUCCEEDED

        logger.warning(
            "Webhook delivery %s to %s returned %d", delivery.id, webhook.url, response.status_code
        )
        return await self._record_failure(delivery, response.status_code, body)

    async def _record_failure(
        self, delivery: WebhookDelivery, status_code: int | None, body: str
    ) -> DeliveryStatus:
        now = self._clock()
        if delivery.attempt_count < self._config.max_retries:
            next_retry_at = now + compute_retry_delay(
                delivery.attempt_count, self._config.retry_delay_ms
            )
            await self._finish(
                delivery,
                {
                    "status": DeliveryStatus.RETRYING.value,
                    "status_code": status_code,
                    "response_body": body,
                    "next_retry_at": next_retry_at,
                },
            )
            logger.warning(
                "Webhook delivery %s failed (attempt %d/%d), retrying at %s",
                delivery.id,
                delivery.attempt_count,
                self._config.max_retries,
                next_retry_at.isoformat(),
            )
            return DeliveryStatus.RETRYING

        await self._finish(
            delivery,
            {
                "status": DeliveryStatus.MAX_RETRIES_EXCEEDED.value,
                "status_code": status_code,
                "response_body": body,
                "next_retry_at": None,
                "completed_at": now,
            },
        )
        logger.error(
            "Webhook delivery %s failed after %d attempts, giving up",
            delivery.id,
            delivery.attempt_count,
        )
        return DeliveryStatus.MAX_RETRIES_EXCEEDED

    async def _finish(self, delivery: WebhookDelivery, values: dict[str, Any]) -> None:
        if not await self._deliveries.finish_attempt(delivery.id, values):
            logger.warning(
                "Webhook delivery %s left IN_PROGRESS before its outcome was recorded", delivery.id
            )

    # ------------------------------------------------------------------
    # Test delivery
    # ------------------------------------------------------------------

    async def send_test(self, webhook: Webhook, event_type: str) -> WebhookTestResult:
        """POST a signed test payload to *webhook* and report the response.

        Nothing is persisted; transport errors are reported, not raised.
        """
        payload = {
            "id": uuid.uuid4().hex,
            "type": event_type,
            "timestamp": iso_now(),
            "test": True,
            "data": {"message": "This is a test webhook delivery", "webhook_id": webhook.id},
        }
        request = build_request(
            payload,
            webhook_id=webhook.id,
            event_type=event_type,
            delivery_id=uuid.uuid4().hex,
            secret=webhook.secret,
            custom_headers=webhook.headers,
            user_agent=self._config.user_agent,
            extra_headers={"X-Test-Delivery": "true"},
        )
        result = WebhookTestResult(
            success=False,
            status_code=None,
            response_body=None,
            url=webhook.url,
            headers=request.headers,
            payload=payload,
        )
        try:
            response = await self._post(webhook.url, request.body, request.headers)
        except httpx.HTTPError as exc:
            logger.warning("Test delivery to %s failed: %s", webhook.url, exc)
            result.response_body = str(exc) or type(exc).__name__
            return result

        result.success = response.is_success
        result.status_code = response.status_code
        result.response_body = self._truncate(response.text)
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _post(self, url: str, body: bytes, headers: dict[str, str]) -> httpx.Response:
        if self._client is None:
            msg = "DeliveryEngine is not started. Call start() first."
            raise RuntimeError(msg)
        if self._metrics:
            with self._metrics.track_delivery():
                return await self._client.post(
                    url, content=body, headers=headers, timeout=self._config.timeout_seconds
                )
        return await self._client.post(
            url, content=body, headers=headers, timeout=self._config.timeout_seconds
        )

    def _truncate(self, text: str) -> str:
        return text[: self._config.max_response_body]
