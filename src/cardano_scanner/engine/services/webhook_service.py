"""Webhook service — subscription CRUD and test deliveries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from cardano_scanner.engine.models.event import EventType
from cardano_scanner.engine.models.webhook import Webhook
from cardano_scanner.errors.definitions import (
    ErrEventTypeNotSubscribed,
    ErrInvalidEventTypes,
    ErrInvalidWebhookUrl,
    ErrNoFieldsToUpdate,
    ErrWebhookNotFound,
)

if TYPE_CHECKING:
    from cardano_scanner.engine.client import ScannerEngine
    from cardano_scanner.webhooks.delivery import WebhookTestResult

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "url", "secret", "event_types", "headers", "is_active")


def validate_url(url: str) -> str:
    """Require an absolute http(s) URL.

    Raises:
        ScannerError: ``invalid-webhook-url`` (400).
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ErrInvalidWebhookUrl
    return url


def normalize_event_types(values: list[str]) -> list[str]:
    """Validate a subscription set and return it as canonical values.

    Duplicates are dropped; order of first appearance is kept.

    Raises:
        ScannerError: ``invalid-event-types`` (400) if empty or unknown.
    """
    if not values:
        raise ErrInvalidEventTypes
    result: list[str] = []
    for value in values:
        try:
            event_type = EventType.parse(value)
        except ValueError:
            raise ErrInvalidEventTypes from None
        if event_type.value not in result:
            result.append(event_type.value)
    return result


class WebhookService:
    """Business logic for webhook subscriptions."""

    def __init__(self, engine: ScannerEngine) -> None:
        self._engine = engine

    async def create_webhook(
        self,
        *,
        name: str,
        url: str,
        event_types: list[str],
        secret: str | None = None,
        headers: dict[str, str] | None = None,
        created_by: str | None = None,
    ) -> Webhook:
        """Register a new subscriber.

        Raises:
            ScannerError: On an invalid URL or event type set (400).
        """
        webhook = Webhook(
            name=name,
            url=validate_url(url),
            secret=secret or None,
            event_types=normalize_event_types(event_types),
            headers=headers or None,
            created_by=created_by,
            is_active=True,
        )
        webhook = await self._engine.webhooks.create(webhook)
        logger.info("Registered webhook %s -> %s", webhook.id, webhook.url)
        return webhook

    async def get_webhook(self, webhook_id: str) -> Webhook:
        webhook = await self._engine.webhooks.get(webhook_id)
        if webhook is None:
            raise ErrWebhookNotFound
        return webhook

    async def list_webhooks(self) -> list[Webhook]:
        return await self._engine.webhooks.list_all()

    async def update_webhook(self, webhook_id: str, changes: dict[str, Any]) -> Webhook:
        """Apply a partial update.

        Only keys present in *changes* are touched; an empty secret or
        header map clears it.

        Raises:
            ScannerError: ``no-fields-to-update``, validation errors (400),
                or ``webhook-not-found`` (404).
        """
        values = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS}
        if not values:
            raise ErrNoFieldsToUpdate
        if "url" in values:
            validate_url(values["url"])
        if "event_types" in values:
            values["event_types"] = normalize_event_types(values["event_types"] or [])
        if "secret" in values:
            values["secret"] = values["secret"] or None
        if "headers" in values:
            values["headers"] = values["headers"] or None

        webhook = await self._engine.webhooks.update(webhook_id, values)
        if webhook is None:
            raise ErrWebhookNotFound
        return webhook

    async def deactivate_webhook(self, webhook_id: str) -> None:
        if not await self._engine.webhooks.deactivate(webhook_id):
            raise ErrWebhookNotFound
        logger.info("Deactivated webhook %s", webhook_id)

    async def send_test(self, webhook_id: str, event_type: str) -> WebhookTestResult:
        """Send a signed test payload to an active webhook.

        Raises:
            ScannerError: ``webhook-not-found`` (404) if missing or inactive,
                ``event-type-not-subscribed`` (400) if the webhook does not
                subscribe to *event_type*.
        """
        webhook = await self._engine.webhooks.get(webhook_id)
        if webhook is None or not webhook.is_active:
            raise ErrWebhookNotFound
        try:
            event_type = EventType.parse(event_type).value
        except ValueError:
            raise ErrInvalidEventTypes from None
        if not webhook.subscribes_to(event_type):
            raise ErrEventTypeNotSubscribed
        return await self._engine.delivery_engine.send_test(webhook, event_type)
