"""Repositories — data access for the scanner tables.

Every method opens its own session; nothing read here is cached beyond
the call.
"""

from cardano_scanner.engine.repository.api_keys import ApiKeyRepository
from cardano_scanner.engine.repository.deliveries import DeliveryRepository
from cardano_scanner.engine.repository.entities import EntityRepository
from cardano_scanner.engine.repository.events import EventRepository
from cardano_scanner.engine.repository.webhooks import WebhookRepository

__all__ = [
    "ApiKeyRepository",
    "DeliveryRepository",
    "EntityRepository",
    "EventRepository",
    "WebhookRepository",
]
