"""Engine data models (SQLAlchemy ORM).

Import :data:`ALL_MODELS` for migration and table creation.
"""

from cardano_scanner.engine.models.api_key import ApiKey
from cardano_scanner.engine.models.base import Base, CreatedAtMixin
from cardano_scanner.engine.models.delivery import (
    TERMINAL_STATUSES,
    DeliveryStatus,
    WebhookDelivery,
)
from cardano_scanner.engine.models.event import EventType, TransactionEvent
from cardano_scanner.engine.models.monitored import (
    ENTITY_ADDRESS,
    ENTITY_CONTRACT,
    MonitoredAddress,
    MonitoredContract,
    WatchedEntity,
)
from cardano_scanner.engine.models.webhook import Webhook

ALL_MODELS: list[type[Base]] = [
    ApiKey,
    MonitoredAddress,
    MonitoredContract,
    TransactionEvent,
    Webhook,
    WebhookDelivery,
]

__all__ = [
    "ALL_MODELS",
    "ENTITY_ADDRESS",
    "ENTITY_CONTRACT",
    "TERMINAL_STATUSES",
    "ApiKey",
    "Base",
    "CreatedAtMixin",
    "DeliveryStatus",
    "EventType",
    "MonitoredAddress",
    "MonitoredContract",
    "TransactionEvent",
    "WatchedEntity",
    "Webhook",
    "WebhookDelivery",
]
