"""V1 API request/response Pydantic schemas.

These are the *API-layer* schemas — thin wrappers that define the HTTP
contract. They do not inherit from the SQLAlchemy models; the endpoint
code maps between ORM objects and these schemas.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, Field

from cardano_scanner.engine.models.base import as_utc

# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Monitoring
# ---------------------------------------------------------------------------


class AddressCreateRequest(BaseModel):
    """POST /api/v1/monitoring/addresses"""

    address: str = Field(min_length=1, max_length=255)
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None


class ContractCreateRequest(AddressCreateRequest):
    """POST /api/v1/monitoring/contracts"""

    contract_type: str | None = Field(default=None, max_length=50)


class AddressResponse(BaseModel):
    id: str
    address: str
    name: str | None = None
    description: str | None = None
    last_checked_at: datetime | None = None
    created_at: datetime | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, entity: Any) -> AddressResponse:
        return cls(
            id=entity.id,
            address=entity.address,
            name=entity.name,
            description=entity.description,
            last_checked_at=as_utc(entity.last_checked_at),
            created_at=as_utc(entity.created_at),
            is_active=entity.is_active,
        )


class ContractResponse(AddressResponse):
    contract_type: str | None = None

    @classmethod
    def from_model(cls, entity: Any) -> ContractResponse:
        base = AddressResponse.from_model(entity).model_dump()
        return cls(**base, contract_type=entity.contract_type)


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


class WebhookCreateRequest(BaseModel):
    """POST /api/v1/webhooks"""

    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=1024)
    event_types: list[str] = Field(min_length=1)
    secret: str | None = None
    headers: dict[str, str] | None = None


class WebhookUpdateRequest(BaseModel):
    """PUT /api/v1/webhooks/{id} — only the fields sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = Field(default=None, min_length=1, max_length=1024)
    event_types: list[str] | None = None
    secret: str | None = None
    headers: dict[str, str] | None = None
    is_active: bool | None = None


class WebhookTestRequest(BaseModel):
    """POST /api/v1/webhooks/{id}/test"""

    event_type: str


class WebhookResponse(BaseModel):
    """A webhook as returned by the API. The secret is never echoed."""

    id: str
    name: str
    url: str
    event_types: list[str] = Field(default_factory=list)
    headers: dict[str, str] | None = None
    has_secret: bool = False
    created_at: datetime | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, webhook: Any) -> WebhookResponse:
        return cls(
            id=webhook.id,
            name=webhook.name,
            url=webhook.url,
            event_types=list(webhook.event_types or []),
            headers=webhook.headers,
            has_secret=bool(webhook.secret),
            created_at=as_utc(webhook.created_at),
            is_active=webhook.is_active,
        )


class WebhookTestResponse(BaseModel):
    success: bool
    status_code: int | None = None
    response_body: str | None = None
    request: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Deliveries
# ---------------------------------------------------------------------------


class DeliveryResponse(BaseModel):
    id: str
    webhook_id: str
    event_id: str
    attempt_count: int
    status: str
    status_code: int | None = None
    response_body: str | None = None
    next_retry_at: datetime | None = None
    last_attempt_at: datetime | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_model(cls, delivery: Any) -> DeliveryResponse:
        return cls(
            id=delivery.id,
            webhook_id=delivery.webhook_id,
            event_id=delivery.event_id,
            attempt_count=delivery.attempt_count,
            status=delivery.status,
            status_code=delivery.status_code,
            response_body=delivery.response_body,
            next_retry_at=as_utc(delivery.next_retry_at),
            last_attempt_at=as_utc(delivery.last_attempt_at),
            created_at=as_utc(delivery.created_at),
            completed_at=as_utc(delivery.completed_at),
        )


class DeliveryListResponse(BaseModel):
    """GET /api/v1/deliveries"""

    data: list[DeliveryResponse]
    total_count: int
