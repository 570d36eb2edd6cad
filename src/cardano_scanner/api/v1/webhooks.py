"""V1 webhook endpoints — subscription CRUD and test deliveries."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from cardano_scanner.api.dependencies import get_engine, require_api_key, require_permission
from cardano_scanner.api.middleware.auth import ApiKeyContext  # noqa: TC001
from cardano_scanner.api.v1.schemas import (
    WebhookCreateRequest,
    WebhookResponse,
    WebhookTestRequest,
    WebhookTestResponse,
    WebhookUpdateRequest,
)
from cardano_scanner.engine.client import ScannerEngine  # noqa: TC001

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("", status_code=201)
async def create_webhook(
    body: WebhookCreateRequest,
    ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Register a webhook for a set of event types."""
    webhook = await engine.webhook_service.create_webhook(
        name=body.name,
        url=body.url,
        event_types=body.event_types,
        secret=body.secret,
        headers=body.headers,
        created_by=ctx.key_id,
    )
    return WebhookResponse.from_model(webhook).model_dump(mode="json")


@router.get("")
async def list_webhooks(
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> list[dict]:
    webhooks = await engine.webhook_service.list_webhooks()
    return [WebhookResponse.from_model(w).model_dump(mode="json") for w in webhooks]


@router.get("/{webhook_id}")
async def get_webhook(
    webhook_id: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    webhook = await engine.webhook_service.get_webhook(webhook_id)
    return WebhookResponse.from_model(webhook).model_dump(mode="json")


@router.put("/{webhook_id}")
async def update_webhook(
    webhook_id: str,
    body: WebhookUpdateRequest,
    _ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Partially update a webhook; only the fields sent are changed."""
    webhook = await engine.webhook_service.update_webhook(
        webhook_id, body.model_dump(exclude_unset=True)
    )
    return WebhookResponse.from_model(webhook).model_dump(mode="json")


@router.delete("/{webhook_id}")
async def delete_webhook(
    webhook_id: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Deactivate a webhook."""
    await engine.webhook_service.deactivate_webhook(webhook_id)
    return {"message": "Webhook deactivated", "id": webhook_id}


@router.post("/{webhook_id}/test")
async def test_webhook(
    webhook_id: str,
    body: WebhookTestRequest,
    _ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Send a signed test payload and report the subscriber's response."""
    result = await engine.webhook_service.send_test(webhook_id, body.event_type)
    return WebhookTestResponse(
        success=result.success,
        status_code=result.status_code,
        response_body=result.response_body,
        request={"url": result.url, "headers": result.headers, "payload": result.payload},
    ).model_dump(mode="json")
