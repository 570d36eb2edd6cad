"""V1 delivery endpoints — delivery history with filters and pagination."""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from cardano_scanner.api.dependencies import get_engine, require_api_key
from cardano_scanner.api.middleware.auth import ApiKeyContext  # noqa: TC001
from cardano_scanner.api.v1.schemas import DeliveryListResponse, DeliveryResponse
from cardano_scanner.engine.client import ScannerEngine  # noqa: TC001
from cardano_scanner.engine.models.delivery import DeliveryStatus  # noqa: TC001

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("")
async def list_deliveries(
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
    webhook_id: str | None = None,
    event_id: str | None = None,
    status: DeliveryStatus | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    sort_by: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> dict:
    """List deliveries; ``total_count`` ignores pagination."""
    page, total = await engine.delivery_service.search_deliveries(
        webhook_id=webhook_id,
        event_id=event_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return DeliveryListResponse(
        data=[DeliveryResponse.from_model(d) for d in page],
        total_count=total,
    ).model_dump(mode="json")
