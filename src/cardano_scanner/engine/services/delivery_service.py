"""Delivery service — read-only views over webhook deliveries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardano_scanner.engine.repository.deliveries import SORTABLE_COLUMNS
from cardano_scanner.errors.definitions import ErrInvalidSortField

if TYPE_CHECKING:
    from cardano_scanner.engine.client import ScannerEngine
    from cardano_scanner.engine.models.delivery import WebhookDelivery


class DeliveryService:
    """Query deliveries for the admin API."""

    def __init__(self, engine: ScannerEngine) -> None:
        self._engine = engine

    async def search_deliveries(
        self,
        *,
        webhook_id: str | None = None,
        event_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[WebhookDelivery], int]:
        """Filter and paginate deliveries.

        Returns:
            ``(page, total_count)``.
        """
        if sort_by not in SORTABLE_COLUMNS:
            raise ErrInvalidSortField
        return await self._engine.deliveries.search(
            webhook_id=webhook_id,
            event_id=event_id,
            status=status,
            limit=limit,
            offset=offset,
            sort_by=sort_by,
            descending=sort_order.lower() != "asc",
        )

    async def get_delivery(self, delivery_id: str) -> WebhookDelivery | None:
        return await self._engine.deliveries.get(delivery_id)
