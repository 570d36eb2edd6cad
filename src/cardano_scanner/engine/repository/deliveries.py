"""Webhook delivery repository.

Status writes are conditional on the current status so that a delivery
can never leave a terminal state, even when two writers race.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from cardano_scanner.engine.models.delivery import (
    TERMINAL_STATUSES,
    DeliveryStatus,
    WebhookDelivery,
)

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import ColumnElement

    from cardano_scanner.datastore.client import Datastore

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("created_at", "completed_at", "next_retry_at", "attempt_count")

_TERMINAL_VALUES = [s.value for s in TERMINAL_STATUSES]


def _admissible(now: datetime, stale_before: datetime) -> ColumnElement[bool]:
    """Deliveries that may start a new attempt at *now*.

    PENDING, RETRYING once due, and IN_PROGRESS rows whose last attempt
    started before *stale_before* (abandoned by a crashed process).
    """
    d = WebhookDelivery
    return or_(
        d.status == DeliveryStatus.PENDING.value,
        and_(
            d.status == DeliveryStatus.RETRYING.value,
            or_(d.next_retry_at.is_(None), d.next_retry_at <= now),
        ),
        and_(
            d.status == DeliveryStatus.IN_PROGRESS.value,
            or_(d.last_attempt_at.is_(None), d.last_attempt_at <= stale_before),
        ),
    )


class DeliveryRepository:
    """Data access layer for webhook deliveries."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def get(self, delivery_id: str) -> WebhookDelivery | None:
        async with self._ds.session() as session:
            return await session.get(WebhookDelivery, delivery_id)

    async def create_pending(self, webhook_id: str, event_id: str) -> WebhookDelivery | None:
        """Create a PENDING delivery for a (webhook, event) pair.

        Returns:
            The new delivery, or None if the pair already has one.
        """
        delivery = WebhookDelivery(
            webhook_id=webhook_id,
            event_id=event_id,
            attempt_count=0,
            status=DeliveryStatus.PENDING.value,
        )
        async with self._ds.session() as session:
            session.add(delivery)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.debug("Delivery for webhook %s / event %s exists", webhook_id, event_id)
                return None
            await session.refresh(delivery)
        return delivery

    async def claim(self, delivery_id: str, *, now: datetime, stale_before: datetime) -> bool:
        """Move an admissible delivery to IN_PROGRESS and count the attempt.

        Returns:
            True if this caller now owns the attempt.
        """
        async with self._ds.session() as session:
            stmt = (
                update(WebhookDelivery)
                .where(WebhookDelivery.id == delivery_id, _admissible(now, stale_before))
                .values(
                    status=DeliveryStatus.IN_PROGRESS.value,
                    attempt_count=WebhookDelivery.attempt_count + 1,
                    last_attempt_at=now,
                    next_retry_at=None,
                )
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]

    async def finish_attempt(self, delivery_id: str, values: dict[str, Any]) -> bool:
        """Record the outcome of an IN_PROGRESS attempt."""
        async with self._ds.session() as session:
            stmt = (
                update(WebhookDelivery)
                .where(
                    WebhookDelivery.id == delivery_id,
                    WebhookDelivery.status == DeliveryStatus.IN_PROGRESS.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]

    async def mark_failed(self, delivery_id: str, error: str, *, now: datetime) -> bool:
        """Move a non-terminal delivery to FAILED."""
        async with self._ds.session() as session:
            stmt = (
                update(WebhookDelivery)
                .where(
                    WebhookDelivery.id == delivery_id,
                    WebhookDelivery.status.not_in(_TERMINAL_VALUES),
                )
                .values(
                    status=DeliveryStatus.FAILED.value,
                    response_body=error,
                    next_retry_at=None,
                    completed_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]

    async def list_admissible_ids(
        self,
        *,
        now: datetime,
        stale_before: datetime,
        limit: int,
    ) -> list[str]:
        """Ids of deliveries the sweeper should (re-)admit, oldest first."""
        async with self._ds.session() as session:
            stmt = (
                select(WebhookDelivery.id)
                .where(_admissible(now, stale_before))
                .order_by(WebhookDelivery.created_at)
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def search(
        self,
        *,
        webhook_id: str | None = None,
        event_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[WebhookDelivery], int]:
        """Filtered, paginated delivery listing.

        Returns:
            ``(page, total_count)`` where total ignores pagination.
        """
        if sort_by not in SORTABLE_COLUMNS:
            msg = f"cannot sort deliveries by {sort_by!r}"
            raise ValueError(msg)

        conditions = []
        if webhook_id:
            conditions.append(WebhookDelivery.webhook_id == webhook_id)
        if event_id:
            conditions.append(WebhookDelivery.event_id == event_id)
        if status:
            conditions.append(WebhookDelivery.status == status)

        column = getattr(WebhookDelivery, sort_by)
        # id breaks ties so offset pagination is stable
        if descending:
            order = (column.desc(), WebhookDelivery.id.desc())
        else:
            order = (column.asc(), WebhookDelivery.id.asc())
        async with self._ds.session() as session:
            total = (
                await session.execute(
                    select(func.count(WebhookDelivery.id)).where(*conditions)
                )
            ).scalar() or 0
            stmt = (
                select(WebhookDelivery)
                .where(*conditions)
                .order_by(*order)
                .offset(offset)
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all()), total

    async def count_by_status(self) -> dict[str, int]:
        """Number of deliveries in each status."""
        async with self._ds.session() as session:
            stmt = select(WebhookDelivery.status, func.count(WebhookDelivery.id)).group_by(
                WebhookDelivery.status
            )
            result = await session.execute(stmt)
            return {status: count for status, count in result.all()}
