"""Event store repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from cardano_scanner.engine.models.event import TransactionEvent

if TYPE_CHECKING:
    from cardano_scanner.datastore.client import Datastore

logger = logging.getLogger(__name__)


class EventRepository:
    """Data access layer for classified transaction events."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def get(self, event_id: str) -> TransactionEvent | None:
        async with self._ds.session() as session:
            return await session.get(TransactionEvent, event_id)

    async def existing_types(
        self,
        tx_hash: str,
        *,
        address_id: str | None = None,
        contract_id: str | None = None,
    ) -> set[str]:
        """Event types already stored for a (watched entity, transaction) pair."""
        stmt = select(TransactionEvent.event_type).where(TransactionEvent.tx_hash == tx_hash)
        if address_id is not None:
            stmt = stmt.where(TransactionEvent.address_id == address_id)
        else:
            stmt = stmt.where(TransactionEvent.contract_id == contract_id)
        async with self._ds.session() as session:
            result = await session.execute(stmt)
            return set(result.scalars().all())

    async def create(self, event: TransactionEvent) -> TransactionEvent | None:
        """Insert an event.

        Returns:
            The stored event, or None if the (entity, tx, type) triple
            already exists.
        """
        async with self._ds.session() as session:
            session.add(event)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.debug(
                    "Event %s for tx %s already stored, skipping", event.event_type, event.tx_hash
                )
                return None
            await session.refresh(event)
        return event

    async def mark_processed(self, event_id: str) -> bool:
        """Set ``processed`` on an event. Returns False if the row is missing."""
        async with self._ds.session() as session:
            stmt = (
                update(TransactionEvent)
                .where(TransactionEvent.id == event_id)
                .values(processed=True)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]

    async def list_for_entity(
        self,
        *,
        address_id: str | None = None,
        contract_id: str | None = None,
        limit: int = 50,
    ) -> list[TransactionEvent]:
        """List the most recent events of one watched entity."""
        stmt = select(TransactionEvent)
        if address_id is not None:
            stmt = stmt.where(TransactionEvent.address_id == address_id)
        if contract_id is not None:
            stmt = stmt.where(TransactionEvent.contract_id == contract_id)
        stmt = stmt.order_by(TransactionEvent.created_at.desc()).limit(limit)
        async with self._ds.session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
