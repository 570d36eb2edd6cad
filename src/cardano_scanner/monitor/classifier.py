"""Event classifier — derive typed events from a transaction.

Address rules (relative to the watched address):
- receiver (an output pays the address): TRANSACTION_RECEIVED, plus
  ADA_RECEIVED when lovelace > 0, TOKEN_RECEIVED when any other unit
  arrives, and NFT_RECEIVED when one of those has quantity exactly 1
- sender (an input spends from the address): the ``*_SENT`` mirror
- METADATA_ADDED once when the transaction carries metadata

Contract rules: CONTRACT_EXECUTED always, TOKEN_MINTED when the
transaction mints or burns assets.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from cardano_scanner.engine.models.event import EventType, TransactionEvent
from cardano_scanner.engine.models.monitored import ENTITY_ADDRESS
from cardano_scanner.errors.scanner_errors import EventStoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardano_scanner.chain.blockfrost.models import Amount, TransactionDetail, TxIO
    from cardano_scanner.engine.models.monitored import WatchedEntity
    from cardano_scanner.engine.repository.events import EventRepository
    from cardano_scanner.metrics.collector import ScannerMetrics

logger = logging.getLogger(__name__)


def _amounts_at(entries: list[TxIO], address: str) -> list[Amount]:
    return [amount for entry in entries if entry.address == address for amount in entry.amount]


def _direction_types(
    amounts: list[Amount],
    *,
    transaction: EventType,
    ada: EventType,
    token: EventType,
    nft: EventType,
) -> list[EventType]:
    types = [transaction]
    if sum(a.value for a in amounts if a.is_native) > 0:
        types.append(ada)
    tokens = [a for a in amounts if not a.is_native]
    if tokens:
        types.append(token)
        if any(a.value == 1 for a in tokens):
            types.append(nft)
    return types


def derive_address_event_types(address: str, detail: TransactionDetail) -> list[EventType]:
    """Event types a transaction produces for a watched address."""
    types: list[EventType] = []

    if any(entry.address == address for entry in detail.outputs):
        types += _direction_types(
            _amounts_at(detail.outputs, address),
            transaction=EventType.TRANSACTION_RECEIVED,
            ada=EventType.ADA_RECEIVED,
            token=EventType.TOKEN_RECEIVED,
            nft=EventType.NFT_RECEIVED,
        )

    if any(entry.address == address for entry in detail.inputs):
        types += _direction_types(
            _amounts_at(detail.inputs, address),
            transaction=EventType.TRANSACTION_SENT,
            ada=EventType.ADA_SENT,
            token=EventType.TOKEN_SENT,
            nft=EventType.NFT_SENT,
        )

    if detail.metadata:
        types.append(EventType.METADATA_ADDED)
    return types


def derive_contract_event_types(detail: TransactionDetail) -> list[EventType]:
    """Event types a transaction produces for a watched contract."""
    types = [EventType.CONTRACT_EXECUTED]
    if detail.asset_mint_count > 0:
        types.append(EventType.TOKEN_MINTED)
    return types


def derive_event_types(entity: WatchedEntity, detail: TransactionDetail) -> list[EventType]:
    if entity.kind == ENTITY_ADDRESS:
        return derive_address_event_types(entity.address, detail)
    return derive_contract_event_types(detail)


def build_event_payload(entity: WatchedEntity, detail: TransactionDetail) -> dict[str, Any]:
    """Event payload: the transaction detail plus the watched entity context."""
    return {"tx": detail.to_dict(), entity.kind: entity.address}


def _block_time(detail: TransactionDetail) -> datetime | None:
    if detail.block_time is None:
        return None
    return datetime.fromtimestamp(detail.block_time, tz=UTC)


class EventClassifier:
    """Turns (watched entity, transaction) pairs into stored events.

    Classification is idempotent: event types already stored for the
    pair are skipped, so a re-scan after a dedup cache reset creates
    nothing new.
    """

    def __init__(
        self,
        events: EventRepository,
        *,
        on_event: Callable[[str], None] | None = None,
        metrics: ScannerMetrics | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            events: Event store.
            on_event: Called with each new event id. Must not block; the
                engine wires it to the subscription matcher's scheduler.
            metrics: Optional Prometheus metrics.
        """
        self._events = events
        self._on_event = on_event
        self._metrics = metrics

    async def classify(
        self, entity: WatchedEntity, detail: TransactionDetail
    ) -> list[TransactionEvent]:
        """Derive, store and announce the events for one transaction.

        Returns:
            The events created by this call (empty if all already existed).

        Raises:
            EventStoreError: If any type failed to persist. The other types
                are still stored and announced.
        """
        types = derive_event_types(entity, detail)
        if not types:
            return []

        refs = (
            {"address_id": entity.id} if entity.kind == ENTITY_ADDRESS else {"contract_id": entity.id}
        )
        existing = await self._events.existing_types(detail.hash, **refs)
        payload = build_event_payload(entity, detail)
        block_time = _block_time(detail)

        created: list[TransactionEvent] = []
        failed: list[str] = []
        for event_type in types:
            if event_type.value in existing:
                continue
            event = TransactionEvent(
                tx_hash=detail.hash,
                block_height=detail.block_height,
                block_time=block_time,
                event_type=event_type.value,
                event_data=payload,
                processed=False,
                **refs,
            )
            try:
                stored = await self._events.create(event)
            except Exception:
                logger.exception(
                    "Failed to store %s event for tx %s (%s %s)",
                    event_type.value,
                    detail.hash,
                    entity.kind,
                    entity.address,
                )
                failed.append(event_type.value)
                continue
            if stored is None:
                continue
            created.append(stored)
            if self._metrics:
                self._metrics.inc_event(event_type.value)
            if self._on_event:
                self._on_event(stored.id)

        if created:
            logger.info(
                "Created %d event(s) for tx %s on %s %s: %s",
                len(created),
                detail.hash,
                entity.kind,
                entity.address,
                ", ".join(e.event_type for e in created),
            )
        if failed:
            raise EventStoreError(
                f"failed to store {', '.join(failed)} for tx {detail.hash}", created=created
            )
        return created
