"""Change detector — poll watched entities for new transactions.

Each cycle lists the active addresses and contracts and scans them with
bounded concurrency. A scan fetches the most recent transactions of the
entity, skips those already in the dedup cache, and hands the rest to
the event classifier in chronological order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cardano_scanner.errors.chain_errors import UpstreamError
from cardano_scanner.errors.scanner_errors import EventStoreError
from cardano_scanner.utils.locks import KeyedLock

if TYPE_CHECKING:
    from cardano_scanner.chain.blockfrost.client import BlockfrostClient
    from cardano_scanner.engine.models.monitored import WatchedEntity
    from cardano_scanner.engine.repository.entities import EntityRepository
    from cardano_scanner.metrics.collector import ScannerMetrics
    from cardano_scanner.monitor.classifier import EventClassifier
    from cardano_scanner.monitor.dedup import DedupCache

logger = logging.getLogger(__name__)

DEFAULT_TRANSACTION_WINDOW = 20
DEFAULT_SCAN_CONCURRENCY = 4


@dataclass
class ScanResult:
    """Outcome of scanning one entity."""

    new_transactions: int = 0
    events_created: int = 0
    deferred: int = 0


@dataclass
class ScanReport:
    """Outcome of one full detection cycle."""

    entities_scanned: int = 0
    entities_failed: int = 0
    new_transactions: int = 0
    events_created: int = 0


class ChangeDetector:
    """Discovers new transactions per watched entity.

    Usage::

        detector = ChangeDetector(entities, blockfrost, classifier, DedupCache())
        report = await detector.run_cycle()
    """

    def __init__(
        self,
        entities: EntityRepository,
        upstream: BlockfrostClient,
        classifier: EventClassifier,
        cache: DedupCache,
        *,
        transaction_window: int = DEFAULT_TRANSACTION_WINDOW,
        concurrency: int = DEFAULT_SCAN_CONCURRENCY,
        metrics: ScannerMetrics | None = None,
    ) -> None:
        self._entities = entities
        self._upstream = upstream
        self._classifier = classifier
        self._cache = cache
        self._window = transaction_window
        self._semaphore = asyncio.Semaphore(concurrency)
        self._locks = KeyedLock()
        self._metrics = metrics

    @property
    def cache(self) -> DedupCache:
        return self._cache

    async def run_cycle(self) -> ScanReport:
        """Scan every active address and contract once.

        A failure on one entity is logged and counted; it never stops the
        cycle for the others.
        """
        addresses = await self._entities.list_active_addresses()
        contracts = await self._entities.list_active_contracts()
        entities: list[WatchedEntity] = [*addresses, *contracts]

        report = ScanReport()
        if not entities:
            return report

        if self._metrics:
            with self._metrics.track_scan():
                results = await asyncio.gather(*(self._guarded_scan(e) for e in entities))
        else:
            results = await asyncio.gather(*(self._guarded_scan(e) for e in entities))
        for result in results:
            if result is None:
                report.entities_failed += 1
                continue
            report.entities_scanned += 1
            report.new_transactions += result.new_transactions
            report.events_created += result.events_created

        logger.info(
            "Monitoring cycle: %d entities scanned, %d failed, %d new transactions, %d events",
            report.entities_scanned,
            report.entities_failed,
            report.new_transactions,
            report.events_created,
        )
        return report

    async def scan_entity(self, entity: WatchedEntity) -> ScanResult:
        """Fetch and classify new transactions for one entity.

        Scans of the same entity never overlap.

        Raises:
            UpstreamError: If the transaction list cannot be fetched.
        """
        async with self._locks.hold(entity.cache_key):
            return await self._scan(entity)

    async def _guarded_scan(self, entity: WatchedEntity) -> ScanResult | None:
        async with self._semaphore:
            try:
                return await self.scan_entity(entity)
            except Exception:
                logger.exception("Error checking transactions for %s %s", entity.kind, entity.address)
                return None

    async def _scan(self, entity: WatchedEntity) -> ScanResult:
        transactions = await self._upstream.list_transactions(
            entity.address, count=self._window, order="desc"
        )
        await self._entities.touch_last_checked(entity)

        result = ScanResult()
        # Newest first from the upstream; process oldest first.
        for tx in reversed(transactions):
            if self._cache.contains(entity.kind, entity.id, tx.tx_hash):
                continue
            if self._cache.add(entity.kind, entity.id, tx.tx_hash) and self._metrics:
                self._metrics.inc_dedup_reset()

            try:
                detail = await self._upstream.get_transaction_detail(tx.tx_hash)
            except UpstreamError as exc:
                # Forget the key so the next poll retries this transaction.
                self._cache.discard(entity.kind, entity.id, tx.tx_hash)
                result.deferred += 1
                logger.warning(
                    "Could not fetch transaction %s for %s %s: %s",
                    tx.tx_hash,
                    entity.kind,
                    entity.address,
                    exc,
                )
                continue

            try:
                events = await self._classifier.classify(entity, detail)
            except EventStoreError as exc:
                self._cache.discard(entity.kind, entity.id, tx.tx_hash)
                result.deferred += 1
                result.events_created += len(exc.created)
                logger.warning("%s; retrying on the next poll", exc.message)
                continue
            except Exception:
                self._cache.discard(entity.kind, entity.id, tx.tx_hash)
                result.deferred += 1
                logger.exception(
                    "Error classifying transaction %s for %s %s",
                    tx.tx_hash,
                    entity.kind,
                    entity.address,
                )
                continue
            result.new_transactions += 1
            result.events_created += len(events)

        return result
