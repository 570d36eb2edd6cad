"""Monitoring service — register and retire watched addresses and contracts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cardano_scanner.engine.models.monitored import MonitoredAddress, MonitoredContract
from cardano_scanner.errors.chain_errors import UpstreamNotFoundError
from cardano_scanner.errors.definitions import (
    ErrAddressDuplicate,
    ErrAddressNotFound,
    ErrContractDuplicate,
    ErrContractNotFound,
    ErrInvalidAddress,
)

if TYPE_CHECKING:
    from cardano_scanner.engine.client import ScannerEngine
    from cardano_scanner.engine.models.monitored import WatchedEntity
    from cardano_scanner.errors.scanner_errors import ScannerError

logger = logging.getLogger(__name__)


class MonitoringService:
    """Business logic for the watched entity registry.

    - Registration checks the address against the blockchain provider
      when one is connected, and rejects addresses already watched
    - A previously deactivated address is reactivated instead of duplicated
    - Removal is a soft deactivation
    """

    def __init__(self, engine: ScannerEngine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    async def register_address(
        self,
        address: str,
        *,
        name: str | None = None,
        description: str | None = None,
        created_by: str | None = None,
    ) -> MonitoredAddress:
        """Start watching a wallet address.

        Raises:
            ScannerError: ``address-duplicate`` (409) if already watched,
                ``invalid-address`` (400) if the provider does not know it.
        """
        entity = await self._register(
            MonitoredAddress,
            address,
            ErrAddressDuplicate,
            name=name,
            description=description,
            created_by=created_by,
        )
        return entity  # type: ignore[return-value]

    async def list_addresses(self) -> list[MonitoredAddress]:
        return await self._engine.entities.list_all(MonitoredAddress)  # type: ignore[return-value]

    async def deactivate_address(self, address_id: str) -> None:
        """Stop watching an address.

        Raises:
            ScannerError: ``address-not-found`` (404) if no active address has this id.
        """
        if not await self._engine.entities.deactivate(MonitoredAddress, address_id):
            raise ErrAddressNotFound
        logger.info("Stopped monitoring address %s", address_id)

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    async def register_contract(
        self,
        address: str,
        *,
        name: str | None = None,
        description: str | None = None,
        contract_type: str | None = None,
        created_by: str | None = None,
    ) -> MonitoredContract:
        """Start watching a script address. Same rules as :meth:`register_address`."""
        entity = await self._register(
            MonitoredContract,
            address,
            ErrContractDuplicate,
            name=name,
            description=description,
            contract_type=contract_type,
            created_by=created_by,
        )
        return entity  # type: ignore[return-value]

    async def list_contracts(self) -> list[MonitoredContract]:
        return await self._engine.entities.list_all(MonitoredContract)  # type: ignore[return-value]

    async def deactivate_contract(self, contract_id: str) -> None:
        if not await self._engine.entities.deactivate(MonitoredContract, contract_id):
            raise ErrContractNotFound
        logger.info("Stopped monitoring contract %s", contract_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _register(
        self,
        model: type[MonitoredAddress] | type[MonitoredContract],
        address: str,
        duplicate: ScannerError,
        **fields: Any,
    ) -> WatchedEntity:
        repo = self._engine.entities
        existing = await repo.get_by_address(model, address)
        if existing is not None:
            if existing.is_active:
                raise duplicate
            logger.info("Reactivating monitored %s %s", existing.kind, address)
            return await repo.reactivate(existing)

        await self._check_on_chain(address)

        entity = await repo.create(model(address=address, is_active=True, **fields))
        logger.info("Started monitoring %s %s (%s)", entity.kind, address, entity.id)
        return entity

    async def _check_on_chain(self, address: str) -> None:
        upstream = self._engine.blockfrost
        if upstream is None:
            return
        try:
            await upstream.get_address_info(address)
        except UpstreamNotFoundError:
            raise ErrInvalidAddress from None
