"""Blockfrost REST client — address transactions, transaction detail, UTXOs, assets.

Async HTTP client for the Blockfrost Cardano API:
- GET /addresses/{address}
- GET /addresses/{address}/transactions
- GET /addresses/{address}/utxos
- GET /txs/{hash}, /txs/{hash}/utxos, /txs/{hash}/metadata
- GET /assets/{asset}

Transport failures, 429 and 5xx responses raise ``UpstreamError``;
404 responses raise ``UpstreamNotFoundError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from cardano_scanner.chain.blockfrost.models import (
    AddressInfo,
    AddressTransaction,
    AddressUtxo,
    AssetInfo,
    TransactionDetail,
)
from cardano_scanner.errors.chain_errors import UpstreamError, UpstreamNotFoundError

if TYPE_CHECKING:
    from cardano_scanner.config.settings import BlockfrostConfig

logger = logging.getLogger(__name__)


class BlockfrostClient:
    """Async HTTP client for the Blockfrost API.

    Usage::

        bf = BlockfrostClient(config.blockfrost)
        await bf.connect()
        try:
            txs = await bf.list_transactions("addr1...")
            detail = await bf.get_transaction_detail(txs[0].tx_hash)
        finally:
            await bf.close()
    """

    def __init__(self, config: BlockfrostConfig) -> None:
        """Initialize the Blockfrost client.

        Args:
            config: Blockfrost configuration (project id, network, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url,
            headers={"project_id": self._config.project_id, "Accept": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        address: str,
        count: int = 20,
        page: int = 1,
        *,
        order: str = "desc",
    ) -> list[AddressTransaction]:
        """List transactions touching an address.

        Args:
            address: Bech32 address.
            count: Page size (max 100).
            page: 1-based page number.
            order: ``desc`` for newest first, ``asc`` for oldest first.

        Returns:
            Transaction references in the requested order.
        """
        data = await self._get(
            f"/addresses/{address}/transactions",
            params={"count": count, "page": page, "order": order},
        )
        items = data if isinstance(data, list) else []
        return [
            AddressTransaction.from_dict(item)
            for item in items
            if isinstance(item, dict) and item.get("tx_hash")
        ]

    async def get_transaction_detail(self, tx_hash: str) -> TransactionDetail:
        """Get a transaction with its inputs, outputs and metadata.

        The UTXO listing degrades to empty inputs/outputs when the upstream
        has not indexed it yet (404), and metadata degrades to an empty map
        on any error.

        Args:
            tx_hash: Transaction hash (hex).

        Returns:
            TransactionDetail combining content, UTXOs and metadata.
        """
        content = await self._get(f"/txs/{tx_hash}")
        content = content if isinstance(content, dict) else {}
        content.setdefault("hash", tx_hash)

        try:
            utxos = await self._get(f"/txs/{tx_hash}/utxos")
        except UpstreamNotFoundError:
            logger.debug("No UTXO listing yet for transaction %s", tx_hash)
            utxos = {}

        try:
            metadata = await self._get(f"/txs/{tx_hash}/metadata")
        except UpstreamError:
            logger.debug("No metadata available for transaction %s", tx_hash)
            metadata = []

        return TransactionDetail.from_parts(content, utxos, metadata)

    async def get_address_info(self, address: str) -> AddressInfo:
        """Get balance information for an address."""
        data = await self._get(f"/addresses/{address}")
        return AddressInfo.from_dict(data if isinstance(data, dict) else {"address": address})

    async def get_address_utxos(self, address: str) -> list[AddressUtxo]:
        """Get unspent outputs for an address (an empty address returns ``[]``)."""
        try:
            data = await self._get(f"/addresses/{address}/utxos")
        except UpstreamNotFoundError:
            return []
        items = data if isinstance(data, list) else []
        return [AddressUtxo.from_dict(item) for item in items if isinstance(item, dict)]

    async def get_asset_info(self, asset: str) -> AssetInfo:
        """Get native asset information (policy id + hex asset name)."""
        data = await self._get(f"/assets/{asset}")
        return AssetInfo.from_dict(data if isinstance(data, dict) else {"asset": asset})

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        client = self._ensure_connected()
        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Blockfrost request {path} failed: {exc}") from exc

        if response.status_code == 404:
            raise UpstreamNotFoundError(f"Blockfrost resource not found: {path}")
        if response.status_code >= 400:
            raise UpstreamError(
                f"Blockfrost {path} returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Blockfrost {path} returned malformed JSON") from exc

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "BlockfrostClient is not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client
