"""V1 blockchain endpoints — read-through queries to the Blockfrost provider."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cardano_scanner.api.dependencies import get_engine, require_api_key
from cardano_scanner.api.middleware.auth import ApiKeyContext  # noqa: TC001
from cardano_scanner.chain.blockfrost.client import BlockfrostClient  # noqa: TC001
from cardano_scanner.engine.client import ScannerEngine  # noqa: TC001
from cardano_scanner.errors.definitions import ErrUpstreamUnavailable

router = APIRouter(prefix="/blockchain", tags=["blockchain"])


def _upstream(engine: ScannerEngine) -> BlockfrostClient:
    if engine.blockfrost is None:
        raise ErrUpstreamUnavailable
    return engine.blockfrost


@router.get("/addresses/{address}")
async def get_address(
    address: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Balance information for an address."""
    info = await _upstream(engine).get_address_info(address)
    return asdict(info)


@router.get("/addresses/{address}/transactions")
async def get_address_transactions(
    address: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
    count: Annotated[int, Query(ge=1, le=100)] = 20,
    page: Annotated[int, Query(ge=1)] = 1,
) -> list[dict]:
    txs = await _upstream(engine).list_transactions(address, count=count, page=page)
    return [asdict(tx) for tx in txs]


@router.get("/addresses/{address}/utxos")
async def get_address_utxos(
    address: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> list[dict]:
    utxos = await _upstream(engine).get_address_utxos(address)
    return [asdict(u) for u in utxos]


@router.get("/transactions/{tx_hash}")
async def get_transaction(
    tx_hash: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Transaction detail with inputs, outputs and metadata."""
    detail = await _upstream(engine).get_transaction_detail(tx_hash)
    return detail.to_dict()


@router.get("/assets/{asset}")
async def get_asset(
    asset: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    info = await _upstream(engine).get_asset_info(asset)
    return asdict(info)
