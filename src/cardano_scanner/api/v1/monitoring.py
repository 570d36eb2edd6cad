"""V1 monitoring endpoints — watched addresses and contracts."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from cardano_scanner.api.dependencies import get_engine, require_api_key, require_permission
from cardano_scanner.api.middleware.auth import ApiKeyContext  # noqa: TC001
from cardano_scanner.api.v1.schemas import (
    AddressCreateRequest,
    AddressResponse,
    ContractCreateRequest,
    ContractResponse,
)
from cardano_scanner.engine.client import ScannerEngine  # noqa: TC001

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


@router.post("/addresses", status_code=201)
async def add_address(
    body: AddressCreateRequest,
    ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Start monitoring a wallet address."""
    entity = await engine.monitoring_service.register_address(
        body.address,
        name=body.name,
        description=body.description,
        created_by=ctx.key_id,
    )
    return AddressResponse.from_model(entity).model_dump(mode="json")


@router.get("/addresses")
async def list_addresses(
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> list[dict]:
    """List all monitored addresses, newest first."""
    entities = await engine.monitoring_service.list_addresses()
    return [AddressResponse.from_model(e).model_dump(mode="json") for e in entities]


@router.delete("/addresses/{address_id}")
async def remove_address(
    address_id: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Stop monitoring an address (soft deactivation)."""
    await engine.monitoring_service.deactivate_address(address_id)
    return {"message": "Address removed from monitoring", "id": address_id}


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


@router.post("/contracts", status_code=201)
async def add_contract(
    body: ContractCreateRequest,
    ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    """Start monitoring a contract address."""
    entity = await engine.monitoring_service.register_contract(
        body.address,
        name=body.name,
        description=body.description,
        contract_type=body.contract_type,
        created_by=ctx.key_id,
    )
    return ContractResponse.from_model(entity).model_dump(mode="json")


@router.get("/contracts")
async def list_contracts(
    _ctx: Annotated[ApiKeyContext, Depends(require_api_key)],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> list[dict]:
    entities = await engine.monitoring_service.list_contracts()
    return [ContractResponse.from_model(e).model_dump(mode="json") for e in entities]


@router.delete("/contracts/{contract_id}")
async def remove_contract(
    contract_id: str,
    _ctx: Annotated[ApiKeyContext, Depends(require_permission("write"))],
    engine: Annotated[ScannerEngine, Depends(get_engine)],
) -> dict:
    await engine.monitoring_service.deactivate_contract(contract_id)
    return {"message": "Contract removed from monitoring", "id": contract_id}
