"""Tests for the /api/v1/blockchain read-through endpoints."""

from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from cardano_scanner.api.app import create_app
from cardano_scanner.chain.blockfrost.client import BlockfrostClient
from cardano_scanner.config.settings import BlockfrostConfig
from cardano_scanner.engine.client import ScannerEngine

ADDRESS = "addr_test1qchain0reads"
TX_HASH = "e" * 64

_UPSTREAM = {
    f"/addresses/{ADDRESS}": {
        "address": ADDRESS,
        "amount": [{"unit": "lovelace", "quantity": "42000000"}],
        "stake_address": None,
        "type": "shelley",
        "script": False,
    },
    f"/addresses/{ADDRESS}/transactions": [
        {"tx_hash": TX_HASH, "tx_index": 1, "block_height": 100, "block_time": 1700000000},
    ],
    f"/addresses/{ADDRESS}/utxos": [
        {
            "tx_hash": TX_HASH,
            "output_index": 0,
            "amount": [{"unit": "lovelace", "quantity": "42000000"}],
            "block": "b" * 64,
            "data_hash": None,
        }
    ],
    f"/txs/{TX_HASH}": {"hash": TX_HASH, "block_height": 100, "block_time": 1700000000, "fees": "170000"},
    f"/txs/{TX_HASH}/utxos": {
        "inputs": [],
        "outputs": [{"address": ADDRESS, "amount": [{"unit": "lovelace", "quantity": "42000000"}]}],
    },
    f"/txs/{TX_HASH}/metadata": [],
}


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path.removeprefix("/api/v0")
    if path in _UPSTREAM:
        return httpx.Response(200, json=_UPSTREAM[path])
    return httpx.Response(404, json={"status_code": 404, "error": "Not Found"})


@pytest.fixture
def chain_client(app_config) -> Iterator[tuple[TestClient, dict[str, str]]]:
    blockfrost = BlockfrostClient(BlockfrostConfig(project_id="preprodTEST", network="preprod"))
    blockfrost._client = httpx.AsyncClient(
        transport=httpx.MockTransport(_handler),
        base_url="https://cardano-preprod.blockfrost.io/api/v0",
    )
    engine = ScannerEngine(app_config, blockfrost=blockfrost)
    with TestClient(create_app(engine=engine)) as client:
        _, plain = client.portal.call(engine.api_key_service.create_api_key, "reader")
        yield client, {"Authorization": f"Bearer {plain}"}


class TestBlockchainRoutes:
    def test_address_info(self, chain_client) -> None:
        client, headers = chain_client
        resp = client.get(f"/api/v1/blockchain/addresses/{ADDRESS}", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["address"] == ADDRESS
        assert body["amount"] == [{"unit": "lovelace", "quantity": "42000000"}]
        assert body["type"] == "shelley"

    def test_address_transactions(self, chain_client) -> None:
        client, headers = chain_client
        resp = client.get(
            f"/api/v1/blockchain/addresses/{ADDRESS}/transactions",
            params={"count": 5},
            headers=headers,
        )
        assert resp.status_code == 200
        assert [tx["tx_hash"] for tx in resp.json()] == [TX_HASH]

    def test_address_utxos(self, chain_client) -> None:
        client, headers = chain_client
        resp = client.get(f"/api/v1/blockchain/addresses/{ADDRESS}/utxos", headers=headers)
        assert resp.json()[0]["output_index"] == 0

    def test_transaction(self, chain_client) -> None:
        client, headers = chain_client
        resp = client.get(f"/api/v1/blockchain/transactions/{TX_HASH}", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["hash"] == TX_HASH
        assert body["outputs"][0]["address"] == ADDRESS
        assert body["fees"] == "170000"

    def test_unknown_resource(self, chain_client) -> None:
        client, headers = chain_client
        resp = client.get("/api/v1/blockchain/assets/deadbeef", headers=headers)
        assert resp.status_code == 404
        assert resp.json()["code"] == "upstream-not-found"

    def test_count_bounds(self, chain_client) -> None:
        client, headers = chain_client
        resp = client.get(
            f"/api/v1/blockchain/addresses/{ADDRESS}/transactions",
            params={"count": 101},
            headers=headers,
        )
        assert resp.status_code == 422


class TestWithoutUpstream:
    @pytest.mark.parametrize(
        "path",
        [
            f"/api/v1/blockchain/addresses/{ADDRESS}",
            f"/api/v1/blockchain/addresses/{ADDRESS}/utxos",
            f"/api/v1/blockchain/transactions/{TX_HASH}",
            "/api/v1/blockchain/assets/deadbeef",
        ],
    )
    def test_unavailable(self, api, read_headers, path: str) -> None:
        resp = api.client.get(path, headers=read_headers)
        assert resp.status_code == 503
        assert resp.json()["code"] == "upstream-unavailable"
