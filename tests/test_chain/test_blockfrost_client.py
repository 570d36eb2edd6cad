"""Tests for the Blockfrost HTTP client — uses httpx mock transport."""

from __future__ import annotations

import httpx
import pytest

from cardano_scanner.chain.blockfrost.client import BlockfrostClient
from cardano_scanner.config.settings import BlockfrostConfig
from cardano_scanner.errors.chain_errors import UpstreamError, UpstreamNotFoundError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ADDRESS = "addr_test1vz09v9yfxguvlp0zsnrpa3tdtm7el8xufp3m5lsm7qxzclgmzkket"
_TX = "6f" * 32
_BASE_URL = "https://cardano-preprod.blockfrost.io/api/v0"


def _inject_transport(client: BlockfrostClient, transport: httpx.MockTransport) -> None:
    """Replace the internal httpx client with one using mock transport."""
    client._client = httpx.AsyncClient(transport=transport, base_url=_BASE_URL)


def _client() -> BlockfrostClient:
    return BlockfrostClient(BlockfrostConfig(project_id="preprodTEST", network="preprod"))


def _routes(table: dict[str, httpx.Response]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v0")
        return table.get(path, httpx.Response(404, json={"status_code": 404}))

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestBlockfrostClientLifecycle:
    async def test_not_connected_by_default(self) -> None:
        assert _client().is_connected is False

    async def test_connect_and_close(self) -> None:
        bf = _client()
        await bf.connect()
        assert bf.is_connected is True
        await bf.close()
        assert bf.is_connected is False

    async def test_close_idempotent(self) -> None:
        bf = _client()
        await bf.close()
        assert bf.is_connected is False

    async def test_not_connected_raises(self) -> None:
        with pytest.raises(RuntimeError, match="not connected"):
            await _client().list_transactions(_ADDRESS)


# ---------------------------------------------------------------------------
# Address transactions
# ---------------------------------------------------------------------------


class TestListTransactions:
    async def test_parses_and_passes_params(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {"tx_hash": "bb" * 32, "tx_index": 1, "block_height": 12, "block_time": 1700000100},
                    {"tx_hash": "aa" * 32, "tx_index": 0, "block_height": 11, "block_time": 1700000000},
                    {"tx_index": 3},
                ],
            )

        bf = _client()
        _inject_transport(bf, httpx.MockTransport(handler))
        txs = await bf.list_transactions(_ADDRESS, count=2, order="desc")

        assert [t.tx_hash for t in txs] == ["bb" * 32, "aa" * 32]
        assert txs[0].block_height == 12
        params = seen[0].url.params
        assert params["count"] == "2"
        assert params["order"] == "desc"
        assert params["page"] == "1"

    async def test_not_found_raises(self) -> None:
        bf = _client()
        _inject_transport(bf, _routes({}))
        with pytest.raises(UpstreamNotFoundError):
            await bf.list_transactions(_ADDRESS)

    async def test_server_error_raises_upstream_error(self) -> None:
        bf = _client()
        _inject_transport(
            bf, _routes({f"/addresses/{_ADDRESS}/transactions": httpx.Response(500)})
        )
        with pytest.raises(UpstreamError) as exc_info:
            await bf.list_transactions(_ADDRESS)
        assert exc_info.value.status_code == 500
        assert not isinstance(exc_info.value, UpstreamNotFoundError)

    async def test_rate_limit_is_upstream_error(self) -> None:
        bf = _client()
        _inject_transport(
            bf, _routes({f"/addresses/{_ADDRESS}/transactions": httpx.Response(429)})
        )
        with pytest.raises(UpstreamError):
            await bf.list_transactions(_ADDRESS)

    async def test_transport_error_is_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        bf = _client()
        _inject_transport(bf, httpx.MockTransport(handler))
        with pytest.raises(UpstreamError, match="failed"):
            await bf.list_transactions(_ADDRESS)


# ---------------------------------------------------------------------------
# Transaction detail
# ---------------------------------------------------------------------------


class TestTransactionDetail:
    async def test_combines_content_utxos_and_metadata(self) -> None:
        bf = _client()
        _inject_transport(
            bf,
            _routes(
                {
                    f"/txs/{_TX}": httpx.Response(
                        200,
                        json={
                            "hash": _TX,
                            "block_height": 42,
                            "block_time": 1700000000,
                            "fees": "170000",
                            "asset_mint_or_burn_count": 1,
                        },
                    ),
                    f"/txs/{_TX}/utxos": httpx.Response(
                        200,
                        json={
                            "hash": _TX,
                            "inputs": [
                                {"address": "addr_sender", "amount": [{"unit": "lovelace", "quantity": "5000000"}]}
                            ],
                            "outputs": [
                                {
                                    "address": _ADDRESS,
                                    "amount": [
                                        {"unit": "lovelace", "quantity": "2000000"},
                                        {"unit": "ab" * 28 + "4e4654", "quantity": "1"},
                                    ],
                                }
                            ],
                        },
                    ),
                    f"/txs/{_TX}/metadata": httpx.Response(
                        200, json=[{"label": "674", "json_metadata": {"msg": ["hello"]}}]
                    ),
                }
            ),
        )
        detail = await bf.get_transaction_detail(_TX)

        assert detail.hash == _TX
        assert detail.block_height == 42
        assert detail.asset_mint_count == 1
        assert detail.inputs[0].address == "addr_sender"
        assert detail.outputs[0].amount[1].value == 1
        assert detail.metadata == {"674": {"msg": ["hello"]}}
        assert detail.fees == "170000"

    async def test_missing_utxos_and_metadata_degrade_to_empty(self) -> None:
        bf = _client()
        _inject_transport(
            bf,
            _routes(
                {
                    f"/txs/{_TX}": httpx.Response(200, json={"hash": _TX, "block_height": 1}),
                    f"/txs/{_TX}/metadata": httpx.Response(500),
                }
            ),
        )
        detail = await bf.get_transaction_detail(_TX)
        assert detail.inputs == []
        assert detail.outputs == []
        assert detail.metadata == {}
        assert detail.asset_mint_count == 0

    async def test_partial_entries_are_lenient(self) -> None:
        bf = _client()
        _inject_transport(
            bf,
            _routes(
                {
                    f"/txs/{_TX}": httpx.Response(200, json={}),
                    f"/txs/{_TX}/utxos": httpx.Response(
                        200,
                        json={"outputs": [{"address": _ADDRESS}, "garbage", {"amount": [{"quantity": "1"}]}]},
                    ),
                    f"/txs/{_TX}/metadata": httpx.Response(200, json=[]),
                }
            ),
        )
        detail = await bf.get_transaction_detail(_TX)
        assert detail.hash == _TX
        assert len(detail.outputs) == 2
        assert detail.outputs[0].amount == []
        assert detail.outputs[1].amount == []

    async def test_content_not_found_raises(self) -> None:
        bf = _client()
        _inject_transport(bf, _routes({}))
        with pytest.raises(UpstreamNotFoundError):
            await bf.get_transaction_detail(_TX)


# ---------------------------------------------------------------------------
# Address, UTXOs, assets
# ---------------------------------------------------------------------------


class TestQueries:
    async def test_address_info(self) -> None:
        bf = _client()
        _inject_transport(
            bf,
            _routes(
                {
                    f"/addresses/{_ADDRESS}": httpx.Response(
                        200,
                        json={
                            "address": _ADDRESS,
                            "amount": [{"unit": "lovelace", "quantity": "42000000"}],
                            "type": "shelley",
                            "script": False,
                        },
                    )
                }
            ),
        )
        info = await bf.get_address_info(_ADDRESS)
        assert info.lovelace == 42_000_000
        assert info.type == "shelley"

    async def test_empty_address_utxos(self) -> None:
        bf = _client()
        _inject_transport(bf, _routes({}))
        assert await bf.get_address_utxos(_ADDRESS) == []

    async def test_address_utxos(self) -> None:
        bf = _client()
        _inject_transport(
            bf,
            _routes(
                {
                    f"/addresses/{_ADDRESS}/utxos": httpx.Response(
                        200,
                        json=[
                            {
                                "tx_hash": _TX,
                                "output_index": 1,
                                "amount": [{"unit": "lovelace", "quantity": "1000000"}],
                                "block": "cc" * 32,
                            }
                        ],
                    )
                }
            ),
        )
        utxos = await bf.get_address_utxos(_ADDRESS)
        assert utxos[0].tx_hash == _TX
        assert utxos[0].output_index == 1

    async def test_asset_info(self) -> None:
        asset = "ab" * 28 + "4e4654"
        bf = _client()
        _inject_transport(
            bf,
            _routes(
                {
                    f"/assets/{asset}": httpx.Response(
                        200,
                        json={
                            "asset": asset,
                            "policy_id": "ab" * 28,
                            "asset_name": "4e4654",
                            "quantity": "1",
                            "mint_or_burn_count": 1,
                        },
                    )
                }
            ),
        )
        info = await bf.get_asset_info(asset)
        assert info.policy_id == "ab" * 28
        assert info.quantity == "1"
