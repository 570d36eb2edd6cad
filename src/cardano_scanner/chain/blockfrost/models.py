"""Blockfrost data models — transactions, UTXOs, address and asset info.

Parsing is lenient: the upstream may omit fields or return partial
objects, and missing lists or maps become empty values rather than
parse failures.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

NATIVE_UNIT = "lovelace"


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _int_or_none(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Amount:
    """An asset quantity; ``unit`` is ``lovelace`` or policy id + asset name."""

    unit: str
    quantity: str

    @property
    def is_native(self) -> bool:
        return self.unit == NATIVE_UNIT

    @property
    def value(self) -> int:
        """Quantity as an integer (0 if unparsable)."""
        try:
            return int(self.quantity)
        except (TypeError, ValueError):
            return 0

    @classmethod
    def parse_list(cls, value: Any) -> list[Amount]:
        """Parse an amount list, skipping malformed entries."""
        amounts: list[Amount] = []
        for item in _list(value):
            if not isinstance(item, dict) or "unit" not in item:
                continue
            amounts.append(cls(unit=str(item["unit"]), quantity=str(item.get("quantity", "0"))))
        return amounts


@dataclass(frozen=True)
class TxIO:
    """A transaction input or output entry."""

    address: str
    amount: list[Amount] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> TxIO | None:
        if not isinstance(data, dict):
            return None
        return cls(address=str(data.get("address", "")), amount=Amount.parse_list(data.get("amount")))


@dataclass(frozen=True)
class AddressTransaction:
    """One entry of ``/addresses/{address}/transactions``."""

    tx_hash: str
    tx_index: int = 0
    block_height: int | None = None
    block_time: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AddressTransaction:
        return cls(
            tx_hash=data["tx_hash"],
            tx_index=data.get("tx_index", 0) or 0,
            block_height=_int_or_none(data.get("block_height")),
            block_time=_int_or_none(data.get("block_time")),
        )


@dataclass(frozen=True)
class TransactionDetail:
    """Transaction content joined with its UTXOs and metadata.

    Attributes:
        hash: Transaction hash.
        block_height: Block height, if known.
        block_time: Block time in unix seconds, if known.
        inputs: Input entries (empty when the upstream omitted them).
        outputs: Output entries (empty when the upstream omitted them).
        asset_mint_count: Number of mint/burn operations in the transaction.
        metadata: Transaction metadata keyed by label.
        fees: Fee in lovelace, as returned.
    """

    hash: str
    block_height: int | None = None
    block_time: int | None = None
    inputs: list[TxIO] = field(default_factory=list)
    outputs: list[TxIO] = field(default_factory=list)
    asset_mint_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    fees: str = "0"

    @classmethod
    def from_parts(
        cls,
        content: dict[str, Any],
        utxos: dict[str, Any] | None = None,
        metadata: list[dict[str, Any]] | None = None,
    ) -> TransactionDetail:
        """Build a detail from the ``/txs/{hash}``, ``/utxos`` and ``/metadata`` payloads."""
        utxos = utxos if isinstance(utxos, dict) else {}
        labels: dict[str, Any] = {}
        for item in _list(metadata):
            if isinstance(item, dict) and "label" in item:
                labels[str(item["label"])] = item.get("json_metadata")
        return cls(
            hash=str(content.get("hash", utxos.get("hash", ""))),
            block_height=_int_or_none(content.get("block_height")),
            block_time=_int_or_none(content.get("block_time")),
            inputs=[io for io in map(TxIO.from_dict, _list(utxos.get("inputs"))) if io],
            outputs=[io for io in map(TxIO.from_dict, _list(utxos.get("outputs"))) if io],
            asset_mint_count=_int_or_none(
                content.get("asset_mint_or_burn_count", content.get("asset_mint_count"))
            )
            or 0,
            metadata=labels,
            fees=str(content.get("fees", "0")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict (used as the event payload)."""
        return asdict(self)


@dataclass(frozen=True)
class AddressInfo:
    """Address balance from ``/addresses/{address}``."""

    address: str
    amount: list[Amount] = field(default_factory=list)
    stake_address: str | None = None
    type: str = ""
    script: bool = False

    @property
    def lovelace(self) -> int:
        return sum(a.value for a in self.amount if a.is_native)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AddressInfo:
        return cls(
            address=data.get("address", ""),
            amount=Amount.parse_list(data.get("amount")),
            stake_address=data.get("stake_address"),
            type=data.get("type", ""),
            script=bool(data.get("script", False)),
        )


@dataclass(frozen=True)
class AddressUtxo:
    """An unspent output held by an address."""

    tx_hash: str
    output_index: int
    amount: list[Amount] = field(default_factory=list)
    block: str = ""
    data_hash: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AddressUtxo:
        return cls(
            tx_hash=str(data.get("tx_hash", "")),
            output_index=data.get("output_index", data.get("tx_index", 0)) or 0,
            amount=Amount.parse_list(data.get("amount")),
            block=data.get("block", ""),
            data_hash=data.get("data_hash"),
        )


@dataclass(frozen=True)
class AssetInfo:
    """Native asset metadata from ``/assets/{asset}``."""

    asset: str
    policy_id: str = ""
    asset_name: str | None = None
    fingerprint: str = ""
    quantity: str = "0"
    initial_mint_tx_hash: str = ""
    mint_or_burn_count: int = 0
    onchain_metadata: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssetInfo:
        return cls(
            asset=data.get("asset", ""),
            policy_id=data.get("policy_id", ""),
            asset_name=data.get("asset_name"),
            fingerprint=data.get("fingerprint", ""),
            quantity=str(data.get("quantity", "0")),
            initial_mint_tx_hash=data.get("initial_mint_tx_hash", ""),
            mint_or_burn_count=data.get("mint_or_burn_count", 0) or 0,
            onchain_metadata=data.get("onchain_metadata"),
        )
