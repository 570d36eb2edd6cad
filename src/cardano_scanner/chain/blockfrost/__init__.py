"""Blockfrost upstream client and response models."""

from cardano_scanner.chain.blockfrost.client import BlockfrostClient
from cardano_scanner.chain.blockfrost.models import (
    NATIVE_UNIT,
    AddressInfo,
    AddressTransaction,
    AddressUtxo,
    Amount,
    AssetInfo,
    TransactionDetail,
    TxIO,
)

__all__ = [
    "NATIVE_UNIT",
    "AddressInfo",
    "AddressTransaction",
    "AddressUtxo",
    "Amount",
    "AssetInfo",
    "BlockfrostClient",
    "TransactionDetail",
    "TxIO",
]
