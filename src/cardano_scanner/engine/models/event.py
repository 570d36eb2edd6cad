"""TransactionEvent model — classified events and the EventType enum."""

from __future__ import annotations

import enum
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cardano_scanner.engine.models.base import Base, CreatedAtMixin, new_id


class EventType(enum.StrEnum):
    """Closed set of event kinds a subscriber can register for."""

    TRANSACTION_RECEIVED = "transaction_received"
    TRANSACTION_SENT = "transaction_sent"
    ADA_RECEIVED = "ada_received"
    ADA_SENT = "ada_sent"
    TOKEN_RECEIVED = "token_received"
    TOKEN_SENT = "token_sent"
    TOKEN_MINTED = "token_minted"
    TOKEN_BURNED = "token_burned"
    NFT_RECEIVED = "nft_received"
    NFT_SENT = "nft_sent"
    CONTRACT_EXECUTED = "contract_executed"
    STAKE_DELEGATED = "stake_delegated"
    REWARD_RECEIVED = "reward_received"
    GOVERNANCE_VOTE = "governance_vote"
    DEFI_INTERACTION = "defi_interaction"
    DEX_INTERACTION = "dex_interaction"
    COLLATERAL_LOCKED = "collateral_locked"
    COLLATERAL_RELEASED = "collateral_released"
    ORACLE_UPDATE = "oracle_update"
    METADATA_ADDED = "metadata_added"
    MULTI_SIG_TRANSACTION = "multi_sig_transaction"
    TIME_LOCKED_EXECUTION = "time_locked_execution"

    @classmethod
    def parse(cls, value: str) -> EventType:
        """Parse a value case-insensitively (``ADA_RECEIVED`` or ``ada_received``).

        Raises:
            ValueError: If the value is not a known event type.
        """
        return cls(value.strip().lower())


class TransactionEvent(Base, CreatedAtMixin):
    """An event derived from one transaction for one watched entity.

    Exactly one of ``address_id`` / ``contract_id`` is set. Rows are
    immutable apart from ``processed``.
    """

    __tablename__ = "transaction_events"
    __table_args__ = (
        UniqueConstraint("tx_hash", "event_type", "address_id", name="uq_event_address"),
        UniqueConstraint("tx_hash", "event_type", "contract_id", name="uq_event_contract"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    tx_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    block_height: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    block_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    address_id: Mapped[str | None] = mapped_column(
        ForeignKey("monitored_addresses.id"), nullable=True, index=True
    )
    contract_id: Mapped[str | None] = mapped_column(
        ForeignKey("monitored_contracts.id"), nullable=True, index=True
    )
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    def __init__(self, **kwargs: Any) -> None:
        if (kwargs.get("address_id") is None) == (kwargs.get("contract_id") is None):
            msg = "an event must reference exactly one of address_id or contract_id"
            raise ValueError(msg)
        super().__init__(**kwargs)

    @property
    def entity_id(self) -> str:
        """Id of the watched entity that produced this event."""
        return self.address_id or self.contract_id or ""

    def __repr__(self) -> str:
        return f"<TransactionEvent id={self.id[:8]} type={self.event_type} tx={self.tx_hash[:16]}>"
