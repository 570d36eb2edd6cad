"""Watched entity models — monitored addresses and contracts."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cardano_scanner.engine.models.base import Base, CreatedAtMixin, new_id

ENTITY_ADDRESS = "address"
ENTITY_CONTRACT = "contract"


class WatchedEntityMixin(CreatedAtMixin):
    """Columns shared by every watched entity.

    Entities are never deleted; ``is_active`` is flipped instead.
    """

    kind = ""

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    address: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(32), nullable=True, comment="ApiKey id of the registering caller"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def cache_key(self) -> str:
        """Key used for per-entity locking: ``<kind>:<id>``."""
        return f"{self.kind}:{self.id}"


class MonitoredAddress(Base, WatchedEntityMixin):
    """A wallet address watched for incoming and outgoing transactions."""

    __tablename__ = "monitored_addresses"

    kind = ENTITY_ADDRESS

    def __repr__(self) -> str:
        return f"<MonitoredAddress id={self.id[:8]} address={self.address[:20]}...>"


class MonitoredContract(Base, WatchedEntityMixin):
    """A script (contract) address watched for executions and mints."""

    __tablename__ = "monitored_contracts"

    kind = ENTITY_CONTRACT

    contract_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<MonitoredContract id={self.id[:8]} address={self.address[:20]}...>"


WatchedEntity = MonitoredAddress | MonitoredContract
