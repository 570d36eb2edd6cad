"""WebhookDelivery model — one subscriber's attempt lineage for one event."""

from __future__ import annotations

import enum
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cardano_scanner.engine.models.base import Base, CreatedAtMixin, new_id


class DeliveryStatus(enum.StrEnum):
    """Delivery state machine.

    PENDING → IN_PROGRESS → SUCCEEDED | RETRYING | MAX_RETRIES_EXCEEDED
    RETRYING → IN_PROGRESS
    any processing error → FAILED
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is allowed from this state."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {DeliveryStatus.SUCCEEDED, DeliveryStatus.MAX_RETRIES_EXCEEDED, DeliveryStatus.FAILED}
)


class WebhookDelivery(Base, CreatedAtMixin):
    """Delivery record for a (webhook, event) pair.

    ``next_retry_at`` is set only while the status is RETRYING.
    """

    __tablename__ = "webhook_deliveries"
    __table_args__ = (UniqueConstraint("webhook_id", "event_id", name="uq_delivery_pair"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    webhook_id: Mapped[str] = mapped_column(
        ForeignKey("webhooks.id"), nullable=False, index=True
    )
    event_id: Mapped[str] = mapped_column(
        ForeignKey("transaction_events.id"), nullable=False, index=True
    )
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DeliveryStatus.PENDING.value, index=True
    )
    status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_retry_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    last_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<WebhookDelivery id={self.id[:8]} status={self.status} "
            f"attempts={self.attempt_count}>"
        )
