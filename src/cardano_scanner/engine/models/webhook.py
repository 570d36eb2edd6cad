"""Webhook model — subscriber endpoints."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from cardano_scanner.engine.models.base import Base, CreatedAtMixin, new_id


class Webhook(Base, CreatedAtMixin):
    """A registered webhook subscription for event notifications.

    A webhook receives a POST for every event whose type appears in
    ``event_types``.
    """

    __tablename__ = "webhooks"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False, comment="Callback URL")
    secret: Mapped[str | None] = mapped_column(
        String(255), nullable=True, comment="HMAC-SHA256 signing secret"
    )
    event_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    headers: Mapped[dict[str, str] | None] = mapped_column(
        JSON, nullable=True, comment="Custom headers sent with every delivery"
    )
    created_by: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def subscribes_to(self, event_type: str) -> bool:
        """Whether this webhook's event set contains *event_type*."""
        return event_type in (self.event_types or [])

    def __repr__(self) -> str:
        return f"<Webhook id={self.id[:8]} url={self.url[:30]}>"
