"""ApiKey model — hashed API keys for the admin surface."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from cardano_scanner.engine.models.base import Base, CreatedAtMixin, new_id

PERMISSION_READ = "read"
PERMISSION_WRITE = "write"
PERMISSION_ADMIN = "admin"


class ApiKey(Base, CreatedAtMixin):
    """An API key granting access to the admin endpoints.

    Only the sha256 hash of the key is stored; the plain key is shown
    once at creation.
    """

    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    key_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, comment="sha256 hex of the key"
    )
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def has_permission(self, permission: str) -> bool:
        """Whether this key grants *permission* (``admin`` grants everything)."""
        perms = self.permissions or []
        return permission in perms or PERMISSION_ADMIN in perms

    def __repr__(self) -> str:
        return f"<ApiKey id={self.id[:8]} name={self.name!r}>"
