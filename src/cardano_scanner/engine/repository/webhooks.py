"""Webhook subscription repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from cardano_scanner.engine.models.webhook import Webhook

if TYPE_CHECKING:
    from cardano_scanner.datastore.client import Datastore


class WebhookRepository:
    """Data access layer for webhook subscriptions."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, webhook: Webhook) -> Webhook:
        async with self._ds.session() as session:
            session.add(webhook)
            await session.commit()
            await session.refresh(webhook)
        return webhook

    async def get(self, webhook_id: str) -> Webhook | None:
        async with self._ds.session() as session:
            return await session.get(Webhook, webhook_id)

    async def list_active(self) -> list[Webhook]:
        async with self._ds.session() as session:
            stmt = select(Webhook).where(Webhook.is_active.is_(True)).order_by(Webhook.created_at)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_all(self) -> list[Webhook]:
        async with self._ds.session() as session:
            result = await session.execute(select(Webhook).order_by(Webhook.created_at.desc()))
            return list(result.scalars().all())

    async def list_active_for_event_type(self, event_type: str) -> list[Webhook]:
        """Active webhooks whose event set contains *event_type*.

        Containment is tested in Python so the JSON column works the same
        on SQLite and PostgreSQL.
        """
        return [w for w in await self.list_active() if w.subscribes_to(event_type)]

    async def update(self, webhook_id: str, values: dict[str, Any]) -> Webhook | None:
        """Apply *values* to a webhook. Returns None if not found."""
        async with self._ds.session() as session:
            stmt = (
                update(Webhook)
                .where(Webhook.id == webhook_id)
                .values(**values)
            )
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount == 0:  # type: ignore[union-attr]
                return None
        return await self.get(webhook_id)

    async def deactivate(self, webhook_id: str) -> bool:
        async with self._ds.session() as session:
            stmt = (
                update(Webhook)
                .where(Webhook.id == webhook_id, Webhook.is_active.is_(True))
                .values(is_active=False)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]
