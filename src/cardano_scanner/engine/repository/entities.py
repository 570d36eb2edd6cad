"""Watched entity repository — monitored addresses and contracts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from cardano_scanner.engine.models.base import utc_now
from cardano_scanner.engine.models.monitored import MonitoredAddress, MonitoredContract

if TYPE_CHECKING:
    from cardano_scanner.datastore.client import Datastore
    from cardano_scanner.engine.models.monitored import WatchedEntity

EntityModel = type[MonitoredAddress] | type[MonitoredContract]


class EntityRepository:
    """Data access layer for watched entities."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, entity: WatchedEntity) -> WatchedEntity:
        """Persist a new entity."""
        async with self._ds.session() as session:
            session.add(entity)
            await session.commit()
            await session.refresh(entity)
        return entity

    async def get(self, model: EntityModel, entity_id: str) -> WatchedEntity | None:
        """Find an entity by primary key."""
        async with self._ds.session() as session:
            return await session.get(model, entity_id)

    async def get_by_address(self, model: EntityModel, address: str) -> WatchedEntity | None:
        """Find an entity by its on-chain address (active or not)."""
        async with self._ds.session() as session:
            result = await session.execute(select(model).where(model.address == address))
            return result.scalar_one_or_none()

    async def list_active(self, model: EntityModel) -> list[WatchedEntity]:
        """List all active entities of one kind, oldest registration first."""
        async with self._ds.session() as session:
            stmt = select(model).where(model.is_active.is_(True)).order_by(model.created_at)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_all(self, model: EntityModel) -> list[WatchedEntity]:
        """List every entity of one kind, newest registration first."""
        async with self._ds.session() as session:
            result = await session.execute(select(model).order_by(model.created_at.desc()))
            return list(result.scalars().all())

    async def list_active_addresses(self) -> list[MonitoredAddress]:
        return await self.list_active(MonitoredAddress)  # type: ignore[return-value]

    async def list_active_contracts(self) -> list[MonitoredContract]:
        return await self.list_active(MonitoredContract)  # type: ignore[return-value]

    async def touch_last_checked(self, entity: WatchedEntity) -> bool:
        """Set ``last_checked_at`` to now. Returns False if the row is gone."""
        model = type(entity)
        now = utc_now()
        async with self._ds.session() as session:
            stmt = update(model).where(model.id == entity.id).values(last_checked_at=now)
            result = await session.execute(stmt)
            await session.commit()
        entity.last_checked_at = now
        return result.rowcount > 0  # type: ignore[union-attr]

    async def reactivate(self, entity: WatchedEntity) -> WatchedEntity:
        """Flip a deactivated entity back to active."""
        model = type(entity)
        async with self._ds.session() as session:
            await session.execute(
                update(model).where(model.id == entity.id).values(is_active=True)
            )
            await session.commit()
        entity.is_active = True
        return entity

    async def deactivate(self, model: EntityModel, entity_id: str) -> bool:
        """Soft-deactivate an entity. Returns False if no active row matched."""
        async with self._ds.session() as session:
            stmt = (
                update(model)
                .where(model.id == entity_id, model.is_active.is_(True))
                .values(is_active=False)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]
