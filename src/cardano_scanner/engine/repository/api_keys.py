"""API key repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from cardano_scanner.engine.models.api_key import ApiKey
from cardano_scanner.engine.models.base import utc_now

if TYPE_CHECKING:
    from cardano_scanner.datastore.client import Datastore


class ApiKeyRepository:
    """Data access layer for API keys."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, api_key: ApiKey) -> ApiKey:
        async with self._ds.session() as session:
            session.add(api_key)
            await session.commit()
            await session.refresh(api_key)
        return api_key

    async def get_active_by_hash(self, key_hash: str) -> ApiKey | None:
        async with self._ds.session() as session:
            stmt = select(ApiKey).where(ApiKey.key_hash == key_hash, ApiKey.is_active.is_(True))
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def touch_last_used(self, key_id: str) -> None:
        async with self._ds.session() as session:
            await session.execute(
                update(ApiKey).where(ApiKey.id == key_id).values(last_used_at=utc_now())
            )
            await session.commit()
