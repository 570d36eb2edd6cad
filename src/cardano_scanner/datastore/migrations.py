"""Schema bootstrap for the scanner tables.

``run_auto_migrate`` runs on every engine start-up and only ever adds
missing tables. Schema changes to existing tables go
through the Alembic environment under ``alembic/``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardano_scanner.engine.models import ALL_MODELS, Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


def _scanner_tables() -> list:
    return [model.__table__ for model in ALL_MODELS]


async def run_auto_migrate(engine: AsyncEngine) -> None:
    """Create any scanner table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=_scanner_tables())


async def drop_all_tables(engine: AsyncEngine) -> None:
    """Drop the scanner tables. Meant for tests and local resets."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all, tables=_scanner_tables())
