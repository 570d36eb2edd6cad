"""Datastore: one async engine and a session per repository call."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from cardano_scanner.datastore.engines import create_engine

if TYPE_CHECKING:
    from cardano_scanner.config.settings import DatabaseConfig

_ERR_CLOSED = "Datastore is not open. Call open() first."


class Datastore:
    """Owns the scanner's database engine.

    Repositories hold a reference and open a short-lived session per
    operation; nothing is cached across sessions. Sessions keep attribute
    values after commit so returned rows can be read outside them.

    Usage::

        ds = Datastore(config.db)
        await ds.open()
        async with ds.session() as session:
            ...
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Build the engine for the configured DSN. A second call is a no-op."""
        if self._engine is not None:
            return
        self._engine = create_engine(self._config)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    def session(self) -> AsyncSession:
        """Return a new session; use it as an async context manager.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._sessions is None:
            raise RuntimeError(_ERR_CLOSED)
        return self._sessions()
