"""Pooled connection handles bound to a single tenant store.

The store-pool factory is constructed once at startup and injected into
the provisioner; nothing on the request path builds engines directly.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from infrastructure.database.engines import create_store_engine
from tenancy.infrastructure.observability import DefaultStoreProbe, StoreProbe
from tenancy.ports.exceptions import PoolClosedError
from tenancy.ports.repositories import IStorePoolFactory

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings
    from tenancy.domain.value_objects import StoreName


class EnginePoolHandle:
    """Pool handle backed by a SQLAlchemy AsyncEngine.

    The engine's own pool bounds concurrent connection usage; the handle
    adds closed-state tracking and last-use bookkeeping for the reaper.
    """

    def __init__(
        self,
        store_name: str,
        engine: AsyncEngine,
        probe: StoreProbe | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store_name = store_name
        self._engine = engine
        self._probe = probe or DefaultStoreProbe()
        self._clock = clock
        self._closed = False
        self._last_used = clock()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<EnginePoolHandle(store_name={self._store_name}, closed={self._closed})>"

    @property
    def store_name(self) -> str:
        return self._store_name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_used(self) -> float:
        return self._last_used

    def touch(self) -> None:
        self._last_used = self._clock()

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[AsyncConnection]:
        """Open a connection with a transaction that commits on exit.

        Yields:
            AsyncConnection bound to this handle's store

        Raises:
            PoolClosedError: If the handle has been closed
        """
        if self._closed:
            raise PoolClosedError(
                f"Pool for store {self._store_name} is closed",
                store_name=self._store_name,
            )
        self.touch()
        async with self._engine.begin() as conn:
            yield conn

    async def close(self) -> None:
        """Dispose the engine, releasing every pooled connection."""
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()
        self._probe.pool_closed(self._store_name)


class SqlAlchemyStorePoolFactory(IStorePoolFactory):
    """Creates asyncpg-backed pool handles for tenant stores."""

    def __init__(
        self,
        settings: DatabaseSettings,
        probe: StoreProbe | None = None,
    ):
        self._settings = settings
        self._probe = probe or DefaultStoreProbe()

    def create_pool(self, store_name: StoreName) -> EnginePoolHandle:
        """Create a new pool for the store.

        Connections are opened lazily on first checkout.

        Args:
            store_name: Validated name of the tenant store

        Returns:
            A fresh pool handle bound to that store
        """
        engine = create_store_engine(self._settings, store_name.value)
        self._probe.pool_created(
            store_name=store_name.value,
            max_connections=self._settings.tenant_pool_max_connections,
        )
        return EnginePoolHandle(store_name.value, engine, probe=self._probe)
