"""PostgreSQL implementation of IStoreAdmin.

Database-level operations run on the autocommit admin engine. The catalog
probe is a parameterized pg_database lookup. CREATE/DROP DATABASE cannot
take bind parameters for identifiers, so store names are validated by the
StoreName value object and quoted by the dialect before interpolation.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine

from infrastructure.database.exceptions import StoreOperationError
from tenancy.domain.value_objects import StoreName
from tenancy.infrastructure.observability import DefaultStoreProbe, StoreProbe
from tenancy.ports.repositories import IStoreAdmin

_STORE_EXISTS = text("SELECT 1 FROM pg_database WHERE datname = :name")


class PostgresStoreAdmin(IStoreAdmin):
    """Creates, probes and drops tenant databases on a PostgreSQL server."""

    def __init__(self, engine: AsyncEngine, probe: StoreProbe | None = None):
        """Initialize with the admin engine.

        Args:
            engine: Engine in AUTOCOMMIT mode bound to the maintenance database
            probe: Optional domain probe for observability
        """
        self._engine = engine
        self._probe = probe or DefaultStoreProbe()

    def _quote(self, store_name: StoreName) -> str:
        return self._engine.dialect.identifier_preparer.quote_identifier(
            store_name.value
        )

    async def store_exists(self, store_name: StoreName) -> bool:
        """Check the catalog for the store.

        Args:
            store_name: Validated store name

        Returns:
            True if a database with that name exists
        """
        async with self._engine.connect() as conn:
            result = await conn.execute(_STORE_EXISTS, {"name": store_name.value})
            return result.scalar_one_or_none() is not None

    async def create_store(self, store_name: StoreName) -> bool:
        """Create the store unless it already exists.

        PostgreSQL has no CREATE DATABASE IF NOT EXISTS, so a concurrent
        creator winning the race surfaces as an error; that case is
        detected by re-probing the catalog and treated as success.

        Returns:
            True if this call created the store

        Raises:
            StoreOperationError: If creation failed and the store is absent
        """
        if await self.store_exists(store_name):
            self._probe.store_already_exists(store_name.value)
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(
                    text(f"CREATE DATABASE {self._quote(store_name)} ENCODING 'UTF8'")
                )
        except DBAPIError as e:
            if await self.store_exists(store_name):
                self._probe.store_already_exists(store_name.value)
                return False
            self._probe.store_operation_failed(store_name.value, "create", e)
            raise StoreOperationError(
                f"Failed to create store {store_name}: {e}",
                store_name=store_name.value,
            ) from e

        self._probe.store_created(store_name.value)
        return True

    async def drop_store(self, store_name: StoreName) -> None:
        """Destroy the store and all data in it, if present.

        Raises:
            StoreOperationError: If the drop failed
        """
        try:
            async with self._engine.connect() as conn:
                await conn.execute(
                    text(f"DROP DATABASE IF EXISTS {self._quote(store_name)} WITH (FORCE)")
                )
        except DBAPIError as e:
            self._probe.store_operation_failed(store_name.value, "drop", e)
            raise StoreOperationError(
                f"Failed to drop store {store_name}: {e}",
                store_name=store_name.value,
            ) from e

        self._probe.store_dropped(store_name.value)

    async def ping(self) -> None:
        """Run a trivial query to verify the server is reachable."""
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
