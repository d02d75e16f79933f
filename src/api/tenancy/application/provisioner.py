"""Idempotent creation of tenant stores and their schema.

Store creation and schema creation are both "create if not exists", so
any number of sequential or concurrent calls for the same store end with
exactly one physical store holding exactly one todos table.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from infrastructure.database.exceptions import StoreOperationError
from shared_kernel.store_schema import create_todos_table_ddl
from tenancy.application.locks import KeyedLocks
from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.domain.value_objects import StoreName
from tenancy.ports.exceptions import ProvisioningError
from tenancy.ports.handles import PoolHandle
from tenancy.ports.repositories import IStoreAdmin, IStorePoolFactory


class Provisioner:
    """Ensures a tenant store and its schema exist and hands out a pool."""

    def __init__(
        self,
        store_admin: IStoreAdmin,
        pool_factory: IStorePoolFactory,
        timeout_seconds: float,
        probe: TenancyProbe | None = None,
        locks: KeyedLocks | None = None,
    ):
        """Initialize the provisioner.

        Args:
            store_admin: Catalog and CREATE/DROP DATABASE capability
            pool_factory: Store-pool factory built once at startup
            timeout_seconds: Upper bound for one provisioning run
            probe: Optional domain probe for observability
            locks: Per-store locks, shared when several components
                provision concurrently
        """
        self._store_admin = store_admin
        self._pool_factory = pool_factory
        self._timeout = timeout_seconds
        self._probe = probe or DefaultTenancyProbe()
        self._locks = locks if locks is not None else KeyedLocks()

    async def ensure_tenant_store(self, store_name: StoreName) -> PoolHandle:
        """Create the store and schema if absent and return a fresh pool.

        Concurrent calls for the same store within this process are
        serialized; concurrent calls from other processes are absorbed by
        the idempotent DDL.

        Args:
            store_name: Validated store name

        Returns:
            A new pool handle bound to the store; the caller owns it

        Raises:
            ProvisioningError: If the engine is unreachable, the DDL fails
                or the run exceeds the provisioning timeout
        """
        async with self._locks.lock_for(store_name.value):
            handle: PoolHandle | None = None
            try:
                async with asyncio.timeout(self._timeout):
                    created = await self._store_admin.create_store(store_name)
                    handle = self._pool_factory.create_pool(store_name)
                    await self._create_schema(handle)
            except (TimeoutError, StoreOperationError, SQLAlchemyError, OSError) as e:
                if handle is not None:
                    await handle.close()
                self._probe.provisioning_failed(store_name.value, e)
                raise ProvisioningError(
                    f"Failed to provision store {store_name}: {e}",
                    store_name=store_name.value,
                ) from e

        self._probe.tenant_store_provisioned(store_name.value, created=created)
        return handle

    async def _create_schema(self, handle: PoolHandle) -> None:
        # Two processes racing on CREATE TABLE IF NOT EXISTS can still
        # collide on the catalog's unique index; the second attempt sees
        # the table and does nothing.
        for attempt in range(2):
            try:
                async with handle.begin() as conn:
                    await conn.execute(create_todos_table_ddl())
                return
            except IntegrityError:
                if attempt == 1:
                    raise
