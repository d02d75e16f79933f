"""Rebuild pool mappings from durable state after a cache miss.

Users are reconciled through the registry. Guests have no registry row,
so the only evidence a guest session is still alive is that its store
physically exists; a missing store is never recreated here.
"""

from __future__ import annotations

import asyncio

from sqlalchemy.exc import SQLAlchemyError

from tenancy.application.locks import KeyedLocks
from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.application.provisioner import Provisioner
from tenancy.domain.value_objects import (
    ResolvedGuest,
    ResolvedUser,
    StoreName,
    is_valid_user_id,
)
from tenancy.ports.exceptions import ProvisioningError
from tenancy.ports.handles import PoolHandle
from tenancy.ports.repositories import IPoolCache, IStoreAdmin, ITenantRegistry


class PoolReconciler:
    """Resolves an identity to a cached pool, rebuilding it if needed."""

    def __init__(
        self,
        cache: IPoolCache,
        registry: ITenantRegistry,
        store_admin: IStoreAdmin,
        provisioner: Provisioner,
        timeout_seconds: float,
        probe: TenancyProbe | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._cache = cache
        self._registry = registry
        self._store_admin = store_admin
        self._provisioner = provisioner
        self._timeout = timeout_seconds
        self._probe = probe or DefaultTenancyProbe()
        self._locks = locks if locks is not None else KeyedLocks()

    async def reconcile(
        self, identity: ResolvedUser | ResolvedGuest
    ) -> PoolHandle | None:
        """Return the pool for an identity, reconciling on a cache miss.

        Concurrent calls for the same tenant key wait for each other, and
        the cache converges on one handle even if they did not.

        Args:
            identity: A resolved user or guest

        Returns:
            The cached handle, or None if the identity no longer resolves
            (malformed user id, registry miss, unreadable registry, missing
            guest store)

        Raises:
            ProvisioningError: If the store exists but cannot be provisioned
        """
        key = identity.tenant_key
        handle = self._cache.get(key)
        if handle is not None:
            self._probe.pool_cache_hit(identity.tenant_type)
            return handle

        async with self._locks.lock_for(key):
            handle = self._cache.get(key)
            if handle is not None:
                self._probe.pool_cache_hit(identity.tenant_type)
                return handle

            if isinstance(identity, ResolvedUser):
                store_name = await self._user_store(identity)
            else:
                store_name = await self._guest_store(identity)
            if store_name is None:
                return None

            handle = await self._provisioner.ensure_tenant_store(store_name)
            handle = await self._cache.put(key, handle)

        self._probe.pool_reconciled(identity.tenant_type, handle.store_name)
        return handle

    async def _user_store(self, identity: ResolvedUser) -> StoreName | None:
        if not is_valid_user_id(identity.user_id):
            self._probe.reconciliation_failed(identity.tenant_type, "malformed_id")
            return None

        try:
            record = await self._registry.lookup_by_id(identity.user_id)
        except (SQLAlchemyError, OSError) as e:
            self._probe.registry_lookup_failed(e)
            self._probe.reconciliation_failed(identity.tenant_type, "registry_error")
            return None

        if record is None:
            self._probe.reconciliation_failed(identity.tenant_type, "registry_miss")
            return None
        return record.store_name

    async def _guest_store(self, identity: ResolvedGuest) -> StoreName | None:
        try:
            store_name = StoreName.for_guest(identity.token)
        except ValueError:
            self._probe.reconciliation_failed(identity.tenant_type, "malformed_token")
            return None

        try:
            async with asyncio.timeout(self._timeout):
                exists = await self._store_admin.store_exists(store_name)
        except (TimeoutError, SQLAlchemyError, OSError) as e:
            self._probe.provisioning_failed(store_name.value, e)
            raise ProvisioningError(
                f"Failed to probe store {store_name}: {e}",
                store_name=store_name.value,
            ) from e

        if not exists:
            self._probe.reconciliation_failed(identity.tenant_type, "store_missing")
            return None
        return store_name
