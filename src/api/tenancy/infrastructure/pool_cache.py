"""In-memory mapping from tenant key to live pool handle.

The cache is process-wide state owned by the tenancy runtime and injected
wherever it is needed; it is never a module-level singleton.

Invariant: at most one live pool handle per tenant key. All mutations go
through a single asyncio lock; closing pools happens outside the lock, but
only after the handle has been unlinked, so a lookup can never return a
handle that is being closed.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from tenancy.infrastructure.observability import DefaultStoreProbe, StoreProbe
from tenancy.ports.handles import PoolHandle
from tenancy.ports.repositories import IPoolCache


class PoolCache(IPoolCache):
    """Concurrency-safe tenant key to pool handle mapping."""

    def __init__(
        self,
        probe: StoreProbe | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: dict[str, PoolHandle] = {}
        self._lock = asyncio.Lock()
        self._probe = probe or DefaultStoreProbe()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tenant_key: object) -> bool:
        return tenant_key in self._entries

    def keys(self) -> list[str]:
        """Snapshot of the cached tenant keys."""
        return list(self._entries)

    def get(self, tenant_key: str) -> PoolHandle | None:
        """Look up the live handle for a tenant key.

        Pure in-memory lookup, marks the handle as used.

        Returns:
            The cached handle, or None on a miss
        """
        handle = self._entries.get(tenant_key)
        if handle is None or handle.closed:
            return None
        handle.touch()
        return handle

    async def put(self, tenant_key: str, handle: PoolHandle) -> PoolHandle:
        """Cache a handle, converging on a single live handle per key.

        If another live handle for the same key was cached first, the
        incoming handle is closed and the existing one is returned. Both
        target the same store, so callers may use whichever comes back.

        Args:
            tenant_key: Cache key ("user_<id>" or the guest token)
            handle: Freshly created handle

        Returns:
            The handle now cached for the key

        Raises:
            ValueError: If the key is already bound to a different store
        """
        async with self._lock:
            existing = self._entries.get(tenant_key)
            if existing is None or existing.closed:
                self._entries[tenant_key] = handle
                self._probe.pool_cached(tenant_key, handle.store_name)
                return handle
            if existing is handle:
                return handle

        await handle.close()
        if existing.store_name != handle.store_name:
            raise ValueError(
                f"Tenant key {tenant_key} is bound to store {existing.store_name}, "
                f"refusing {handle.store_name}"
            )
        self._probe.duplicate_pool_discarded(tenant_key, handle.store_name)
        return existing

    async def remove_and_close(self, tenant_key: str) -> bool:
        """Evict a key and release all of its connections.

        Once this returns, get() on the same key misses.

        Returns:
            True if a handle was cached for the key
        """
        async with self._lock:
            handle = self._entries.pop(tenant_key, None)

        if handle is None:
            return False

        await handle.close()
        self._probe.pool_evicted(tenant_key, handle.store_name)
        return True

    async def evict_idle(self, max_idle_seconds: float) -> list[str]:
        """Evict and close every handle unused for at least max_idle_seconds.

        Returns:
            Tenant keys that were evicted
        """
        now = self._clock()
        async with self._lock:
            idle = [
                (key, handle)
                for key, handle in self._entries.items()
                if now - handle.last_used >= max_idle_seconds
            ]
            for key, _ in idle:
                del self._entries[key]

        for key, handle in idle:
            idle_for = now - handle.last_used
            await handle.close()
            self._probe.pool_evicted_idle(key, handle.store_name, idle_for)

        return [key for key, _ in idle]

    async def close_all(self) -> int:
        """Evict and close every cached handle.

        Returns:
            Number of handles closed
        """
        async with self._lock:
            handles = list(self._entries.values())
            self._entries.clear()

        for handle in handles:
            await handle.close()

        return len(handles)
