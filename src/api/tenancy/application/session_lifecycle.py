"""Guest session lifecycle.

Per guest token: Nonexistent -> Active -> Ended. Ending a session drops
its store, and an ended token is never made active again; starting a
session with such a token mints a new one instead.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.exceptions import StoreOperationError
from tenancy.application.locks import KeyedLocks
from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.application.provisioner import Provisioner
from tenancy.domain.value_objects import (
    StoreName,
    generate_guest_token,
    is_valid_guest_token,
)
from tenancy.ports.exceptions import GuestSessionNotActiveError, ProvisioningError
from tenancy.ports.handles import PoolHandle
from tenancy.ports.repositories import IPoolCache, IStoreAdmin


@dataclass(frozen=True)
class GuestSession:
    """An active guest session."""

    token: str
    handle: PoolHandle
    reused: bool


class SessionLifecycleManager:
    """Starts and ends guest sessions."""

    def __init__(
        self,
        cache: IPoolCache,
        store_admin: IStoreAdmin,
        provisioner: Provisioner,
        timeout_seconds: float,
        probe: TenancyProbe | None = None,
        locks: KeyedLocks | None = None,
    ):
        self._cache = cache
        self._store_admin = store_admin
        self._provisioner = provisioner
        self._timeout = timeout_seconds
        self._probe = probe or DefaultTenancyProbe()
        self._locks = locks if locks is not None else KeyedLocks()

    async def start_guest_session(
        self, existing_token: str | None = None
    ) -> GuestSession:
        """Start a guest session, or restart the one the request carries.

        An existing token is reused only while its session is active (pool
        cached or store present); otherwise a fresh token is minted.

        Args:
            existing_token: Guest token already attached to the request

        Returns:
            The active GuestSession

        Raises:
            ProvisioningError: If the guest store cannot be provisioned
        """
        if existing_token and is_valid_guest_token(existing_token):
            async with self._locks.lock_for(existing_token):
                session = await self._restart(existing_token)
            if session is not None:
                self._probe.guest_session_started(
                    session.handle.store_name, reused=True
                )
                return session

        token = generate_guest_token()
        async with self._locks.lock_for(token):
            handle = await self._provisioner.ensure_tenant_store(
                StoreName.for_guest(token)
            )
            handle = await self._cache.put(token, handle)

        self._probe.guest_session_started(handle.store_name, reused=False)
        return GuestSession(token=token, handle=handle, reused=False)

    async def end_guest_session(self, token: str | None) -> bool:
        """End a guest session, destroying its store and all its todos.

        The store is dropped even when no pool is cached for the token.

        Args:
            token: Guest token attached to the request

        Returns:
            True once the session is ended

        Raises:
            GuestSessionNotActiveError: If no token was supplied
            ProvisioningError: If the store could not be dropped
        """
        if not token:
            self._probe.guest_end_without_session()
            raise GuestSessionNotActiveError("No active guest session")

        async with self._locks.lock_for(token):
            was_cached = await self._cache.remove_and_close(token)
            if not is_valid_guest_token(token):
                # Never minted here, so there is no store to drop
                return True

            store_name = StoreName.for_guest(token)
            try:
                async with asyncio.timeout(self._timeout):
                    await self._store_admin.drop_store(store_name)
            except (TimeoutError, StoreOperationError, SQLAlchemyError, OSError) as e:
                self._probe.provisioning_failed(store_name.value, e)
                raise ProvisioningError(
                    f"Failed to drop store {store_name}: {e}",
                    store_name=store_name.value,
                ) from e

        self._probe.guest_session_ended(store_name.value, pool_was_cached=was_cached)
        return True

    async def is_active(self, token: str) -> bool:
        """Check whether a guest session is active.

        Active means its pool is cached or its store still exists.

        Raises:
            ProvisioningError: If the catalog probe fails or times out
        """
        if not is_valid_guest_token(token):
            return False
        if self._cache.get(token) is not None:
            return True

        store_name = StoreName.for_guest(token)
        try:
            async with asyncio.timeout(self._timeout):
                exists = await self._store_admin.store_exists(store_name)
        except (TimeoutError, SQLAlchemyError, OSError) as e:
            self._probe.provisioning_failed(store_name.value, e)
            raise ProvisioningError(
                f"Failed to probe store {store_name}: {e}",
                store_name=store_name.value,
            ) from e
        return exists

    async def _restart(self, token: str) -> GuestSession | None:
        handle = self._cache.get(token)
        if handle is not None:
            return GuestSession(token=token, handle=handle, reused=True)
        if not await self.is_active(token):
            return None

        store_name = StoreName.for_guest(token)
        handle = await self._provisioner.ensure_tenant_store(store_name)
        handle = await self._cache.put(token, handle)
        return GuestSession(token=token, handle=handle, reused=True)
