"""Port protocols for the tenancy bounded context.

Ports define the capabilities the application layer needs from the
database engine and the registry. Infrastructure provides the
PostgreSQL implementations; tests may supply lightweight substitutes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tenancy.domain.value_objects import StoreName, TenantRecord
from tenancy.ports.handles import PoolHandle


@runtime_checkable
class IPasswordHasher(Protocol):
    """Opaque password hash/verify capability."""

    async def hash_async(self, password: str) -> str:
        """Hash a plaintext password."""
        ...

    async def verify_async(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a hash in constant time."""
        ...

    async def burn_async(self, password: str) -> None:
        """Spend one verification's worth of work, for timing equalisation."""
        ...


@runtime_checkable
class ITenantRegistry(Protocol):
    """Durable mapping from registered user to store name."""

    async def register(
        self, email: str, password_hash: str, store_name: StoreName
    ) -> TenantRecord:
        """Insert a registry row.

        Raises:
            DuplicateRegistrationError: If the email is already registered
        """
        ...

    async def lookup_by_id(self, tenant_id: str) -> TenantRecord | None:
        """Find a registry row by id, or None."""
        ...

    async def lookup_by_email(self, email: str) -> TenantRecord | None:
        """Find a registry row by email, or None."""
        ...

    async def verify_credentials(self, email: str, password: str) -> TenantRecord:
        """Authenticate an email/password pair.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password
        """
        ...

    async def ping(self) -> None:
        """Verify the registry is reachable, raising on failure."""
        ...


@runtime_checkable
class IStoreAdmin(Protocol):
    """Database-level operations against the engine's catalog."""

    async def store_exists(self, store_name: StoreName) -> bool:
        """Check whether the store physically exists."""
        ...

    async def create_store(self, store_name: StoreName) -> bool:
        """Create the store if absent. Returns True if it was created."""
        ...

    async def drop_store(self, store_name: StoreName) -> None:
        """Destroy the store if present."""
        ...

    async def ping(self) -> None:
        """Verify the engine is reachable, raising on failure."""
        ...


@runtime_checkable
class IStorePoolFactory(Protocol):
    """Builds pooled connection handles bound to one tenant store."""

    def create_pool(self, store_name: StoreName) -> PoolHandle:
        """Create a new, unconnected pool for the store."""
        ...


@runtime_checkable
class IPoolCache(Protocol):
    """Tenant key to live pool handle mapping, at most one handle per key."""

    def __len__(self) -> int: ...

    def __contains__(self, tenant_key: object) -> bool: ...

    def get(self, tenant_key: str) -> PoolHandle | None:
        """Return the live handle for a key, or None on a miss."""
        ...

    async def put(self, tenant_key: str, handle: PoolHandle) -> PoolHandle:
        """Cache a handle, returning whichever handle ends up cached."""
        ...

    async def remove_and_close(self, tenant_key: str) -> bool:
        """Evict a key and close its handle. Returns True if one was cached."""
        ...

    async def evict_idle(self, max_idle_seconds: float) -> list[str]:
        """Evict and close idle handles, returning their keys."""
        ...

    async def close_all(self) -> int:
        """Evict and close every handle, returning how many were closed."""
        ...
