"""Pool handle protocol.

A pool handle is a bounded set of reusable connections to exactly one
tenant store. It is exclusively owned by the pool cache entry that holds
it and is never shared across tenant keys.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncConnection


@runtime_checkable
class PoolHandle(Protocol):
    """Live connection pool bound to one store."""

    @property
    def store_name(self) -> str:
        """Name of the store every connection targets."""
        ...

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        ...

    @property
    def last_used(self) -> float:
        """Monotonic timestamp of the last checkout or touch."""
        ...

    def touch(self) -> None:
        """Mark the handle as used now."""
        ...

    def begin(self) -> AbstractAsyncContextManager[AsyncConnection]:
        """Open a connection with a transaction that commits on exit.

        Raises:
            PoolClosedError: If the handle has been closed
        """
        ...

    async def close(self) -> None:
        """Release every underlying connection. Idempotent."""
        ...
