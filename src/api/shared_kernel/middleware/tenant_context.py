"""Tenant context value object for resolved tenant identification.

This module contains the pure value object that represents the tenant a
request was routed to, plus the minimal protocol a tenant store handle
offers to other bounded contexts. It is framework-agnostic and contains
no business logic, making it safe for the shared kernel.

The actual resolution logic (credential extraction, conflict handling,
pool reconciliation) lives in the tenancy bounded context.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncConnection


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for the current request.

    Attributes:
        tenant_type: "user" for registered users, "guest" for guest sessions.
        tenant_key: Pool cache key ("user_<id>" or the raw guest token).
        store_name: Name of the isolated database serving this tenant.
    """

    tenant_type: str
    tenant_key: str
    store_name: str


class StoreHandle(Protocol):
    """Connection source bound to exactly one tenant store."""

    @property
    def store_name(self) -> str:
        """Name of the store every connection from this handle targets."""
        ...

    def begin(self) -> AbstractAsyncContextManager[AsyncConnection]:
        """Open a connection with a transaction that commits on exit."""
        ...
