"""Shared request-context primitives."""

from shared_kernel.middleware.tenant_context import StoreHandle, TenantContext

__all__ = ["StoreHandle", "TenantContext"]
