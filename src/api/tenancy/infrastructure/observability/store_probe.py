"""Domain probe for tenant store and pool lifecycle.

Following Domain-Oriented Observability patterns, this probe captures
store provisioning and pool cache events without exposing logging
details to the infrastructure code.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


def _loggable_key(tenant_key: str) -> str:
    # Guest keys are bearer tokens; correlate guests through store names
    return tenant_key if tenant_key.startswith("user_") else "guest"


class StoreProbe(Protocol):
    """Domain probe for tenant store and pool operations."""

    def store_created(self, store_name: str) -> None:
        """Record that a tenant store was physically created."""
        ...

    def store_already_exists(self, store_name: str) -> None:
        """Record that store creation found the store already present."""
        ...

    def store_dropped(self, store_name: str) -> None:
        """Record that a tenant store was destroyed."""
        ...

    def store_operation_failed(
        self, store_name: str, operation: str, error: Exception
    ) -> None:
        """Record that a store-level operation failed."""
        ...

    def pool_created(self, store_name: str, max_connections: int) -> None:
        """Record that a pool bound to a store was created."""
        ...

    def pool_closed(self, store_name: str) -> None:
        """Record that a pool released all its connections."""
        ...

    def pool_cached(self, tenant_key: str, store_name: str) -> None:
        """Record that a pool was inserted into the pool cache."""
        ...

    def duplicate_pool_discarded(self, tenant_key: str, store_name: str) -> None:
        """Record that a racing pool lost and was discarded."""
        ...

    def pool_evicted(self, tenant_key: str, store_name: str) -> None:
        """Record that a pool was removed from the cache and closed."""
        ...

    def pool_evicted_idle(
        self, tenant_key: str, store_name: str, idle_seconds: float
    ) -> None:
        """Record that an idle pool was reaped."""
        ...

    def with_context(self, context: ObservationContext) -> StoreProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStoreProbe:
    """Default implementation of StoreProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultStoreProbe:
        """Create a new probe with observation context bound."""
        return DefaultStoreProbe(logger=self._logger, context=context)

    def store_created(self, store_name: str) -> None:
        """Record that a tenant store was physically created."""
        self._logger.info(
            "tenant_store_created",
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def store_already_exists(self, store_name: str) -> None:
        """Record that store creation found the store already present."""
        self._logger.debug(
            "tenant_store_already_exists",
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def store_dropped(self, store_name: str) -> None:
        """Record that a tenant store was destroyed."""
        self._logger.info(
            "tenant_store_dropped",
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def store_operation_failed(
        self, store_name: str, operation: str, error: Exception
    ) -> None:
        """Record that a store-level operation failed."""
        self._logger.error(
            "tenant_store_operation_failed",
            store_name=store_name,
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def pool_created(self, store_name: str, max_connections: int) -> None:
        """Record that a pool bound to a store was created."""
        self._logger.debug(
            "tenant_pool_created",
            store_name=store_name,
            max_connections=max_connections,
            **self._get_context_kwargs(),
        )

    def pool_closed(self, store_name: str) -> None:
        """Record that a pool released all its connections."""
        self._logger.debug(
            "tenant_pool_closed",
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def pool_cached(self, tenant_key: str, store_name: str) -> None:
        """Record that a pool was inserted into the pool cache."""
        self._logger.debug(
            "tenant_pool_cached",
            tenant_key=_loggable_key(tenant_key),
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def duplicate_pool_discarded(self, tenant_key: str, store_name: str) -> None:
        """Record that a racing pool lost and was discarded."""
        self._logger.debug(
            "tenant_pool_duplicate_discarded",
            tenant_key=_loggable_key(tenant_key),
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def pool_evicted(self, tenant_key: str, store_name: str) -> None:
        """Record that a pool was removed from the cache and closed."""
        self._logger.info(
            "tenant_pool_evicted",
            tenant_key=_loggable_key(tenant_key),
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def pool_evicted_idle(
        self, tenant_key: str, store_name: str, idle_seconds: float
    ) -> None:
        """Record that an idle pool was reaped."""
        self._logger.info(
            "tenant_pool_evicted_idle",
            tenant_key=_loggable_key(tenant_key),
            store_name=store_name,
            idle_seconds=round(idle_seconds, 1),
            **self._get_context_kwargs(),
        )
