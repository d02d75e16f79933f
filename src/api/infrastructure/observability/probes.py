"""Domain probes for infrastructure observability.

Domain probes provide a high-level instrumentation API oriented around
domain semantics, keeping infrastructure code clean and testable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ConnectionProbe(Protocol):
    """Domain probe for shared database connection observability.

    Covers the process-wide registry and admin engines. Tenant store
    pools report through the tenancy StoreProbe instead.
    """

    def connection_verified(self, role: str, host: str, database: str) -> None:
        """Record that a startup connectivity check succeeded."""
        ...

    def connection_failed(
        self, role: str, host: str, database: str, error: Exception
    ) -> None:
        """Record that a startup connectivity check failed."""
        ...

    def engine_disposed(self, role: str) -> None:
        """Record that a shared engine and its pool were closed."""
        ...

    def with_context(self, context: ObservationContext) -> ConnectionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultConnectionProbe:
    """Default implementation of ConnectionProbe using structlog.

    Supports observation context for including request-scoped metadata
    with all log events.
    """

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

    def with_context(self, context: ObservationContext) -> DefaultConnectionProbe:
        """Create a new probe with observation context bound."""
        return DefaultConnectionProbe(logger=self._logger, context=context)

    def connection_verified(self, role: str, host: str, database: str) -> None:
        """Record that a startup connectivity check succeeded."""
        self._logger.info(
            "database_connection_verified",
            role=role,
            host=host,
            database=database,
            **self._get_context_kwargs(),
        )

    def connection_failed(
        self, role: str, host: str, database: str, error: Exception
    ) -> None:
        """Record that a startup connectivity check failed."""
        self._logger.error(
            "database_connection_failed",
            role=role,
            host=host,
            database=database,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def engine_disposed(self, role: str) -> None:
        """Record that a shared engine and its pool were closed."""
        self._logger.info(
            "database_engine_disposed",
            role=role,
            **self._get_context_kwargs(),
        )
