"""Domain probe for application startup and lifecycle events.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events during application initialization and shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class StartupProbe(Protocol):
    """Domain probe for application startup operations."""

    def application_starting(self, app_name: str, environment: str) -> None:
        """Record that the application is starting."""
        ...

    def tenancy_runtime_ready(self, reaper_enabled: bool) -> None:
        """Record that the tenancy runtime passed its connectivity checks."""
        ...

    def tenancy_runtime_failed(self, error: Exception) -> None:
        """Record that the tenancy runtime could not start."""
        ...

    def application_stopped(self, pools_closed: int) -> None:
        """Record that shutdown finished and all pools were released."""
        ...

    def with_context(self, context: ObservationContext) -> StartupProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStartupProbe:
    """Default implementation of StartupProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultStartupProbe:
        """Create a new probe with observation context bound."""
        return DefaultStartupProbe(logger=self._logger, context=context)

    def application_starting(self, app_name: str, environment: str) -> None:
        """Record that the application is starting."""
        self._logger.info(
            "application_starting",
            app_name=app_name,
            environment=environment,
            **self._get_context_kwargs(),
        )

    def tenancy_runtime_ready(self, reaper_enabled: bool) -> None:
        """Record that the tenancy runtime passed its connectivity checks."""
        self._logger.info(
            "tenancy_runtime_ready",
            reaper_enabled=reaper_enabled,
            **self._get_context_kwargs(),
        )

    def tenancy_runtime_failed(self, error: Exception) -> None:
        """Record that the tenancy runtime could not start."""
        self._logger.error(
            "tenancy_runtime_failed",
            error=str(error),
            error_type=type(error).__name__,
            message="Check that the database is running and credentials are correct",
            **self._get_context_kwargs(),
        )

    def application_stopped(self, pools_closed: int) -> None:
        """Record that shutdown finished and all pools were released."""
        self._logger.info(
            "application_stopped",
            pools_closed=pools_closed,
            **self._get_context_kwargs(),
        )
