"""Domain probe for the tenant registry repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class RegistryProbe(Protocol):
    """Domain probe for tenant registry persistence."""

    def tenant_registered(self, tenant_id: int, store_name: str) -> None:
        """Record that a registry row was inserted."""
        ...

    def duplicate_email(self) -> None:
        """Record that registration hit the unique email constraint."""
        ...

    def tenant_retrieved(self, tenant_id: int) -> None:
        """Record that a registry row was read."""
        ...

    def tenant_not_found(self, lookup: str) -> None:
        """Record that a registry lookup found nothing."""
        ...

    def with_context(self, context: ObservationContext) -> RegistryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultRegistryProbe:
    """Default implementation of RegistryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultRegistryProbe:
        """Create a new probe with observation context bound."""
        return DefaultRegistryProbe(logger=self._logger, context=context)

    def tenant_registered(self, tenant_id: int, store_name: str) -> None:
        """Record that a registry row was inserted."""
        self._logger.info(
            "tenant_registered",
            tenant_id=tenant_id,
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def duplicate_email(self) -> None:
        """Record that registration hit the unique email constraint."""
        # Email is personal data; log the event only
        self._logger.info(
            "tenant_registration_duplicate_email",
            **self._get_context_kwargs(),
        )

    def tenant_retrieved(self, tenant_id: int) -> None:
        """Record that a registry row was read."""
        self._logger.debug(
            "tenant_retrieved",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def tenant_not_found(self, lookup: str) -> None:
        """Record that a registry lookup found nothing."""
        self._logger.debug(
            "tenant_not_found",
            lookup=lookup,
            **self._get_context_kwargs(),
        )
