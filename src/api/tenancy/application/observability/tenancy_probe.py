"""Domain probe for session routing and tenant lifecycle.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of identity resolution, pool reconciliation,
registration, login and guest session lifecycle.

Guest tokens are bearer credentials and are never passed to the probe;
guest events are correlated through store names instead.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class TenancyProbe(Protocol):
    """Domain probe for tenancy application operations."""

    def identity_conflict(self, user_id: str) -> None:
        """Record that a request carried both a user and a guest claim."""
        ...

    def no_identity(self) -> None:
        """Record that a request carried no identity claim."""
        ...

    def credential_cleared(self, credential: str, reason: str) -> None:
        """Record that a transport credential was invalidated."""
        ...

    def pool_cache_hit(self, tenant_type: str) -> None:
        """Record that the pool cache served the request."""
        ...

    def pool_reconciled(self, tenant_type: str, store_name: str) -> None:
        """Record that a pool was rebuilt from durable state after a miss."""
        ...

    def reconciliation_failed(self, tenant_type: str, reason: str) -> None:
        """Record that a claim could not be reconciled to a store."""
        ...

    def registry_lookup_failed(self, error: Exception) -> None:
        """Record that the registry could not be queried on the request path."""
        ...

    def tenant_store_provisioned(self, store_name: str, created: bool) -> None:
        """Record that a store and its schema are ready for use."""
        ...

    def provisioning_failed(self, store_name: str, error: Exception) -> None:
        """Record that provisioning a store failed."""
        ...

    def user_registered(self, tenant_id: int, store_name: str) -> None:
        """Record that a user registered and their store was provisioned."""
        ...

    def registration_rejected_duplicate(self) -> None:
        """Record that registration was rejected because the email exists."""
        ...

    def login_succeeded(self, tenant_id: int) -> None:
        """Record a successful login."""
        ...

    def login_failed(self) -> None:
        """Record a failed login without revealing which check failed."""
        ...

    def guest_session_started(self, store_name: str, reused: bool) -> None:
        """Record that a guest session is active."""
        ...

    def guest_session_ended(self, store_name: str, pool_was_cached: bool) -> None:
        """Record that a guest session ended and its store was destroyed."""
        ...

    def guest_end_without_session(self) -> None:
        """Record an attempt to end a guest session with no guest token."""
        ...

    def idle_pools_reaped(self, count: int) -> None:
        """Record a reaper sweep that closed idle pools."""
        ...

    def reaper_sweep_failed(self, error: Exception) -> None:
        """Record that a reaper sweep raised."""
        ...

    def with_context(self, context: ObservationContext) -> TenancyProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenancyProbe:
    """Default implementation of TenancyProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenancyProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenancyProbe(logger=self._logger, context=context)

    def identity_conflict(self, user_id: str) -> None:
        """Record that a request carried both a user and a guest claim."""
        self._logger.warning(
            "identity_conflict_guest_discarded",
            user_id=user_id,
            **self._get_context_kwargs(),
        )

    def no_identity(self) -> None:
        """Record that a request carried no identity claim."""
        self._logger.debug(
            "identity_missing",
            **self._get_context_kwargs(),
        )

    def credential_cleared(self, credential: str, reason: str) -> None:
        """Record that a transport credential was invalidated."""
        self._logger.info(
            "credential_cleared",
            credential=credential,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def pool_cache_hit(self, tenant_type: str) -> None:
        """Record that the pool cache served the request."""
        self._logger.debug(
            "pool_cache_hit",
            tenant_type=tenant_type,
            **self._get_context_kwargs(),
        )

    def pool_reconciled(self, tenant_type: str, store_name: str) -> None:
        """Record that a pool was rebuilt from durable state after a miss."""
        self._logger.info(
            "pool_reconciled",
            tenant_type=tenant_type,
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def reconciliation_failed(self, tenant_type: str, reason: str) -> None:
        """Record that a claim could not be reconciled to a store."""
        self._logger.info(
            "pool_reconciliation_failed",
            tenant_type=tenant_type,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def registry_lookup_failed(self, error: Exception) -> None:
        """Record that the registry could not be queried on the request path."""
        self._logger.error(
            "registry_lookup_failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def tenant_store_provisioned(self, store_name: str, created: bool) -> None:
        """Record that a store and its schema are ready for use."""
        self._logger.info(
            "tenant_store_provisioned",
            store_name=store_name,
            created=created,
            **self._get_context_kwargs(),
        )

    def provisioning_failed(self, store_name: str, error: Exception) -> None:
        """Record that provisioning a store failed."""
        self._logger.error(
            "tenant_store_provisioning_failed",
            store_name=store_name,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def user_registered(self, tenant_id: int, store_name: str) -> None:
        """Record that a user registered and their store was provisioned."""
        self._logger.info(
            "user_registered",
            tenant_id=tenant_id,
            store_name=store_name,
            **self._get_context_kwargs(),
        )

    def registration_rejected_duplicate(self) -> None:
        """Record that registration was rejected because the email exists."""
        self._logger.info(
            "registration_rejected_duplicate",
            **self._get_context_kwargs(),
        )

    def login_succeeded(self, tenant_id: int) -> None:
        """Record a successful login."""
        self._logger.info(
            "login_succeeded",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def login_failed(self) -> None:
        """Record a failed login without revealing which check failed."""
        self._logger.warning(
            "login_failed",
            **self._get_context_kwargs(),
        )

    def guest_session_started(self, store_name: str, reused: bool) -> None:
        """Record that a guest session is active."""
        self._logger.info(
            "guest_session_started",
            store_name=store_name,
            reused=reused,
            **self._get_context_kwargs(),
        )

    def guest_session_ended(self, store_name: str, pool_was_cached: bool) -> None:
        """Record that a guest session ended and its store was destroyed."""
        self._logger.info(
            "guest_session_ended",
            store_name=store_name,
            pool_was_cached=pool_was_cached,
            **self._get_context_kwargs(),
        )

    def guest_end_without_session(self) -> None:
        """Record an attempt to end a guest session with no guest token."""
        self._logger.info(
            "guest_end_without_session",
            **self._get_context_kwargs(),
        )

    def idle_pools_reaped(self, count: int) -> None:
        """Record a reaper sweep that closed idle pools."""
        self._logger.info(
            "idle_pools_reaped",
            count=count,
            **self._get_context_kwargs(),
        )

    def reaper_sweep_failed(self, error: Exception) -> None:
        """Record that a reaper sweep raised."""
        self._logger.error(
            "idle_pool_reaper_sweep_failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
