"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped and tenant-relevant metadata that should be
    included with all instrumentation events.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        tenant_type: "user" or "guest" once identity is resolved.
        tenant_key: Pool cache key of the resolved tenant (if applicable).
            Guest keys are bearer tokens and are never rendered.
        store_name: Name of the tenant store being operated on (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(request_id="req-123", tenant_type="guest")
        probe = DefaultStoreProbe().with_context(context)
    """

    request_id: str | None = None
    tenant_type: str | None = None
    tenant_key: str | None = None
    store_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.tenant_type is not None:
            result["tenant_type"] = self.tenant_type
        if self.tenant_key is not None and self.tenant_type != "guest":
            result["tenant_key"] = self.tenant_key
        if self.store_name is not None:
            result["store_name"] = self.store_name
        result.update(self.extra)
        return result

    def with_store(self, store_name: str) -> ObservationContext:
        """Create a new context with the store name set."""
        return ObservationContext(
            request_id=self.request_id,
            tenant_type=self.tenant_type,
            tenant_key=self.tenant_key,
            store_name=store_name,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        new_extra = {**self.extra, **kwargs}
        return ObservationContext(
            request_id=self.request_id,
            tenant_type=self.tenant_type,
            tenant_key=self.tenant_key,
            store_name=self.store_name,
            extra=new_extra,
        )
