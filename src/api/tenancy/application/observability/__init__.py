"""Observability probes for tenancy application services."""

from tenancy.application.observability.tenancy_probe import (
    DefaultTenancyProbe,
    TenancyProbe,
)

__all__ = [
    "DefaultTenancyProbe",
    "TenancyProbe",
]
