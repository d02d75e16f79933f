"""Observability probes for tenancy infrastructure."""

from tenancy.infrastructure.observability.registry_probe import (
    DefaultRegistryProbe,
    RegistryProbe,
)
from tenancy.infrastructure.observability.store_probe import (
    DefaultStoreProbe,
    StoreProbe,
)

__all__ = [
    "DefaultRegistryProbe",
    "DefaultStoreProbe",
    "RegistryProbe",
    "StoreProbe",
]
