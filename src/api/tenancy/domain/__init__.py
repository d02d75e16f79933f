"""Tenancy domain layer: identities, credentials and store naming."""

from tenancy.domain.value_objects import (
    CredentialClaims,
    CredentialKind,
    NoIdentity,
    ResolvedGuest,
    ResolvedIdentity,
    ResolvedUser,
    StoreName,
    TenantRecord,
    TenantType,
    generate_guest_token,
    is_valid_guest_token,
    is_valid_user_id,
    normalize_email,
)

__all__ = [
    "CredentialClaims",
    "CredentialKind",
    "NoIdentity",
    "ResolvedGuest",
    "ResolvedIdentity",
    "ResolvedUser",
    "StoreName",
    "TenantRecord",
    "TenantType",
    "generate_guest_token",
    "is_valid_guest_token",
    "is_valid_user_id",
    "normalize_email",
]
