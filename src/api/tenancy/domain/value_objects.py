"""Value objects for the tenancy domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for tenant identities, credentials and store names.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from dataclasses import dataclass
from enum import StrEnum

USER_STORE_PREFIX = "todos_user_"
GUEST_STORE_PREFIX = "todos_guest_"
USER_KEY_PREFIX = "user_"

# Store names are interpolated into DDL, where bind parameters are not
# available for identifiers. Only names matching this pattern may be used.
_STORE_NAME_PATTERN = re.compile(r"^todos_(user|guest)_[0-9a-f]{32}$")
_GUEST_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{32}$")
# Registry ids in their canonical decimal form; one id, one cache key
_USER_ID_PATTERN = re.compile(r"^[1-9][0-9]*$")


class TenantType(StrEnum):
    """Kind of tenant a request is routed to."""

    USER = "user"
    GUEST = "guest"


class CredentialKind(StrEnum):
    """Transport credentials a request may carry."""

    USER = "user"
    GUEST = "guest"


@dataclass(frozen=True)
class CredentialClaims:
    """Identity claims extracted from a request's transport credentials.

    Empty strings are treated as absent.
    """

    user_id: str | None = None
    guest_token: str | None = None

    @property
    def has_user(self) -> bool:
        return bool(self.user_id)

    @property
    def has_guest(self) -> bool:
        return bool(self.guest_token)

    def without_guest(self) -> CredentialClaims:
        """Return the claims with the guest claim discarded."""
        return CredentialClaims(user_id=self.user_id)


@dataclass(frozen=True)
class StoreName:
    """Name of one tenant's isolated database.

    Always validated against a strict allow-list so it is safe to quote
    into CREATE/DROP DATABASE statements.
    """

    value: str

    def __post_init__(self) -> None:
        if not _STORE_NAME_PATTERN.fullmatch(self.value):
            raise ValueError(f"Invalid store name: {self.value!r}")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def for_user(cls, email: str) -> StoreName:
        """Derive the store name of a registered user from their email.

        Deterministic and pure: the same email (case and surrounding
        whitespace ignored) always yields the same name.
        """
        digest = hashlib.sha256(normalize_email(email).encode()).hexdigest()
        return cls(value=f"{USER_STORE_PREFIX}{digest[:32]}")

    @classmethod
    def for_guest(cls, token: str) -> StoreName:
        """Derive the store name of a guest session from its token.

        The token is a bearer credential, so the name is built from its
        digest rather than the token itself; store names end up in logs
        and in the server catalog.

        Raises:
            ValueError: If the token is not a well-formed guest token
        """
        if not is_valid_guest_token(token):
            raise ValueError("Invalid guest token")
        digest = hashlib.sha256(token.encode()).hexdigest()
        return cls(value=f"{GUEST_STORE_PREFIX}{digest[:32]}")


@dataclass(frozen=True)
class ResolvedUser:
    """A request authoritatively identified as a registered user."""

    user_id: str

    @property
    def tenant_type(self) -> TenantType:
        return TenantType.USER

    @property
    def tenant_key(self) -> str:
        return f"{USER_KEY_PREFIX}{self.user_id}"

    @property
    def credential(self) -> CredentialKind:
        return CredentialKind.USER


@dataclass(frozen=True)
class ResolvedGuest:
    """A request authoritatively identified as a guest session."""

    token: str

    @property
    def tenant_type(self) -> TenantType:
        return TenantType.GUEST

    @property
    def tenant_key(self) -> str:
        return self.token

    @property
    def credential(self) -> CredentialKind:
        return CredentialKind.GUEST


@dataclass(frozen=True)
class NoIdentity:
    """A request carrying no identity claim at all."""


ResolvedIdentity = ResolvedUser | ResolvedGuest | NoIdentity


@dataclass(frozen=True)
class TenantRecord:
    """Durable registry row binding a registered user to their store.

    Immutable once created.
    """

    tenant_id: int
    email: str
    store_name: StoreName
    created_at: int


def normalize_email(email: str) -> str:
    """Return the canonical form of an email used for lookups and derivation."""
    return email.strip().lower()


def generate_guest_token() -> str:
    """Mint a fresh unpredictable guest token (128 random bits, hex)."""
    return secrets.token_hex(16)


def is_valid_guest_token(token: str) -> bool:
    """Check a guest token has the shape minted by generate_guest_token."""
    return bool(_GUEST_TOKEN_PATTERN.fullmatch(token))


def is_valid_user_id(user_id: str) -> bool:
    """Check a user id is a registry id in canonical decimal form."""
    return bool(_USER_ID_PATTERN.fullmatch(user_id))
