"""Exceptions for the tenancy bounded context.

These exceptions represent the failure taxonomy of session routing. The
presentation layer maps them to HTTP responses; none of them may ever
result in a request being attached to another tenant's store.
"""

from __future__ import annotations

from tenancy.domain.value_objects import CredentialKind


class AuthenticationRequiredError(Exception):
    """Raised when a request has no resolvable identity.

    Covers both a request with no credentials at all and a request whose
    credential turned out to be stale. ``cleared`` lists the credentials
    that were invalidated while resolving, so the transport layer can
    delete them on the error response as well.
    """

    def __init__(
        self,
        message: str,
        cleared: tuple[CredentialKind, ...] = (),
    ):
        super().__init__(message)
        self.cleared = cleared


class StaleCredentialError(AuthenticationRequiredError):
    """Raised when a credential is present but no longer resolves.

    Registry miss for a user id, or a guest store that no longer exists.
    """

    pass


class DuplicateRegistrationError(Exception):
    """Raised when registering an email that already has a registry row.

    Uniqueness is enforced by the registry's own storage constraint.
    """

    pass


class InvalidCredentialsError(Exception):
    """Raised when an email/password pair does not authenticate.

    Deliberately does not distinguish an unknown email from a wrong
    password.
    """

    pass


class GuestSessionNotActiveError(Exception):
    """Raised when ending a guest session without a guest token."""

    pass


class ProvisioningError(Exception):
    """Raised when a tenant store or its schema cannot be provisioned.

    Surfaced as a server error; never retried silently.
    """

    def __init__(self, message: str, store_name: str | None = None):
        super().__init__(message)
        self.store_name = store_name


class PoolClosedError(Exception):
    """Raised when using a pool handle after it was closed.

    A request can attach a handle moments before the guest session is
    ended or the pool is reaped as idle.
    """

    def __init__(self, message: str, store_name: str | None = None):
        super().__init__(message)
        self.store_name = store_name
