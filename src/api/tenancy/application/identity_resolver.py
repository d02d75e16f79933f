"""Identity resolution from transport credentials.

Turns the zero, one or two identity claims attached to a request into
exactly one resolution. A user claim always beats a guest claim; a
request without claims is an authentication failure, never an implicit
guest session.
"""

from __future__ import annotations

from collections.abc import Callable

from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.domain.value_objects import (
    CredentialClaims,
    CredentialKind,
    NoIdentity,
    ResolvedGuest,
    ResolvedIdentity,
    ResolvedUser,
)

ClearCredential = Callable[[CredentialKind], None]


def resolve_identity(
    claims: CredentialClaims,
    clear_credential: ClearCredential,
    probe: TenancyProbe | None = None,
) -> ResolvedIdentity:
    """Resolve the authoritative identity of a request.

    When both claims are present the guest credential is cleared first and
    resolution is retried once with the user claim alone. The retried
    claims never contain a guest claim, so this recurses at most once.

    Args:
        claims: Identity claims read from the request
        clear_credential: Side-effecting callback invalidating a transport
            credential (e.g. deleting a cookie on the response)
        probe: Optional domain probe for observability

    Returns:
        ResolvedUser, ResolvedGuest or NoIdentity
    """
    probe = probe or DefaultTenancyProbe()

    if claims.has_user and claims.has_guest:
        assert claims.user_id is not None
        probe.identity_conflict(user_id=claims.user_id)
        clear_credential(CredentialKind.GUEST)
        probe.credential_cleared(CredentialKind.GUEST, reason="conflict")
        return resolve_identity(claims.without_guest(), clear_credential, probe)

    if claims.has_user:
        assert claims.user_id is not None
        return ResolvedUser(user_id=claims.user_id)

    if claims.has_guest:
        assert claims.guest_token is not None
        return ResolvedGuest(token=claims.guest_token)

    probe.no_identity()
    return NoIdentity()
