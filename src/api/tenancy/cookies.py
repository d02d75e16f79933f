"""Cookie transport for session credentials.

Reads identity claims from request cookies and sets or deletes the user
and guest cookies on responses. The domain attribute is only sent when a
cookie domain is configured, and SameSite only together with Secure.
"""

from __future__ import annotations

from fastapi import Request, Response

from infrastructure.settings import SessionSettings
from tenancy.application.identity_resolver import ClearCredential
from tenancy.domain.value_objects import CredentialClaims, CredentialKind


class SessionCookies:
    """Maps credential kinds to configured cookies."""

    def __init__(self, settings: SessionSettings):
        self._settings = settings

    def name_for(self, kind: CredentialKind) -> str:
        """Return the cookie name carrying a credential kind."""
        if kind is CredentialKind.USER:
            return self._settings.user_cookie_name
        return self._settings.guest_cookie_name

    def read_claims(self, request: Request) -> CredentialClaims:
        """Extract identity claims from the request's cookies."""
        return CredentialClaims(
            user_id=request.cookies.get(self._settings.user_cookie_name) or None,
            guest_token=request.cookies.get(self._settings.guest_cookie_name) or None,
        )

    def has(self, request: Request, kind: CredentialKind) -> bool:
        return bool(request.cookies.get(self.name_for(kind)))

    def set(self, response: Response, kind: CredentialKind, value: str) -> None:
        """Attach a credential cookie to the response."""
        settings = self._settings
        response.set_cookie(
            key=self.name_for(kind),
            value=value,
            max_age=settings.cookie_max_age_seconds,
            path="/",
            domain=settings.cookie_domain or None,
            secure=settings.cookie_secure,
            httponly=settings.cookie_httponly,
            samesite=settings.cookie_samesite if settings.cookie_secure else None,
        )

    def clear(self, response: Response, kind: CredentialKind) -> None:
        """Delete a credential cookie on the client."""
        settings = self._settings
        response.delete_cookie(
            key=self.name_for(kind),
            path="/",
            domain=settings.cookie_domain or None,
            secure=settings.cookie_secure,
            httponly=settings.cookie_httponly,
            samesite=settings.cookie_samesite if settings.cookie_secure else None,
        )

    def clearer(self, response: Response) -> ClearCredential:
        """Bind clear() to a response, for the identity resolver."""

        def clear_credential(kind: CredentialKind) -> None:
            self.clear(response, kind)

        return clear_credential
