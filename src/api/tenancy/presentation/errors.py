"""Exception handlers for tenancy errors raised outside route bodies.

Identity resolution runs in a dependency, so its failures never reach a
route's own try/except. Cookies cleared during resolution have to be
deleted on the error response, since the dependency's response object is
discarded once an exception escapes.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from tenancy.domain.value_objects import GUEST_STORE_PREFIX, CredentialKind
from tenancy.ports.exceptions import (
    AuthenticationRequiredError,
    PoolClosedError,
    ProvisioningError,
)


async def authentication_required_handler(
    request: Request, exc: AuthenticationRequiredError
) -> JSONResponse:
    """Render a 401 and delete every credential cleared while resolving."""
    response = JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
    )
    cookies = request.app.state.session_cookies
    for kind in exc.cleared:
        cookies.clear(response, kind)
    return response


async def provisioning_error_handler(
    request: Request, exc: ProvisioningError
) -> JSONResponse:
    """Render a 500 for a store that could not be provisioned."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Failed to provision tenant store"},
    )


async def pool_closed_handler(request: Request, exc: PoolClosedError) -> JSONResponse:
    """Render the outcome of a request whose pool closed under it.

    If the pool belonged to a guest session that has since ended, the
    request was stale: 401 and the guest cookie is deleted. Otherwise the
    pool was only recycled (idle reaping, shutdown) and the request may be
    retried.
    """
    cookies = request.app.state.session_cookies
    runtime = request.app.state.tenancy
    token = cookies.read_claims(request).guest_token

    if (
        exc.store_name is not None
        and exc.store_name.startswith(GUEST_STORE_PREFIX)
        and runtime is not None
        and not (token and await runtime.sessions.is_active(token))
    ):
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Session is no longer valid"},
        )
        cookies.clear(response, CredentialKind.GUEST)
        return response

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Tenant store connection was recycled, retry the request"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the tenancy exception handlers on an application."""
    app.add_exception_handler(AuthenticationRequiredError, authentication_required_handler)
    app.add_exception_handler(ProvisioningError, provisioning_error_handler)
    app.add_exception_handler(PoolClosedError, pool_closed_handler)
