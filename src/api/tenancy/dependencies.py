"""FastAPI dependencies for the tenancy bounded context.

The runtime is created in the application lifespan and stored on
app.state; these dependencies only look it up, so a request never builds
engines or pools of its own.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request, Response

from tenancy.application.service import TenancyService, TenantAttachment
from tenancy.cookies import SessionCookies
from tenancy.runtime import TenancyRuntime


def get_tenancy_runtime(request: Request) -> TenancyRuntime:
    """Get the application's tenancy runtime.

    Raises:
        RuntimeError: If the application lifespan has not started it
    """
    runtime = getattr(request.app.state, "tenancy", None)
    if runtime is None:
        raise RuntimeError(
            "Tenancy runtime not initialized. Ensure app startup completed successfully."
        )
    return runtime


def get_tenancy_service(
    runtime: Annotated[TenancyRuntime, Depends(get_tenancy_runtime)],
) -> TenancyService:
    """Get the TenancyService facade."""
    return runtime.service


def get_session_cookies(request: Request) -> SessionCookies:
    """Get the cookie transport configured for the application."""
    return request.app.state.session_cookies


async def get_tenant_attachment(
    request: Request,
    response: Response,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
    cookies: Annotated[SessionCookies, Depends(get_session_cookies)],
) -> TenantAttachment:
    """Route the current request to its tenant's store.

    Credentials cleared while resolving are deleted on the response; on
    failure the error handler deletes them on the error response.

    Raises:
        AuthenticationRequiredError: If the request has no identity
        StaleCredentialError: If the identity no longer resolves
    """
    return await service.resolve_and_attach(
        cookies.read_claims(request), cookies.clearer(response)
    )
