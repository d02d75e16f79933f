"""HTTP routes for registration, login and session lifecycle."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from tenancy.application.service import TenancyService
from tenancy.cookies import SessionCookies
from tenancy.dependencies import get_session_cookies, get_tenancy_service
from tenancy.domain.value_objects import CredentialKind
from tenancy.ports.exceptions import (
    DuplicateRegistrationError,
    GuestSessionNotActiveError,
    InvalidCredentialsError,
    ProvisioningError,
)
from tenancy.presentation.models import (
    CredentialsRequest,
    GuestSessionResponse,
    MessageResponse,
    SessionValidationResponse,
    UserSessionResponse,
)

auth_router = APIRouter(tags=["auth"])
session_router = APIRouter(prefix="/session", tags=["session"])


@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: CredentialsRequest,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
) -> UserSessionResponse:
    """Register a user and provision their private store.

    Does not log the user in.

    Raises:
        HTTPException: 409 if the email is already registered
        HTTPException: 500 if the store cannot be provisioned
    """
    try:
        record = await service.register(body.email, body.password)
    except DuplicateRegistrationError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered",
        )
    except ProvisioningError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to provision user store",
        )

    return UserSessionResponse.from_domain(record, message="User registered")


@auth_router.post("/login")
async def login(
    body: CredentialsRequest,
    request: Request,
    response: Response,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
    cookies: Annotated[SessionCookies, Depends(get_session_cookies)],
) -> UserSessionResponse:
    """Log a user in, replacing any guest session credential.

    Raises:
        HTTPException: 401 if the email or password is wrong
    """
    try:
        record = await service.authenticate(body.email, body.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if cookies.has(request, CredentialKind.GUEST):
        cookies.clear(response, CredentialKind.GUEST)
    cookies.set(response, CredentialKind.USER, str(record.tenant_id))

    return UserSessionResponse.from_domain(record, message="Login successful")


@auth_router.post("/logout")
async def logout(
    response: Response,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
    cookies: Annotated[SessionCookies, Depends(get_session_cookies)],
) -> MessageResponse:
    """Log the user out. Never starts a guest session."""
    service.logout(cookies.clearer(response))
    return MessageResponse(message="Logout successful")


@session_router.post("/guest")
async def start_guest_session(
    request: Request,
    response: Response,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
    cookies: Annotated[SessionCookies, Depends(get_session_cookies)],
) -> GuestSessionResponse:
    """Start a guest session, or resume the one the request carries.

    Any user credential on the request is cleared.

    Raises:
        HTTPException: 500 if the guest store cannot be provisioned
    """
    existing = cookies.read_claims(request).guest_token
    try:
        session = await service.start_guest(existing)
    except ProvisioningError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to provision guest store",
        )

    if session.token != existing:
        cookies.set(response, CredentialKind.GUEST, session.token)
    if cookies.has(request, CredentialKind.USER):
        cookies.clear(response, CredentialKind.USER)

    return GuestSessionResponse(message="Guest session active", guest_id=session.token)


@session_router.post("/guest/end")
async def end_guest_session(
    request: Request,
    response: Response,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
    cookies: Annotated[SessionCookies, Depends(get_session_cookies)],
) -> MessageResponse:
    """End the guest session and delete all of its data.

    Raises:
        HTTPException: 400 if the request has no guest session
        HTTPException: 500 if the guest store could not be dropped
    """
    try:
        await service.end_guest(cookies.read_claims(request).guest_token)
    except GuestSessionNotActiveError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active guest session",
        )
    except ProvisioningError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to end guest session",
        )

    cookies.clear(response, CredentialKind.GUEST)
    return MessageResponse(message="Guest session ended and data deleted")


@session_router.get("/validate")
async def validate_session(
    request: Request,
    response: Response,
    service: Annotated[TenancyService, Depends(get_tenancy_service)],
    cookies: Annotated[SessionCookies, Depends(get_session_cookies)],
) -> SessionValidationResponse:
    """Report the session the request's credentials belong to.

    A stale credential is cleared and answered with 401 by the
    authentication error handler.
    """
    validation = await service.validate(
        cookies.read_claims(request), cookies.clearer(response)
    )
    return SessionValidationResponse.from_domain(validation)
