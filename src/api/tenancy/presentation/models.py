"""Pydantic models for session API requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from tenancy.application.service import SessionValidation
from tenancy.domain.value_objects import TenantRecord, TenantType

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class CredentialsRequest(BaseModel):
    """Request model for registration and login."""

    email: str = Field(
        ...,
        description="Email address",
        min_length=3,
        max_length=255,
        pattern=_EMAIL_PATTERN,
    )
    password: str = Field(..., description="Password", min_length=1, max_length=256)


class MessageResponse(BaseModel):
    """Response model carrying only a human-readable message."""

    message: str


class UserSessionResponse(BaseModel):
    """Response model for registration and login."""

    message: str
    user_id: str = Field(..., description="Registry id of the user")

    @classmethod
    def from_domain(cls, record: TenantRecord, message: str) -> UserSessionResponse:
        return cls(message=message, user_id=str(record.tenant_id))


class GuestSessionResponse(BaseModel):
    """Response model for starting a guest session."""

    message: str
    guest_id: str = Field(..., description="Guest session token")


class SessionValidationResponse(BaseModel):
    """Response model for session validation."""

    valid: bool
    type: TenantType | None = None
    user_id: str | None = None
    email: str | None = None
    guest_id: str | None = None
    message: str | None = None

    @classmethod
    def from_domain(cls, validation: SessionValidation) -> SessionValidationResponse:
        """Convert a SessionValidation to an API response."""
        if not validation.valid:
            return cls(valid=False, message="No active session")
        return cls(
            valid=True,
            type=validation.tenant_type,
            user_id=validation.user_id,
            email=validation.email,
            guest_id=validation.guest_token,
        )
