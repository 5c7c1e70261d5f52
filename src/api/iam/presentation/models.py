"""Pydantic models for IAM API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from iam.domain.value_objects import Role
from shared_kernel.auth import Principal
from shared_kernel.sanitization import sanitize_input


class LoginRequest(BaseModel):
    """Request model for password login."""

    email: str = Field(..., description="Account email", min_length=3, max_length=320)
    password: str = Field(..., description="Account password", min_length=1)


class TokenResponse(BaseModel):
    """Response model for a successful login."""

    access_token: str = Field(..., description="Signed access credential")
    refresh_token: str = Field(..., description="Opaque refresh token")
    token_type: str = Field(default="bearer", description="Authorization scheme")
    expires_in: int = Field(..., description="Seconds until the access credential expires")


class RefreshRequest(BaseModel):
    """Request model for exchanging a refresh token."""

    refresh_token: str | None = Field(default=None, description="Refresh token")


class AccessTokenResponse(BaseModel):
    """Response model for a refreshed access credential."""

    access_token: str = Field(..., description="Signed access credential")
    token_type: str = Field(default="bearer", description="Authorization scheme")
    expires_in: int = Field(..., description="Seconds until the access credential expires")


class LogoutRequest(BaseModel):
    """Request model for revoking a refresh token."""

    refresh_token: str = Field(..., description="Refresh token to revoke", min_length=1)


class RegisterRequest(BaseModel):
    """Request model for registering an account (admin only).

    ``tenant_id`` defaults to the registering admin's clinic.
    """

    email: str = Field(..., description="Account email", min_length=3, max_length=320)
    password: str = Field(..., description="Account password", min_length=8)
    full_name: str = Field(default="", description="Display name", max_length=255)
    tenant_id: str | None = Field(default=None, description="Clinic identifier")
    roles: list[str] = Field(
        default_factory=lambda: [Role.USER.value],
        description="Roles embedded in the account's credentials",
        min_length=1,
    )

    @field_validator("full_name", mode="before")
    @classmethod
    def sanitize_full_name(cls, value: Any) -> Any:
        return sanitize_input(value)


class RegisterResponse(BaseModel):
    """Response model for a registered account."""

    message: str = Field(default="User account created")
    user_id: str = Field(..., description="Account ID (ULID format)")
    email: str = Field(..., description="Normalized account email")
    tenant_id: str | None = Field(default=None, description="Clinic identifier")


class PrincipalResponse(BaseModel):
    """Response model for the authenticated principal."""

    subject: str = Field(..., description="Account ID the credential was issued to")
    roles: list[str] = Field(default_factory=list, description="Roles in the credential")
    tenant_id: str | None = Field(default=None, description="Clinic in the credential")
    expires_at: datetime | None = Field(default=None, description="Credential expiry")

    @classmethod
    def from_principal(cls, principal: Principal) -> PrincipalResponse:
        """Convert a validated Principal to an API response."""
        return cls(
            subject=principal.subject,
            roles=list(principal.roles),
            tenant_id=principal.tenant_id,
            expires_at=principal.expires_at,
        )
