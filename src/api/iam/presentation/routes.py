"""HTTP routes for IAM bounded context.

Provides login, credential refresh, logout, registration and the current
principal.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from iam.application.services import AuthService, UserAccountService
from iam.dependencies.authentication import require_principal, require_roles
from iam.dependencies.user_account import get_auth_service, get_user_account_service
from iam.domain.value_objects import Role
from iam.ports.exceptions import DuplicateEmailError
from iam.presentation.models import (
    AccessTokenResponse,
    LoginRequest,
    LogoutRequest,
    PrincipalResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from infrastructure.metrics import HttpMetrics, get_http_metrics
from shared_kernel.auth import Principal
from shared_kernel.exceptions import InvalidCredentialError, InvalidRefreshTokenError
from shared_kernel.tenancy import TenantId

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/login")
async def login(
    request: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
    metrics: Annotated[HttpMetrics, Depends(get_http_metrics)],
) -> TokenResponse:
    """Log in with email and password.

    Returns:
        Access credential, refresh token and access credential lifetime

    Raises:
        HTTPException: 401 for any login failure (same message for all)
    """
    metrics.login_attempted()
    try:
        result = await service.login(email=request.email, password=request.password)
    except InvalidCredentialError as e:
        metrics.login_failed()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return TokenResponse(
        access_token=result.credential.token,
        refresh_token=result.refresh_token,
        expires_in=result.credential.expires_in(),
    )


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AccessTokenResponse:
    """Exchange a refresh token for a new access credential.

    Raises:
        HTTPException: 401 if the refresh token is missing, unknown or expired
    """
    try:
        credential = await service.refresh(request.refresh_token)
    except InvalidRefreshTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return AccessTokenResponse(
        access_token=credential.token,
        expires_in=credential.expires_in(),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: LogoutRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> None:
    """Revoke a refresh token.

    Access credentials already issued stay valid until they expire.
    """
    await service.logout(request.refresh_token)


@router.get("/me")
async def me(
    principal: Annotated[Principal, Depends(require_principal)],
) -> PrincipalResponse:
    """Return the principal of the presented credential."""
    return PrincipalResponse.from_principal(principal)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    principal: Annotated[Principal, Depends(require_roles(Role.ADMIN))],
    service: Annotated[UserAccountService, Depends(get_user_account_service)],
) -> RegisterResponse:
    """Register a new account (admin only).

    A clinic admin registers accounts in their own clinic only; a platform
    admin (credential without clinic) may register into any clinic.

    Raises:
        HTTPException: 400 for invalid input, 403 for a foreign clinic,
            409 if the email is already registered
    """
    raw_tenant_id = request.tenant_id or principal.tenant_id
    try:
        tenant_id = TenantId.from_string(raw_tenant_id) if raw_tenant_id else None
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid tenant_id: {e}",
        ) from e

    if principal.tenant_id is not None and (
        tenant_id is None or tenant_id.value != principal.tenant_id
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot register accounts for another clinic",
        )

    try:
        account = await service.register(
            email=request.email,
            password=request.password,
            full_name=request.full_name,
            tenant_id=tenant_id,
            roles=request.roles,
        )
    except DuplicateEmailError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    return RegisterResponse(
        user_id=account.id.value,
        email=account.email,
        tenant_id=account.tenant_id.value if account.tenant_id else None,
    )
