"""Principal dependencies.

``get_optional_principal`` is the single place a bearer credential is
validated. FastAPI caches it per request, so the tenant guard and the route
share one validation. When the request names a clinic in its tenant header,
the credential must have been issued for that clinic.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from iam.application.observability import (
    AuthenticationProbe,
    DefaultAuthenticationProbe,
)
from shared_kernel.auth import CredentialService, Principal
from shared_kernel.exceptions import (
    InsufficientRoleError,
    InvalidCredentialError,
    TenantMismatchError,
)
from shared_kernel.middleware import get_request_context, read_tenant_header

# Bearer scheme for Swagger UI; missing credentials are handled below
bearer_scheme = HTTPBearer(auto_error=False)


def get_credential_service(request: Request) -> CredentialService:
    """Get the application's CredentialService with request context bound.

    Returns:
        CredentialService logging with this request's correlation id.
    """
    service: CredentialService = request.app.state.credential_service
    context = get_request_context(request)
    return service.with_probe(service.probe.with_context(context.observation()))


def get_authentication_probe(request: Request) -> AuthenticationProbe:
    """Get AuthenticationProbe instance with request context bound."""
    context = get_request_context(request)
    return DefaultAuthenticationProbe().with_context(context.observation())


async def get_optional_principal(
    request: Request,
    service: Annotated[CredentialService, Depends(get_credential_service)],
    probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> Principal | None:
    """Validate the bearer credential, if one was sent.

    Returns:
        The principal, or None for anonymous requests.

    Raises:
        HTTPException 401: If the credential is invalid or expired.
        HTTPException 403: If the credential was issued for another clinic
            than the one named in the tenant header.
    """
    if credentials is None:
        return None

    header_name = request.app.state.tenant_guard.header_name
    expected_tenant_id = read_tenant_header(request.headers, header_name=header_name)

    try:
        principal = service.validate(
            credentials.credentials,
            expected_tenant_id=expected_tenant_id,
        )
    except TenantMismatchError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        ) from e
    except InvalidCredentialError as e:
        probe.authentication_failed(reason=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    get_request_context(request).bind_principal(principal)
    probe.user_authenticated(subject=principal.subject, tenant_id=principal.tenant_id)
    return principal


async def require_principal(
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
    probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
) -> Principal:
    """Require an authenticated principal.

    Raises:
        HTTPException 401: If no bearer credential was sent.
    """
    if principal is None:
        probe.authentication_failed(reason="missing_credential")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def require_roles(
    *roles: str,
) -> Callable[..., Coroutine[Any, Any, Principal]]:
    """Build a dependency requiring any one of ``roles``.

    Usage:
        @router.delete("/{id}")
        async def delete(
            principal: Annotated[Principal, Depends(require_roles("admin"))],
        ): ...

    Raises:
        ValueError: If no role is given.
        InsufficientRoleError: From the dependency, when the principal holds
            none of ``roles``.
    """
    if not roles:
        raise ValueError("require_roles needs at least one role")

    required = [str(role) for role in roles]

    async def _require_roles(
        principal: Annotated[Principal, Depends(require_principal)],
        probe: Annotated[AuthenticationProbe, Depends(get_authentication_probe)],
    ) -> Principal:
        if not principal.has_any_role(*required):
            probe.authorization_denied(
                subject=principal.subject, required_roles=required
            )
            raise InsufficientRoleError("Insufficient role")
        return principal

    return _require_roles
