"""Tenant context FastAPI dependency.

Runs the application's ``TenantGuard`` for the current request. The tenant
comes from the ``x-clinic-id`` header, or from the authenticated principal's
credential when the header is absent. In single-tenant mode
(``CLINIC_TENANCY_SINGLE_TENANT_MODE=true``) a request without either falls
back to the configured default clinic; otherwise it is rejected with 400
before any route code runs.

Usage in FastAPI routes:
    @router.get("/example")
    async def example(
        tenant: Annotated[TenantContext, Depends(get_tenant_context)],
    ):
        # tenant.tenant_id is the resolved clinic identifier
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from iam.dependencies.authentication import get_optional_principal
from shared_kernel.auth import Principal
from shared_kernel.exceptions import MissingTenantError
from shared_kernel.middleware import (
    TenantContext,
    TenantGuard,
    get_request_context,
)


def get_tenant_guard(request: Request) -> TenantGuard:
    """Get the application's TenantGuard."""
    return request.app.state.tenant_guard


async def get_tenant_context(
    request: Request,
    guard: Annotated[TenantGuard, Depends(get_tenant_guard)],
    principal: Annotated[Principal | None, Depends(get_optional_principal)],
) -> TenantContext:
    """Resolve the tenant for this request.

    ``principal`` is declared so the credential is validated, and bound to
    the request context, before the guard runs.

    Returns:
        TenantContext with the resolved clinic and its source.

    Raises:
        HTTPException 400: If no clinic can be resolved.
    """
    context = get_request_context(request)
    try:
        return guard.resolve(context, request.headers)
    except MissingTenantError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
