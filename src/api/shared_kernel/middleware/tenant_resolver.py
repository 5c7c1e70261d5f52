"""Tenant identifier resolution.

Plain functions, callable without any web framework: given a request's header
mapping and an optional authenticated principal, produce the clinic the
request is bound to.

Resolution order:
    1. the ``x-clinic-id`` header (case-insensitive name, trimmed value)
    2. the tenant embedded in the authenticated principal's credential
    3. nothing

A whitespace-only header counts as absent. No default tenant is ever
substituted here; single-tenant deployments opt into a default in the
tenant guard.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from shared_kernel.exceptions import MissingTenantError
from shared_kernel.middleware.tenant_context import TenantContext

if TYPE_CHECKING:
    from shared_kernel.auth.principal import Principal

DEFAULT_TENANT_HEADER = "x-clinic-id"

# Accepted after the canonical header; older clients send it.
LEGACY_TENANT_HEADERS = ("clinicid",)


def read_tenant_header(
    headers: Mapping[str, str],
    header_name: str = DEFAULT_TENANT_HEADER,
) -> str | None:
    """Return the trimmed tenant header value, or None if absent or blank.

    Header names are matched case-insensitively for any mapping, including
    plain dicts.

    Args:
        headers: Request headers.
        header_name: Canonical tenant header name.

    Returns:
        The trimmed header value or None.
    """
    lowered = {name.lower(): value for name, value in headers.items()}

    for name in (header_name.lower(), *LEGACY_TENANT_HEADERS):
        value = lowered.get(name)
        if value is not None and value.strip():
            return value.strip()

    return None


def resolve_tenant_id(
    headers: Mapping[str, str],
    principal: Principal | None = None,
    header_name: str = DEFAULT_TENANT_HEADER,
) -> TenantContext | None:
    """Resolve the tenant from headers, falling back to the principal.

    Args:
        headers: Request headers.
        principal: Authenticated principal, if any.
        header_name: Canonical tenant header name.

    Returns:
        TenantContext, or None if neither source yields a tenant.
    """
    header_value = read_tenant_header(headers, header_name=header_name)
    if header_value is not None:
        return TenantContext(tenant_id=header_value, source="header")

    if principal is not None and principal.tenant_id and principal.tenant_id.strip():
        return TenantContext(tenant_id=principal.tenant_id.strip(), source="principal")

    return None


def require_tenant_id(
    headers: Mapping[str, str],
    principal: Principal | None = None,
    header_name: str = DEFAULT_TENANT_HEADER,
) -> TenantContext:
    """Resolve the tenant or fail.

    Raises:
        MissingTenantError: If no tenant could be resolved. The message
            names the tenant header.
    """
    context = resolve_tenant_id(headers, principal=principal, header_name=header_name)
    if context is None:
        raise MissingTenantError(header_name=header_name)
    return context
