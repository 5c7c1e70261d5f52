"""Shared middleware for cross-cutting request concerns.

Every request passes through the correlation middleware, which creates the
per-request ``RequestContext``. Tenant-scoped routes then run the tenant
guard, which resolves the clinic identifier from the ``x-clinic-id`` header
(or the authenticated principal) and records it on that context.
"""

from shared_kernel.middleware.correlation import CorrelationIdMiddleware
from shared_kernel.middleware.request_context import (
    RequestContext,
    TenantGuardState,
    get_request_context,
)
from shared_kernel.middleware.request_logging import RequestLoggingMiddleware
from shared_kernel.middleware.tenant_context import TenantContext
from shared_kernel.middleware.tenant_guard import TenantGuard
from shared_kernel.middleware.tenant_resolver import (
    DEFAULT_TENANT_HEADER,
    read_tenant_header,
    require_tenant_id,
    resolve_tenant_id,
)

__all__ = [
    "DEFAULT_TENANT_HEADER",
    "CorrelationIdMiddleware",
    "RequestContext",
    "RequestLoggingMiddleware",
    "TenantContext",
    "TenantGuard",
    "TenantGuardState",
    "get_request_context",
    "read_tenant_header",
    "require_tenant_id",
    "resolve_tenant_id",
]
