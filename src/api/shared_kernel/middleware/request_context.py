"""Per-request context.

A ``RequestContext`` is created by ``CorrelationIdMiddleware`` when a request
enters the application and stored on ``request.state``. Dependencies fill it
in as the request moves through the pipeline (principal, then tenant) and it
is dropped together with the request. Nothing in it is shared between
requests, so no locking is needed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from shared_kernel.observability_context import ObservationContext

if TYPE_CHECKING:
    from starlette.requests import Request

    from shared_kernel.auth.principal import Principal
    from shared_kernel.middleware.tenant_context import TenantContext

REQUEST_CONTEXT_STATE_KEY = "clinic_request_context"


class TenantGuardState(StrEnum):
    """States of the single-shot tenant guard."""

    NOT_RUN = "not_run"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class RequestContext:
    """Mutable bag of request-scoped values.

    Attributes:
        correlation_id: Identifier echoed in ``x-request-id``.
        logger: structlog logger bound to this request's correlation id,
            and to the tenant and subject once they are known.
        principal: Authenticated principal, if any.
        tenant: Resolved tenant, once the guard has run successfully.
        tenant_guard_state: Where the tenant guard is in its lifecycle.
        tenant_guard_error: The failure recorded by the guard, if any.
    """

    correlation_id: str
    logger: Any = None
    principal: Principal | None = None
    tenant: TenantContext | None = None
    tenant_guard_state: TenantGuardState = TenantGuardState.NOT_RUN
    tenant_guard_error: Exception | None = None

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = structlog.get_logger().bind(
                correlation_id=self.correlation_id
            )

    @property
    def tenant_id(self) -> str | None:
        return self.tenant.tenant_id if self.tenant is not None else None

    def observation(self) -> ObservationContext:
        """Build the ObservationContext handed to domain probes."""
        return ObservationContext(
            correlation_id=self.correlation_id,
            user_id=self.principal.subject if self.principal else None,
            tenant_id=self.tenant_id,
        )

    def bind_principal(self, principal: Principal) -> None:
        self.principal = principal
        self.logger = self.logger.bind(user_id=principal.subject)

    def bind_tenant(self, tenant: TenantContext) -> None:
        self.tenant = tenant
        self.tenant_guard_state = TenantGuardState.RESOLVED
        self.logger = self.logger.bind(tenant_id=tenant.tenant_id)


def attach_request_context(request: Request, context: RequestContext) -> None:
    """Store ``context`` on the request."""
    setattr(request.state, REQUEST_CONTEXT_STATE_KEY, context)


def get_request_context(request: Request) -> RequestContext:
    """Return the context created for ``request`` by the correlation middleware.

    Raises:
        RuntimeError: If the correlation middleware is not installed.
    """
    context = getattr(request.state, REQUEST_CONTEXT_STATE_KEY, None)
    if context is None:
        raise RuntimeError(
            "RequestContext missing: CorrelationIdMiddleware is not installed"
        )
    return context
