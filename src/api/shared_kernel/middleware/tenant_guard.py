"""Tenant guard: the request-pipeline gate for tenant-scoped routes.

The guard runs at most once per request. Its state lives on the request's
``RequestContext``:

    NOT_RUN --resolve ok--> RESOLVED   (tenant attached, request proceeds)
    NOT_RUN --no tenant---> FAILED     (client error, request aborted)

Both outcomes are terminal. Running the guard again on the same request
returns the cached tenant or re-raises the recorded failure without
re-deriving anything. A failed resolution is a client error, so there is
no retry.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from shared_kernel.exceptions import MissingTenantError
from shared_kernel.middleware.observability.tenant_context_probe import (
    DefaultTenantContextProbe,
)
from shared_kernel.middleware.request_context import TenantGuardState
from shared_kernel.middleware.tenant_context import TenantContext
from shared_kernel.middleware.tenant_resolver import (
    DEFAULT_TENANT_HEADER,
    require_tenant_id,
)
from shared_kernel.tenancy import TenantId

if TYPE_CHECKING:
    from shared_kernel.middleware.observability.tenant_context_probe import (
        TenantContextProbe,
    )
    from shared_kernel.middleware.request_context import RequestContext


class TenantGuard:
    """Resolves and pins the tenant for a request.

    One instance serves the whole application; all per-request state is kept
    on the ``RequestContext`` passed to ``resolve``.
    """

    def __init__(
        self,
        header_name: str = DEFAULT_TENANT_HEADER,
        single_tenant_mode: bool = False,
        default_tenant_id: str | None = None,
        probe: TenantContextProbe | None = None,
    ):
        """Initialize the guard.

        Args:
            header_name: Canonical tenant header.
            single_tenant_mode: Opt-in fallback to ``default_tenant_id`` when
                a request carries no tenant.
            default_tenant_id: Tenant used in single-tenant mode.
            probe: Domain probe for observability.

        Raises:
            ValueError: If single-tenant mode is on without a default tenant.
        """
        if single_tenant_mode and not default_tenant_id:
            raise ValueError("single_tenant_mode requires default_tenant_id")

        self._header_name = header_name
        self._single_tenant_mode = single_tenant_mode
        self._default_tenant_id = (
            TenantId.from_string(default_tenant_id).value
            if single_tenant_mode and default_tenant_id
            else None
        )
        self._probe = probe or DefaultTenantContextProbe()

    @property
    def header_name(self) -> str:
        return self._header_name

    def resolve(
        self,
        context: RequestContext,
        headers: Mapping[str, str],
    ) -> TenantContext:
        """Run the guard for the request owning ``context``.

        Args:
            context: The request's context; the principal, if any, must
                already be bound.
            headers: The request's headers.

        Returns:
            The resolved TenantContext, also attached to ``context``.

        Raises:
            MissingTenantError: If no tenant can be resolved (now or on the
                first run for this request).
        """
        probe = self._probe.with_context(context.observation())

        if context.tenant_guard_state is TenantGuardState.RESOLVED:
            probe.tenant_guard_replayed(state=context.tenant_guard_state.value)
            assert context.tenant is not None
            return context.tenant

        if context.tenant_guard_state is TenantGuardState.FAILED:
            probe.tenant_guard_replayed(state=context.tenant_guard_state.value)
            assert context.tenant_guard_error is not None
            raise context.tenant_guard_error

        try:
            tenant = require_tenant_id(
                headers,
                principal=context.principal,
                header_name=self._header_name,
            )
        except MissingTenantError as e:
            if self._default_tenant_id is None:
                context.tenant_guard_state = TenantGuardState.FAILED
                context.tenant_guard_error = e
                probe.tenant_header_missing(header_name=self._header_name)
                raise
            tenant = TenantContext(tenant_id=self._default_tenant_id, source="default")

        context.bind_tenant(tenant)
        probe.tenant_resolved(tenant_id=tenant.tenant_id, source=tenant.source)
        return tenant
