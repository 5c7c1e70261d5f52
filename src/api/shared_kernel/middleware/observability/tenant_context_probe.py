"""Domain probe for tenant context resolution.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to resolving the clinic a request is
bound to.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantContextProbe(Protocol):
    """Domain probe for tenant context resolution operations."""

    def tenant_resolved(self, tenant_id: str, source: str) -> None:
        """Record that tenant context was resolved and attached to the request."""
        ...

    def tenant_header_missing(self, header_name: str) -> None:
        """Record that no tenant could be resolved for a tenant-scoped request."""
        ...

    def tenant_guard_replayed(self, state: str) -> None:
        """Record that the guard ran again on a request it already handled."""
        ...

    def with_context(self, context: ObservationContext) -> TenantContextProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantContextProbe:
    """Default implementation of TenantContextProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        kwargs = self._context.as_dict()
        # tenant_id is passed explicitly by the events below
        kwargs.pop("tenant_id", None)
        return kwargs

    def with_context(self, context: ObservationContext) -> DefaultTenantContextProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantContextProbe(logger=self._logger, context=context)

    def tenant_resolved(self, tenant_id: str, source: str) -> None:
        """Record that tenant context was resolved and attached to the request."""
        self._logger.debug(
            "tenant_context_resolved",
            tenant_id=tenant_id,
            source=source,
            **self._get_context_kwargs(),
        )

    def tenant_header_missing(self, header_name: str) -> None:
        """Record that no tenant could be resolved for a tenant-scoped request."""
        self._logger.warning(
            "tenant_context_header_missing",
            header_name=header_name,
            message=f"{header_name} header is required for tenant-scoped routes",
            **self._get_context_kwargs(),
        )

    def tenant_guard_replayed(self, state: str) -> None:
        self._logger.debug(
            "tenant_guard_replayed",
            state=state,
            **self._get_context_kwargs(),
        )
