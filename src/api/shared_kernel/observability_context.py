"""Observation context for domain-oriented observability.

Observation contexts collect request-scoped metadata (correlation id, tenant,
authenticated subject) that every probe attaches to its log events. The
context is passed explicitly to probes via ``with_context`` so concurrent
requests never share logging state.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Attributes:
        correlation_id: Identifier of the current request, echoed to callers
            in the ``x-request-id`` response header.
        user_id: Subject of the authenticated principal (if any).
        tenant_id: Resolved clinic identifier (if any).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(correlation_id="req-123", tenant_id="CLINICA_1")
        probe = DefaultTenantContextProbe().with_context(context)
    """

    correlation_id: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.correlation_id is not None:
            result["correlation_id"] = self.correlation_id
        if self.user_id is not None:
            result["user_id"] = self.user_id
        if self.tenant_id is not None:
            result["tenant_id"] = self.tenant_id
        result.update(self.extra)
        return result

    def with_tenant(self, tenant_id: str) -> ObservationContext:
        """Create a new context with the tenant set."""
        return replace(self, tenant_id=tenant_id)

    def with_user(self, user_id: str) -> ObservationContext:
        """Create a new context with the authenticated subject set."""
        return replace(self, user_id=user_id)

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return replace(self, extra={**self.extra, **kwargs})
