"""Protocol for authentication observability.

Defines the interface for domain probes that capture authentication and
authorization events in the principal dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AuthenticationProbe(Protocol):
    """Domain probe for request authentication operations."""

    def user_authenticated(self, subject: str, tenant_id: str | None) -> None:
        """Record successful authentication via bearer credential."""
        ...

    def authentication_failed(self, reason: str) -> None:
        """Record authentication failure."""
        ...

    def authorization_denied(self, subject: str, required_roles: list[str]) -> None:
        """Record that a principal lacked every role a route requires."""
        ...

    def with_context(self, context: ObservationContext) -> AuthenticationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAuthenticationProbe:
    """Default implementation of AuthenticationProbe using structlog."""

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
        kwargs.pop("tenant_id", None)
        return kwargs

    def with_context(self, context: ObservationContext) -> DefaultAuthenticationProbe:
        """Create a new probe with observation context bound."""
        return DefaultAuthenticationProbe(logger=self._logger, context=context)

    def user_authenticated(self, subject: str, tenant_id: str | None) -> None:
        """Record successful authentication via bearer credential."""
        self._logger.debug(
            "user_authenticated",
            subject=subject,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def authentication_failed(self, reason: str) -> None:
        """Record authentication failure."""
        self._logger.warning(
            "authentication_failed",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def authorization_denied(self, subject: str, required_roles: list[str]) -> None:
        self._logger.warning(
            "authorization_denied",
            subject=subject,
            required_roles=required_roles,
            **self._get_context_kwargs(),
        )
