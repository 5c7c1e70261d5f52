"""Domain probe for login, refresh and logout."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AuthServiceProbe(Protocol):
    """Domain probe for AuthService operations."""

    def login_succeeded(self, account_id: str, tenant_id: str | None) -> None: ...

    def login_failed(self, email: str, reason: str) -> None:
        """Record a rejected login. ``reason`` is logged, never returned to clients."""
        ...

    def refresh_rejected(self, subject: str, reason: str) -> None:
        """Record a valid refresh token refused because of its account."""
        ...

    def logged_out(self, revoked: bool) -> None: ...

    def with_context(self, context: ObservationContext) -> AuthServiceProbe: ...


class DefaultAuthServiceProbe:
    """Default implementation of AuthServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        kwargs = self._context.as_dict()
        kwargs.pop("tenant_id", None)
        return kwargs

    def with_context(self, context: ObservationContext) -> DefaultAuthServiceProbe:
        return DefaultAuthServiceProbe(logger=self._logger, context=context)

    def login_succeeded(self, account_id: str, tenant_id: str | None) -> None:
        self._logger.info(
            "login_succeeded",
            account_id=account_id,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def login_failed(self, email: str, reason: str) -> None:
        self._logger.warning(
            "login_failed",
            email=email,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def refresh_rejected(self, subject: str, reason: str) -> None:
        self._logger.warning(
            "refresh_rejected",
            subject=subject,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def logged_out(self, revoked: bool) -> None:
        self._logger.info(
            "logged_out",
            revoked=revoked,
            **self._get_context_kwargs(),
        )
