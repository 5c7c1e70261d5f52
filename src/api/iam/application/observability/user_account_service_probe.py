"""Domain probe for user account registration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class UserAccountServiceProbe(Protocol):
    """Domain probe for UserAccountService operations."""

    def account_registered(
        self, account_id: str, email: str, tenant_id: str | None, roles: list[str]
    ) -> None:
        """Record that a new account was registered."""
        ...

    def registration_failed(self, email: str, reason: str) -> None:
        """Record that a registration was rejected."""
        ...

    def with_context(self, context: ObservationContext) -> UserAccountServiceProbe: ...


class DefaultUserAccountServiceProbe:
    """Default implementation of UserAccountServiceProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultUserAccountServiceProbe:
        return DefaultUserAccountServiceProbe(logger=self._logger, context=context)

    def account_registered(
        self, account_id: str, email: str, tenant_id: str | None, roles: list[str]
    ) -> None:
        """Record that a new account was registered."""
        self._logger.info(
            "user_account_registered",
            account_id=account_id,
            email=email,
            tenant_id=tenant_id,
            roles=roles,
            **self._get_context_kwargs(),
        )

    def registration_failed(self, email: str, reason: str) -> None:
        """Record that a registration was rejected."""
        self._logger.warning(
            "user_account_registration_failed",
            email=email,
            reason=reason,
            **self._get_context_kwargs(),
        )
