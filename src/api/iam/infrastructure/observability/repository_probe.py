"""Domain probe for IAM repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to user account persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class UserAccountRepositoryProbe(Protocol):
    """Domain probe for user account repository operations."""

    def account_saved(self, account_id: str, email: str) -> None:
        """Record that an account was successfully saved."""
        ...

    def account_retrieved(self, account_id: str) -> None:
        """Record that an account was retrieved."""
        ...

    def account_not_found(self, lookup: str) -> None:
        """Record that an account was not found."""
        ...

    def duplicate_email(self, email: str) -> None:
        """Record that a save was rejected because the email is taken."""
        ...

    def with_context(self, context: ObservationContext) -> UserAccountRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultUserAccountRepositoryProbe:
    """Default implementation of UserAccountRepositoryProbe using structlog."""

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
        return self._context.as_dict()

    def with_context(
        self, context: ObservationContext
    ) -> DefaultUserAccountRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultUserAccountRepositoryProbe(logger=self._logger, context=context)

    def account_saved(self, account_id: str, email: str) -> None:
        """Record that an account was successfully saved."""
        self._logger.info(
            "user_account_saved",
            account_id=account_id,
            email=email,
            **self._get_context_kwargs(),
        )

    def account_retrieved(self, account_id: str) -> None:
        self._logger.debug(
            "user_account_retrieved",
            account_id=account_id,
            **self._get_context_kwargs(),
        )

    def account_not_found(self, lookup: str) -> None:
        self._logger.debug(
            "user_account_not_found",
            lookup=lookup,
            **self._get_context_kwargs(),
        )

    def duplicate_email(self, email: str) -> None:
        self._logger.warning(
            "user_account_duplicate_email",
            email=email,
            **self._get_context_kwargs(),
        )
