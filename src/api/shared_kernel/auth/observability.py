"""Domain probe for credential operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events related to issuing, validating and refreshing
signed credentials.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class CredentialProbe(Protocol):
    """Domain probe for credential operations."""

    def credential_issued(self, subject: str, tenant_id: str | None) -> None:
        """Record that an access credential was issued."""
        ...

    def credential_validated(self, subject: str, tenant_id: str | None) -> None:
        """Record that a credential was successfully validated."""
        ...

    def credential_validation_failed(self, reason: str) -> None:
        """Record that credential validation failed."""
        ...

    def tenant_mismatch(
        self,
        subject: str,
        expected_tenant_id: str,
        credential_tenant_id: str | None,
    ) -> None:
        """Record a credential presented for a clinic it was not issued for."""
        ...

    def refresh_token_issued(self, subject: str) -> None:
        """Record that a refresh token was issued."""
        ...

    def credential_refreshed(self, subject: str) -> None:
        """Record that a refresh token was exchanged for a new credential."""
        ...

    def refresh_failed(self, reason: str) -> None:
        """Record that a refresh attempt was rejected."""
        ...

    def refresh_token_revoked(self, revoked: bool) -> None:
        """Record a logout revoking a refresh token."""
        ...

    def with_context(self, context: ObservationContext) -> CredentialProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultCredentialProbe:
    """Default implementation of CredentialProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultCredentialProbe:
        """Create a new probe with observation context bound."""
        return DefaultCredentialProbe(logger=self._logger, context=context)

    def credential_issued(self, subject: str, tenant_id: str | None) -> None:
        self._logger.info(
            "credential_issued",
            subject=subject,
            credential_tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def credential_validated(self, subject: str, tenant_id: str | None) -> None:
        self._logger.debug(
            "credential_validated",
            subject=subject,
            credential_tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def credential_validation_failed(self, reason: str) -> None:
        self._logger.warning(
            "credential_validation_failed",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def tenant_mismatch(
        self,
        subject: str,
        expected_tenant_id: str,
        credential_tenant_id: str | None,
    ) -> None:
        """Warn about a possible attempt to cross a tenant boundary."""
        self._logger.warning(
            "credential_tenant_mismatch",
            subject=subject,
            expected_tenant_id=expected_tenant_id,
            credential_tenant_id=credential_tenant_id,
            **self._get_context_kwargs(),
        )

    def refresh_token_issued(self, subject: str) -> None:
        self._logger.debug(
            "refresh_token_issued",
            subject=subject,
            **self._get_context_kwargs(),
        )

    def credential_refreshed(self, subject: str) -> None:
        self._logger.info(
            "credential_refreshed",
            subject=subject,
            **self._get_context_kwargs(),
        )

    def refresh_failed(self, reason: str) -> None:
        self._logger.warning(
            "credential_refresh_failed",
            reason=reason,
            **self._get_context_kwargs(),
        )

    def refresh_token_revoked(self, revoked: bool) -> None:
        self._logger.info(
            "refresh_token_revoked",
            revoked=revoked,
            **self._get_context_kwargs(),
        )
