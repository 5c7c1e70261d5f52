"""Domain probe for application startup and lifecycle events.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events during application initialization and shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class StartupProbe(Protocol):
    """Domain probe for application startup operations."""

    def application_started(
        self, app_name: str, version: str, storage_backend: str, single_tenant_mode: bool
    ) -> None:
        """Record that the application finished starting."""
        ...

    def application_stopped(self, app_name: str) -> None:
        """Record that the application shut down."""
        ...

    def bootstrap_admin_created(self, email: str, tenant_id: str | None) -> None:
        """Record that the bootstrap admin account was created at startup."""
        ...

    def bootstrap_admin_already_exists(self, email: str) -> None:
        """Record that the bootstrap admin account already existed."""
        ...

    def with_context(self, context: ObservationContext) -> StartupProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStartupProbe:
    """Default implementation of StartupProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultStartupProbe:
        """Create a new probe with observation context bound."""
        return DefaultStartupProbe(logger=self._logger, context=context)

    def application_started(
        self, app_name: str, version: str, storage_backend: str, single_tenant_mode: bool
    ) -> None:
        self._logger.info(
            "application_started",
            app_name=app_name,
            version=version,
            storage_backend=storage_backend,
            single_tenant_mode=single_tenant_mode,
            **self._get_context_kwargs(),
        )

    def application_stopped(self, app_name: str) -> None:
        self._logger.info(
            "application_stopped",
            app_name=app_name,
            **self._get_context_kwargs(),
        )

    def bootstrap_admin_created(self, email: str, tenant_id: str | None) -> None:
        """Record that the bootstrap admin account was created at startup."""
        self._logger.info(
            "bootstrap_admin_created",
            email=email,
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def bootstrap_admin_already_exists(self, email: str) -> None:
        """Record that the bootstrap admin account already existed."""
        self._logger.info(
            "bootstrap_admin_already_exists",
            email=email,
            **self._get_context_kwargs(),
        )
