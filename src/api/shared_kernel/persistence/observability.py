"""Domain probe for tenant-scoped persistence.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class RepositoryProbe(Protocol):
    """Domain probe for tenant-scoped repository operations."""

    def records_listed(self, entity: str, tenant_id: str, count: int) -> None: ...

    def record_added(self, entity: str, tenant_id: str, record_id: Any) -> None: ...

    def record_updated(self, entity: str, tenant_id: str, record_id: Any) -> None: ...

    def record_deleted(self, entity: str, tenant_id: str, record_id: Any) -> None: ...

    def cross_tenant_record_detected(
        self, entity: str, tenant_id: str, record_tenant_id: Any
    ) -> None:
        """Record that storage returned a record outside the tenant filter."""
        ...

    def with_context(self, context: ObservationContext) -> RepositoryProbe: ...


class DefaultRepositoryProbe:
    """Default implementation of RepositoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultRepositoryProbe:
        return DefaultRepositoryProbe(logger=self._logger, context=context)

    def records_listed(self, entity: str, tenant_id: str, count: int) -> None:
        self._logger.debug(
            "tenant_records_listed",
            entity=entity,
            tenant_id=tenant_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def record_added(self, entity: str, tenant_id: str, record_id: Any) -> None:
        self._logger.info(
            "tenant_record_added",
            entity=entity,
            tenant_id=tenant_id,
            record_id=str(record_id),
            **self._get_context_kwargs(),
        )

    def record_updated(self, entity: str, tenant_id: str, record_id: Any) -> None:
        self._logger.info(
            "tenant_record_updated",
            entity=entity,
            tenant_id=tenant_id,
            record_id=str(record_id),
            **self._get_context_kwargs(),
        )

    def record_deleted(self, entity: str, tenant_id: str, record_id: Any) -> None:
        self._logger.info(
            "tenant_record_deleted",
            entity=entity,
            tenant_id=tenant_id,
            record_id=str(record_id),
            **self._get_context_kwargs(),
        )

    def cross_tenant_record_detected(
        self, entity: str, tenant_id: str, record_tenant_id: Any
    ) -> None:
        self._logger.error(
            "tenant_cross_tenant_record_detected",
            entity=entity,
            tenant_id=tenant_id,
            record_tenant_id=record_tenant_id,
            **self._get_context_kwargs(),
        )
