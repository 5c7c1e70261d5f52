"""Persistence port used by tenant-scoped repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from shared_kernel.persistence.filters import TenantFilter

ModelT = TypeVar("ModelT")


@runtime_checkable
class PersistenceGateway(Protocol):
    """Storage collaborator behind ``TenantScopedRepository``.

    Implementations only ever receive reads that carry a ``TenantFilter``.
    Storage failures must surface as ``DownstreamError``.
    """

    async def find(self, entity_type: type[ModelT], scope: TenantFilter) -> list[ModelT]:
        """Return all records of ``entity_type`` matching ``scope``."""
        ...

    async def save(self, record: Any) -> Any:
        """Insert or update ``record`` and return it."""
        ...

    async def delete(self, record: Any) -> None:
        """Remove ``record``."""
        ...
