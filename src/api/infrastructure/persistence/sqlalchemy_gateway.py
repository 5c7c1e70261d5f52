"""SQLAlchemy implementation of the persistence gateway.

Runs inside the caller's session and transaction; it flushes so that
database errors surface at the call site, and leaves committing to the
session owner.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.observability.probes import DefaultDatabaseProbe
from shared_kernel.exceptions import DownstreamError

if TYPE_CHECKING:
    from infrastructure.observability.probes import DatabaseProbe
    from shared_kernel.persistence import TenantFilter

ModelT = TypeVar("ModelT")


class SqlAlchemyPersistenceGateway:
    """Persistence gateway backed by an async SQLAlchemy session."""

    def __init__(
        self,
        session: AsyncSession,
        probe: DatabaseProbe | None = None,
    ):
        self._session = session
        self._probe = probe or DefaultDatabaseProbe()

    async def find(self, entity_type: type[ModelT], scope: TenantFilter) -> list[ModelT]:
        """Select all rows of ``entity_type`` matching ``scope``.

        Raises:
            ValueError: If the scope names a column the model does not have.
            DownstreamError: If the query fails.
        """
        stmt = select(entity_type)
        for column, value in scope.as_criteria().items():
            attribute = getattr(entity_type, column, None)
            if attribute is None:
                raise ValueError(f"{entity_type.__name__} has no column {column!r}")
            stmt = stmt.where(attribute == value)

        try:
            result = await self._session.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            self._probe.storage_operation_failed(
                operation="find", entity=entity_type.__name__, error=e
            )
            raise DownstreamError(
                f"Failed to query {entity_type.__name__}: {e}", operation="find"
            ) from e

        return list(result.scalars().all())

    async def save(self, record: Any) -> Any:
        """Add ``record`` to the session and flush it.

        Raises:
            DownstreamError: If the flush fails.
        """
        self._session.add(record)
        try:
            await self._session.flush()
        except (SQLAlchemyError, OSError) as e:
            self._probe.storage_operation_failed(
                operation="save", entity=type(record).__name__, error=e
            )
            raise DownstreamError(
                f"Failed to save {type(record).__name__}: {e}", operation="save"
            ) from e
        return record

    async def delete(self, record: Any) -> None:
        """Delete ``record`` and flush.

        Raises:
            DownstreamError: If the flush fails.
        """
        try:
            await self._session.delete(record)
            await self._session.flush()
        except (SQLAlchemyError, OSError) as e:
            self._probe.storage_operation_failed(
                operation="delete", entity=type(record).__name__, error=e
            )
            raise DownstreamError(
                f"Failed to delete {type(record).__name__}: {e}", operation="delete"
            ) from e
