"""In-memory persistence gateway.

Process-local storage for development and tests. Records are kept by
identity; the gateway holds no lock because every operation completes
without awaiting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from shared_kernel.persistence import TenantFilter

ModelT = TypeVar("ModelT")


class InMemoryPersistenceGateway:
    """Persistence gateway keeping records in a dict keyed by type and id."""

    def __init__(self) -> None:
        self._records: dict[tuple[type, Any], Any] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def find(self, entity_type: type[ModelT], scope: TenantFilter) -> list[ModelT]:
        return [
            record
            for (record_type, _), record in self._records.items()
            if record_type is entity_type and scope.matches(record)
        ]

    async def save(self, record: Any) -> Any:
        """Store ``record``.

        Raises:
            ValueError: If the record has no id.
        """
        record_id = getattr(record, "id", None)
        if record_id is None:
            raise ValueError(f"{type(record).__name__} must have an id before saving")
        self._records[(type(record), record_id)] = record
        return record

    async def delete(self, record: Any) -> None:
        self._records.pop((type(record), getattr(record, "id", None)), None)

    def clear(self) -> None:
        self._records.clear()
