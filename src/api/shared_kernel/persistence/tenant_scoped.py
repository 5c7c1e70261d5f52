"""Tenant-scoped repository.

The tenant is fixed when the repository is constructed, normally from the
tenant the request's guard resolved. Every read builds a ``TenantFilter``
for that tenant; every write stamps it. A repository for clinic A can
neither see nor modify records of clinic B.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from shared_kernel.exceptions import DownstreamError
from shared_kernel.persistence.filters import TENANT_COLUMN, TenantFilter
from shared_kernel.persistence.observability import DefaultRepositoryProbe
from shared_kernel.tenancy import TenantId

if TYPE_CHECKING:
    from shared_kernel.persistence.observability import RepositoryProbe
    from shared_kernel.persistence.ports import PersistenceGateway

ModelT = TypeVar("ModelT")

# Columns that identify a record and may not be changed by update()
_IMMUTABLE_COLUMNS = frozenset({"id", TENANT_COLUMN})


class TenantScopedRepository(Generic[ModelT]):
    """Repository bound to a single tenant.

    Args:
        gateway: Storage collaborator.
        entity_type: Model class handled by this repository. Instances must
            expose ``id`` and ``tenant_id`` attributes.
        tenant_id: The tenant every operation is restricted to.
        probe: Domain probe for observability.

    Raises:
        TypeError: If ``tenant_id`` is not a ``TenantId``.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        entity_type: type[ModelT],
        tenant_id: TenantId,
        probe: RepositoryProbe | None = None,
    ):
        if not isinstance(tenant_id, TenantId):
            raise TypeError(
                "TenantScopedRepository requires a TenantId, "
                f"got {type(tenant_id).__name__}"
            )
        self._gateway = gateway
        self._entity_type = entity_type
        self._tenant_id = tenant_id
        self._probe = probe or DefaultRepositoryProbe()

    @property
    def tenant_id(self) -> TenantId:
        return self._tenant_id

    @property
    def _entity_name(self) -> str:
        return self._entity_type.__name__

    async def list(self, **criteria: Any) -> list[ModelT]:
        """Return this tenant's records matching ``criteria`` (AND of equalities)."""
        records = await self._find(criteria)
        self._probe.records_listed(
            entity=self._entity_name,
            tenant_id=self._tenant_id.value,
            count=len(records),
        )
        return records

    async def get(self, record_id: Any) -> ModelT | None:
        """Return the record with ``record_id`` if it belongs to this tenant."""
        records = await self._find({"id": record_id})
        return records[0] if records else None

    async def add(self, record: ModelT) -> ModelT:
        """Stamp ``record`` with this tenant and persist it.

        Raises:
            ValueError: If the record already belongs to another tenant.
        """
        existing = getattr(record, TENANT_COLUMN, None)
        if existing is not None and existing != self._tenant_id.value:
            raise ValueError(
                f"{self._entity_name} belongs to another tenant and cannot be added"
            )

        setattr(record, TENANT_COLUMN, self._tenant_id.value)
        saved = await self._gateway.save(record)
        self._probe.record_added(
            entity=self._entity_name,
            tenant_id=self._tenant_id.value,
            record_id=getattr(saved, "id", None),
        )
        return saved

    async def update(self, record_id: Any, **values: Any) -> ModelT | None:
        """Apply ``values`` to this tenant's record with ``record_id``.

        Returns:
            The updated record, or None if no such record exists for this tenant.

        Raises:
            ValueError: If ``values`` tries to change ``id`` or ``tenant_id``.
        """
        forbidden = _IMMUTABLE_COLUMNS.intersection(values)
        if forbidden:
            raise ValueError(f"Cannot update {', '.join(sorted(forbidden))}")

        record = await self.get(record_id)
        if record is None:
            return None

        for column, value in values.items():
            setattr(record, column, value)

        saved = await self._gateway.save(record)
        self._probe.record_updated(
            entity=self._entity_name,
            tenant_id=self._tenant_id.value,
            record_id=record_id,
        )
        return saved

    async def delete(self, record_id: Any) -> bool:
        """Delete this tenant's record with ``record_id``.

        Returns:
            True if a record was deleted, False if none was found for this tenant.
        """
        record = await self.get(record_id)
        if record is None:
            return False

        await self._gateway.delete(record)
        self._probe.record_deleted(
            entity=self._entity_name,
            tenant_id=self._tenant_id.value,
            record_id=record_id,
        )
        return True

    async def _find(self, criteria: dict[str, Any]) -> list[ModelT]:
        scope = TenantFilter(tenant_id=self._tenant_id, criteria=criteria)
        records = await self._gateway.find(self._entity_type, scope)

        for record in records:
            record_tenant_id = getattr(record, TENANT_COLUMN, None)
            if record_tenant_id != self._tenant_id.value:
                self._probe.cross_tenant_record_detected(
                    entity=self._entity_name,
                    tenant_id=self._tenant_id.value,
                    record_tenant_id=record_tenant_id,
                )
                raise DownstreamError(
                    f"{self._entity_name} query returned a record outside the tenant filter",
                    operation="tenant_scoped_find",
                )

        return list(records)
