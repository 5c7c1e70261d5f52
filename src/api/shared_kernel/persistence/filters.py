"""Tenant filter predicate."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from shared_kernel.tenancy import TenantId

TENANT_COLUMN = "tenant_id"


@dataclass(frozen=True)
class TenantFilter:
    """Equality predicate that always includes the tenant.

    The tenant is mandatory and must already be a validated ``TenantId``.
    Additional criteria are AND-combined with it and may not name the
    tenant column themselves.

    Example:
        scope = TenantFilter(TenantId("CLINICA_1"), {"name": "Ana"})
        scope.as_criteria()  # {"tenant_id": "CLINICA_1", "name": "Ana"}
    """

    tenant_id: TenantId
    criteria: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.tenant_id, TenantId):
            raise TypeError(
                "TenantFilter requires a TenantId, "
                f"got {type(self.tenant_id).__name__}"
            )
        if TENANT_COLUMN in self.criteria:
            raise ValueError(f"{TENANT_COLUMN} cannot be overridden by criteria")
        object.__setattr__(self, "criteria", MappingProxyType(dict(self.criteria)))

    def __hash__(self) -> int:
        return hash((self.tenant_id, tuple(sorted(self.criteria.items()))))

    def as_criteria(self) -> dict[str, Any]:
        """Return the full predicate as column/value pairs."""
        return {TENANT_COLUMN: self.tenant_id.value, **self.criteria}

    def matches(self, record: Any) -> bool:
        """True if ``record`` satisfies every column/value pair."""
        return all(
            getattr(record, column, None) == value
            for column, value in self.as_criteria().items()
        )
