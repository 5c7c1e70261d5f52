"""Tenant-scoped persistence.

Every read and write of a tenant-scoped record goes through a
``TenantScopedRepository``, which is constructed with the tenant the request
is bound to. A query without the tenant filter cannot be expressed through
it.
"""

from shared_kernel.persistence.filters import TenantFilter
from shared_kernel.persistence.observability import (
    DefaultRepositoryProbe,
    RepositoryProbe,
)
from shared_kernel.persistence.ports import PersistenceGateway
from shared_kernel.persistence.tenant_scoped import TenantScopedRepository

__all__ = [
    "DefaultRepositoryProbe",
    "PersistenceGateway",
    "RepositoryProbe",
    "TenantFilter",
    "TenantScopedRepository",
]
