"""Tenant identity shared across bounded contexts."""

from shared_kernel.tenancy.value_objects import TenantId

__all__ = ["TenantId"]
