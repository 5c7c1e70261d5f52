"""Tenant context value object for resolved tenant identification.

This module contains the pure value object that represents a resolved
tenant context. It is framework-agnostic and contains no business logic,
making it safe for the shared kernel.

Resolution (header lookup, principal fallback) lives in
``shared_kernel.middleware.tenant_resolver``; the per-request gate that
attaches the result to the request lives in
``shared_kernel.middleware.tenant_guard``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

TenantSource = Literal["header", "principal", "default"]


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for the current request.

    Attributes:
        tenant_id: The validated clinic identifier.
        source: How the tenant was resolved - 'header' if from x-clinic-id,
            'principal' if taken from the authenticated credential,
            'default' if auto-selected in single-tenant mode.
    """

    tenant_id: str
    source: TenantSource
