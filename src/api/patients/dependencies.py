"""FastAPI dependencies for the Patients bounded context."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from iam.dependencies.tenant_context import get_tenant_context
from infrastructure.database.dependencies import get_persistence_gateway
from patients.application import PatientService
from patients.infrastructure.models import PatientModel
from shared_kernel.middleware import TenantContext, get_request_context
from shared_kernel.persistence import (
    DefaultRepositoryProbe,
    PersistenceGateway,
    TenantScopedRepository,
)
from shared_kernel.tenancy import TenantId


def get_patient_repository(
    request: Request,
    tenant: Annotated[TenantContext, Depends(get_tenant_context)],
    gateway: Annotated[PersistenceGateway, Depends(get_persistence_gateway)],
) -> TenantScopedRepository[PatientModel]:
    """Build the patient repository for the request's clinic.

    ``tenant`` is declared before ``gateway`` so a request without a clinic
    is rejected before any storage resource is acquired.
    """
    context = get_request_context(request)
    return TenantScopedRepository(
        gateway=gateway,
        entity_type=PatientModel,
        tenant_id=TenantId.from_string(tenant.tenant_id),
        probe=DefaultRepositoryProbe().with_context(context.observation()),
    )


def get_patient_service(
    repository: Annotated[
        TenantScopedRepository[PatientModel], Depends(get_patient_repository)
    ],
) -> PatientService:
    """Get PatientService instance scoped to the request's clinic."""
    return PatientService(repository=repository)
