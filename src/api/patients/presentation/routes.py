"""HTTP routes for the Patients bounded context.

Every route requires an authenticated principal and a resolved clinic.
A patient belonging to another clinic is reported as 404, never 403.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from iam.dependencies.authentication import require_principal, require_roles
from iam.domain.value_objects import Role
from patients.application import PatientService
from patients.dependencies import get_patient_service
from patients.ports.exceptions import PatientNotFoundError
from patients.presentation.models import (
    CreatePatientRequest,
    PatientListResponse,
    PatientResponse,
    UpdatePatientRequest,
)

router = APIRouter(
    prefix="/patients",
    tags=["patients"],
    dependencies=[Depends(require_principal)],
)


@router.get("")
async def list_patients(
    service: Annotated[PatientService, Depends(get_patient_service)],
    name: str | None = None,
) -> PatientListResponse:
    """List the clinic's patients, optionally filtered by exact name."""
    patients = await service.list_patients(name=name)
    return PatientListResponse(
        patients=[PatientResponse.from_model(patient) for patient in patients],
        count=len(patients),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_patient(
    request: CreatePatientRequest,
    service: Annotated[PatientService, Depends(get_patient_service)],
) -> PatientResponse:
    """Create a patient in the caller's clinic."""
    try:
        patient = await service.create_patient(
            name=request.name,
            phone=request.phone,
            email=request.email,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    return PatientResponse.from_model(patient)


@router.get("/{patient_id}")
async def get_patient(
    patient_id: str,
    service: Annotated[PatientService, Depends(get_patient_service)],
) -> PatientResponse:
    """Get a patient of the caller's clinic."""
    try:
        patient = await service.get_patient(patient_id)
    except PatientNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    return PatientResponse.from_model(patient)


@router.patch("/{patient_id}")
async def update_patient(
    patient_id: str,
    request: UpdatePatientRequest,
    service: Annotated[PatientService, Depends(get_patient_service)],
) -> PatientResponse:
    """Update the fields sent for a patient of the caller's clinic."""
    try:
        patient = await service.update_patient(
            patient_id, **request.model_dump(exclude_unset=True)
        )
    except PatientNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    return PatientResponse.from_model(patient)


@router.delete(
    "/{patient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(Role.ADMIN))],
)
async def delete_patient(
    patient_id: str,
    service: Annotated[PatientService, Depends(get_patient_service)],
) -> None:
    """Delete a patient of the caller's clinic (admin only)."""
    try:
        await service.delete_patient(patient_id)
    except PatientNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e
