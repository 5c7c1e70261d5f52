"""Patient application service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ulid import ULID

from patients.infrastructure.models import PatientModel
from patients.ports.exceptions import PatientNotFoundError
from shared_kernel.persistence import TenantScopedRepository

# Columns a client may change after creation
UPDATABLE_FIELDS = frozenset({"name", "phone", "email"})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PatientService:
    """Application service for patient records of one clinic.

    The service never sees a tenant identifier; the repository it is given
    is already bound to the request's clinic.
    """

    def __init__(self, repository: TenantScopedRepository[PatientModel]):
        self._repository = repository

    @property
    def tenant_id(self) -> str:
        return self._repository.tenant_id.value

    async def list_patients(self, name: str | None = None) -> list[PatientModel]:
        """List this clinic's patients, optionally only those named ``name``.

        Results are ordered by id, which is creation order.
        """
        criteria: dict[str, Any] = {}
        if name is not None:
            criteria["name"] = name
        patients = await self._repository.list(**criteria)
        return sorted(patients, key=lambda patient: patient.id)

    async def create_patient(
        self,
        name: str,
        phone: str | None = None,
        email: str | None = None,
    ) -> PatientModel:
        """Create a patient in this clinic.

        Raises:
            ValueError: If name is blank.
        """
        if not name.strip():
            raise ValueError("name must not be empty")

        now = _utc_now()
        patient = PatientModel(
            id=str(ULID()),
            name=name.strip(),
            phone=phone,
            email=email,
            created_at=now,
            updated_at=now,
        )
        return await self._repository.add(patient)

    async def get_patient(self, patient_id: str) -> PatientModel:
        """Get a patient of this clinic.

        Raises:
            PatientNotFoundError: If no such patient exists in this clinic.
        """
        patient = await self._repository.get(patient_id)
        if patient is None:
            raise PatientNotFoundError(patient_id)
        return patient

    async def update_patient(self, patient_id: str, **changes: Any) -> PatientModel:
        """Apply ``changes`` to a patient of this clinic.

        Raises:
            ValueError: If a field cannot be changed or the new name is blank.
            PatientNotFoundError: If no such patient exists in this clinic.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update {', '.join(sorted(unknown))}")
        if "name" in changes:
            if changes["name"] is None or not changes["name"].strip():
                raise ValueError("name must not be empty")
            changes["name"] = changes["name"].strip()

        patient = await self._repository.update(
            patient_id, **changes, updated_at=_utc_now()
        )
        if patient is None:
            raise PatientNotFoundError(patient_id)
        return patient

    async def delete_patient(self, patient_id: str) -> None:
        """Delete a patient of this clinic.

        Raises:
            PatientNotFoundError: If no such patient exists in this clinic.
        """
        if not await self._repository.delete(patient_id):
            raise PatientNotFoundError(patient_id)
