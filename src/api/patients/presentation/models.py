"""Pydantic models for patient API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from patients.infrastructure.models import PatientModel
from shared_kernel.sanitization import sanitize_input


class CreatePatientRequest(BaseModel):
    """Request model for creating a patient in the caller's clinic."""

    name: str = Field(..., description="Patient name", max_length=255)
    phone: str | None = Field(default=None, description="Phone number", max_length=32)
    email: str | None = Field(default=None, description="Email address", max_length=320)

    @field_validator("name", "phone", "email", mode="before")
    @classmethod
    def sanitize_text_fields(cls, value: Any) -> Any:
        return sanitize_input(value)


class UpdatePatientRequest(BaseModel):
    """Request model for updating a patient. Only fields sent are changed."""

    name: str | None = Field(default=None, description="Patient name", max_length=255)
    phone: str | None = Field(default=None, description="Phone number", max_length=32)
    email: str | None = Field(default=None, description="Email address", max_length=320)

    @field_validator("name", "phone", "email", mode="before")
    @classmethod
    def sanitize_text_fields(cls, value: Any) -> Any:
        return sanitize_input(value)


class PatientResponse(BaseModel):
    """Response model for a patient."""

    id: str = Field(..., description="Patient ID (ULID format)")
    tenant_id: str = Field(..., description="Clinic the patient belongs to")
    name: str = Field(..., description="Patient name")
    phone: str | None = Field(default=None, description="Phone number")
    email: str | None = Field(default=None, description="Email address")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_model(cls, patient: PatientModel) -> PatientResponse:
        """Convert a PatientModel to an API response."""
        return cls(
            id=patient.id,
            tenant_id=patient.tenant_id,
            name=patient.name,
            phone=patient.phone,
            email=patient.email,
            created_at=patient.created_at,
            updated_at=patient.updated_at,
        )


class PatientListResponse(BaseModel):
    """Response model for listing patients."""

    patients: list[PatientResponse] = Field(..., description="Patients of the clinic")
    count: int = Field(..., description="Number of patients returned")
