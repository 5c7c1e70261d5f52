"""Application layer for the Patients bounded context."""

from patients.application.services import PatientService

__all__ = ["PatientService"]
