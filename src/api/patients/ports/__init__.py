"""Ports for the Patients bounded context."""

from patients.ports.exceptions import PatientNotFoundError

__all__ = ["PatientNotFoundError"]
