"""Patients presentation layer."""

from patients.presentation.routes import router

__all__ = ["router"]
