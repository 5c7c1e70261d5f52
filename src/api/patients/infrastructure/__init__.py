"""Infrastructure for the Patients bounded context."""
