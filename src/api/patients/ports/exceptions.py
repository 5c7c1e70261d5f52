"""Domain exceptions for the Patients bounded context."""


class PatientNotFoundError(Exception):
    """Raised when a patient does not exist for the current clinic.

    A patient of another clinic is reported the same way; callers cannot
    tell whether the id exists elsewhere.
    """

    def __init__(self, patient_id: str):
        super().__init__(f"Patient {patient_id} not found")
        self.patient_id = patient_id
