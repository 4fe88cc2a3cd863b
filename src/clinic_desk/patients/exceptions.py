"""Exceptions for patients module."""

from clinic_desk.exceptions import ClinicDeskError


class PatientError(ClinicDeskError):
    """Base exception for patient errors."""

    pass


class RegistrationValidationError(PatientError):
    """Raised when walk-in registration input is invalid.

    `errors` maps field name to a list of messages.
    """

    def __init__(self, errors: dict):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid registration data: {fields}")


class PatientIdGenerationError(PatientError):
    """Raised when no unique patient id could be generated."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique patient id after {attempts} attempts")

