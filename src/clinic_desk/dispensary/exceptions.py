"""Dispensary-specific exceptions."""

from clinic_desk.exceptions import ClinicDeskError


class DispensaryError(ClinicDeskError):
    """Base exception for dispensary errors."""

    pass


class PaymentValidationError(DispensaryError):
    """Raised when a payment cannot be recorded or voided."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)
