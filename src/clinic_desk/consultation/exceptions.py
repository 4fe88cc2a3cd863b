"""Custom exceptions for the consultation module."""

from clinic_desk.exceptions import ClinicDeskError


class ConsultationError(ClinicDeskError):
    """Base exception for consultation errors."""
    pass


class InvoiceLockedError(ConsultationError):
    """Raised when editing items after the visit has been closed."""

    def __init__(self, session_id, status: str):
        self.session_id = session_id
        self.status = status
        super().__init__(f"Treatment items for consultation {session_id} are locked ({status})")


class SessionClosedError(ConsultationError):
    """Raised when completing a consultation that is already completed."""

    def __init__(self, session_id):
        self.session_id = session_id
        super().__init__(f"Consultation {session_id} is already completed")
