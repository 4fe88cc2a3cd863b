"""Custom exceptions for the patient queue."""

from clinic_desk.exceptions import ClinicDeskError


class QueueError(ClinicDeskError):
    """Base exception for queue errors."""
    pass


class InvalidQueueTransition(QueueError):
    """Raised when a status change is not an edge of the queue graph."""

    def __init__(self, from_status: str, to_status: str, reason: str = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason or f"Cannot transition from '{from_status}' to '{to_status}'"
        super().__init__(self.reason)


class StaleQueueEntryError(QueueError):
    """Raised when the entry changed since it was read (lost race)."""

    def __init__(self, entry_id, expected_status: str, expected_version: int):
        self.entry_id = entry_id
        self.expected_status = expected_status
        self.expected_version = expected_version
        super().__init__(
            f"Queue entry {entry_id} is no longer '{expected_status}' "
            f"(version {expected_version}); reload and retry"
        )


class QueuePausedError(QueueError):
    """Raised when calling the next patient while the board is paused."""

    def __init__(self):
        super().__init__("Queue is paused")


class DoctorBusyError(QueueError):
    """Raised when a doctor already has a patient in consultation."""

    def __init__(self, doctor, queue_number: str):
        self.doctor = doctor
        self.queue_number = queue_number
        super().__init__(f"Doctor {doctor} is already consulting {queue_number}")


class QueueEmptyError(QueueError):
    """Raised when there is nobody left to call."""

    def __init__(self):
        super().__init__("No patients waiting")
