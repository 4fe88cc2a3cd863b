"""Exceptions shared across clinic-desk apps."""


class ClinicDeskError(Exception):
    """Base exception for every clinic-desk domain error."""

    pass


class CurrencyMismatchError(ClinicDeskError, ValueError):
    """Raised when attempting operations between different currencies."""

    pass


class InvalidPayloadError(ClinicDeskError, ValueError):
    """Raised when a request body is not the JSON object an endpoint expects."""
