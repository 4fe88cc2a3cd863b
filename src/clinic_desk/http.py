"""Helpers shared by the JSON API views.

Domain errors are caught at the view boundary and turned into JSON error
bodies here; nothing relies on a global exception handler.
"""

import json
import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from clinic_desk.consultation.exceptions import InvoiceLockedError, SessionClosedError
from clinic_desk.exceptions import ClinicDeskError, InvalidPayloadError
from clinic_desk.queue.exceptions import (
    DoctorBusyError,
    InvalidQueueTransition,
    QueueEmptyError,
    QueuePausedError,
    StaleQueueEntryError,
)

logger = logging.getLogger(__name__)

CONFLICT_ERRORS = (
    InvalidQueueTransition,
    StaleQueueEntryError,
    QueuePausedError,
    DoctorBusyError,
    InvoiceLockedError,
    SessionClosedError,
)

NOT_FOUND_ERRORS = (QueueEmptyError,)


def status_for(exc: ClinicDeskError) -> int:
    if isinstance(exc, CONFLICT_ERRORS):
        return 409
    if isinstance(exc, NOT_FOUND_ERRORS):
        return 404
    return 400


def error_response(exc: ClinicDeskError) -> JsonResponse:
    """JSON body for a domain error: message, error class and field details."""
    status = status_for(exc)
    body = {"error": str(exc), "code": type(exc).__name__}
    if getattr(exc, "errors", None):
        body["errors"] = exc.errors
    if getattr(exc, "field", None):
        body["field"] = exc.field
    logger.warning("%s %s: %s", status, type(exc).__name__, exc)
    return JsonResponse(body, status=status)


def parse_json(request) -> dict:
    """Decode a JSON object body; an empty body is an empty object."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidPayloadError("Request body is not valid JSON")
    if not isinstance(data, dict):
        raise InvalidPayloadError("Request body must be a JSON object")
    return data


def acting_user(request):
    """The authenticated staff member, or None for anonymous terminals."""
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return user
    return None


def get_from_payload(model, field: str, value):
    """Row named by a body field; a malformed id is a payload error, a missing row 404s."""
    try:
        return get_object_or_404(model, pk=value)
    except (ValidationError, ValueError, TypeError):
        raise InvalidPayloadError(f"{field} is not a valid id")


def resolve_doctor(request, data: dict):
    """Doctor named by `doctor_id` in the body, else the acting user."""
    doctor_id = data.get("doctor_id")
    if doctor_id:
        return get_from_payload(get_user_model(), "doctor_id", doctor_id)
    return acting_user(request)
