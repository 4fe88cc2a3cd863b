"""Consultation API views."""

from decimal import Decimal, InvalidOperation
from uuid import UUID

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from clinic_desk.exceptions import ClinicDeskError, InvalidPayloadError
from clinic_desk.http import (
    acting_user,
    error_response,
    get_from_payload,
    parse_json,
    resolve_doctor,
)
from clinic_desk.pricing.models import MedicalService, Medication
from clinic_desk.queue.models import QueueEntry

from . import services
from .models import ConsultationSession, TreatmentItem
from .selectors import serialize_item, serialize_session

INSTRUCTION_FIELDS = ("description", "dosage", "frequency", "duration", "instruction")

# TreatmentItem.rate is a 10-digit decimal with 2 places
MAX_RATE = Decimal("100000000")


def _parse_quantity(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidPayloadError("quantity must be an integer")


def _parse_rate(value) -> Decimal:
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidPayloadError("rate must be a decimal amount")
    if not rate.is_finite() or rate < 0:
        raise InvalidPayloadError("rate must be a non-negative amount")
    try:
        rate = rate.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise InvalidPayloadError(f"rate must be below {MAX_RATE}")
    if rate >= MAX_RATE:
        raise InvalidPayloadError(f"rate must be below {MAX_RATE}")
    return rate


@csrf_exempt
@require_POST
def api_start_consultation(request, entry_id: UUID):
    """API: Open a consultation for a queue entry."""
    entry = get_object_or_404(QueueEntry, pk=entry_id)
    try:
        data = parse_json(request)
        session = services.start_consultation(
            entry, resolve_doctor(request, data), by_user=acting_user(request)
        )
    except ClinicDeskError as e:
        return error_response(e)
    return JsonResponse({"session": serialize_session(session)}, status=201)


@csrf_exempt
@require_POST
def api_add_item(request, session_id: UUID):
    """API: Add a medication or service to a consultation.

    Body: {"medication_id" | "service_id", "quantity", "rate" (optional), ...}
    """
    session = get_object_or_404(ConsultationSession, pk=session_id)
    try:
        data = parse_json(request)
        medication = service = None
        if data.get("medication_id"):
            medication = get_from_payload(Medication, "medication_id", data["medication_id"])
        if data.get("service_id"):
            service = get_from_payload(MedicalService, "service_id", data["service_id"])

        added = services.add_treatment_item(
            session,
            medication=medication,
            service=service,
            quantity=_parse_quantity(data.get("quantity", 1)),
            rate=_parse_rate(data["rate"]) if data.get("rate") is not None else None,
            added_by=acting_user(request),
            **{name: data.get(name) or "" for name in INSTRUCTION_FIELDS},
        )
    except ClinicDeskError as e:
        return error_response(e)

    resolution = added.resolution
    return JsonResponse({
        "item": serialize_item(added.item),
        "warning": resolution.warning if resolution else None,
    }, status=201)


@csrf_exempt
@require_http_methods(["PATCH", "DELETE"])
def api_item_detail(request, session_id: UUID, item_id: UUID):
    """API: Edit (PATCH) or remove (DELETE) a treatment item."""
    item = get_object_or_404(TreatmentItem, pk=item_id, session_id=session_id)
    try:
        if request.method == "DELETE":
            services.remove_treatment_item(item)
            return JsonResponse({"deleted": True, "id": str(item_id)})

        data = parse_json(request)
        fields = {name: data[name] for name in INSTRUCTION_FIELDS if name in data}
        if "quantity" in data:
            fields["quantity"] = _parse_quantity(data["quantity"])
        if "rate" in data:
            fields["rate"] = _parse_rate(data["rate"])
        updated = services.update_treatment_item(item, **fields)
    except ClinicDeskError as e:
        return error_response(e)

    return JsonResponse({"item": serialize_item(updated)})


@csrf_exempt
@require_POST
def api_complete_consultation(request, session_id: UUID):
    """API: Complete a consultation and send the patient to the dispensary."""
    session = get_object_or_404(ConsultationSession, pk=session_id)
    try:
        data = parse_json(request)
        session = services.complete_consultation(
            session,
            notes=data.get("notes"),
            diagnosis=data.get("diagnosis"),
            by_user=acting_user(request),
        )
    except ClinicDeskError as e:
        return error_response(e)

    return JsonResponse({"session": serialize_session(session)})
