"""Dispensary API views: invoice, payments and printing."""

import logging
from uuid import UUID

from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from clinic_desk.consultation.models import ConsultationSession, TreatmentItem
from clinic_desk.consultation.selectors import serialize_item
from clinic_desk.exceptions import ClinicDeskError
from clinic_desk.http import acting_user, error_response, parse_json

from . import services
from .models import Payment
from .printing import InvoicePrintService, MedicationLabelPrintService
from .selectors import (
    get_confirmed_payments,
    get_invoice_document,
    get_invoice_summary,
    get_medication_label,
)

logger = logging.getLogger(__name__)


def _serialize_payment(payment) -> dict:
    return {
        "id": str(payment.pk),
        "receipt_number": payment.receipt_number,
        "amount": str(payment.amount),
        "payment_method": payment.payment_method,
        "reference_number": payment.reference_number,
        "paid_at": payment.paid_at.isoformat(),
    }


@require_GET
def api_invoice(request, session_id: UUID):
    """API: Invoice summary derived from the current items and payments."""
    session = get_object_or_404(ConsultationSession, pk=session_id)
    summary = get_invoice_summary(session)
    return JsonResponse({
        "session_id": str(session.pk),
        "summary": summary.as_dict(),
        "items": [serialize_item(item) for item in session.items.all()],
        "payments": [_serialize_payment(p) for p in get_confirmed_payments(session)],
    })


@csrf_exempt
@require_POST
def api_record_payment(request, session_id: UUID):
    """API: Record a payment.

    Body: {"amount", "payment_method", "reference_number", "notes"}
    """
    session = get_object_or_404(ConsultationSession, pk=session_id)
    try:
        data = parse_json(request)
        receipt = services.record_payment(
            session,
            data.get("amount"),
            data.get("payment_method", ""),
            acting_user(request),
            reference_number=data.get("reference_number", ""),
            notes=data.get("notes", ""),
        )
    except ClinicDeskError as e:
        return error_response(e)

    return JsonResponse({"receipt": receipt.as_dict()}, status=201)


@csrf_exempt
@require_POST
def api_void_payment(request, payment_id: UUID):
    """API: Void a payment; the invoice summary returned no longer counts it.

    Body: {"reason"}
    """
    payment = get_object_or_404(Payment.objects.select_related("session"), pk=payment_id)
    try:
        data = parse_json(request)
        payment = services.void_payment(
            payment, by_user=acting_user(request), reason=data.get("reason") or ""
        )
    except ClinicDeskError as e:
        return error_response(e)

    receipt = services.build_receipt(payment)
    return JsonResponse({"receipt": receipt.as_dict(), "status": payment.status})


def _render(service, pdf: bool):
    if not pdf:
        return HttpResponse(service.render_html())
    try:
        content = service.render_pdf()
    except RuntimeError as e:
        logger.error("PDF rendering unavailable: %s", e)
        return JsonResponse({"error": str(e)}, status=503)
    response = HttpResponse(content, content_type="application/pdf")
    response["Content-Disposition"] = f'inline; filename="{service.get_filename()}"'
    return response


@require_GET
def api_invoice_print(request, session_id: UUID):
    """API: Printable invoice, HTML by default or PDF with ?format=pdf."""
    try:
        document = get_invoice_document(session_id)
    except ConsultationSession.DoesNotExist:
        return JsonResponse({"error": "Consultation not found"}, status=404)
    return _render(InvoicePrintService(document), request.GET.get("format") == "pdf")


@require_GET
def api_medication_label(request, item_id: UUID):
    """API: Printable label for a dispensed medication."""
    try:
        document = get_medication_label(item_id)
    except TreatmentItem.DoesNotExist:
        return JsonResponse({"error": "Medication item not found"}, status=404)
    return _render(MedicationLabelPrintService(document), request.GET.get("format") == "pdf")
