"""Dispensary selectors for read-only queries.

Builds invoice summaries and the data behind printed invoices and
medication labels.
"""

from typing import NamedTuple, Optional
from uuid import UUID

from django.db.models import Prefetch
from django.utils import timezone

from clinic_desk.conf import get_currency, get_setting
from clinic_desk.consultation.models import ConsultationSession, TreatmentItem

from .invoice import InvoiceSummary, summarize
from .models import Payment


class InvoiceDocument(NamedTuple):
    """Data structure for invoice printing."""

    clinic_name: str
    session: ConsultationSession
    patient: object
    queue_number: Optional[str]
    items: list
    payments: list
    summary: InvoiceSummary
    generated_at: object


class MedicationLabelDocument(NamedTuple):
    """Data structure for a dispensed medication label."""

    clinic_name: str
    patient_name: str
    patient_id: str
    medication_name: str
    quantity: int
    unit: str
    dosage: str
    frequency: str
    duration: str
    instruction: str
    dispensed_on: object


def get_confirmed_payments(session: ConsultationSession):
    return session.payments.filter(status="confirmed").order_by("paid_at")


def get_invoice_summary(session: ConsultationSession) -> InvoiceSummary:
    """Summary from the session's current items and confirmed payments."""
    item_totals = session.items.values_list("total_amount", flat=True)
    payment_amounts = get_confirmed_payments(session).values_list("amount", flat=True)
    return summarize(item_totals, payment_amounts, get_currency())


def get_invoice_document(session_id: UUID) -> InvoiceDocument:
    """Fetch a consultation with everything needed to print its invoice.

    Raises:
        ConsultationSession.DoesNotExist: If the session is not found
    """
    session = (
        ConsultationSession.objects.select_related("patient", "queue_entry", "doctor")
        .prefetch_related(
            Prefetch("items", queryset=TreatmentItem.objects.order_by("created_at")),
            Prefetch(
                "payments",
                queryset=Payment.objects.filter(status="confirmed").order_by("paid_at"),
                to_attr="confirmed_payments",
            ),
        )
        .get(pk=session_id)
    )

    items = list(session.items.all())
    payments = session.confirmed_payments
    summary = summarize(
        (item.total_amount for item in items),
        (payment.amount for payment in payments),
        get_currency(),
    )

    return InvoiceDocument(
        clinic_name=get_setting("CLINIC_NAME"),
        session=session,
        patient=session.patient,
        queue_number=session.queue_entry.queue_number if session.queue_entry else None,
        items=items,
        payments=payments,
        summary=summary,
        generated_at=timezone.now(),
    )


def get_medication_label(item_id: UUID) -> MedicationLabelDocument:
    """Fetch a medication treatment item as a printable label.

    Raises:
        TreatmentItem.DoesNotExist: If no medication item has this id
    """
    item = TreatmentItem.objects.select_related(
        "medication", "session__patient"
    ).get(pk=item_id, item_type="medication")
    patient = item.session.patient

    return MedicationLabelDocument(
        clinic_name=get_setting("CLINIC_NAME"),
        patient_name=patient.full_name,
        patient_id=patient.patient_id,
        medication_name=item.description,
        quantity=item.quantity,
        unit=item.medication.unit if item.medication else "",
        dosage=item.dosage,
        frequency=item.frequency,
        duration=item.duration,
        instruction=item.instruction,
        dispensed_on=timezone.localdate(),
    )
