"""Consultation services.

Provides functions for:
- Starting a consultation from a queue entry
- Adding, editing and removing treatment items (tier-priced)
- Completing a consultation and handing the patient to the dispensary
"""

import logging
from typing import NamedTuple, Optional

from django.db import transaction
from django.utils import timezone

from clinic_desk.conf import get_currency
from clinic_desk.money import sum_money
from clinic_desk.patients.services import record_activity
from clinic_desk.pricing.selectors import resolve_price_for_patient
from clinic_desk.pricing.value_objects import ResolvedPrice
from clinic_desk.queue import graph
from clinic_desk.queue.models import QueueEntry
from clinic_desk.queue.services import transition_entry

from .exceptions import ConsultationError, InvoiceLockedError, SessionClosedError
from .models import ConsultationSession, TreatmentItem

logger = logging.getLogger(__name__)

EDITABLE_ITEM_FIELDS = {
    "description", "quantity", "rate", "dosage", "frequency", "duration", "instruction",
}


class AddedItem(NamedTuple):
    """A new treatment item and how its rate was resolved (None if manual)."""

    item: TreatmentItem
    resolution: Optional[ResolvedPrice]


def get_active_session(entry: QueueEntry) -> Optional[ConsultationSession]:
    return entry.consultations.filter(status="active").order_by("-started_at").first()


@transaction.atomic
def start_consultation(entry: QueueEntry, doctor, *, by_user=None) -> ConsultationSession:
    """
    Open a consultation for a queue entry.

    Moves the entry to in_consultation (unless a call already did) and
    opens a session. Calling again for an entry already in consultation
    returns its active session.
    """
    if entry.status != graph.IN_CONSULTATION:
        entry = transition_entry(
            entry, graph.IN_CONSULTATION, by_user=by_user or doctor, doctor=doctor
        )
    else:
        session = get_active_session(entry)
        if session is not None:
            return session

    session = ConsultationSession.objects.create(
        patient=entry.patient,
        queue_entry=entry,
        doctor=doctor,
    )
    logger.info("Consultation %s started for %s", session.pk, entry.queue_number)
    return session


def ensure_items_editable(session: ConsultationSession) -> None:
    """Items stay editable until the visit is completed or cancelled."""
    if session.queue_entry_id is not None:
        status = QueueEntry.objects.values_list("status", flat=True).get(pk=session.queue_entry_id)
        if status in graph.TERMINAL_STATUSES:
            raise InvoiceLockedError(session.pk, status)
    elif not session.is_active:
        raise InvoiceLockedError(session.pk, session.status)


def add_treatment_item(
    session: ConsultationSession,
    *,
    medication=None,
    service=None,
    quantity: int = 1,
    rate=None,
    description: str = "",
    dosage: str = "",
    frequency: str = "",
    duration: str = "",
    instruction: str = "",
    added_by=None,
) -> AddedItem:
    """
    Add a medication or service to a consultation.

    The rate is resolved from the patient's tier unless a manual rate is
    given. The returned resolution carries the "no tier assigned" warning
    for the caller to display.

    Raises:
        InvoiceLockedError: If the visit is closed
        NoPriceFoundError: If no rate is given and the item has no price
        ConsultationError: On bad input
    """
    if (medication is None) == (service is None):
        raise ConsultationError("Exactly one of medication or service is required")
    if quantity < 0:
        raise ConsultationError("Quantity cannot be negative")

    ensure_items_editable(session)

    catalog_item = medication or service
    resolution = None
    if rate is None:
        resolution = resolve_price_for_patient(catalog_item, session.patient)
        rate = resolution.price.amount
        price_source = resolution.source
        tier_name = resolution.tier_name or ""
    else:
        price_source = "manual"
        tier_name = ""

    if medication is not None:
        dosage = dosage or medication.default_dosage
        frequency = frequency or medication.default_frequency

    item = TreatmentItem.objects.create(
        session=session,
        item_type=catalog_item.item_type,
        medication=medication,
        service=service,
        description=description or catalog_item.name,
        quantity=quantity,
        rate=rate,
        price_source=price_source,
        tier_name=tier_name,
        dosage=dosage,
        frequency=frequency,
        duration=duration,
        instruction=instruction,
        added_by=added_by,
    )
    if resolution is not None and resolution.tier_missing:
        logger.warning(
            "Patient %s has no pricing tier; %s billed at base price",
            session.patient.patient_id,
            item.description,
        )
    return AddedItem(item=item, resolution=resolution)


def update_treatment_item(item: TreatmentItem, **fields) -> TreatmentItem:
    """Edit an item; a new rate marks the price as manual."""
    unknown = set(fields) - EDITABLE_ITEM_FIELDS
    if unknown:
        raise ConsultationError(f"Cannot edit {', '.join(sorted(unknown))}")
    if fields.get("quantity") is not None and fields["quantity"] < 0:
        raise ConsultationError("Quantity cannot be negative")

    ensure_items_editable(item.session)

    for name, value in fields.items():
        setattr(item, name, value)
    if "rate" in fields:
        item.price_source = "manual"
        item.tier_name = ""
    item.save()
    return item


def remove_treatment_item(item: TreatmentItem) -> None:
    ensure_items_editable(item.session)
    item.delete()


def complete_consultation(
    session: ConsultationSession,
    *,
    notes: Optional[str] = None,
    diagnosis: Optional[str] = None,
    by_user=None,
) -> ConsultationSession:
    """
    Close the consultation and send the patient to the dispensary.

    Writes a consultation activity plus one medication or treatment
    activity per item, then moves the queue entry to dispensary.

    Raises:
        SessionClosedError: If the session was already completed
    """
    if not session.is_active:
        raise SessionClosedError(session.pk)

    by_user = by_user or session.doctor

    with transaction.atomic():
        if notes is not None:
            session.notes = notes
        if diagnosis is not None:
            session.diagnosis = diagnosis
        session.status = "completed"
        session.completed_at = timezone.now()
        session.save(update_fields=["notes", "diagnosis", "status", "completed_at", "updated_at"])

        items = list(session.items.all())
        total = sum_money((item.total_amount for item in items), get_currency())

        record_activity(
            session.patient,
            "consultation",
            "Consultation completed",
            content=session.diagnosis or session.notes,
            metadata={
                "session_id": str(session.pk),
                "doctor": str(session.doctor) if session.doctor else None,
                "item_count": len(items),
                "total_amount": str(total.quantized().amount),
            },
            staff_member=by_user,
        )

        for item in items:
            if item.item_type == "medication" and item.has_instructions:
                record_activity(
                    session.patient,
                    "medication",
                    f"Prescribed {item.description}",
                    content=" ".join(filter(None, [item.dosage, item.frequency, item.duration])),
                    metadata={
                        "session_id": str(session.pk),
                        "quantity": item.quantity,
                        "dosage": item.dosage,
                        "frequency": item.frequency,
                        "duration": item.duration,
                        "instruction": item.instruction,
                    },
                    staff_member=by_user,
                )
            else:
                record_activity(
                    session.patient,
                    "treatment",
                    item.description,
                    metadata={
                        "session_id": str(session.pk),
                        "item_type": item.item_type,
                        "quantity": item.quantity,
                        "rate": str(item.rate),
                    },
                    staff_member=by_user,
                )

        entry = session.queue_entry
        if entry is not None:
            entry.refresh_from_db()
            if entry.status == graph.IN_CONSULTATION:
                transition_entry(entry, graph.DISPENSARY, by_user=by_user)

    logger.info("Consultation %s completed with %d items", session.pk, len(items))
    return session
