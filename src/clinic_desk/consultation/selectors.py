"""Read-side helpers for consultations."""

from clinic_desk.conf import get_currency
from clinic_desk.money import Money
from clinic_desk.pricing.selectors import format_price_with_tier

from .models import ConsultationSession, TreatmentItem


def get_session(session_id) -> ConsultationSession:
    return ConsultationSession.objects.select_related(
        "patient", "patient__assigned_tier", "queue_entry", "doctor"
    ).get(pk=session_id)


def serialize_item(item: TreatmentItem) -> dict:
    rate = Money(item.rate, get_currency())
    return {
        "id": str(item.pk),
        "item_type": item.item_type,
        "description": item.description,
        "quantity": item.quantity,
        "rate": str(item.rate),
        "total_amount": str(item.total_amount),
        "price_source": item.price_source,
        "tier_name": item.tier_name or None,
        "display_rate": (
            format_price_with_tier(rate, item.tier_name)
            if item.price_source == "tier"
            else rate.format()
        ),
        "dosage": item.dosage,
        "frequency": item.frequency,
        "duration": item.duration,
        "instruction": item.instruction,
    }


def serialize_session(session: ConsultationSession) -> dict:
    patient = session.patient
    return {
        "id": str(session.pk),
        "status": session.status,
        "patient": {
            "id": str(patient.pk),
            "patient_id": patient.patient_id,
            "name": patient.full_name,
            "tier": patient.assigned_tier.tier_name if patient.assigned_tier else None,
        },
        "queue_entry_id": str(session.queue_entry_id) if session.queue_entry_id else None,
        "doctor": str(session.doctor) if session.doctor else None,
        "notes": session.notes,
        "diagnosis": session.diagnosis,
        "started_at": session.started_at.isoformat(),
        "completed_at": session.completed_at.isoformat() if session.completed_at else None,
        "items": [serialize_item(item) for item in session.items.all()],
    }
