"""Patient services.

Provides functions for:
- Walk-in registration (patient lookup/creation + queueing)
- Patient id generation and validation
- Patient search and tier assignment
- Writing activity timeline entries
"""

import logging
import random
import re
from typing import NamedTuple, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from clinic_desk.queue.services import add_to_queue

from .exceptions import PatientIdGenerationError, RegistrationValidationError
from .forms import QuickRegistrationForm
from .models import Patient, PatientActivity

logger = logging.getLogger(__name__)

PATIENT_ID_PATTERN = re.compile(r"^\d{10,13}$")
PATIENT_ID_MAX_ATTEMPTS = 5


class RegistrationResult(NamedTuple):
    patient: Patient
    entry: object
    created: bool


def generate_patient_id(max_attempts: int = PATIENT_ID_MAX_ATTEMPTS) -> str:
    """Generate a unique 13-digit patient id (unix seconds + 3 random digits).

    Raises:
        PatientIdGenerationError: If every attempt collided with an existing id.
    """
    for _ in range(max_attempts):
        seconds = int(timezone.now().timestamp())
        candidate = f"{seconds}{random.randint(0, 999):03d}"
        if not Patient.all_objects.filter(patient_id=candidate).exists():
            return candidate
        logger.warning("Patient id collision on %s, retrying", candidate)
    raise PatientIdGenerationError(max_attempts)


def validate_patient_id_format(patient_id: str) -> bool:
    return bool(PATIENT_ID_PATTERN.match(patient_id or ""))


def find_patient_by_patient_id(patient_id: str) -> Optional[Patient]:
    if not validate_patient_id_format(patient_id):
        return None
    return Patient.objects.filter(patient_id=patient_id).first()


def find_existing_patient(
    first_name: str, last_name: str, phone: str, date_of_birth
) -> Optional[Patient]:
    """Find a returning patient: same name and phone (case-insensitive) and
    the same date of birth.

    Partial matches belong to `search_patients`.
    """
    return (
        Patient.objects.filter(
            first_name__iexact=first_name,
            last_name__iexact=last_name,
            phone__iexact=phone,
            date_of_birth=date_of_birth,
        )
        .order_by("created_at")
        .first()
    )


def search_patients(query: str, limit: int = 20):
    """Search by any name word, phone, patient id or NRIC."""
    query = (query or "").strip()
    if not query:
        return Patient.objects.none()

    condition = (
        Q(phone__icontains=query)
        | Q(patient_id__icontains=query)
        | Q(nric__icontains=query)
    )
    for term in query.split():
        condition |= Q(first_name__icontains=term) | Q(last_name__icontains=term)

    return Patient.objects.filter(condition).select_related("assigned_tier")[:limit]


def record_activity(
    patient: Patient,
    activity_type: str,
    title: str,
    *,
    content: str = "",
    metadata: Optional[dict] = None,
    staff_member=None,
    status: str = "completed",
) -> PatientActivity:
    """Append an entry to the patient's activity timeline."""
    return PatientActivity.objects.create(
        patient=patient,
        activity_type=activity_type,
        title=title,
        content=content,
        metadata=metadata or {},
        staff_member=staff_member,
        status=status,
    )


def assign_patient_tier(patient: Patient, tier, assigned_by=None) -> Patient:
    """Assign (or clear, with tier=None) the patient's pricing tier."""
    patient.assigned_tier = tier
    patient.tier_assigned_at = timezone.now() if tier is not None else None
    patient.tier_assigned_by = assigned_by if tier is not None else None
    patient.save(update_fields=[
        "assigned_tier", "tier_assigned_at", "tier_assigned_by", "updated_at",
    ])
    logger.info(
        "Patient %s tier set to %s",
        patient.patient_id,
        tier.tier_name if tier is not None else None,
    )
    return patient


def register_walk_in(data: dict, *, registered_by=None) -> RegistrationResult:
    """Register a walk-in patient and add them to today's queue.

    Reuses an existing patient when name, phone and date of birth match
    exactly, otherwise creates one. Patient, queue entry and registration
    activity are written in a single transaction.

    Args:
        data: Raw registration input (see QuickRegistrationForm)
        registered_by: Staff user performing the registration

    Returns:
        RegistrationResult(patient, entry, created)

    Raises:
        RegistrationValidationError: If the input fails validation.
    """
    form = QuickRegistrationForm(data)
    if not form.is_valid():
        raise RegistrationValidationError(
            {field: list(messages) for field, messages in form.errors.items()}
        )

    cleaned = form.cleaned_data
    first_name, last_name = form.split_name()

    with transaction.atomic():
        patient = find_existing_patient(
            first_name, last_name, cleaned["phone"], cleaned["date_of_birth"]
        )
        created = patient is None
        if created:
            patient = Patient.objects.create(
                patient_id=generate_patient_id(),
                first_name=first_name,
                last_name=last_name,
                phone=cleaned["phone"],
                date_of_birth=cleaned["date_of_birth"],
                gender=cleaned["gender"],
                nric=cleaned["nric"],
                email=cleaned["email"],
                allergies=cleaned["allergies"],
                medical_history=cleaned["medical_history"],
                visit_reason=cleaned["visit_reason"],
                created_by=registered_by,
            )
        else:
            patient.visit_reason = cleaned["visit_reason"]
            patient.save(update_fields=["visit_reason", "updated_at"])

        entry = add_to_queue(
            patient,
            doctor=cleaned["doctor"],
            urgent=cleaned["is_urgent"],
            payment_method=cleaned["payment_method"],
            visit_reason=cleaned["visit_reason"],
            created_by=registered_by,
        )

        record_activity(
            patient,
            "registration",
            "Quick Registration & Queue",
            content=(
                "New patient registered via quick registration"
                if created
                else "Returning patient added to the queue"
            ),
            metadata={
                "registration_type": "quick",
                "visit_reason": cleaned["visit_reason"],
                "payment_method": cleaned["payment_method"],
                "urgency_level": "urgent" if cleaned["is_urgent"] else "normal",
                "preferred_doctor": str(cleaned["doctor"].pk) if cleaned["doctor"] else None,
                "queue_number": entry.queue_number,
            },
            staff_member=registered_by,
        )

    logger.info(
        "Registered %s patient %s as %s",
        "new" if created else "returning",
        patient.patient_id,
        entry.queue_number,
    )
    return RegistrationResult(patient=patient, entry=entry, created=created)
