"""Pytest configuration for clinic-desk tests."""

from datetime import date
from decimal import Decimal

import pytest

from clinic_desk.pricing.models import MedicalService, Medication, PriceTier


@pytest.fixture
def staff(db, django_user_model):
    """Front-desk staff member."""
    return django_user_model.objects.create_user(
        username="desk",
        password="testpass123",
    )


@pytest.fixture
def doctor(db, django_user_model):
    """Create a test doctor."""
    return django_user_model.objects.create_user(
        username="dr_lim",
        password="testpass123",
        first_name="Mei",
        last_name="Lim",
    )


@pytest.fixture
def other_doctor(db, django_user_model):
    """Create another doctor for multi-doctor tests."""
    return django_user_model.objects.create_user(
        username="dr_raj",
        password="testpass123",
    )


@pytest.fixture
def self_pay(db):
    return PriceTier.objects.create(tier_name="Self-Pay")


@pytest.fixture
def insurance(db):
    return PriceTier.objects.create(tier_name="Insurance")


@pytest.fixture
def paracetamol(db):
    """Medication with a RM10.00 base price."""
    return Medication.objects.create(
        name="Paracetamol 500mg",
        base_price=Decimal("10.00"),
        unit="tablet",
        default_dosage="1 tablet",
        default_frequency="3 times daily",
    )


@pytest.fixture
def consultation_fee(db):
    """Service with a RM30.00 base price."""
    return MedicalService.objects.create(
        name="General Consultation",
        base_price=Decimal("30.00"),
    )


@pytest.fixture
def make_patient(db):
    """Factory for patients with unique patient ids."""
    from clinic_desk.patients.models import Patient

    counter = {"n": 0}

    def _make(first_name="Jane", last_name="Doe", phone="0123456789", tier=None, **extra):
        counter["n"] += 1
        return Patient.objects.create(
            patient_id=extra.pop("patient_id", f"1700000000{counter['n']:03d}"),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            date_of_birth=extra.pop("date_of_birth", date(1990, 1, 1)),
            gender=extra.pop("gender", "female"),
            assigned_tier=tier,
            **extra,
        )

    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def make_entry(db):
    """Factory for queue entries on today's queue."""
    from clinic_desk.queue.services import add_to_queue

    def _make(patient, **kwargs):
        return add_to_queue(patient, **kwargs)

    return _make


@pytest.fixture
def entry(make_entry, patient):
    """A waiting queue entry for the default patient."""
    return make_entry(patient)


@pytest.fixture
def session(entry, doctor):
    """An active consultation opened from the waiting entry."""
    from clinic_desk.consultation.services import start_consultation

    return start_consultation(entry, doctor)
