"""Tests for patient registration, lookup and the activity timeline."""

from datetime import date, datetime, timezone as dt_timezone

import pytest
from freezegun import freeze_time

from clinic_desk.patients import services
from clinic_desk.patients.exceptions import (
    PatientIdGenerationError,
    RegistrationValidationError,
)
from clinic_desk.patients.models import Patient, PatientActivity
from clinic_desk.patients.nric import format_nric, is_valid_nric, parse_nric
from clinic_desk.patients.services import (
    assign_patient_tier,
    find_patient_by_patient_id,
    generate_patient_id,
    record_activity,
    register_walk_in,
    search_patients,
    validate_patient_id_format,
)
from clinic_desk.queue.models import QueueEntry


def registration_data(**overrides):
    data = {
        "full_name": "Jane Doe",
        "phone": "0123456789",
        "date_of_birth": "1990-01-01",
        "gender": "female",
        "visit_reason": "Fever",
        "payment_method": "self_pay",
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestRegisterWalkIn:
    def test_new_patient_is_queued(self, staff):
        result = register_walk_in(registration_data(), registered_by=staff)

        assert result.created is True
        assert result.patient.first_name == "Jane"
        assert result.patient.last_name == "Doe"
        assert validate_patient_id_format(result.patient.patient_id)
        assert result.entry.status == "waiting"
        assert result.entry.queue_number == "Q001"
        assert result.entry.patient == result.patient
        assert result.entry.created_by == staff

    def test_registration_activity_written(self, staff):
        result = register_walk_in(registration_data(), registered_by=staff)

        activity = result.patient.activities.get()
        assert activity.activity_type == "registration"
        assert activity.staff_member == staff
        assert activity.metadata["payment_method"] == "self_pay"
        assert activity.metadata["urgency_level"] == "normal"
        assert activity.metadata["queue_number"] == "Q001"
        assert activity.metadata["visit_reason"] == "Fever"

    def test_urgent_registration(self):
        result = register_walk_in(registration_data(is_urgent=True))

        assert result.entry.status == "urgent"
        assert result.patient.activities.get().metadata["urgency_level"] == "urgent"

    def test_multi_word_last_name(self):
        result = register_walk_in(registration_data(full_name="  Siti   Nur Aisyah "))
        assert result.patient.first_name == "Siti"
        assert result.patient.last_name == "Nur Aisyah"

    def test_invalid_input_writes_nothing(self):
        with pytest.raises(RegistrationValidationError) as exc_info:
            register_walk_in(registration_data(phone="call me", visit_reason=""))

        assert set(exc_info.value.errors) == {"phone", "visit_reason"}
        assert Patient.objects.count() == 0
        assert QueueEntry.objects.count() == 0

    def test_missing_birth_date_and_gender_without_nric(self):
        data = registration_data()
        del data["date_of_birth"]
        del data["gender"]

        with pytest.raises(RegistrationValidationError) as exc_info:
            register_walk_in(data)

        assert set(exc_info.value.errors) == {"date_of_birth", "gender"}

    def test_nric_fills_birth_date_and_gender(self):
        data = registration_data(nric="900101145677")
        del data["date_of_birth"]
        del data["gender"]

        patient = register_walk_in(data).patient

        assert patient.nric == "900101-14-5677"
        assert patient.date_of_birth == date(1990, 1, 1)
        assert patient.gender == "male"

    def test_explicit_values_win_over_nric(self):
        patient = register_walk_in(registration_data(nric="900101-14-5677")).patient
        assert patient.gender == "female"

    def test_invalid_nric_rejected(self):
        with pytest.raises(RegistrationValidationError) as exc_info:
            register_walk_in(registration_data(nric="12345"))
        assert "nric" in exc_info.value.errors

    def test_returning_patient_reused(self):
        first = register_walk_in(registration_data())
        second = register_walk_in(registration_data(visit_reason="Cough"))

        assert second.created is False
        assert second.patient.pk == first.patient.pk
        assert second.entry.queue_number == "Q002"
        assert Patient.objects.count() == 1
        assert Patient.objects.get().visit_reason == "Cough"

    def test_returning_patient_matched_case_insensitively(self):
        first = register_walk_in(registration_data())
        second = register_walk_in(registration_data(full_name="JANE doe"))

        assert second.created is False
        assert second.patient.pk == first.patient.pk

    def test_shared_phone_does_not_merge_family(self):
        """A child on a parent's phone gets their own record."""
        parent = register_walk_in(registration_data(
            full_name="Alice Tan", date_of_birth="1970-05-05", gender="female",
        ))
        child = register_walk_in(registration_data(
            full_name="Ali", date_of_birth="2015-02-02", gender="male",
        ))

        assert child.created is True
        assert child.patient.pk != parent.patient.pk
        assert child.patient.date_of_birth == date(2015, 2, 2)
        assert child.patient.gender == "male"
        assert Patient.objects.get(pk=parent.patient.pk).date_of_birth == date(1970, 5, 5)

    def test_same_name_different_birth_date_is_new_patient(self):
        register_walk_in(registration_data())
        other = register_walk_in(registration_data(date_of_birth="1991-01-01"))

        assert other.created is True
        assert Patient.objects.count() == 2

    def test_preferred_doctor_assigned(self, doctor):
        result = register_walk_in(registration_data(doctor=str(doctor.pk)))
        assert result.entry.assigned_doctor == doctor

    def test_failure_after_patient_insert_rolls_back(self, monkeypatch):
        """Patient creation is undone when queueing fails."""

        def explode(*args, **kwargs):
            raise RuntimeError("queue unavailable")

        monkeypatch.setattr(services, "add_to_queue", explode)

        with pytest.raises(RuntimeError):
            register_walk_in(registration_data())

        assert Patient.objects.count() == 0
        assert PatientActivity.objects.count() == 0


@pytest.mark.django_db
class TestPatientIds:
    @freeze_time("2026-03-02 01:00:00")
    def test_generated_id_shape(self, monkeypatch):
        monkeypatch.setattr(services.random, "randint", lambda a, b: 7)
        seconds = int(datetime(2026, 3, 2, 1, tzinfo=dt_timezone.utc).timestamp())

        assert generate_patient_id() == f"{seconds}007"

    @freeze_time("2026-03-02 01:00:00")
    def test_collisions_exhaust_attempts(self, monkeypatch, make_patient):
        monkeypatch.setattr(services.random, "randint", lambda a, b: 42)
        seconds = int(datetime(2026, 3, 2, 1, tzinfo=dt_timezone.utc).timestamp())
        make_patient(patient_id=f"{seconds}042")

        with pytest.raises(PatientIdGenerationError) as exc_info:
            generate_patient_id()

        assert exc_info.value.attempts == 5

    @freeze_time("2026-03-02 01:00:00")
    def test_collision_retries_with_new_suffix(self, monkeypatch, make_patient):
        suffixes = iter([42, 43])
        monkeypatch.setattr(services.random, "randint", lambda a, b: next(suffixes))
        seconds = int(datetime(2026, 3, 2, 1, tzinfo=dt_timezone.utc).timestamp())
        make_patient(patient_id=f"{seconds}042")

        assert generate_patient_id() == f"{seconds}043"

    @pytest.mark.parametrize(
        "value,valid",
        [
            ("1700000000", True),
            ("1700000000123", True),
            ("170000000", False),
            ("17000000001234", False),
            ("17000000a0", False),
            ("", False),
        ],
    )
    def test_format(self, value, valid):
        assert validate_patient_id_format(value) is valid

    def test_lookup(self, patient):
        assert find_patient_by_patient_id(patient.patient_id) == patient
        assert find_patient_by_patient_id("9999999999") is None
        assert find_patient_by_patient_id("not-an-id") is None


@pytest.mark.django_db
class TestPatientActivity:
    def test_activities_are_append_only(self, patient):
        activity = record_activity(patient, "queue", "Called in")

        activity.title = "Changed"
        with pytest.raises(ValueError):
            activity.save()
        with pytest.raises(ValueError):
            activity.delete()

        assert PatientActivity.objects.get(pk=activity.pk).title == "Called in"

    def test_patient_protected_by_activities(self, patient):
        from django.db.models import ProtectedError

        record_activity(patient, "queue", "Called in")
        with pytest.raises(ProtectedError):
            Patient.all_objects.filter(pk=patient.pk).delete()


@pytest.mark.django_db
class TestPatientLookup:
    def test_assign_tier(self, patient, insurance, staff):
        assign_patient_tier(patient, insurance, assigned_by=staff)
        patient.refresh_from_db()

        assert patient.assigned_tier == insurance
        assert patient.tier_assigned_by == staff
        assert patient.tier_assigned_at is not None

    def test_clear_tier(self, make_patient, insurance, staff):
        patient = make_patient(tier=insurance)
        assign_patient_tier(patient, None, assigned_by=staff)
        patient.refresh_from_db()

        assert patient.assigned_tier is None
        assert patient.tier_assigned_at is None

    def test_search(self, make_patient):
        jane = make_patient()
        ali = make_patient(first_name="Ali", last_name="Hassan", phone="0199998888")

        assert list(search_patients("hassan")) == [ali]
        assert list(search_patients("019999")) == [ali]
        assert list(search_patients(jane.patient_id)) == [jane]
        assert list(search_patients("   ")) == []


class TestNRIC:
    def test_format_inserts_dashes(self):
        assert format_nric("900101101234") == "900101-10-1234"
        assert format_nric("900101-10-1234") == "900101-10-1234"
        assert format_nric("9001") == "9001"

    def test_validity(self):
        assert is_valid_nric("900101-10-1234")
        assert not is_valid_nric("900101101234")
        assert not is_valid_nric("")

    def test_parse(self):
        details = parse_nric("900101-14-5677")
        assert details.date_of_birth == date(1990, 1, 1)
        assert details.gender == "male"

        assert parse_nric("050615-10-1234").date_of_birth == date(2005, 6, 15)
        assert parse_nric("050615-10-1234").gender == "female"

    def test_parse_rejects_impossible_dates(self):
        assert parse_nric("901301-10-1234") is None
        assert parse_nric("bad") is None
