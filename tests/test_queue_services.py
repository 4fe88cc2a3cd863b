"""Tests for queue services."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest
from django.db import connection

from clinic_desk.queue.board import QueueBoard
from clinic_desk.queue.exceptions import (
    DoctorBusyError,
    InvalidQueueTransition,
    QueueEmptyError,
    QueuePausedError,
    StaleQueueEntryError,
)
from clinic_desk.queue.models import QueueEntry, QueueTransition
from clinic_desk.queue import services
from clinic_desk.queue.services import (
    add_to_queue,
    call_next_patient,
    cancel_entry,
    complete_entry,
    mark_urgent,
    next_queue_number,
    revert_to_waiting,
    transition_entry,
)


@pytest.mark.django_db
class TestQueueNumbers:
    def test_numbers_are_sequential_and_padded(self, make_patient):
        first = add_to_queue(make_patient())
        second = add_to_queue(make_patient(first_name="John"))
        assert first.queue_number == "Q001"
        assert second.queue_number == "Q002"

    def test_numbering_restarts_each_day(self):
        assert next_queue_number(date(2026, 3, 1)) == "Q001"
        assert next_queue_number(date(2026, 3, 1)) == "Q002"
        assert next_queue_number(date(2026, 3, 2)) == "Q001"

    def test_prefix_and_padding_configurable(self, settings):
        settings.CLINIC_DESK_QUEUE_NUMBER_PREFIX = "A"
        settings.CLINIC_DESK_QUEUE_NUMBER_PAD = 4
        assert next_queue_number(date(2026, 3, 1)) == "A0001"


@pytest.mark.django_db
class TestAddToQueue:
    def test_new_entry_is_waiting(self, patient, staff):
        entry = add_to_queue(patient, created_by=staff, visit_reason="fever")
        assert entry.status == "waiting"
        assert entry.queue_number
        assert entry.version == 0
        assert entry.estimated_consultation_duration == 30
        assert entry.visit_reason == "fever"

    def test_urgent_entry(self, patient):
        entry = add_to_queue(patient, urgent=True)
        assert entry.status == "urgent"


@pytest.mark.django_db
class TestTransitionEntry:
    def test_full_visit_path(self, entry, doctor):
        """waiting -> in_consultation -> dispensary -> completed keeps the last status."""
        transition_entry(entry, "in_consultation", doctor=doctor)
        transition_entry(entry, "dispensary")
        transition_entry(entry, "completed")

        entry.refresh_from_db()
        assert entry.status == "completed"
        assert entry.version == 3
        assert [t.to_status for t in entry.transitions.all()] == [
            "in_consultation", "dispensary", "completed",
        ]

    def test_starting_consultation_sets_doctor_and_time(self, entry, doctor):
        entry = transition_entry(entry, "in_consultation", doctor=doctor)
        assert entry.assigned_doctor == doctor
        assert entry.consultation_started_at is not None
        assert entry.consultation_completed_at is None

    def test_dispensary_sets_completion_time(self, entry, doctor):
        transition_entry(entry, "in_consultation", doctor=doctor)
        entry = transition_entry(entry, "dispensary")
        assert entry.consultation_completed_at is not None

    def test_invalid_edge_raises(self, entry):
        with pytest.raises(InvalidQueueTransition) as exc_info:
            transition_entry(entry, "dispensary")
        assert exc_info.value.from_status == "waiting"
        assert exc_info.value.to_status == "dispensary"

    @pytest.mark.parametrize("terminal", ["completed", "cancelled"])
    def test_nothing_leaves_terminal_status(self, entry, doctor, terminal):
        if terminal == "completed":
            transition_entry(entry, "in_consultation", doctor=doctor)
            transition_entry(entry, "dispensary")
        transition_entry(entry, terminal)

        for target in ["waiting", "urgent", "in_consultation", "dispensary", "completed", "cancelled"]:
            with pytest.raises(InvalidQueueTransition, match="terminal"):
                transition_entry(entry, target)

        entry.refresh_from_db()
        assert entry.status == terminal

    def test_stale_copy_loses(self, entry, doctor):
        """Two writers from the same observed state: exactly one wins."""
        first = QueueEntry.objects.get(pk=entry.pk)
        second = QueueEntry.objects.get(pk=entry.pk)

        transition_entry(first, "in_consultation", doctor=doctor)
        with pytest.raises(StaleQueueEntryError):
            transition_entry(second, "cancelled")

        entry.refresh_from_db()
        assert entry.status == "in_consultation"
        assert QueueTransition.objects.filter(entry=entry).count() == 1

    def test_doctor_busy(self, make_patient, make_entry, doctor):
        first = make_entry(make_patient())
        second = make_entry(make_patient(first_name="John"))
        transition_entry(first, "in_consultation", doctor=doctor)

        with pytest.raises(DoctorBusyError) as exc_info:
            transition_entry(second, "in_consultation", doctor=doctor)
        assert exc_info.value.queue_number == first.queue_number

    def test_different_doctors_consult_in_parallel(self, make_patient, make_entry, doctor, other_doctor):
        first = make_entry(make_patient())
        second = make_entry(make_patient(first_name="John"))
        transition_entry(first, "in_consultation", doctor=doctor)
        second = transition_entry(second, "in_consultation", doctor=other_doctor)
        assert second.status == "in_consultation"

    def test_transition_records_user_and_metadata(self, entry, staff):
        cancel_entry(entry, by_user=staff, reason="left the clinic")
        record = entry.transitions.get()
        assert record.from_status == "waiting"
        assert record.to_status == "cancelled"
        assert record.transitioned_by == staff
        assert record.metadata == {"reason": "left the clinic"}


@pytest.mark.django_db
class TestShortcuts:
    def test_mark_urgent_and_back(self, entry):
        assert mark_urgent(entry).status == "urgent"
        assert revert_to_waiting(entry).status == "waiting"

    def test_revert_from_consultation_clears_start(self, entry, doctor):
        transition_entry(entry, "in_consultation", doctor=doctor)
        entry = revert_to_waiting(entry)
        assert entry.status == "waiting"
        assert entry.consultation_started_at is None

    def test_complete_entry_requires_dispensary(self, entry):
        with pytest.raises(InvalidQueueTransition):
            complete_entry(entry)


@pytest.mark.django_db
class TestCallNextPatient:
    def test_calls_oldest_waiting(self, make_patient, make_entry, doctor):
        first = make_entry(make_patient())
        make_entry(make_patient(first_name="John"))

        called = call_next_patient(doctor=doctor)
        assert called.pk == first.pk
        assert called.status == "in_consultation"
        assert called.assigned_doctor == doctor

    def test_urgent_called_first(self, make_patient, make_entry, doctor):
        make_entry(make_patient())
        urgent = make_entry(make_patient(first_name="John"), urgent=True)

        called = call_next_patient(doctor=doctor)
        assert called.pk == urgent.pk

    def test_explicit_entry(self, make_patient, make_entry, doctor):
        make_entry(make_patient())
        chosen = make_entry(make_patient(first_name="John"))

        called = call_next_patient(doctor=doctor, entry=chosen)
        assert called.pk == chosen.pk

    def test_refuses_while_paused(self, entry, doctor):
        with pytest.raises(QueuePausedError):
            call_next_patient(doctor=doctor, board=QueueBoard(paused=True))
        entry.refresh_from_db()
        assert entry.status == "waiting"

    def test_empty_queue(self, db, doctor):
        with pytest.raises(QueueEmptyError):
            call_next_patient(doctor=doctor)

    def test_skips_candidate_lost_to_another_caller(
        self, make_patient, make_entry, doctor, other_doctor, monkeypatch
    ):
        first = make_entry(make_patient())
        second = make_entry(make_patient(first_name="John"))
        stale_candidates = [
            QueueEntry.objects.get(pk=first.pk),
            QueueEntry.objects.get(pk=second.pk),
        ]
        # Another desk calls the first patient after our candidates were read
        transition_entry(first, "in_consultation", doctor=other_doctor)
        monkeypatch.setattr(services, "get_callable_entries", lambda queue_date=None: stale_candidates)

        called = call_next_patient(doctor=doctor)
        assert called.pk == second.pk

    def test_explicit_stale_entry_reraises(self, entry, doctor, other_doctor):
        stale = QueueEntry.objects.get(pk=entry.pk)
        transition_entry(entry, "in_consultation", doctor=other_doctor)

        with pytest.raises(StaleQueueEntryError):
            call_next_patient(doctor=doctor, entry=stale)


@pytest.mark.skipif(connection.vendor != "postgresql", reason="needs row-level locking")
@pytest.mark.django_db(transaction=True)
class TestTransitionConcurrency:
    def test_concurrent_transitions_one_winner(self, patient, doctor):
        """Writers that all observed version 0: exactly one wins."""
        entry = add_to_queue(patient)
        copies = [QueueEntry.objects.get(pk=entry.pk) for _ in range(4)]
        targets = ["in_consultation", "cancelled", "urgent", "cancelled"]

        def attempt(args):
            copy, to_status = args
            try:
                transition_entry(copy, to_status, doctor=doctor if to_status == "in_consultation" else None)
                return True
            except StaleQueueEntryError:
                return False
            finally:
                connection.close()

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(attempt, zip(copies, targets)))

        assert results.count(True) == 1
        entry.refresh_from_db()
        assert entry.version == 1
        assert QueueTransition.objects.filter(entry=entry).count() == 1
