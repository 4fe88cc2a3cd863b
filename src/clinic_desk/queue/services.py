"""Service functions for the patient queue.

Provides:
- next_queue_number: Allocate the day's next queue number
- add_to_queue: Create a queue entry for a patient
- transition_entry: Move an entry along the status graph (compare-and-swap)
- call_next_patient: Start a consultation with the next caller
- cancel_entry / complete_entry / mark_urgent / revert_to_waiting
"""

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from clinic_desk.conf import get_setting

from . import graph
from .exceptions import (
    DoctorBusyError,
    InvalidQueueTransition,
    QueueEmptyError,
    QueuePausedError,
    StaleQueueEntryError,
)
from .models import QueueCounter, QueueEntry, QueueTransition
from .selectors import get_callable_entries

logger = logging.getLogger(__name__)


def format_queue_number(value: int) -> str:
    prefix = get_setting("QUEUE_NUMBER_PREFIX")
    pad_width = get_setting("QUEUE_NUMBER_PAD")
    return f"{prefix}{str(value).zfill(pad_width)}"


def next_queue_number(queue_date=None) -> str:
    """
    Get the next queue number for a day atomically.

    Uses select_for_update() on the day's counter row so concurrent
    registrations never share a number. Numbering restarts every day.

    Returns:
        The formatted queue number (e.g., "Q001")
    """
    queue_date = queue_date or timezone.localdate()

    with transaction.atomic():
        try:
            counter = QueueCounter.objects.select_for_update().get(queue_date=queue_date)
        except QueueCounter.DoesNotExist:
            counter = QueueCounter.objects.create(queue_date=queue_date)
            counter = QueueCounter.objects.select_for_update().get(pk=counter.pk)

        counter.current_value += 1
        counter.save(update_fields=["current_value", "updated_at"])

        return format_queue_number(counter.current_value)


@transaction.atomic
def add_to_queue(
    patient,
    *,
    doctor=None,
    urgent: bool = False,
    payment_method: str = "self_pay",
    visit_reason: str = "",
    created_by=None,
    queue_date=None,
) -> QueueEntry:
    """Create today's queue entry for a patient, `waiting` or `urgent`."""
    queue_date = queue_date or timezone.localdate()

    entry = QueueEntry.objects.create(
        patient=patient,
        queue_number=next_queue_number(queue_date),
        queue_date=queue_date,
        status=graph.URGENT if urgent else graph.WAITING,
        assigned_doctor=doctor,
        payment_method=payment_method,
        visit_reason=visit_reason,
        created_by=created_by,
    )

    logger.info("Queued patient %s as %s (%s)", patient.pk, entry.queue_number, entry.status)
    return entry


def _check_doctor_free(entry: QueueEntry, doctor) -> None:
    busy = (
        QueueEntry.objects.filter(
            queue_date=entry.queue_date,
            status=graph.IN_CONSULTATION,
            assigned_doctor=doctor,
        )
        .exclude(pk=entry.pk)
        .first()
    )
    if busy is not None:
        raise DoctorBusyError(doctor, busy.queue_number)


def transition_entry(
    entry: QueueEntry,
    to_status: str,
    *,
    by_user=None,
    doctor=None,
    metadata: dict = None,
) -> QueueEntry:
    """
    Move a queue entry to a new status.

    The write only succeeds if the row still has the status and version
    this instance was read with; otherwise somebody else changed it first.

    Args:
        entry: The entry as last read by the caller
        to_status: Target status
        by_user: Optional user performing the transition
        doctor: Doctor to assign when entering in_consultation
        metadata: Optional metadata for the transition record

    Returns:
        The entry, refreshed from the database

    Raises:
        InvalidQueueTransition: If to_status is not reachable from the
            entry's status (always raised from terminal statuses)
        DoctorBusyError: If the doctor already has a patient in consultation
        StaleQueueEntryError: If the row changed since it was read
    """
    from_status = entry.status

    if not graph.can_transition(from_status, to_status):
        if from_status in graph.TERMINAL_STATUSES:
            raise InvalidQueueTransition(
                from_status, to_status,
                f"Cannot transition from terminal status '{from_status}'"
            )
        raise InvalidQueueTransition(from_status, to_status)

    now = timezone.now()
    updates = {
        "status": to_status,
        "version": F("version") + 1,
        "updated_at": now,
    }

    if to_status == graph.IN_CONSULTATION:
        doctor = doctor or entry.assigned_doctor
        if doctor is not None:
            _check_doctor_free(entry, doctor)
            updates["assigned_doctor"] = doctor
        updates["consultation_started_at"] = now
        updates["consultation_completed_at"] = None
    elif to_status in (graph.DISPENSARY, graph.COMPLETED):
        if entry.consultation_completed_at is None:
            updates["consultation_completed_at"] = now
    elif to_status == graph.WAITING and from_status != graph.URGENT:
        updates["consultation_started_at"] = None
        updates["consultation_completed_at"] = None

    with transaction.atomic():
        updated = QueueEntry.objects.filter(
            pk=entry.pk,
            status=from_status,
            version=entry.version,
        ).update(**updates)

        if updated == 0:
            raise StaleQueueEntryError(entry.pk, from_status, entry.version)

        QueueTransition.objects.create(
            entry=entry,
            from_status=from_status,
            to_status=to_status,
            transitioned_by=by_user,
            metadata=metadata or {},
        )

    entry.refresh_from_db()
    logger.info("Queue %s: %s -> %s", entry.queue_number, from_status, to_status)
    return entry


def call_next_patient(*, doctor, by_user=None, entry: QueueEntry = None, board=None, queue_date=None):
    """
    Start a consultation with the next patient.

    With an explicit entry, that entry is called and any error propagates.
    Otherwise urgent entries are tried before waiting ones, oldest first;
    an entry taken by a concurrent caller is skipped.

    Raises:
        QueuePausedError: If the board is paused
        QueueEmptyError: If nobody is left to call
    """
    if board is not None and board.paused:
        raise QueuePausedError()

    metadata = {"called_by": str(by_user.pk) if by_user is not None else None}

    if entry is not None:
        return transition_entry(
            entry, graph.IN_CONSULTATION, by_user=by_user, doctor=doctor, metadata=metadata
        )

    for candidate in get_callable_entries(queue_date):
        try:
            return transition_entry(
                candidate, graph.IN_CONSULTATION, by_user=by_user, doctor=doctor, metadata=metadata
            )
        except StaleQueueEntryError:
            logger.warning("Lost race for %s, trying next patient", candidate.queue_number)

    raise QueueEmptyError()


def cancel_entry(entry: QueueEntry, *, by_user=None, reason: str = "") -> QueueEntry:
    return transition_entry(
        entry, graph.CANCELLED, by_user=by_user, metadata={"reason": reason} if reason else None
    )


def complete_entry(entry: QueueEntry, *, by_user=None) -> QueueEntry:
    """Manually close an entry that is in the dispensary."""
    return transition_entry(entry, graph.COMPLETED, by_user=by_user, metadata={"manual": True})


def mark_urgent(entry: QueueEntry, *, by_user=None) -> QueueEntry:
    return transition_entry(entry, graph.URGENT, by_user=by_user)


def revert_to_waiting(entry: QueueEntry, *, by_user=None) -> QueueEntry:
    """The desk's "Mark as Waiting" action."""
    return transition_entry(entry, graph.WAITING, by_user=by_user)
