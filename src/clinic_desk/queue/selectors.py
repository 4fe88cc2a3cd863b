"""Read-side queries for the patient queue.

Wait time and estimate helpers take `now` so they can be evaluated
against a fixed clock.
"""

from typing import Optional

from django.db.models import Case, IntegerField, Value, When
from django.utils import timezone

from clinic_desk.conf import get_setting

from . import graph
from .models import QueueEntry


WAIT_NORMAL = "normal"
WAIT_WARNING = "warning"
WAIT_URGENT = "urgent"


def get_todays_queue(queue_date=None, status=None):
    """Entries for a day in check-in order, optionally filtered by status."""
    queue_date = queue_date or timezone.localdate()
    qs = QueueEntry.objects.filter(queue_date=queue_date).select_related(
        "patient", "patient__assigned_tier", "assigned_doctor"
    )
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("checked_in_at", "queue_number")


def get_entry(entry_id) -> QueueEntry:
    return QueueEntry.objects.select_related("patient", "assigned_doctor").get(pk=entry_id)


def get_callable_entries(queue_date=None) -> list[QueueEntry]:
    """Entries that can be called, urgent first then oldest first."""
    queue_date = queue_date or timezone.localdate()
    priority = Case(
        When(status=graph.URGENT, then=Value(0)),
        default=Value(1),
        output_field=IntegerField(),
    )
    return list(
        QueueEntry.objects.filter(queue_date=queue_date, status__in=graph.CALLABLE_STATUSES)
        .annotate(call_priority=priority)
        .order_by("call_priority", "checked_in_at", "queue_number")
    )


def wait_minutes(entry: QueueEntry, now=None) -> int:
    """Whole minutes since check-in; completed entries stop the clock."""
    now = now or timezone.now()
    if entry.status == graph.COMPLETED and entry.consultation_completed_at:
        now = entry.consultation_completed_at
    seconds = (now - entry.checked_in_at).total_seconds()
    return max(0, int(seconds // 60))


def wait_bucket(minutes: int) -> str:
    """Colour bucket for a wait time: normal, warning or urgent."""
    if minutes >= get_setting("WAIT_URGENT_MINUTES"):
        return WAIT_URGENT
    if minutes >= get_setting("WAIT_WARNING_MINUTES"):
        return WAIT_WARNING
    return WAIT_NORMAL


def get_current_number(entries) -> Optional[str]:
    """Number on the display board.

    The entry in consultation, else the first one waiting, else the last
    one to leave the consulting room.
    """
    entries = list(entries)
    for entry in entries:
        if entry.status == graph.IN_CONSULTATION:
            return entry.queue_number
    for entry in entries:
        if entry.status in graph.CALLABLE_STATUSES:
            return entry.queue_number
    finished = [e for e in entries if e.status in (graph.DISPENSARY, graph.COMPLETED)]
    if finished:
        return finished[-1].queue_number
    return None


def get_queue_position(entry: QueueEntry, entries=None) -> Optional[int]:
    """1-based position among callable entries, in call order."""
    if entry.status not in graph.CALLABLE_STATUSES:
        return None
    callable_entries = get_callable_entries(entry.queue_date) if entries is None else [
        e for e in entries if e.status in graph.CALLABLE_STATUSES
    ]
    for position, candidate in enumerate(callable_entries, start=1):
        if candidate.pk == entry.pk:
            return position
    return None


def get_estimated_wait_minutes(entry: QueueEntry, now=None) -> int:
    """
    Estimate minutes until this entry is called.

    Each callable entry ahead costs its estimated consultation duration,
    plus whatever remains of consultations already in progress.
    """
    if entry.status not in graph.CALLABLE_STATUSES:
        return 0

    now = now or timezone.now()
    ahead = get_callable_entries(entry.queue_date)
    estimate = 0.0
    for candidate in ahead:
        if candidate.pk == entry.pk:
            break
        estimate += candidate.estimated_consultation_duration

    in_progress = QueueEntry.objects.filter(
        queue_date=entry.queue_date, status=graph.IN_CONSULTATION
    )
    for current in in_progress:
        started = current.consultation_started_at or current.checked_in_at
        elapsed = (now - started).total_seconds() / 60
        estimate += max(0.0, current.estimated_consultation_duration - elapsed)

    return round(estimate)


def get_queue_stats(queue_date=None, now=None) -> dict:
    """
    Counts per status plus wait statistics for callable entries.

    Returns:
        {"total", "waiting", "urgent", "in_consultation", "dispensary",
         "completed", "cancelled", "average_wait_minutes",
         "longest_wait_minutes"}
    """
    now = now or timezone.now()
    entries = list(get_todays_queue(queue_date))

    stats = {"total": len(entries)}
    for status in graph.QUEUE_STATUSES:
        stats[status] = sum(1 for e in entries if e.status == status)

    waits = [wait_minutes(e, now) for e in entries if e.status in graph.CALLABLE_STATUSES]
    stats["average_wait_minutes"] = round(sum(waits) / len(waits)) if waits else 0
    stats["longest_wait_minutes"] = max(waits) if waits else 0
    return stats


def serialize_entry(entry: QueueEntry, now=None) -> dict:
    """JSON shape of an entry for the desk terminals."""
    now = now or timezone.now()
    minutes = wait_minutes(entry, now)
    patient = entry.patient
    return {
        "id": str(entry.pk),
        "queue_number": entry.queue_number,
        "status": entry.status,
        "version": entry.version,
        "checked_in_at": entry.checked_in_at.isoformat(),
        "consultation_started_at": (
            entry.consultation_started_at.isoformat() if entry.consultation_started_at else None
        ),
        "assigned_doctor": str(entry.assigned_doctor) if entry.assigned_doctor else None,
        "payment_method": entry.payment_method,
        "visit_reason": entry.visit_reason,
        "wait_minutes": minutes,
        "wait_bucket": wait_bucket(minutes),
        "allowed_transitions": graph.get_allowed_transitions(entry.status),
        "patient": {
            "id": str(patient.pk),
            "patient_id": patient.patient_id,
            "name": patient.full_name,
            "phone": patient.phone,
            "tier": patient.assigned_tier.tier_name if patient.assigned_tier else None,
        },
    }
