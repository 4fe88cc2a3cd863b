"""Queue models.

QueueEntry rows are never deleted: cancelling is a status change. Status
changes go through `queue.services.transition_entry()`, which compares the
observed (status, version) pair before writing.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_desk.basemodels import TimeStampedModel, UUIDModel
from clinic_desk.conf import get_setting

from . import graph


def default_consultation_minutes():
    return get_setting("DEFAULT_CONSULTATION_MINUTES")


class QueueCounter(models.Model):
    """Per-day queue number counter, locked with select_for_update()."""

    queue_date = models.DateField(unique=True)
    current_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.queue_date}: {self.current_value}"


class QueueEntry(UUIDModel, TimeStampedModel):
    """One patient's place in one day's queue."""

    STATUS_CHOICES = [
        (graph.WAITING, "Waiting"),
        (graph.URGENT, "Urgent"),
        (graph.IN_CONSULTATION, "In Consultation"),
        (graph.DISPENSARY, "Dispensary"),
        (graph.COMPLETED, "Completed"),
        (graph.CANCELLED, "Cancelled"),
    ]

    PAYMENT_METHOD_CHOICES = [
        ("self_pay", "Self-Pay"),
        ("insurance", "Insurance"),
        ("company", "Company"),
        ("government", "Government"),
    ]

    patient = models.ForeignKey(
        "clinic_patients.Patient",
        on_delete=models.PROTECT,
        related_name="queue_entries",
    )
    queue_number = models.CharField(max_length=20)
    queue_date = models.DateField(default=timezone.localdate, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=graph.WAITING)
    checked_in_at = models.DateTimeField(default=timezone.now)
    consultation_started_at = models.DateTimeField(null=True, blank=True)
    consultation_completed_at = models.DateTimeField(null=True, blank=True)
    assigned_doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="queue_entries",
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PAYMENT_METHOD_CHOICES,
        default="self_pay",
    )
    visit_reason = models.CharField(max_length=255, blank=True)
    estimated_consultation_duration = models.PositiveIntegerField(
        default=default_consultation_minutes,
        help_text="Minutes",
    )
    version = models.PositiveIntegerField(
        default=0,
        help_text="Incremented on every status change",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["queue_date", "checked_in_at"]
        verbose_name_plural = "queue entries"
        constraints = [
            models.UniqueConstraint(
                fields=["queue_date", "queue_number"],
                name="unique_queue_number_per_day",
            ),
        ]
        indexes = [
            models.Index(fields=["queue_date", "status"], name="queue_date_status_idx"),
        ]

    def __str__(self):
        return f"{self.queue_number} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in graph.TERMINAL_STATUSES


class QueueTransition(models.Model):
    """Audit record of a queue status change."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    entry = models.ForeignKey(
        QueueEntry,
        on_delete=models.CASCADE,
        related_name="transitions",
    )
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)
    transitioned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    transitioned_at = models.DateTimeField(auto_now_add=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["transitioned_at"]

    def __str__(self):
        return f"{self.entry.queue_number}: {self.from_status} -> {self.to_status}"
