"""Patient models.

Patient rows are never hard-deleted by the workflow (soft delete only).
PatientActivity is the append-only timeline written by registration,
consultation and payment services.
"""

import uuid

from django.conf import settings
from django.db import models

from clinic_desk.basemodels import BaseModel


class Patient(BaseModel):
    """A registered clinic patient."""

    GENDER_CHOICES = [
        ("male", "Male"),
        ("female", "Female"),
        ("other", "Other"),
    ]

    patient_id = models.CharField(
        max_length=13,
        unique=True,
        help_text="Human-readable numeric patient code",
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=30)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    nric = models.CharField(max_length=14, blank=True)
    email = models.EmailField(blank=True)
    allergies = models.TextField(blank=True)
    medical_history = models.TextField(blank=True)
    visit_reason = models.CharField(max_length=255, blank=True)

    assigned_tier = models.ForeignKey(
        "clinic_pricing.PriceTier",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="patients",
    )
    tier_assigned_at = models.DateTimeField(null=True, blank=True)
    tier_assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registered_patients",
    )

    class Meta:
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["phone"], name="patient_phone_idx"),
            models.Index(fields=["last_name", "first_name"], name="patient_name_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.patient_id})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class PatientActivity(models.Model):
    """Immutable timeline entry for a patient.

    Activities are append-only: they record what happened at the desk and
    in the consulting room and are never edited afterwards.
    """

    ACTIVITY_TYPE_CHOICES = [
        ("registration", "Registration"),
        ("consultation", "Consultation"),
        ("medication", "Medication"),
        ("treatment", "Treatment"),
        ("payment", "Payment"),
        ("queue", "Queue"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name="activities",
    )
    activity_type = models.CharField(max_length=20, choices=ACTIVITY_TYPE_CHOICES, db_index=True)
    title = models.CharField(max_length=200)
    content = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    staff_member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    status = models.CharField(max_length=20, default="completed")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "patient activities"

    def __str__(self):
        return f"{self.activity_type}: {self.title}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Patient activities are immutable and cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Patient activities are immutable and cannot be deleted")
