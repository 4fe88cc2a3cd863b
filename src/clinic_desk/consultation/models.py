"""Consultation models.

A ConsultationSession records one doctor/patient encounter. Its
TreatmentItems are the invoice lines the dispensary bills against.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Round
from django.utils import timezone

from clinic_desk.basemodels import TimeStampedModel, UUIDModel
from clinic_desk.conf import get_currency
from clinic_desk.money import Money


class ConsultationSession(UUIDModel, TimeStampedModel):
    """One consultation, usually opened from a queue entry."""

    STATUS_CHOICES = [
        ("active", "Active"),
        ("completed", "Completed"),
    ]

    patient = models.ForeignKey(
        "clinic_patients.Patient",
        on_delete=models.PROTECT,
        related_name="consultations",
    )
    queue_entry = models.ForeignKey(
        "clinic_queue.QueueEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultations",
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="consultations",
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    notes = models.TextField(blank=True)
    diagnosis = models.TextField(blank=True)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-started_at"]

    def __str__(self):
        return f"Consultation {self.pk} ({self.status})"

    @property
    def is_active(self):
        return self.status == "active"


class TreatmentItem(UUIDModel, TimeStampedModel):
    """A billed medication or service within a consultation.

    total_amount is always quantity * rate; save() recomputes it and a
    check constraint enforces it in the database.
    """

    ITEM_TYPE_CHOICES = [
        ("medication", "Medication"),
        ("service", "Service"),
    ]

    PRICE_SOURCE_CHOICES = [
        ("tier", "Tier"),
        ("base", "Base"),
        ("manual", "Manual"),
    ]

    session = models.ForeignKey(
        ConsultationSession,
        on_delete=models.CASCADE,
        related_name="items",
    )
    item_type = models.CharField(max_length=20, choices=ITEM_TYPE_CHOICES)
    medication = models.ForeignKey(
        "clinic_pricing.Medication",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    service = models.ForeignKey(
        "clinic_pricing.MedicalService",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(default=1)
    rate = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    price_source = models.CharField(max_length=10, choices=PRICE_SOURCE_CHOICES)
    tier_name = models.CharField(max_length=100, blank=True)

    # Medication instructions, printed on the label
    dosage = models.CharField(max_length=100, blank=True)
    frequency = models.CharField(max_length=100, blank=True)
    duration = models.CharField(max_length=100, blank=True)
    instruction = models.TextField(blank=True)

    added_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount=Round(F("quantity") * F("rate"), 2)),
                name="treatment_item_total_is_quantity_times_rate",
            ),
            models.CheckConstraint(
                condition=Q(rate__gte=0),
                name="treatment_item_rate_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    Q(item_type="medication", service__isnull=True)
                    | Q(item_type="service", medication__isnull=True)
                ),
                name="treatment_item_single_catalog_link",
            ),
        ]

    def __str__(self):
        return f"{self.description} x{self.quantity}"

    def save(self, *args, **kwargs):
        self.rate = quantize_rate(self.rate)
        self.total_amount = compute_total(self.quantity, self.rate)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"rate", "total_amount"}
        super().save(*args, **kwargs)

    @property
    def total(self) -> Money:
        return Money(self.total_amount, get_currency())

    @property
    def has_instructions(self):
        return bool(self.dosage or self.frequency or self.duration)


CENT = Decimal("0.01")


def quantize_rate(rate) -> Decimal:
    """Unit rate at the two decimal places it is stored with."""
    return Decimal(str(rate)).quantize(CENT)


def compute_total(quantity, rate) -> Decimal:
    """quantity * rate, at two decimal places."""
    return (Decimal(quantity) * quantize_rate(rate)).quantize(CENT)
