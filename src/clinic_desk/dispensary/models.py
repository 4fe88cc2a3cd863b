"""Dispensary models.

Payment is the persisted ledger of money received against a
consultation. Invoice totals are never stored: they are derived from the
current treatment items and confirmed payments on every read.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from clinic_desk.basemodels import TimeStampedModel, UUIDModel
from clinic_desk.conf import get_currency
from clinic_desk.money import Money


REFERENCE_REQUIRED_METHODS = ("card", "online")


class Payment(UUIDModel, TimeStampedModel):
    """Money received for a consultation."""

    PAYMENT_METHOD_CHOICES = [
        ("cash", "Cash"),
        ("card", "Card"),
        ("online", "Online Transfer"),
        ("insurance", "Insurance"),
        ("panel", "Panel"),
    ]

    STATUS_CHOICES = [
        ("confirmed", "Confirmed"),
        ("voided", "Voided"),
    ]

    session = models.ForeignKey(
        "clinic_consultation.ConsultationSession",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    patient = models.ForeignKey(
        "clinic_patients.Patient",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    reference_number = models.CharField(max_length=100, blank=True)
    receipt_number = models.CharField(max_length=30, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="confirmed")
    notes = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    paid_at = models.DateTimeField(default=timezone.now)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.TextField(blank=True)

    class Meta:
        ordering = ["paid_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="payment_amount_positive",
            ),
            models.CheckConstraint(
                condition=~Q(payment_method__in=REFERENCE_REQUIRED_METHODS) | ~Q(reference_number=""),
                name="payment_reference_required",
            ),
        ]

    def __str__(self):
        return f"{self.receipt_number}: {self.amount}"

    @property
    def money(self) -> Money:
        return Money(self.amount, get_currency())

    @property
    def is_confirmed(self):
        return self.status == "confirmed"
