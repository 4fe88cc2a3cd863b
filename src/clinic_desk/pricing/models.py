"""Models for the pricing module.

A PriceTier is a named pricing profile. Medications and services carry a
base price, and MedicationPricing / ServicePricing rows override it for a
single tier. Resolution is a strict two-level fallback, see
`pricing.selectors.resolve_price()`.
"""

from django.db import models
from django.db.models import Q

from clinic_desk.basemodels import TimeStampedModel, UUIDModel
from clinic_desk.conf import get_currency
from clinic_desk.money import Money


class PriceTier(UUIDModel, TimeStampedModel):
    """Named pricing profile (Self-Pay, Insurance, Corporate, ...)."""

    tier_name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["tier_name"]

    def __str__(self):
        return self.tier_name


class BillableItem(UUIDModel, TimeStampedModel):
    """Common fields for anything that can become a treatment item."""

    item_type = None

    name = models.CharField(max_length=200)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="NULL means no base price has been set",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        abstract = True
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def base_money(self):
        if self.base_price is None:
            return None
        return Money(self.base_price, get_currency())

    def get_override(self, tier):
        """Return the tier override row for this item, or None."""
        raise NotImplementedError


class Medication(BillableItem):
    """A dispensable medication."""

    item_type = "medication"

    unit = models.CharField(max_length=50, blank=True, help_text="e.g. tablet, bottle")
    default_dosage = models.CharField(max_length=100, blank=True)
    default_frequency = models.CharField(max_length=100, blank=True)

    class Meta(BillableItem.Meta):
        constraints = [
            models.CheckConstraint(
                condition=Q(base_price__isnull=True) | Q(base_price__gte=0),
                name="medication_base_price_non_negative",
            ),
        ]

    def get_override(self, tier):
        return self.tier_prices.filter(tier=tier).first()


class MedicalService(BillableItem):
    """A billable clinical service (consultation fee, dressing, ...)."""

    item_type = "service"

    category = models.CharField(max_length=100, blank=True)

    class Meta(BillableItem.Meta):
        constraints = [
            models.CheckConstraint(
                condition=Q(base_price__isnull=True) | Q(base_price__gte=0),
                name="service_base_price_non_negative",
            ),
        ]

    def get_override(self, tier):
        return self.tier_prices.filter(tier=tier).first()


class MedicationPricing(UUIDModel, TimeStampedModel):
    """Tier-specific price for a medication."""

    medication = models.ForeignKey(
        Medication,
        on_delete=models.CASCADE,
        related_name="tier_prices",
    )
    tier = models.ForeignKey(
        PriceTier,
        on_delete=models.PROTECT,
        related_name="medication_prices",
    )
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        unique_together = ["medication", "tier"]
        constraints = [
            models.CheckConstraint(
                condition=Q(price__gte=0),
                name="medication_pricing_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.medication} @ {self.tier}: {self.price}"


class ServicePricing(UUIDModel, TimeStampedModel):
    """Tier-specific price for a medical service."""

    service = models.ForeignKey(
        MedicalService,
        on_delete=models.CASCADE,
        related_name="tier_prices",
    )
    tier = models.ForeignKey(
        PriceTier,
        on_delete=models.PROTECT,
        related_name="service_prices",
    )
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        unique_together = ["service", "tier"]
        constraints = [
            models.CheckConstraint(
                condition=Q(price__gte=0),
                name="service_pricing_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.service} @ {self.tier}: {self.price}"
