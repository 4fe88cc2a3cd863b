"""Selectors for the pricing module.

Provides the tier price resolution algorithm and price list queries.
"""

from clinic_desk.conf import get_currency
from clinic_desk.money import Money

from .exceptions import NoPriceFoundError
from .models import MedicalService, Medication, PriceTier
from .value_objects import PRICE_SOURCE_BASE, PRICE_SOURCE_TIER, ResolvedPrice


def resolve_price(item, tier) -> ResolvedPrice:
    """Resolve the unit price of a medication or service for a tier.

    Resolution order (first match wins):
    1. Override row keyed by (item, tier)
    2. The item's base price

    Args:
        item: Medication or MedicalService
        tier: PriceTier, or None to go straight to the base price

    Returns:
        ResolvedPrice with the price and its source.

    Raises:
        NoPriceFoundError: If no override exists and base_price is undefined.
    """
    currency = get_currency()

    if tier is not None:
        override = item.get_override(tier)
        if override is not None:
            return ResolvedPrice(
                price=Money(override.price, currency),
                source=PRICE_SOURCE_TIER,
                tier_name=tier.tier_name,
            )

    if item.base_price is None:
        raise NoPriceFoundError(item, tier)

    return ResolvedPrice(
        price=Money(item.base_price, currency),
        source=PRICE_SOURCE_BASE,
        tier_name=tier.tier_name if tier is not None else None,
        tier_missing=tier is None,
    )


def resolve_price_for_patient(item, patient) -> ResolvedPrice:
    """Resolve an item's price using the patient's assigned tier.

    Patients without a tier short-circuit to the base price with
    `tier_missing=True`.
    """
    return resolve_price(item, patient.assigned_tier)


def get_price_list(tier) -> list[dict]:
    """Price every active medication and service for a tier.

    Items without any price are listed with price None instead of raising.
    """
    rows = []
    for model in (Medication, MedicalService):
        for item in model.objects.filter(is_active=True).order_by("name"):
            try:
                resolved = resolve_price(item, tier)
            except NoPriceFoundError:
                rows.append({
                    "item_id": str(item.pk),
                    "item_type": item.item_type,
                    "name": item.name,
                    "price": None,
                    "source": None,
                })
                continue
            rows.append({
                "item_id": str(item.pk),
                "item_type": item.item_type,
                "name": item.name,
                "price": str(resolved.price.amount),
                "source": resolved.source,
            })
    return rows


def get_active_tiers():
    return PriceTier.objects.filter(is_active=True)


def format_price_with_tier(price: Money, tier_name: str) -> str:
    """Format like 'RM10.00 (Insurance Rate)'."""
    return f"{price.format()} ({tier_name} Rate)"
