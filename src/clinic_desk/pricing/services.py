"""Services for pricing module.

Provides functions for:
- Seeding the default price tiers
- Setting and clearing tier overrides
"""

import logging

from django.db import transaction

from clinic_desk.conf import get_setting

from .models import MedicalService, Medication, MedicationPricing, PriceTier, ServicePricing

logger = logging.getLogger(__name__)


def seed_default_tiers() -> list[PriceTier]:
    """Create the configured default tiers if they do not exist yet."""
    tiers = []
    for tier_name, description in get_setting("DEFAULT_PRICE_TIERS"):
        tier, created = PriceTier.objects.get_or_create(
            tier_name=tier_name,
            defaults={"description": description},
        )
        if created:
            logger.info("Created price tier %s", tier_name)
        tiers.append(tier)
    return tiers


@transaction.atomic
def set_tier_price(item, tier: PriceTier, price):
    """Create or update the override for an item on a tier."""
    if isinstance(item, Medication):
        override, _ = MedicationPricing.objects.update_or_create(
            medication=item, tier=tier, defaults={"price": price},
        )
    elif isinstance(item, MedicalService):
        override, _ = ServicePricing.objects.update_or_create(
            service=item, tier=tier, defaults={"price": price},
        )
    else:
        raise TypeError(f"Cannot price {type(item).__name__}")
    return override


def clear_tier_price(item, tier: PriceTier) -> bool:
    """Remove an override so the item falls back to its base price."""
    deleted, _ = item.tier_prices.filter(tier=tier).delete()
    return deleted > 0
