"""Exceptions for pricing module."""

from clinic_desk.exceptions import ClinicDeskError


class PricingError(ClinicDeskError):
    """Base exception for pricing errors."""

    pass


class NoPriceFoundError(PricingError):
    """Raised when an item has neither a tier override nor a base price."""

    def __init__(self, item, tier=None):
        self.item = item
        self.tier = tier
        tier_label = tier.tier_name if tier is not None else "no tier"
        super().__init__(f"No price defined for '{item.name}' ({tier_label})")
