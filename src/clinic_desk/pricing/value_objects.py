"""Value objects for the pricing module."""

from dataclasses import dataclass
from typing import Optional

from clinic_desk.money import Money


PRICE_SOURCE_TIER = "tier"
PRICE_SOURCE_BASE = "base"


@dataclass(frozen=True)
class ResolvedPrice:
    """Result of resolving an item's unit price for a tier.

    `tier_missing` is set when the patient has no tier at all, which callers
    must surface as a warning. A tier without an override is not a warning.
    """

    price: Money
    source: str
    tier_name: Optional[str] = None
    tier_missing: bool = False

    @property
    def is_tier_price(self) -> bool:
        return self.source == PRICE_SOURCE_TIER

    @property
    def warning(self) -> Optional[str]:
        if self.tier_missing:
            return "No pricing tier assigned to this patient; base price applied"
        return None

    def as_dict(self) -> dict:
        return {
            "price": str(self.price.amount),
            "currency": self.price.currency,
            "source": self.source,
            "tier_name": self.tier_name,
            "tier_missing": self.tier_missing,
            "warning": self.warning,
        }
