"""Money value object with currency-aware arithmetic."""

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

from .exceptions import CurrencyMismatchError


# Currency precision rules for settlement/display
CURRENCY_DECIMALS = {
    'MYR': 2, 'SGD': 2, 'USD': 2, 'EUR': 2, 'GBP': 2,
    'AUD': 2, 'CAD': 2, 'CNY': 2, 'THB': 2,
    'JPY': 0, 'IDR': 0,
}

CURRENCY_SYMBOLS = {
    'MYR': 'RM',
    'SGD': 'S$',
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'AUD': 'A$',
    'CAD': 'C$',
    'CNY': '¥',
    'JPY': '¥',
    'THB': '฿',
    'IDR': 'Rp',
}


def get_currency_symbol(currency: str) -> str:
    """Return the display symbol for an ISO code, or the code itself."""
    return CURRENCY_SYMBOLS.get(currency.upper(), currency)


@dataclass(frozen=True)
class Money:
    """
    Immutable money value object.

    Always normalizes amount to Decimal for precision.

    Usage:
        rate = Money(Decimal("10.00"), "MYR")
        total = rate * 3             # Money(Decimal("30.00"), "MYR")
        str(total.quantized())       # "RM30.00"
    """
    amount: Decimal
    currency: str

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            # Use object.__setattr__ because dataclass is frozen
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))

    @classmethod
    def zero(cls, currency: str) -> 'Money':
        return cls(Decimal("0"), currency)

    def quantized(self) -> 'Money':
        """
        Return quantized to currency decimals for display/settlement.

        Uses banker's rounding (ROUND_HALF_EVEN).
        """
        decimals = CURRENCY_DECIMALS.get(self.currency, 2)
        quantized_amount = self.amount.quantize(
            Decimal(10) ** -decimals,
            rounding=ROUND_HALF_EVEN
        )
        return Money(quantized_amount, self.currency)

    def format(self) -> str:
        """Symbol-prefixed display string, e.g. 'RM10.50'."""
        decimals = CURRENCY_DECIMALS.get(self.currency, 2)
        number = f"{self.quantized().amount:,.{decimals}f}"
        return f"{get_currency_symbol(self.currency)}{number}"

    def __str__(self) -> str:
        return self.format()

    def _check_currency(self, other: 'Money', verb: str):
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                f"Cannot {verb} {self.currency} and {other.currency}"
            )

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor: Union[Decimal, int, float]) -> 'Money':
        return Money(self.amount * Decimal(str(factor)), self.currency)

    def __rmul__(self, factor: Union[Decimal, int, float]) -> 'Money':
        return self.__mul__(factor)

    def __neg__(self) -> 'Money':
        return Money(-self.amount, self.currency)

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_zero(self) -> bool:
        return self.amount == 0


def sum_money(values, currency: str) -> Money:
    """Sum an iterable of Money (or Decimal amounts) in a single currency."""
    total = Money.zero(currency)
    for value in values:
        if not isinstance(value, Money):
            value = Money(value, currency)
        total = total + value
    return total
