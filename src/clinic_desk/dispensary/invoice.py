"""Invoice arithmetic."""

from dataclasses import dataclass
from typing import Iterable, Optional

from clinic_desk.conf import get_currency
from clinic_desk.money import Money, sum_money


@dataclass(frozen=True)
class InvoiceSummary:
    total_amount: Money
    total_paid: Money
    amount_due: Money

    @property
    def is_settled(self) -> bool:
        return self.total_paid.amount >= self.total_amount.amount

    @property
    def overpaid(self) -> Money:
        change = self.total_paid - self.total_amount
        return change if change.is_positive() else Money.zero(change.currency)

    def as_dict(self) -> dict:
        return {
            "currency": self.total_amount.currency,
            "total_amount": str(self.total_amount.quantized().amount),
            "total_paid": str(self.total_paid.quantized().amount),
            "amount_due": str(self.amount_due.quantized().amount),
            "is_settled": self.is_settled,
        }


def summarize(
    item_totals: Iterable,
    payment_amounts: Iterable,
    currency: Optional[str] = None,
) -> InvoiceSummary:
    """
    Total the items and payments of a visit.

    amount_due never goes below zero; over-payment shows as `overpaid`.
    """
    currency = currency or get_currency()
    total_amount = sum_money(item_totals, currency)
    total_paid = sum_money(payment_amounts, currency)
    amount_due = total_amount - total_paid
    if not amount_due.is_positive():
        amount_due = Money.zero(currency)
    return InvoiceSummary(
        total_amount=total_amount,
        total_paid=total_paid,
        amount_due=amount_due,
    )
