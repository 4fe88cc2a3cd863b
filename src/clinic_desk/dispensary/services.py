"""Payment recording for the dispensary.

Payments are rows in the Payment ledger. When confirmed payments cover
the invoice total, the visit's queue entry is completed.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from django.db import transaction
from django.utils import timezone

from clinic_desk.patients.services import record_activity
from clinic_desk.queue import graph
from clinic_desk.queue.models import QueueEntry
from clinic_desk.queue.services import transition_entry

from .exceptions import PaymentValidationError
from .invoice import InvoiceSummary
from .models import REFERENCE_REQUIRED_METHODS, Payment
from .selectors import get_invoice_summary

logger = logging.getLogger(__name__)

PAYMENT_METHODS = {value for value, _ in Payment.PAYMENT_METHOD_CHOICES}


class Receipt(NamedTuple):
    receipt_number: str
    payment: Payment
    summary: InvoiceSummary
    entry_completed: bool

    def as_dict(self) -> dict:
        return {
            "receipt_number": self.receipt_number,
            "payment_id": str(self.payment.pk),
            "amount": str(self.payment.amount),
            "payment_method": self.payment.payment_method,
            "reference_number": self.payment.reference_number,
            "paid_at": self.payment.paid_at.isoformat(),
            "entry_completed": self.entry_completed,
            **self.summary.as_dict(),
        }


def generate_receipt_number(payment: Payment) -> str:
    """RCP-YYYYMMDD-XXXXXX from the payment date and the tail of its id."""
    day = timezone.localtime(payment.paid_at).strftime("%Y%m%d")
    return f"RCP-{day}-{payment.pk.hex[-6:].upper()}"


def _clean_amount(amount) -> Decimal:
    try:
        amount = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise PaymentValidationError(f"Invalid amount '{amount}'", field="amount")
    if not amount.is_finite() or amount <= 0:
        raise PaymentValidationError("Payment amount must be greater than zero", field="amount")
    if amount != amount.quantize(Decimal("0.01")):
        raise PaymentValidationError("Payment amount has more than two decimal places", field="amount")
    return amount


@transaction.atomic
def record_payment(
    session,
    amount,
    payment_method: str,
    recorded_by,
    *,
    reference_number: str = "",
    notes: str = "",
) -> Receipt:
    """Record a payment against a consultation.

    If the entry is in the dispensary and confirmed payments now cover the
    total, the entry is completed.

    Args:
        session: The ConsultationSession being paid for
        amount: Payment amount (over-payment is allowed)
        payment_method: cash, card, online, insurance or panel
        recorded_by: User recording the payment
        reference_number: Required for card and online payments

    Returns:
        Receipt with the payment and the updated invoice summary

    Raises:
        PaymentValidationError: On bad input or a cancelled visit
    """
    amount = _clean_amount(amount)
    reference_number = (reference_number or "").strip()

    if payment_method not in PAYMENT_METHODS:
        raise PaymentValidationError(
            f"Unknown payment method '{payment_method}'", field="payment_method"
        )
    if payment_method in REFERENCE_REQUIRED_METHODS and not reference_number:
        raise PaymentValidationError(
            f"Reference number is required for {payment_method} payments",
            field="reference_number",
        )

    entry = None
    if session.queue_entry_id is not None:
        # Serialize payments for the same visit
        entry = QueueEntry.objects.select_for_update().get(pk=session.queue_entry_id)
        if entry.status == graph.CANCELLED:
            raise PaymentValidationError(f"Queue entry {entry.queue_number} is cancelled")

    payment = Payment(
        session=session,
        patient=session.patient,
        amount=amount,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
        processed_by=recorded_by,
    )
    payment.receipt_number = generate_receipt_number(payment)
    payment.save()

    summary = get_invoice_summary(session)

    record_activity(
        session.patient,
        "payment",
        f"Payment {payment.receipt_number}",
        content=f"{payment.money.format()} via {payment.get_payment_method_display()}",
        metadata={
            "session_id": str(session.pk),
            "receipt_number": payment.receipt_number,
            "amount": str(amount),
            "payment_method": payment_method,
            "amount_due": str(summary.amount_due.quantized().amount),
        },
        staff_member=recorded_by,
    )

    entry_completed = False
    if entry is not None and entry.status == graph.DISPENSARY and summary.is_settled:
        transition_entry(
            entry,
            graph.COMPLETED,
            by_user=recorded_by,
            metadata={"receipt_number": payment.receipt_number},
        )
        entry_completed = True

    logger.info(
        "Payment %s of %s recorded for consultation %s (due %s)",
        payment.receipt_number,
        amount,
        session.pk,
        summary.amount_due.quantized().amount,
    )
    return Receipt(
        receipt_number=payment.receipt_number,
        payment=payment,
        summary=summary,
        entry_completed=entry_completed,
    )


def void_payment(payment: Payment, by_user=None, reason: str = "") -> Payment:
    """Mark a payment voided; it no longer counts towards the invoice."""
    if not payment.is_confirmed:
        raise PaymentValidationError(f"Payment {payment.receipt_number} is already voided")

    payment.status = "voided"
    payment.voided_at = timezone.now()
    payment.void_reason = reason
    payment.save(update_fields=["status", "voided_at", "void_reason", "updated_at"])

    logger.warning(
        "Payment %s voided by %s: %s", payment.receipt_number, by_user, reason or "no reason"
    )
    return payment


def build_receipt(payment: Payment) -> Receipt:
    """Receipt for an existing payment, with the invoice as it stands now."""
    entry = payment.session.queue_entry
    return Receipt(
        receipt_number=payment.receipt_number,
        payment=payment,
        summary=get_invoice_summary(payment.session),
        entry_completed=entry is not None and entry.status == graph.COMPLETED,
    )
