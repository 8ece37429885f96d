"""
Payment Processor (``billing_modules.invoicing.payments``).

Responsibility
--------------
Applies a payment to an invoice.  Only full payment is supported: the
amount must equal the invoice total exactly.

Preconditions are checked in a fixed order so callers always see the
same error for the same input:

1. invoice status is SENT, VIEWED or OVERDUE  (``InvalidStateError``)
2. the payment references this invoice         (``ValidationError``)
3. amount == total_amount                      (``AmountMismatchError``)
4. payment_date is not in the future           (``ValidationError``)
"""

from __future__ import annotations

from dataclasses import replace

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import (
    AmountMismatchError,
    InvalidStateError,
    ValidationError,
)
from billing_kernel.logging_config import get_logger
from billing_modules.invoicing.lifecycle import InvoiceLifecycle
from billing_modules.invoicing.models import (
    PAYABLE_STATUSES,
    Invoice,
    InvoiceStatus,
    Payment,
)

logger = get_logger("modules.invoicing.payments")


class PaymentProcessor:
    """Full-payment-only settlement of invoices."""

    def __init__(
        self,
        clock: Clock | None = None,
        lifecycle: InvoiceLifecycle | None = None,
    ):
        self._clock = clock or SystemClock()
        self._lifecycle = lifecycle or InvoiceLifecycle(self._clock)

    def apply_payment(self, invoice: Invoice, payment: Payment) -> Invoice:
        """Settle ``invoice`` with ``payment`` and move it to PAID."""
        if invoice.status not in PAYABLE_STATUSES:
            raise InvalidStateError(str(invoice.id), invoice.status.value, "record payment for")

        if payment.invoice_id != invoice.id:
            raise ValidationError(
                f"Payment references invoice {payment.invoice_id}, not {invoice.id}",
                field="invoice_id",
            )

        if payment.amount != invoice.total_amount:
            logger.warning(
                "payment_amount_mismatch",
                extra={
                    "invoice_id": str(invoice.id),
                    "expected": str(invoice.total_amount),
                    "received": str(payment.amount),
                },
            )
            raise AmountMismatchError(
                str(invoice.id), str(invoice.total_amount), str(payment.amount)
            )

        today = self._clock.today()
        if payment.payment_date > today:
            raise ValidationError(
                f"Payment date {payment.payment_date} is in the future (today {today})",
                field="payment_date",
            )

        paid = self._lifecycle.transition(invoice, InvoiceStatus.PAID, payment=payment)
        paid = replace(paid, last_payment_date=payment.payment_date)

        logger.info(
            "payment_applied",
            extra={
                "invoice_id": str(invoice.id),
                "amount": str(payment.amount),
                "payment_date": payment.payment_date.isoformat(),
                "reference": payment.reference,
            },
        )
        return paid
