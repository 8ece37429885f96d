"""
Invoice Lifecycle (``billing_modules.invoicing.lifecycle``).

Responsibility
--------------
Applies status changes to invoices according to ``INVOICE_WORKFLOW``.
Named triggers (``mark_sent``, ``mark_viewed``, ``cancel``,
``sweep_overdue``) go through ``transition``, which enforces the table
and evaluates the guard declared on each transition.

Architecture position
---------------------
**Modules layer** -- pure functional core.  "Today" comes from the
injected ``Clock``.

Invariants enforced
-------------------
* A status change not declared in ``INVOICE_WORKFLOW`` raises
  ``InvalidTransitionError`` carrying the attempted pair.
* A declared transition with a guard fires only when the guard holds;
  otherwise ``GuardFailedError`` is raised.  Nothing reaches PAID
  without a payment for the full total.
* PAID and CANCELLED are terminal.
* Entering PAID settles the invoice: ``paid_amount == total_amount`` and
  ``balance_amount == 0``.
* ``sweep_overdue`` never raises; when nothing is due it returns the
  invoice unchanged.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.values import ZERO
from billing_kernel.domain.workflow import Guard
from billing_kernel.exceptions import GuardFailedError, InvalidTransitionError
from billing_kernel.logging_config import get_logger
from billing_modules.invoicing.models import (
    SETTLED_STATUSES,
    Invoice,
    InvoiceStatus,
    Payment,
)
from billing_modules.invoicing.workflows import (
    FULL_PAYMENT_RECEIVED,
    INVOICE_WORKFLOW,
    PAST_DUE,
)

logger = get_logger("modules.invoicing.lifecycle")

_SWEEPABLE = frozenset({InvoiceStatus.SENT, InvoiceStatus.VIEWED})


class InvoiceLifecycle:
    """Status transitions for invoices."""

    workflow = INVOICE_WORKFLOW

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    def can_transition(self, from_status: InvoiceStatus, to_status: InvoiceStatus) -> bool:
        return self.workflow.find_transition(from_status.value, to_status.value) is not None

    def available_actions(self, status: InvoiceStatus) -> tuple[str, ...]:
        """Trigger names offered in ``status``, for presentation layers."""
        return self.workflow.actions_from(status.value)

    def next_statuses(self, status: InvoiceStatus) -> tuple[InvoiceStatus, ...]:
        return tuple(
            InvoiceStatus(t.to_state) for t in self.workflow.transitions_from(status.value)
        )

    def transition(
        self,
        invoice: Invoice,
        to_status: InvoiceStatus,
        payment: Payment | None = None,
        today: date | None = None,
    ) -> Invoice:
        """
        Move ``invoice`` to ``to_status`` if the table allows it.

        A declared transition that carries a guard only fires when the
        guard holds: ``past_due`` compares ``today`` (default: the clock)
        with the due date, ``full_payment_received`` needs a ``payment``
        for exactly ``total_amount``.

        Raises:
            InvalidTransitionError: the pair is not in the table.
            GuardFailedError: the pair is declared but its guard fails.
        """
        declared = self.workflow.find_transition(invoice.status.value, to_status.value)
        if declared is None:
            logger.warning(
                "invoice_transition_rejected",
                extra={
                    "invoice_id": str(invoice.id),
                    "from_status": invoice.status.value,
                    "to_status": to_status.value,
                },
            )
            raise InvalidTransitionError(
                invoice.status.value, to_status.value, entity_id=str(invoice.id)
            )

        if declared.guard is not None and not self._guard_holds(
            declared.guard, invoice, payment, today,
        ):
            logger.warning(
                "invoice_transition_guard_failed",
                extra={
                    "invoice_id": str(invoice.id),
                    "from_status": invoice.status.value,
                    "to_status": to_status.value,
                    "guard": declared.guard.name,
                },
            )
            raise GuardFailedError(
                invoice.status.value,
                to_status.value,
                declared.guard.name,
                entity_id=str(invoice.id),
            )

        changes = {"status": to_status}
        if to_status == InvoiceStatus.PAID:
            changes["paid_amount"] = invoice.total_amount
            changes["balance_amount"] = ZERO

        updated = replace(invoice, **changes)
        logger.info(
            "invoice_status_changed",
            extra={
                "invoice_id": str(invoice.id),
                "from_status": invoice.status.value,
                "to_status": to_status.value,
            },
        )
        return updated

    def mark_sent(self, invoice: Invoice) -> Invoice:
        return self.transition(invoice, InvoiceStatus.SENT)

    def mark_viewed(self, invoice: Invoice) -> Invoice:
        return self.transition(invoice, InvoiceStatus.VIEWED)

    def cancel(self, invoice: Invoice) -> Invoice:
        return self.transition(invoice, InvoiceStatus.CANCELLED)

    def is_overdue(self, invoice: Invoice, today: date | None = None) -> bool:
        """Past due and not yet settled (PAID/CANCELLED)."""
        today = today or self._clock.today()
        return invoice.status not in SETTLED_STATUSES and today > invoice.due_date

    def sweep_overdue(self, invoice: Invoice, today: date | None = None) -> Invoice:
        """
        Move a past-due SENT/VIEWED invoice to OVERDUE.

        Idempotent: in any other case the invoice is returned unchanged.
        """
        today = today or self._clock.today()
        if invoice.status not in _SWEEPABLE or not today > invoice.due_date:
            return invoice
        return self.transition(invoice, InvoiceStatus.OVERDUE, today=today)

    def _guard_holds(
        self,
        guard: Guard,
        invoice: Invoice,
        payment: Payment | None,
        today: date | None,
    ) -> bool:
        if guard == PAST_DUE:
            return (today or self._clock.today()) > invoice.due_date
        if guard == FULL_PAYMENT_RECEIVED:
            return (
                payment is not None
                and payment.invoice_id == invoice.id
                and payment.amount == invoice.total_amount
            )
        raise ValueError(f"No evaluator for workflow guard {guard.name}")
