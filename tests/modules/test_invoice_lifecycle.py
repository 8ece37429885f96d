"""
Invoice Lifecycle Tests.

Every (from, to) status pair is checked against the transition table,
plus the named triggers and the overdue sweep.
"""

from datetime import date
from decimal import Decimal

import pytest

from billing_kernel.exceptions import GuardFailedError, InvalidTransitionError
from billing_modules.invoicing.models import InvoiceStatus, Payment
from billing_modules.invoicing.workflows import INVOICE_WORKFLOW

S = InvoiceStatus

ALLOWED = {
    (S.DRAFT, S.SENT),
    (S.DRAFT, S.CANCELLED),
    (S.SENT, S.VIEWED),
    (S.SENT, S.OVERDUE),
    (S.SENT, S.CANCELLED),
    (S.SENT, S.PAID),
    (S.VIEWED, S.OVERDUE),
    (S.VIEWED, S.CANCELLED),
    (S.VIEWED, S.PAID),
    (S.OVERDUE, S.CANCELLED),
    (S.OVERDUE, S.PAID),
}

ALL_PAIRS = [(a, b) for a in InvoiceStatus for b in InvoiceStatus]

AFTER_DUE = date(2024, 2, 1)


def _full_payment(invoice) -> Payment:
    return Payment(invoice.id, invoice.total_amount, date(2024, 1, 1))


class TestTransitionTable:
    """The full 6 x 6 status matrix."""

    def test_workflow_declares_exactly_the_allowed_pairs(self):
        declared = {
            (S(t.from_state), S(t.to_state)) for t in INVOICE_WORKFLOW.transitions
        }
        assert declared == ALLOWED

    @pytest.mark.parametrize("from_status,to_status", ALL_PAIRS)
    def test_can_transition_matches_table(self, lifecycle, from_status, to_status):
        assert lifecycle.can_transition(from_status, to_status) == (
            (from_status, to_status) in ALLOWED
        )

    @pytest.mark.parametrize("from_status,to_status", ALL_PAIRS)
    def test_transition_enforces_table(
        self, lifecycle, invoice_factory, from_status, to_status,
    ):
        invoice = invoice_factory(status=from_status)
        if (from_status, to_status) in ALLOWED:
            moved = lifecycle.transition(
                invoice, to_status, payment=_full_payment(invoice), today=AFTER_DUE,
            )
            assert moved.status == to_status
        else:
            with pytest.raises(InvalidTransitionError) as exc_info:
                lifecycle.transition(invoice, to_status)
            assert exc_info.value.from_status == from_status.value
            assert exc_info.value.to_status == to_status.value

    def test_terminal_states_have_no_next_status(self, lifecycle):
        assert lifecycle.next_statuses(S.PAID) == ()
        assert lifecycle.next_statuses(S.CANCELLED) == ()

    def test_available_actions_for_sent(self, lifecycle):
        assert lifecycle.available_actions(S.SENT) == (
            "mark_viewed", "sweep_overdue", "cancel", "apply_payment",
        )

    def test_transition_returns_new_value(self, lifecycle, invoice_factory):
        invoice = invoice_factory()
        sent = lifecycle.mark_sent(invoice)
        assert invoice.status == S.DRAFT
        assert sent.status == S.SENT


class TestEnteringPaid:

    def test_paid_settles_balance(self, lifecycle, invoice_factory):
        invoice = invoice_factory(status=S.SENT)
        paid = lifecycle.transition(invoice, S.PAID, payment=_full_payment(invoice))
        assert paid.paid_amount == Decimal("250.00")
        assert paid.balance_amount == Decimal("0")


class TestGuards:
    """Declared transitions with a guard fire only when it holds."""

    @pytest.mark.parametrize("status", [S.SENT, S.VIEWED, S.OVERDUE])
    def test_paid_without_payment_rejected(self, lifecycle, invoice_factory, status):
        invoice = invoice_factory(status=status)
        with pytest.raises(GuardFailedError) as exc_info:
            lifecycle.transition(invoice, S.PAID)
        assert exc_info.value.guard == "full_payment_received"
        assert exc_info.value.code == "GUARD_FAILED"

    def test_paid_with_short_payment_rejected(self, lifecycle, invoice_factory):
        invoice = invoice_factory(status=S.SENT)
        short = Payment(invoice.id, Decimal("249.99"), date(2024, 1, 1))
        with pytest.raises(GuardFailedError):
            lifecycle.transition(invoice, S.PAID, payment=short)

    def test_paid_with_payment_for_other_invoice_rejected(self, lifecycle, invoice_factory):
        invoice = invoice_factory(status=S.SENT)
        other = invoice_factory(status=S.SENT)
        with pytest.raises(GuardFailedError):
            lifecycle.transition(invoice, S.PAID, payment=_full_payment(other))

    def test_overdue_before_due_date_rejected(self, lifecycle, invoice_factory):
        # Clock is at 2024-01-01, due date 2024-01-31
        invoice = invoice_factory(status=S.SENT)
        with pytest.raises(GuardFailedError) as exc_info:
            lifecycle.transition(invoice, S.OVERDUE)
        assert exc_info.value.guard == "past_due"
        assert isinstance(exc_info.value, InvalidTransitionError)

    def test_overdue_on_due_date_rejected(self, lifecycle, invoice_factory):
        invoice = invoice_factory(status=S.VIEWED)
        with pytest.raises(GuardFailedError):
            lifecycle.transition(invoice, S.OVERDUE, today=date(2024, 1, 31))

    def test_overdue_after_due_date_allowed(self, lifecycle, invoice_factory):
        invoice = invoice_factory(status=S.SENT)
        assert lifecycle.transition(invoice, S.OVERDUE, today=AFTER_DUE).status == S.OVERDUE

    def test_guard_failure_logged(self, lifecycle, invoice_factory, captured_logs):
        with pytest.raises(GuardFailedError):
            lifecycle.transition(invoice_factory(status=S.SENT), S.PAID)
        assert any(
            r["message"] == "invoice_transition_guard_failed"
            and r["guard"] == "full_payment_received"
            for r in captured_logs()
        )


class TestNamedTriggers:

    def test_mark_viewed_from_sent(self, lifecycle, invoice_factory):
        assert lifecycle.mark_viewed(invoice_factory(status=S.SENT)).status == S.VIEWED

    def test_mark_viewed_from_draft_rejected(self, lifecycle, invoice_factory):
        with pytest.raises(InvalidTransitionError):
            lifecycle.mark_viewed(invoice_factory())

    def test_cancel_paid_rejected(self, lifecycle, invoice_factory):
        with pytest.raises(InvalidTransitionError):
            lifecycle.cancel(invoice_factory(status=S.PAID))

    def test_rejection_logged(self, lifecycle, invoice_factory, captured_logs):
        with pytest.raises(InvalidTransitionError):
            lifecycle.mark_sent(invoice_factory(status=S.CANCELLED))
        assert any(
            r["message"] == "invoice_transition_rejected"
            and r["from_status"] == "cancelled"
            for r in captured_logs()
        )


class TestOverdue:
    """is_overdue and the idempotent sweep (due 2024-01-31)."""

    @pytest.mark.parametrize("status", [S.SENT, S.VIEWED])
    def test_sweep_moves_past_due(self, lifecycle, invoice_factory, status):
        invoice = invoice_factory(status=status)
        assert lifecycle.sweep_overdue(invoice, AFTER_DUE).status == S.OVERDUE

    def test_sweep_on_due_date_is_noop(self, lifecycle, invoice_factory):
        invoice = invoice_factory(status=S.SENT)
        assert lifecycle.sweep_overdue(invoice, date(2024, 1, 31)) is invoice

    @pytest.mark.parametrize("status", [S.DRAFT, S.OVERDUE, S.PAID, S.CANCELLED])
    def test_sweep_other_statuses_is_noop(self, lifecycle, invoice_factory, status):
        invoice = invoice_factory(status=status)
        assert lifecycle.sweep_overdue(invoice, AFTER_DUE) is invoice

    def test_sweep_twice_is_idempotent(self, lifecycle, invoice_factory):
        once = lifecycle.sweep_overdue(invoice_factory(status=S.SENT), AFTER_DUE)
        twice = lifecycle.sweep_overdue(once, AFTER_DUE)
        assert twice is once

    def test_sweep_uses_clock_by_default(
        self, lifecycle, invoice_factory, deterministic_clock,
    ):
        invoice = invoice_factory(status=S.SENT)
        assert lifecycle.sweep_overdue(invoice) is invoice
        deterministic_clock.advance_days(31)
        assert lifecycle.sweep_overdue(invoice).status == S.OVERDUE

    @pytest.mark.parametrize(
        "status,expected",
        [
            (S.DRAFT, True),
            (S.SENT, True),
            (S.OVERDUE, True),
            (S.PAID, False),
            (S.CANCELLED, False),
        ],
    )
    def test_is_overdue(self, lifecycle, invoice_factory, status, expected):
        invoice = invoice_factory(status=status)
        assert lifecycle.is_overdue(invoice, AFTER_DUE) is expected
        assert lifecycle.is_overdue(invoice, date(2024, 1, 31)) is False
