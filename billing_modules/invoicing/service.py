"""
Invoice Service - Orchestrates invoicing via ledger, lifecycle and payments.

Thin glue layer that:
1. Gates creation on phase billing readiness (BillingEligibilityEvaluator)
2. Allocates organization-unique invoice numbers (SequenceService)
3. Calls InvoiceLedger for line-item edits and totals
4. Calls InvoiceLifecycle / PaymentProcessor for status changes
5. Persists the result and owns the transaction boundary

Concurrency: each write locks the invoice row (SELECT ... FOR UPDATE) and
the row carries a ``version`` column checked on UPDATE, so two requests
cannot interleave edits and payments on one invoice.  A lost race, or an
``expected_version`` that no longer matches, raises OptimisticLockError.

Usage:
    service = InvoiceService(session, clock, email_sender=mailer)
    invoice = service.create_invoice(
        organization_id=org_id, organization_name="Acme Architects",
        project_id=project_id, client_id=client_id, actor_id=actor_id,
        items=[InvoiceLineItem.create("Concept design", "1", "2500.00")],
        phase_id=phase_id,
    )
    service.send_invoice(invoice.id, actor_id)
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Sequence
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from billing_config import BillingConfig, get_active_config
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.values import ZERO, quantize_money, to_decimal
from billing_kernel.exceptions import (
    InvalidStateError,
    InvoiceNotFoundError,
    OptimisticLockError,
    ValidationError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.services.sequence_service import SequenceService
from billing_modules.deliverables.eligibility import BillingEligibilityEvaluator
from billing_modules.deliverables.service import DeliverableTracker
from billing_modules.invoicing.fees import FeeSchedule
from billing_modules.invoicing.ledger import InvoiceLedger
from billing_modules.invoicing.lifecycle import InvoiceLifecycle
from billing_modules.invoicing.models import (
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    LineItemType,
    Payment,
)
from billing_modules.invoicing.numbering import format_invoice_number, organization_code
from billing_modules.invoicing.orm import InvoiceModel
from billing_modules.invoicing.payments import PaymentProcessor
from billing_modules.invoicing.ports import EmailSender, PdfRenderer

logger = get_logger("modules.invoicing.service")


class InvoiceService:
    """
    Orchestrates invoice operations.

    Transaction boundary: this service commits on success, rolls back on
    failure.  Every write method re-reads the invoice under a row lock.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: BillingConfig | None = None,
        email_sender: EmailSender | None = None,
        pdf_renderer: PdfRenderer | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._email_sender = email_sender
        self._pdf_renderer = pdf_renderer

        self._ledger = InvoiceLedger()
        self._lifecycle = InvoiceLifecycle(self._clock)
        self._payments = PaymentProcessor(self._clock, self._lifecycle)
        self._eligibility = BillingEligibilityEvaluator()
        self._deliverables = DeliverableTracker(session, self._clock, self._config)
        self._sequences = SequenceService(session)
        self._fees = FeeSchedule(self._config)

    @property
    def lifecycle(self) -> InvoiceLifecycle:
        return self._lifecycle

    @property
    def fees(self) -> FeeSchedule:
        return self._fees

    # =========================================================================
    # Creation
    # =========================================================================

    def create_invoice(
        self,
        organization_id: UUID,
        organization_name: str,
        project_id: UUID,
        client_id: UUID,
        actor_id: UUID,
        items: Sequence[InvoiceLineItem] = (),
        phase_id: UUID | None = None,
        tax_rate: Decimal | str | int | None = None,
        issue_date: date | None = None,
        due_date: date | None = None,
        client_email: str | None = None,
        notes: str | None = None,
    ) -> Invoice:
        """
        Create a DRAFT invoice with a freshly allocated invoice number.

        When ``phase_id`` is given, every deliverable of that phase must be
        complete (phases without a checklist are not blocked).

        Raises:
            PhaseNotFoundError: ``phase_id`` is unknown.
            PhaseNotBillableError: the phase has open deliverables.
            ValidationError: bad dates, tax rate or line items.
        """
        with LogContext.bind(
            organization_id=organization_id, actor_id=actor_id, phase_id=phase_id,
        ):
            try:
                if phase_id is not None:
                    summary = self._deliverables.get_summary(phase_id)
                    self._eligibility.require_invoiceable(phase_id, summary)

                issue = issue_date or self._clock.today()
                due = due_date or issue + timedelta(days=self._config.default_payment_terms_days)
                rate = self._config.default_tax_rate if tax_rate is None else _parse_rate(tax_rate)

                sequence = self._sequences.next_value(
                    SequenceService.invoice_sequence_name(organization_id, issue.year)
                )
                number = format_invoice_number(
                    organization_code(organization_name),
                    issue.year,
                    sequence,
                    self._config.invoice_number_padding,
                )

                invoice = Invoice(
                    id=uuid4(),
                    invoice_number=number,
                    organization_id=organization_id,
                    project_id=project_id,
                    client_id=client_id,
                    issue_date=issue,
                    due_date=due,
                    created_by_user_id=actor_id,
                    tax_rate=rate,
                    phase_id=phase_id,
                    client_email=client_email,
                    notes=notes,
                )
                for item in items:
                    invoice = self._ledger.add_item(invoice, item)
                invoice = self._ledger.recompute_totals(invoice)

                model = InvoiceModel.from_dto(invoice, created_by_id=actor_id)
                self._session.add(model)
                self._session.flush()
                result = model.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "invoice_created",
                extra={
                    "invoice_id": str(result.id),
                    "invoice_number": result.invoice_number,
                    "total_amount": str(result.total_amount),
                    "item_count": len(result.items),
                },
            )
            return result

    # =========================================================================
    # Queries
    # =========================================================================

    def get_invoice(self, invoice_id: UUID, sweep: bool = True) -> Invoice:
        """
        Load an invoice.

        With ``sweep`` (the default) a past-due SENT/VIEWED invoice is moved
        to OVERDUE before it is returned.
        """
        invoice = self._load(invoice_id).to_dto()
        if sweep and self._lifecycle.sweep_overdue(invoice) is not invoice:
            return self._mutate(invoice_id, None, "sweep_overdue", self._lifecycle.sweep_overdue)
        return invoice

    def list_invoices(
        self,
        organization_id: UUID | None = None,
        project_id: UUID | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        """Invoices matching all given filters, oldest issue date first."""
        stmt = select(InvoiceModel)
        if organization_id is not None:
            stmt = stmt.where(InvoiceModel.organization_id == organization_id)
        if project_id is not None:
            stmt = stmt.where(InvoiceModel.project_id == project_id)
        if status is not None:
            stmt = stmt.where(InvoiceModel.status == status.value)
        stmt = stmt.order_by(InvoiceModel.issue_date, InvoiceModel.invoice_number)
        return [m.to_dto() for m in self._session.execute(stmt).scalars()]

    def previously_billed(self, project_id: UUID) -> Decimal:
        """Sum of subtotals of the project's invoices that are not cancelled."""
        total = self._session.execute(
            select(func.sum(InvoiceModel.subtotal))
            .where(InvoiceModel.project_id == project_id)
            .where(InvoiceModel.status != InvoiceStatus.CANCELLED.value)
        ).scalar_one()
        return quantize_money(Decimal(total)) if total is not None else quantize_money(ZERO)

    def render_pdf(self, invoice_id: UUID) -> bytes:
        if self._pdf_renderer is None:
            raise ValidationError("No PDF renderer configured", field="pdf_renderer")
        return self._pdf_renderer.render_invoice_pdf(self.get_invoice(invoice_id, sweep=False))

    # =========================================================================
    # Line items (DRAFT only)
    # =========================================================================

    def add_item(
        self,
        invoice_id: UUID,
        actor_id: UUID,
        description: str,
        quantity: Decimal | str | int,
        unit_price: Decimal | str | int,
        item_type: LineItemType = LineItemType.FIXED_FEE,
        expected_version: int | None = None,
    ) -> Invoice:
        item = InvoiceLineItem.create(description, quantity, unit_price, item_type)
        return self._mutate(
            invoice_id, actor_id, "add_item",
            lambda inv: self._ledger.add_item(inv, item),
            expected_version,
        )

    def update_item(
        self,
        invoice_id: UUID,
        item_id: UUID,
        actor_id: UUID,
        expected_version: int | None = None,
        **changes,
    ) -> Invoice:
        return self._mutate(
            invoice_id, actor_id, "update_item",
            lambda inv: self._ledger.update_item(inv, item_id, **changes),
            expected_version,
        )

    def remove_item(
        self,
        invoice_id: UUID,
        item_id: UUID,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> Invoice:
        return self._mutate(
            invoice_id, actor_id, "remove_item",
            lambda inv: self._ledger.remove_item(inv, item_id),
            expected_version,
        )

    def set_tax_rate(
        self,
        invoice_id: UUID,
        tax_rate: Decimal | str | int,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> Invoice:
        return self._mutate(
            invoice_id, actor_id, "set_tax_rate",
            lambda inv: self._ledger.set_tax_rate(inv, tax_rate),
            expected_version,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def mark_sent(
        self,
        invoice_id: UUID,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> Invoice:
        return self._mutate(
            invoice_id, actor_id, "mark_sent", self._lifecycle.mark_sent, expected_version,
        )

    def send_invoice(
        self,
        invoice_id: UUID,
        actor_id: UUID,
        recipient_email: str | None = None,
        send_email: bool = True,
        expected_version: int | None = None,
    ) -> Invoice:
        """
        Email the invoice (best effort), then mark it SENT.

        Email delivery never blocks the status change: a missing recipient,
        a failed send or an exception from the sender is logged as
        ``invoice_email_failed`` and the invoice is still marked SENT.
        """
        if send_email:
            invoice = self.get_invoice(invoice_id, sweep=False)
            # Nothing is emailed for an invoice that cannot be sent.
            if self._lifecycle.can_transition(invoice.status, InvoiceStatus.SENT):
                self._try_send_email(invoice, recipient_email or invoice.client_email)
        return self.mark_sent(invoice_id, actor_id, expected_version)

    def mark_viewed(
        self,
        invoice_id: UUID,
        actor_id: UUID | None = None,
        expected_version: int | None = None,
    ) -> Invoice:
        return self._mutate(
            invoice_id, actor_id, "mark_viewed", self._lifecycle.mark_viewed, expected_version,
        )

    def cancel_invoice(
        self,
        invoice_id: UUID,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> Invoice:
        return self._mutate(
            invoice_id, actor_id, "cancel", self._lifecycle.cancel, expected_version,
        )

    def apply_payment(
        self,
        invoice_id: UUID,
        payment: Payment,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> Invoice:
        """Record a full payment; the invoice becomes PAID."""
        return self._mutate(
            invoice_id, actor_id, "apply_payment",
            lambda inv: self._payments.apply_payment(inv, payment),
            expected_version,
        )

    def sweep_overdue(self, invoice_id: UUID) -> Invoice:
        """Move one invoice to OVERDUE if it is past due.  Idempotent."""
        return self._mutate(invoice_id, None, "sweep_overdue", self._lifecycle.sweep_overdue)

    def sweep_overdue_all(self, organization_id: UUID | None = None) -> int:
        """
        Sweep every candidate invoice (scheduler entry point).

        Returns the number of invoices moved to OVERDUE.
        """
        today = self._clock.today()
        stmt = (
            select(InvoiceModel.id)
            .where(InvoiceModel.status.in_(
                (InvoiceStatus.SENT.value, InvoiceStatus.VIEWED.value)
            ))
            .where(InvoiceModel.due_date < today)
        )
        if organization_id is not None:
            stmt = stmt.where(InvoiceModel.organization_id == organization_id)
        candidates = list(self._session.execute(stmt).scalars())

        moved = 0
        for invoice_id in candidates:
            invoice = self._mutate(
                invoice_id, None, "sweep_overdue",
                lambda inv: self._lifecycle.sweep_overdue(inv, today),
            )
            if invoice.status == InvoiceStatus.OVERDUE:
                moved += 1

        logger.info(
            "overdue_sweep_completed",
            extra={
                "organization_id": str(organization_id) if organization_id else None,
                "candidates": len(candidates),
                "moved": moved,
                "as_of": today.isoformat(),
            },
        )
        return moved

    def delete_invoice(self, invoice_id: UUID, actor_id: UUID) -> None:
        """Delete a DRAFT invoice.  Sent invoices must be cancelled instead."""
        with LogContext.bind(invoice_id=invoice_id, actor_id=actor_id):
            try:
                model = self._load(invoice_id, for_update=True)
                if model.status != InvoiceStatus.DRAFT.value:
                    raise InvalidStateError(str(invoice_id), model.status, "delete")
                self._session.delete(model)
                self._session.flush()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info("invoice_deleted", extra={"invoice_number": model.invoice_number})

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, invoice_id: UUID, for_update: bool = False) -> InvoiceModel:
        stmt = select(InvoiceModel).where(InvoiceModel.id == invoice_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        model = self._session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return model

    def _mutate(
        self,
        invoice_id: UUID,
        actor_id: UUID | None,
        operation: str,
        change: Callable[[Invoice], Invoice],
        expected_version: int | None = None,
    ) -> Invoice:
        """Lock, apply ``change`` to the snapshot, persist and commit."""
        with LogContext.bind(invoice_id=invoice_id, actor_id=actor_id):
            try:
                model = self._load(invoice_id, for_update=True)
                if expected_version is not None and model.version != expected_version:
                    raise OptimisticLockError(
                        "Invoice", str(invoice_id), expected_version, model.version,
                    )

                before = model.to_dto()
                after = change(before)
                if after is not before:
                    model.apply_dto(after)
                    model.updated_by_id = actor_id
                    self._session.flush()
                result = model.to_dto()
                self._session.commit()
            except StaleDataError as e:
                self._session.rollback()
                logger.warning("invoice_version_conflict", extra={"operation": operation})
                raise OptimisticLockError("Invoice", str(invoice_id), expected_version) from e
            except Exception:
                self._session.rollback()
                raise

            if after is not before:
                logger.info(
                    "invoice_updated",
                    extra={
                        "operation": operation,
                        "status": result.status.value,
                        "total_amount": str(result.total_amount),
                        "version": result.version,
                    },
                )
            return result

    def _try_send_email(self, invoice: Invoice, recipient_email: str | None) -> bool:
        if self._email_sender is None or not recipient_email:
            logger.warning(
                "invoice_email_failed",
                extra={
                    "invoice_id": str(invoice.id),
                    "reason": "no_sender" if self._email_sender is None else "no_recipient",
                },
            )
            return False
        try:
            sent = self._email_sender.send_invoice_email(invoice, recipient_email)
        except Exception:
            # Delivery is best effort; the status change proceeds regardless.
            logger.warning(
                "invoice_email_failed",
                extra={"invoice_id": str(invoice.id), "reason": "exception"},
                exc_info=True,
            )
            return False
        if not sent:
            logger.warning(
                "invoice_email_failed",
                extra={"invoice_id": str(invoice.id), "reason": "rejected"},
            )
            return False
        logger.info(
            "invoice_email_sent",
            extra={"invoice_id": str(invoice.id), "recipient": recipient_email},
        )
        return True


def _parse_rate(value: Decimal | str | int) -> Decimal:
    try:
        rate = to_decimal(value)
    except ValueError as e:
        raise ValidationError(str(e), field="tax_rate") from e
    if rate < 0:
        raise ValidationError(f"Tax rate cannot be negative: {rate}", field="tax_rate")
    return rate
