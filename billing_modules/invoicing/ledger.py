"""
Invoice Ledger (``billing_modules.invoicing.ledger``).

Responsibility
--------------
Line-item editing and totals arithmetic for draft invoices.  Every edit
returns a new ``Invoice`` with its totals recomputed.

Architecture position
---------------------
**Modules layer** -- pure functional core.  No session, no clock.

Invariants enforced
-------------------
* ``subtotal == sum(item.amount)``
* ``tax_amount == round_half_up(subtotal * tax_rate / 100, 2)``
* ``total_amount == subtotal + tax_amount``
* ``balance_amount == total_amount - paid_amount``
* Line items can only change while the invoice is DRAFT.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from uuid import UUID

from billing_kernel.domain.values import HUNDRED, ZERO, quantize_money, to_decimal
from billing_kernel.exceptions import (
    InvalidStateError,
    LineItemNotFoundError,
    ValidationError,
)
from billing_kernel.logging_config import get_logger
from billing_modules.invoicing.models import Invoice, InvoiceLineItem, LineItemType

logger = get_logger("modules.invoicing.ledger")

_EDITABLE_ITEM_FIELDS = frozenset({"description", "quantity", "unit_price", "item_type"})


class InvoiceLedger:
    """Totals and line-item edits for invoices."""

    def recompute_totals(self, invoice: Invoice) -> Invoice:
        """Recompute every derived total.  The only writer of totals."""
        subtotal = quantize_money(sum((item.amount for item in invoice.items), ZERO))
        tax_amount = quantize_money(subtotal * invoice.tax_rate / HUNDRED)
        total_amount = subtotal + tax_amount
        return replace(
            invoice,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total_amount,
            balance_amount=total_amount - invoice.paid_amount,
        )

    def add_item(self, invoice: Invoice, item: InvoiceLineItem) -> Invoice:
        self._require_draft(invoice, "add line item to")
        if invoice.find_item(item.id) is not None:
            raise ValidationError(f"Line item {item.id} already on invoice", field="id")
        return self.recompute_totals(replace(invoice, items=invoice.items + (item,)))

    def remove_item(self, invoice: Invoice, item_id: UUID) -> Invoice:
        self._require_draft(invoice, "remove line item from")
        self._require_item(invoice, item_id)
        items = tuple(i for i in invoice.items if i.id != item_id)
        return self.recompute_totals(replace(invoice, items=items))

    def update_item(self, invoice: Invoice, item_id: UUID, **changes) -> Invoice:
        """
        Change fields of one line item.

        Accepts ``description``, ``quantity``, ``unit_price`` and
        ``item_type``; ``amount`` is always derived.
        """
        self._require_draft(invoice, "update line item on")
        item = self._require_item(invoice, item_id)

        unknown = set(changes) - _EDITABLE_ITEM_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update line item fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        for name in ("quantity", "unit_price"):
            if name in changes:
                try:
                    changes[name] = to_decimal(changes[name])
                except ValueError as e:
                    raise ValidationError(str(e), field=name) from e
        if "item_type" in changes and not isinstance(changes["item_type"], LineItemType):
            try:
                changes["item_type"] = LineItemType(changes["item_type"])
            except ValueError as e:
                raise ValidationError(
                    f"Unknown line item type: {changes['item_type']!r}",
                    field="item_type",
                ) from e

        updated = replace(item, **changes)
        items = tuple(updated if i.id == item_id else i for i in invoice.items)
        return self.recompute_totals(replace(invoice, items=items))

    def set_tax_rate(self, invoice: Invoice, tax_rate: Decimal | str | int) -> Invoice:
        self._require_draft(invoice, "change tax rate on")
        try:
            rate = to_decimal(tax_rate)
        except ValueError as e:
            raise ValidationError(str(e), field="tax_rate") from e
        if rate < 0:
            raise ValidationError(f"Tax rate cannot be negative: {rate}", field="tax_rate")
        return self.recompute_totals(replace(invoice, tax_rate=rate))

    # -------------------------------------------------------------------------

    def _require_draft(self, invoice: Invoice, operation: str) -> None:
        if not invoice.is_draft:
            logger.warning(
                "invoice_edit_rejected",
                extra={
                    "invoice_id": str(invoice.id),
                    "status": invoice.status.value,
                    "operation": operation,
                },
            )
            raise InvalidStateError(str(invoice.id), invoice.status.value, operation)

    def _require_item(self, invoice: Invoice, item_id: UUID) -> InvoiceLineItem:
        item = invoice.find_item(item_id)
        if item is None:
            raise LineItemNotFoundError(str(invoice.id), str(item_id))
        return item
