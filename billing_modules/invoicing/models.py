"""
Invoicing Domain Models (``billing_modules.invoicing.models``).

Responsibility
--------------
Frozen dataclass value objects for invoices, their line items and the
payments applied to them.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``InvoiceLedger``, ``InvoiceLifecycle``, ``PaymentProcessor`` and
``InvoiceService``.

Invariants enforced
-------------------
* All models are ``frozen=True``; every change produces a new instance.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``InvoiceLineItem.amount`` is derived from quantity and unit price and
  cannot be set.
* ``due_date >= issue_date`` and ``tax_rate >= 0`` on every invoice.

Failure modes
-------------
* Construction with negative quantities, prices or tax rates, a blank
  description or a due date before the issue date raises
  ``ValidationError``.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from billing_kernel.domain.values import ZERO, quantize_money, to_decimal
from billing_kernel.exceptions import ValidationError


class InvoiceStatus(Enum):
    """Invoice lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    OVERDUE = "overdue"
    PAID = "paid"
    CANCELLED = "cancelled"


# Statuses in which an invoice still awaits payment.
PAYABLE_STATUSES = frozenset(
    {InvoiceStatus.SENT, InvoiceStatus.VIEWED, InvoiceStatus.OVERDUE}
)

# Statuses excluded from outstanding balances and overdue checks.
SETTLED_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})


class LineItemType(Enum):
    """What a line item charges for."""
    FIXED_FEE = "fixed_fee"
    TIME_BASED = "time_based"
    EXPENSE = "expense"
    OTHER = "other"


def _decimal_field(value, name: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as e:
        raise ValidationError(str(e), field=name) from e


@dataclass(frozen=True)
class InvoiceLineItem:
    """A single charge on an invoice."""
    id: UUID
    description: str
    quantity: Decimal
    unit_price: Decimal
    item_type: LineItemType = LineItemType.FIXED_FEE

    def __post_init__(self):
        if not self.description or not self.description.strip():
            raise ValidationError("Line item description is required", field="description")
        if self.quantity < 0:
            raise ValidationError(
                f"Line item quantity cannot be negative: {self.quantity}",
                field="quantity",
            )
        if self.unit_price < 0:
            raise ValidationError(
                f"Line item unit price cannot be negative: {self.unit_price}",
                field="unit_price",
            )

    @property
    def amount(self) -> Decimal:
        return quantize_money(self.quantity * self.unit_price)

    @classmethod
    def create(
        cls,
        description: str,
        quantity,
        unit_price,
        item_type: LineItemType = LineItemType.FIXED_FEE,
        item_id: UUID | None = None,
    ) -> "InvoiceLineItem":
        """Build a line item, converting numeric inputs to ``Decimal``."""
        return cls(
            id=item_id or uuid4(),
            description=description,
            quantity=_decimal_field(quantity, "quantity"),
            unit_price=_decimal_field(unit_price, "unit_price"),
            item_type=item_type,
        )


@dataclass(frozen=True)
class Invoice:
    """
    A client invoice.

    Totals are only ever written by ``InvoiceLedger.recompute_totals``.
    """
    id: UUID
    invoice_number: str
    organization_id: UUID
    project_id: UUID
    client_id: UUID
    issue_date: date
    due_date: date
    created_by_user_id: UUID
    items: tuple[InvoiceLineItem, ...] = field(default_factory=tuple)
    tax_rate: Decimal = ZERO
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    balance_amount: Decimal = ZERO
    status: InvoiceStatus = InvoiceStatus.DRAFT
    phase_id: UUID | None = None
    client_email: str | None = None
    last_payment_date: date | None = None
    notes: str | None = None
    version: int = 1

    def __post_init__(self):
        if self.due_date < self.issue_date:
            raise ValidationError(
                f"Due date {self.due_date} is before issue date {self.issue_date}",
                field="due_date",
            )
        if self.tax_rate < 0:
            raise ValidationError(
                f"Tax rate cannot be negative: {self.tax_rate}",
                field="tax_rate",
            )
        if self.paid_amount < 0:
            raise ValidationError(
                f"Paid amount cannot be negative: {self.paid_amount}",
                field="paid_amount",
            )

    @property
    def is_draft(self) -> bool:
        return self.status == InvoiceStatus.DRAFT

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES

    def find_item(self, item_id: UUID) -> InvoiceLineItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def evolve(self, **changes) -> "Invoice":
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)


@dataclass(frozen=True)
class Payment:
    """
    A payment received against one invoice.

    ``amount`` may be given as ``Decimal``, ``str`` or ``int``; it is
    stored as ``Decimal``.  Zero is a valid amount (it settles a
    zero-total invoice).
    """
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    reference: str | None = None

    def __post_init__(self):
        amount = _decimal_field(self.amount, "amount")
        if amount < 0:
            raise ValidationError(
                f"Payment amount cannot be negative: {amount}",
                field="amount",
            )
        object.__setattr__(self, "amount", amount)
