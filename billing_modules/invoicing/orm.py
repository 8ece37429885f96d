"""
Invoicing ORM Models (``billing_modules.invoicing.orm``).

Responsibility
--------------
SQLAlchemy persistence models for invoices and their line items.  Maps
the frozen domain dataclasses from ``models.py`` to database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``billing_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``billing_kernel``.

Invariants enforced
-------------------
* ``(organization_id, invoice_number)`` is unique.
* ``version`` is the SQLAlchemy ``version_id_col``: an UPDATE that finds
  a different version raises ``StaleDataError``.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import TrackedBase
from billing_kernel.domain.values import quantize_money, strip_scale


# ---------------------------------------------------------------------------
# 1. InvoiceModel
# ---------------------------------------------------------------------------


class InvoiceModel(TrackedBase):
    """
    ORM model for client invoices.

    Maps to the ``Invoice`` frozen dataclass.  Line items are stored in a
    separate child table via the ``items`` relationship.

    Guarantees:
        - invoice_number is unique per organization
          (uq_invoices_org_number).
        - Monetary fields use Decimal (Numeric(38,9) via type_annotation_map).
        - status stored as string enum value.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint(
            "organization_id", "invoice_number", name="uq_invoices_org_number"
        ),
        Index("idx_invoices_organization_id", "organization_id"),
        Index("idx_invoices_project_id", "project_id"),
        Index("idx_invoices_phase_id", "phase_id"),
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_due_date", "due_date"),
    )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    organization_id: Mapped[UUID] = mapped_column(nullable=False)
    project_id: Mapped[UUID] = mapped_column(nullable=False)
    phase_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("billing_phases.id"), nullable=True
    )
    client_id: Mapped[UUID] = mapped_column(nullable=False)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(nullable=False)
    balance_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    last_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationship to child line items
    items: Mapped[list["InvoiceLineItemModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceLineItemModel.line_number",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.invoicing.models import Invoice, InvoiceStatus

        return Invoice(
            id=self.id,
            invoice_number=self.invoice_number,
            organization_id=self.organization_id,
            project_id=self.project_id,
            client_id=self.client_id,
            issue_date=self.issue_date,
            due_date=self.due_date,
            created_by_user_id=self.created_by_id,
            items=tuple(item.to_dto() for item in self.items),
            tax_rate=strip_scale(self.tax_rate),
            subtotal=quantize_money(self.subtotal),
            tax_amount=quantize_money(self.tax_amount),
            total_amount=quantize_money(self.total_amount),
            paid_amount=quantize_money(self.paid_amount),
            balance_amount=quantize_money(self.balance_amount),
            status=InvoiceStatus(self.status),
            phase_id=self.phase_id,
            client_email=self.client_email,
            last_payment_date=self.last_payment_date,
            notes=self.notes,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "InvoiceModel":
        """Create ORM model from frozen dataclass."""
        model = cls(
            id=dto.id,
            invoice_number=dto.invoice_number,
            organization_id=dto.organization_id,
            project_id=dto.project_id,
            phase_id=dto.phase_id,
            client_id=dto.client_id,
            client_email=dto.client_email,
            issue_date=dto.issue_date,
            due_date=dto.due_date,
            created_by_id=created_by_id,
            notes=dto.notes,
        )
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto) -> None:
        """Copy the mutable state of ``dto`` onto this row."""
        self.tax_rate = dto.tax_rate
        self.subtotal = dto.subtotal
        self.tax_amount = dto.tax_amount
        self.total_amount = dto.total_amount
        self.paid_amount = dto.paid_amount
        self.balance_amount = dto.balance_amount
        self.status = dto.status.value
        self.due_date = dto.due_date
        self.client_email = dto.client_email
        self.last_payment_date = dto.last_payment_date
        self.notes = dto.notes

        existing = {item.id: item for item in self.items}
        rows = []
        for number, item in enumerate(dto.items, start=1):
            row = existing.get(item.id)
            if row is None:
                row = InvoiceLineItemModel(id=item.id, created_by_id=self.created_by_id)
            row.line_number = number
            row.description = item.description
            row.item_type = item.item_type.value
            row.quantity = item.quantity
            row.unit_price = item.unit_price
            row.amount = item.amount
            rows.append(row)
        self.items = rows

    def __repr__(self) -> str:
        return (
            f"<InvoiceModel {self.invoice_number} "
            f"status={self.status} balance={self.balance_amount}>"
        )


# ---------------------------------------------------------------------------
# 2. InvoiceLineItemModel
# ---------------------------------------------------------------------------


class InvoiceLineItemModel(TrackedBase):
    """
    ORM model for invoice line items.

    Maps to the ``InvoiceLineItem`` frozen dataclass.  ``amount`` is
    stored for reporting but always recomputed from quantity and price
    when loaded.
    """

    __tablename__ = "invoice_line_items"

    __table_args__ = (
        Index("idx_invoice_line_items_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), default="fixed_fee")
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Relationship to parent invoice
    invoice: Mapped["InvoiceModel"] = relationship(back_populates="items")

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.invoicing.models import InvoiceLineItem, LineItemType

        return InvoiceLineItem(
            id=self.id,
            description=self.description,
            quantity=strip_scale(self.quantity),
            unit_price=strip_scale(self.unit_price),
            item_type=LineItemType(self.item_type),
        )

    def __repr__(self) -> str:
        return f"<InvoiceLineItemModel {self.line_number}. {self.description}>"
