"""
Invoicing Module.

Handles the client invoice from draft to settlement:
- line items and totals (InvoiceLedger)
- status transitions (InvoiceLifecycle, INVOICE_WORKFLOW)
- full-payment-only settlement (PaymentProcessor)
- persistence, numbering and collaborator calls (InvoiceService)
"""

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
from billing_modules.invoicing.payments import PaymentProcessor
from billing_modules.invoicing.ports import EmailSender, PdfRenderer
from billing_modules.invoicing.service import InvoiceService
from billing_modules.invoicing.workflows import INVOICE_WORKFLOW

__all__ = [
    "EmailSender",
    "FeeSchedule",
    "INVOICE_WORKFLOW",
    "Invoice",
    "InvoiceLedger",
    "InvoiceLifecycle",
    "InvoiceLineItem",
    "InvoiceService",
    "InvoiceStatus",
    "LineItemType",
    "Payment",
    "PaymentProcessor",
    "PdfRenderer",
]
