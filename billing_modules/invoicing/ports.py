"""
Collaborator ports for invoicing.

Email delivery and PDF rendering live outside this package.  These
protocols are the only surface ``InvoiceService`` depends on.
"""

from typing import Protocol, runtime_checkable

from billing_modules.invoicing.models import Invoice


@runtime_checkable
class EmailSender(Protocol):
    """Delivers an invoice to a recipient.  Returns False on failure."""

    def send_invoice_email(self, invoice: Invoice, recipient_email: str) -> bool:
        ...


@runtime_checkable
class PdfRenderer(Protocol):
    """Renders an invoice document.  Must not modify the invoice."""

    def render_invoice_pdf(self, invoice: Invoice) -> bytes:
        ...
