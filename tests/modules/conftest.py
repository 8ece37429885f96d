"""
Shared fixtures for the invoicing and deliverable module tests.

``invoice_factory`` builds in-memory invoices (no database) with totals
already computed by ``InvoiceLedger``.
"""

from datetime import date
from uuid import uuid4

import pytest

from billing_modules.invoicing.ledger import InvoiceLedger
from billing_modules.invoicing.lifecycle import InvoiceLifecycle
from billing_modules.invoicing.models import Invoice, InvoiceLineItem, InvoiceStatus


@pytest.fixture
def ledger():
    return InvoiceLedger()


@pytest.fixture
def lifecycle(deterministic_clock):
    return InvoiceLifecycle(deterministic_clock)


@pytest.fixture
def invoice_factory(ledger, organization_id, project_id, client_id, test_actor_id):
    """Build an invoice value with recomputed totals.

    Defaults: issued 2024-01-01, due 2024-01-31, items 2 x 100.00 and
    1 x 50.00, no tax, DRAFT.
    """

    def _make(items=None, status=InvoiceStatus.DRAFT, **kwargs):
        if items is None:
            items = (
                InvoiceLineItem.create("Design fee", "2", "100.00"),
                InvoiceLineItem.create("Site visit", "1", "50.00"),
            )
        params = dict(
            id=uuid4(),
            invoice_number="ACME-2024-001",
            organization_id=organization_id,
            project_id=project_id,
            client_id=client_id,
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
            created_by_user_id=test_actor_id,
            items=tuple(items),
        )
        params.update(kwargs)
        invoice = ledger.recompute_totals(Invoice(**params))
        if status != InvoiceStatus.DRAFT:
            invoice = invoice.evolve(status=status)
        return invoice

    return _make
