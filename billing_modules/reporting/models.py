"""
Financial Reporting Models (``billing_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects returned by ``FinancialAggregator``.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``collection_rate`` is a percentage with two decimal places.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Hashable


@dataclass(frozen=True)
class OverallMetrics:
    """Totals across a set of invoices."""

    total_invoiced: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    collection_rate: Decimal
    invoice_count: int


@dataclass(frozen=True)
class GroupMetrics:
    """Totals for the invoices sharing one grouping key."""

    key: Hashable
    total_invoiced: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    collection_rate: Decimal
    count: int


@dataclass(frozen=True)
class InvoiceStatistics:
    """Dashboard counters as of one day."""

    total_invoices: int
    draft_invoices: int
    paid_invoices: int
    overdue_invoices: int
    total_outstanding: Decimal
    yearly_revenue: Decimal
