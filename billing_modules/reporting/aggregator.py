"""
Financial Aggregator (``billing_modules.reporting.aggregator``).

Responsibility
--------------
Read-only rollups over invoice snapshots: overall totals, totals per
arbitrary grouping key and dashboard statistics.

Architecture position
---------------------
**Modules layer** -- pure functional core.  Inputs are frozen ``Invoice``
values and are never modified.

Invariants enforced
-------------------
* ``collection_rate = total_paid / total_invoiced * 100`` rounded half-up
  to two places, and ``0`` when nothing was invoiced.
* Groups are returned in order of first appearance of their key.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Hashable, Iterable

from billing_kernel.domain.values import ZERO, percentage
from billing_kernel.logging_config import get_logger
from billing_modules.invoicing.models import (
    SETTLED_STATUSES,
    Invoice,
    InvoiceStatus,
)
from billing_modules.reporting.models import (
    GroupMetrics,
    InvoiceStatistics,
    OverallMetrics,
)

logger = get_logger("modules.reporting.aggregator")


class FinancialAggregator:
    """Pure folds over invoices."""

    def by_overall(self, invoices: Iterable[Invoice]) -> OverallMetrics:
        invoiced = paid = outstanding = ZERO
        count = 0
        for invoice in invoices:
            invoiced += invoice.total_amount
            paid += invoice.paid_amount
            outstanding += invoice.balance_amount
            count += 1
        return OverallMetrics(
            total_invoiced=invoiced,
            total_paid=paid,
            total_outstanding=outstanding,
            collection_rate=percentage(paid, invoiced),
            invoice_count=count,
        )

    def by_group(
        self,
        invoices: Iterable[Invoice],
        key_fn: Callable[[Invoice], Hashable],
    ) -> list[GroupMetrics]:
        """Totals per ``key_fn(invoice)``, in order of first appearance."""
        groups: dict[Hashable, list[Invoice]] = {}
        for invoice in invoices:
            groups.setdefault(key_fn(invoice), []).append(invoice)

        result = []
        for key, members in groups.items():
            overall = self.by_overall(members)
            result.append(
                GroupMetrics(
                    key=key,
                    total_invoiced=overall.total_invoiced,
                    total_paid=overall.total_paid,
                    total_outstanding=overall.total_outstanding,
                    collection_rate=overall.collection_rate,
                    count=overall.invoice_count,
                )
            )
        logger.debug("invoice_groups_aggregated", extra={"group_count": len(result)})
        return result

    def by_status(self, invoices: Iterable[Invoice]) -> list[GroupMetrics]:
        return self.by_group(invoices, lambda invoice: invoice.status)

    def statistics(self, invoices: Iterable[Invoice], today: date) -> InvoiceStatistics:
        """
        Dashboard counters.

        Overdue means past due and not PAID/CANCELLED, whatever the stored
        status.  Yearly revenue is the total of PAID invoices issued in
        ``today``'s calendar year.
        """
        total = draft = paid = overdue = 0
        outstanding = revenue = ZERO
        for invoice in invoices:
            total += 1
            if invoice.status == InvoiceStatus.DRAFT:
                draft += 1
            if invoice.status == InvoiceStatus.PAID:
                paid += 1
                if invoice.issue_date.year == today.year:
                    revenue += invoice.total_amount
            if invoice.status not in SETTLED_STATUSES:
                outstanding += invoice.balance_amount
                if invoice.due_date < today:
                    overdue += 1
        return InvoiceStatistics(
            total_invoices=total,
            draft_invoices=draft,
            paid_invoices=paid,
            overdue_invoices=overdue,
            total_outstanding=outstanding,
            yearly_revenue=revenue,
        )
