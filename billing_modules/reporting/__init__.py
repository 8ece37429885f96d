"""
Reporting Module.

Read-only financial rollups over invoices.
"""

from billing_modules.reporting.aggregator import FinancialAggregator
from billing_modules.reporting.models import (
    GroupMetrics,
    InvoiceStatistics,
    OverallMetrics,
)

__all__ = [
    "FinancialAggregator",
    "GroupMetrics",
    "InvoiceStatistics",
    "OverallMetrics",
]
