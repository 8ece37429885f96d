"""
Billing eligibility gate.

A phase may be invoiced once every deliverable on its checklist is
complete.  A phase with no checklist is not blocked.
"""

from uuid import UUID

from billing_kernel.exceptions import PhaseNotBillableError
from billing_kernel.logging_config import get_logger
from billing_modules.deliverables.models import PhaseCompletionSummary

logger = get_logger("modules.deliverables.eligibility")


class BillingEligibilityEvaluator:
    """Pure decision over a ``PhaseCompletionSummary``."""

    def can_invoice(self, summary: PhaseCompletionSummary) -> bool:
        return summary.total == 0 or summary.all_complete

    def require_invoiceable(
        self,
        phase_id: UUID,
        summary: PhaseCompletionSummary,
    ) -> None:
        """Raise ``PhaseNotBillableError`` unless the phase can be invoiced."""
        if self.can_invoice(summary):
            return
        logger.warning(
            "phase_not_billable",
            extra={
                "phase_id": str(phase_id),
                "complete": summary.complete,
                "total": summary.total,
            },
        )
        raise PhaseNotBillableError(str(phase_id), summary.complete, summary.total)
