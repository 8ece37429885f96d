"""
Deliverables Module.

Per-phase deliverable checklists and the billing-readiness gate derived
from them.
"""

from billing_modules.deliverables.eligibility import BillingEligibilityEvaluator
from billing_modules.deliverables.models import (
    Deliverable,
    Phase,
    PhaseCompletionSummary,
    ProjectStage,
)
from billing_modules.deliverables.service import DeliverableTracker

__all__ = [
    "BillingEligibilityEvaluator",
    "Deliverable",
    "DeliverableTracker",
    "Phase",
    "PhaseCompletionSummary",
    "ProjectStage",
]
