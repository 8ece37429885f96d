"""
Deliverable Domain Models (``billing_modules.deliverables.models``).

Responsibility
--------------
Frozen dataclass value objects for phase checklists: the phase a
checklist belongs to, its deliverables, and the completion summary that
drives billing readiness.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``DeliverableTracker`` and ``BillingEligibilityEvaluator``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* ``0 <= complete <= total`` on every ``PhaseCompletionSummary``.
* A completed deliverable records who completed it and when; an open one
  records neither.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from billing_kernel.domain.values import HUNDRED, percentage


class ProjectStage(Enum):
    """Standard project stages, in delivery order."""
    CONCEPT = "CONCEPT"
    PRELIM = "PRELIM"
    STATUTORY = "STATUTORY"
    TENDER = "TENDER"
    CONTRACT = "CONTRACT"
    CONSTRUCTION = "CONSTRUCTION"
    COMPLETION = "COMPLETION"


@dataclass(frozen=True)
class Phase:
    """The minimal view of a project phase needed to track deliverables."""
    id: UUID
    project_id: UUID
    name: str
    stage: str | None = None


@dataclass(frozen=True)
class Deliverable:
    """A checklist item within a phase."""
    id: UUID
    phase_id: UUID
    name: str
    display_order: int
    is_completed: bool = False
    completed_by_user_id: UUID | None = None
    completed_at: datetime | None = None

    def __post_init__(self):
        if self.is_completed and self.completed_at is None:
            raise ValueError("Completed deliverable must record completed_at")
        if not self.is_completed and (
            self.completed_at is not None or self.completed_by_user_id is not None
        ):
            raise ValueError("Open deliverable cannot carry completion stamps")


@dataclass(frozen=True)
class PhaseCompletionSummary:
    """Completion counts for one phase.  Derived on demand, never stored."""
    complete: int
    total: int

    def __post_init__(self):
        if self.total < 0 or self.complete < 0 or self.complete > self.total:
            raise ValueError(
                f"Invalid completion counts: {self.complete}/{self.total}"
            )

    @property
    def all_complete(self) -> bool:
        return self.total == 0 or self.complete == self.total

    @property
    def percentage(self) -> Decimal:
        # A phase without a checklist counts as fully done.
        if self.total == 0:
            return HUNDRED
        return percentage(Decimal(self.complete), Decimal(self.total))

    @classmethod
    def from_deliverables(cls, deliverables) -> "PhaseCompletionSummary":
        items = list(deliverables)
        return cls(
            complete=sum(1 for d in items if d.is_completed),
            total=len(items),
        )
