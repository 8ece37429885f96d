"""
BillingConfig schema.

Frozen dataclasses for the billing configuration.  YAML files are parsed
into these types by the loader; services receive a ``BillingConfig`` and
never read files themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Deliverable checklists
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChecklistDef:
    """Standard deliverables created for a phase of the given stage."""

    stage: str
    deliverables: tuple[str, ...]


@dataclass(frozen=True)
class StageKeywordsDef:
    """Phase-name keywords that identify a stage when none is recorded."""

    stage: str
    keywords: tuple[str, ...]


# ---------------------------------------------------------------------------
# Fee schedule
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeeScheduleEntry:
    """Cumulative percentage of the project fee billable at a stage."""

    stage: str
    cumulative_percentage: Decimal


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BillingConfig:
    """Complete billing configuration (the runtime artifact)."""

    config_id: str
    version: int
    default_payment_terms_days: int = 30
    default_tax_rate: Decimal = Decimal("0")
    invoice_number_padding: int = 3
    fallback_stage: str = "GENERAL"
    checklists: tuple[ChecklistDef, ...] = field(default_factory=tuple)
    stage_keywords: tuple[StageKeywordsDef, ...] = field(default_factory=tuple)
    fee_schedule: tuple[FeeScheduleEntry, ...] = field(default_factory=tuple)

    def checklist_for(self, stage: str) -> tuple[str, ...] | None:
        """Deliverable names for ``stage`` (case-insensitive), if configured."""
        key = stage.upper()
        for checklist in self.checklists:
            if checklist.stage == key:
                return checklist.deliverables
        return None

    def fee_percentage_for(self, stage: str) -> Decimal | None:
        key = stage.upper()
        for entry in self.fee_schedule:
            if entry.stage == key:
                return entry.cumulative_percentage
        return None

    @property
    def stages(self) -> tuple[str, ...]:
        """Stages with a checklist, in configuration order."""
        return tuple(c.stage for c in self.checklists)
