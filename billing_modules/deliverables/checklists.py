"""
Standard deliverable checklists.

Chooses which configured checklist a phase receives.  The recorded project
stage wins; otherwise the phase name is matched against the stage name and
then against the configured keywords; otherwise the fallback checklist is
used, so every phase gets a standard default set.
"""

from billing_config import BillingConfig
from billing_kernel.logging_config import get_logger
from billing_modules.deliverables.models import Phase

logger = get_logger("modules.deliverables.checklists")


def resolve_stage_key(phase: Phase, config: BillingConfig) -> str:
    """Return the checklist stage key for ``phase``."""
    if phase.stage and config.checklist_for(phase.stage) is not None:
        return phase.stage.upper()

    name = (phase.name or "").strip()
    if name and config.checklist_for(name) is not None:
        return name.upper()

    lowered = name.lower()
    for entry in config.stage_keywords:
        if any(keyword in lowered for keyword in entry.keywords):
            return entry.stage

    logger.warning(
        "phase_stage_unmatched",
        extra={
            "phase_id": str(phase.id),
            "phase_name": phase.name,
            "fallback_stage": config.fallback_stage,
        },
    )
    return config.fallback_stage


def default_deliverable_names(phase: Phase, config: BillingConfig) -> tuple[str, ...]:
    """Names of the standard deliverables for ``phase``, in display order."""
    return config.checklist_for(resolve_stage_key(phase, config)) or ()


def predefined_for_stage(stage: str, config: BillingConfig) -> tuple[str, ...]:
    """Preview the checklist of ``stage``; empty when the stage is unknown."""
    return config.checklist_for(stage) or ()
