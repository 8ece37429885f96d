"""
Deliverable Tracker (``billing_modules.deliverables.service``).

Responsibility
--------------
Owns the per-phase deliverable checklist: registers the phase record,
seeds the standard checklist, toggles completion and derives the
completion summary that gates invoicing.

Architecture position
---------------------
**Modules layer** -- session-backed service.  Reads checklists from the
injected ``BillingConfig``; time comes from the injected ``Clock``.

Invariants enforced
-------------------
* ``ensure_defaults`` is idempotent: the phase row is locked and the
  checklist is only created when the phase has no deliverables.
* ``get_summary`` is computed from one query, so the counts come from a
  single snapshot and are never cached.
* Completion stamps (who and when) are set on completion and cleared on
  reopening.

Failure modes
-------------
* ``PhaseNotFoundError`` -- unknown phase.
* ``DeliverableNotFoundError`` -- unknown deliverable, or one that
  belongs to another phase.

Usage::

    tracker = DeliverableTracker(session, clock)
    phase = tracker.register_phase(project_id, "Concept Design", actor_id)
    tracker.ensure_defaults(phase.id)
    tracker.toggle_completion(phase.id, deliverable_id, actor_id)
    summary = tracker.get_summary(phase.id)
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from billing_config import BillingConfig, get_active_config
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import (
    DeliverableNotFoundError,
    PhaseNotFoundError,
    ValidationError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_modules.deliverables.checklists import (
    default_deliverable_names,
    predefined_for_stage,
)
from billing_modules.deliverables.models import (
    Deliverable,
    Phase,
    PhaseCompletionSummary,
)
from billing_modules.deliverables.orm import DeliverableModel, PhaseModel

logger = get_logger("modules.deliverables.service")


class DeliverableTracker:
    """
    Tracks deliverable completion for project phases.

    Transaction boundary: every write method commits on success and rolls
    back on failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: BillingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    # =========================================================================
    # Phases
    # =========================================================================

    def register_phase(
        self,
        project_id: UUID,
        name: str,
        actor_id: UUID,
        stage: str | None = None,
        phase_id: UUID | None = None,
    ) -> Phase:
        """Persist the minimal phase record deliverables hang off."""
        if not name or not name.strip():
            raise ValidationError("Phase name is required", field="name")

        phase = Phase(
            id=phase_id or uuid4(),
            project_id=project_id,
            name=name.strip(),
            stage=stage.upper() if stage else None,
        )
        try:
            self._session.add(PhaseModel.from_dto(phase, created_by_id=actor_id))
            self._session.flush()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "phase_registered",
            extra={
                "phase_id": str(phase.id),
                "project_id": str(project_id),
                "stage": phase.stage,
            },
        )
        return phase

    def get_phase(self, phase_id: UUID) -> Phase:
        return self._load_phase(phase_id).to_dto()

    # =========================================================================
    # Checklist
    # =========================================================================

    def list_deliverables(self, phase_id: UUID) -> list[Deliverable]:
        """Deliverables of the phase, ordered by ``display_order``."""
        self._load_phase(phase_id)
        return [m.to_dto() for m in self._deliverable_models(phase_id)]

    def predefined_for_stage(self, stage: str) -> tuple[str, ...]:
        return predefined_for_stage(stage, self._config)

    def ensure_defaults(
        self,
        phase_id: UUID,
        actor_id: UUID | None = None,
    ) -> list[Deliverable]:
        """
        Create the standard checklist if the phase has no deliverables.

        Idempotent: when deliverables already exist they are returned
        unchanged.  ``actor_id`` defaults to the actor who registered the
        phase.
        """
        with LogContext.bind(phase_id=phase_id, actor_id=actor_id):
            try:
                phase_model = self._load_phase(phase_id, for_update=True)
                existing = self._deliverable_models(phase_id)
                if existing:
                    self._session.commit()
                    logger.debug(
                        "deliverables_already_present",
                        extra={"count": len(existing)},
                    )
                    return [m.to_dto() for m in existing]

                names = default_deliverable_names(phase_model.to_dto(), self._config)
                creator = actor_id or phase_model.created_by_id
                models = [
                    DeliverableModel(
                        id=uuid4(),
                        phase_id=phase_id,
                        name=name,
                        display_order=order,
                        is_completed=False,
                        created_by_id=creator,
                    )
                    for order, name in enumerate(names, start=1)
                ]
                self._session.add_all(models)
                self._session.flush()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "deliverables_defaults_created",
                extra={"count": len(models)},
            )
            return [m.to_dto() for m in models]

    def toggle_completion(
        self,
        phase_id: UUID,
        deliverable_id: UUID,
        actor_id: UUID,
    ) -> Deliverable:
        """Flip ``is_completed``, stamping or clearing who and when."""
        with LogContext.bind(phase_id=phase_id, actor_id=actor_id):
            try:
                model = self._session.execute(
                    select(DeliverableModel)
                    .where(DeliverableModel.id == deliverable_id)
                    .with_for_update()
                ).scalar_one_or_none()
                if model is None or model.phase_id != phase_id:
                    raise DeliverableNotFoundError(str(phase_id), str(deliverable_id))

                if model.is_completed:
                    model.is_completed = False
                    model.completed_by_user_id = None
                    model.completed_at = None
                else:
                    model.is_completed = True
                    model.completed_by_user_id = actor_id
                    model.completed_at = self._clock.now()
                model.updated_by_id = actor_id

                self._session.flush()
                deliverable = model.to_dto()
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "deliverable_toggled",
                extra={
                    "deliverable_id": str(deliverable_id),
                    "is_completed": deliverable.is_completed,
                },
            )
            return deliverable

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self, phase_id: UUID) -> PhaseCompletionSummary:
        """Completion counts for the phase, read in one query."""
        row = self._session.execute(
            select(
                PhaseModel.id,
                func.count(DeliverableModel.id),
                func.sum(case((DeliverableModel.is_completed.is_(True), 1), else_=0)),
            )
            .outerjoin(DeliverableModel, DeliverableModel.phase_id == PhaseModel.id)
            .where(PhaseModel.id == phase_id)
            .group_by(PhaseModel.id)
        ).one_or_none()
        if row is None:
            raise PhaseNotFoundError(str(phase_id))

        _, total, complete = row
        return PhaseCompletionSummary(complete=int(complete or 0), total=int(total))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_phase(self, phase_id: UUID, for_update: bool = False) -> PhaseModel:
        stmt = select(PhaseModel).where(PhaseModel.id == phase_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.execute(stmt).scalar_one_or_none()
        if model is None:
            raise PhaseNotFoundError(str(phase_id))
        return model

    def _deliverable_models(self, phase_id: UUID) -> list[DeliverableModel]:
        return list(
            self._session.execute(
                select(DeliverableModel)
                .where(DeliverableModel.phase_id == phase_id)
                .order_by(DeliverableModel.display_order)
            ).scalars()
        )
