"""
Deliverable ORM Models (``billing_modules.deliverables.orm``).

Responsibility
--------------
SQLAlchemy persistence models for phases and their deliverables.  Maps
the frozen domain dataclasses from ``models.py`` to database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``billing_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``billing_kernel``.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import TrackedBase


# ---------------------------------------------------------------------------
# 1. PhaseModel
# ---------------------------------------------------------------------------


class PhaseModel(TrackedBase):
    """
    ORM model for project phases.

    Phases are owned by project management; only the fields needed to pick
    a checklist and to gate invoicing are kept here.

    Guarantees:
        - stage, when present, is an upper-case stage key.
    """

    __tablename__ = "billing_phases"

    __table_args__ = (
        Index("idx_billing_phases_project_id", "project_id"),
    )

    project_id: Mapped[UUID] = mapped_column(nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage: Mapped[str | None] = mapped_column(String(30), nullable=True)

    deliverables: Mapped[list["DeliverableModel"]] = relationship(
        back_populates="phase",
        cascade="all, delete-orphan",
        order_by="DeliverableModel.display_order",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.deliverables.models import Phase

        return Phase(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            stage=self.stage,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PhaseModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            id=dto.id,
            project_id=dto.project_id,
            name=dto.name,
            stage=dto.stage.upper() if dto.stage else None,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<PhaseModel {self.name} stage={self.stage}>"


# ---------------------------------------------------------------------------
# 2. DeliverableModel
# ---------------------------------------------------------------------------


class DeliverableModel(TrackedBase):
    """
    ORM model for phase deliverables.

    Guarantees:
        - phase_id FK to billing_phases.id.
        - display_order is unique within a phase, so two concurrent
          ``ensure_defaults`` calls cannot both insert a checklist.
    """

    __tablename__ = "phase_deliverables"

    __table_args__ = (
        UniqueConstraint(
            "phase_id", "display_order",
            name="uq_phase_deliverables_phase_order",
        ),
        Index("idx_phase_deliverables_phase_id", "phase_id"),
    )

    phase_id: Mapped[UUID] = mapped_column(
        ForeignKey("billing_phases.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_order: Mapped[int] = mapped_column(nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_by_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    phase: Mapped["PhaseModel"] = relationship(back_populates="deliverables")

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.deliverables.models import Deliverable

        return Deliverable(
            id=self.id,
            phase_id=self.phase_id,
            name=self.name,
            display_order=self.display_order,
            is_completed=self.is_completed,
            completed_by_user_id=self.completed_by_user_id,
            completed_at=self.completed_at,
        )

    def __repr__(self) -> str:
        return (
            f"<DeliverableModel {self.display_order}. {self.name} "
            f"completed={self.is_completed}>"
        )
