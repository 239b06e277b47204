"""Training ORM models: the course catalogue and per-employee enrollments."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import TrainingStatus
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class Training(TimestampMixin, Base):
    __tablename__ = "trainings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    content: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_mandatory: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    duration_minutes: Mapped[Optional[int]] = mapped_column(sa.Integer)
    passing_score: Mapped[Optional[float]] = mapped_column(sa.Float)
    expiry_months: Mapped[Optional[int]] = mapped_column(sa.Integer)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    enrollments: Mapped[list[EmployeeTraining]] = relationship(back_populates="training")


class EmployeeTraining(TimestampMixin, Base):
    __tablename__ = "employee_trainings"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "training_id", name="uq_employee_training"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False,
    )
    training_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False,
    )
    status: Mapped[TrainingStatus] = mapped_column(
        sa.Enum(TrainingStatus, name="training_status", create_type=False),
        default=TrainingStatus.NOT_STARTED,
        nullable=False,
    )
    score: Mapped[Optional[float]] = mapped_column(sa.Float)
    started_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    certificate_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    expires_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    due_date: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    training: Mapped[Training] = relationship(back_populates="enrollments")
    employee: Mapped["Employee"] = relationship()
