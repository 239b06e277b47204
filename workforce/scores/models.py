"""EmployeeScore: a saved snapshot of the performance score."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.dates import utcnow
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class EmployeeScore(Base):
    __tablename__ = "employee_scores"
    __table_args__ = (
        sa.Index("ix_employee_scores_latest", "employee_id", "is_latest"),
        sa.Index("ix_employee_scores_total", "total_score"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )

    total_score: Mapped[float] = mapped_column(sa.Float, nullable=False)
    grade: Mapped[str] = mapped_column(sa.String(2), nullable=False)
    task_rating_score: Mapped[float] = mapped_column(sa.Float, default=0)
    task_completion_score: Mapped[float] = mapped_column(sa.Float, default=0)
    consistency_score: Mapped[float] = mapped_column(sa.Float, default=0)
    disciplinary_score: Mapped[float] = mapped_column(sa.Float, default=0)

    total_tasks: Mapped[int] = mapped_column(sa.Integer, default=0)
    approved_tasks: Mapped[int] = mapped_column(sa.Integer, default=0)
    rejected_tasks: Mapped[int] = mapped_column(sa.Integer, default=0)
    avg_rating: Mapped[float] = mapped_column(sa.Float, default=0)
    on_time_rate: Mapped[float] = mapped_column(sa.Float, default=0)
    warning_count: Mapped[int] = mapped_column(sa.Integer, default=0)

    period_start: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    calculated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
    calculated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    is_latest: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)

    employee: Mapped["Employee"] = relationship()
