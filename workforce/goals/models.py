"""Goal ORM models: goals (personal, team or company) and progress check-ins."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import GoalStatus
from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class Goal(TimestampMixin, Base):
    __tablename__ = "goals"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="CASCADE"), index=True,
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[GoalStatus] = mapped_column(
        sa.Enum(GoalStatus, name="goal_status", create_type=False),
        default=GoalStatus.NOT_STARTED,
        nullable=False,
    )
    progress: Mapped[float] = mapped_column(sa.Float, default=0, nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    due_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    completed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    parent_goal_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("goals.id", ondelete="SET NULL"),
    )
    is_company_goal: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    is_team_goal: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    employee: Mapped[Optional["Employee"]] = relationship()
    check_ins: Mapped[list[GoalCheckIn]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="GoalCheckIn.created_at.desc()",
    )


class GoalCheckIn(Base):
    __tablename__ = "goal_check_ins"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    goal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("goals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    progress: Mapped[float] = mapped_column(sa.Float, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )

    goal: Mapped[Goal] = relationship(back_populates="check_ins")
