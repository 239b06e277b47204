"""Break ORM models: Break and the BreakPolicy thresholds."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import BreakCategory, BreakStatus
from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee

DEFAULT_MAX_BREAKS_PER_DAY = 5
DEFAULT_MAX_MINUTES_PER_BREAK = 30
DEFAULT_MAX_TOTAL_MINUTES = 45


class BreakPolicy(TimestampMixin, Base):
    __tablename__ = "break_policies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False, default="Default")
    max_breaks_per_day: Mapped[int] = mapped_column(
        sa.Integer, default=DEFAULT_MAX_BREAKS_PER_DAY,
    )
    max_minutes_per_break: Mapped[int] = mapped_column(
        sa.Integer, default=DEFAULT_MAX_MINUTES_PER_BREAK,
    )
    max_total_minutes: Mapped[int] = mapped_column(
        sa.Integer, default=DEFAULT_MAX_TOTAL_MINUTES,
    )
    alert_on_exceed: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)


class Break(TimestampMixin, Base):
    __tablename__ = "breaks"
    __table_args__ = (
        sa.Index("ix_breaks_employee_start", "employee_id", "start_time"),
        sa.Index("ix_breaks_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    category: Mapped[BreakCategory] = mapped_column(
        sa.Enum(BreakCategory, name="break_category", create_type=False),
        default=BreakCategory.PERSONAL,
        nullable=False,
    )
    start_time: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    duration_minutes: Mapped[Optional[int]] = mapped_column(sa.Integer)
    status: Mapped[BreakStatus] = mapped_column(
        sa.Enum(BreakStatus, name="break_status", create_type=False),
        default=BreakStatus.ACTIVE,
        nullable=False,
    )
    exceeded_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    employee: Mapped["Employee"] = relationship(foreign_keys=[employee_id])
