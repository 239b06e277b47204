"""Scheduling ORM models: ShiftTemplate, Shift, ShiftSwap."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import ApprovalStatus, ShiftStatus, ShiftType
from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee, Location


class ShiftTemplate(TimestampMixin, Base):
    __tablename__ = "shift_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    shift_type: Mapped[ShiftType] = mapped_column(
        sa.Enum(ShiftType, name="shift_type", create_type=False),
        nullable=False,
    )
    # Wall-clock "HH:mm"
    start_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    break_minutes: Mapped[int] = mapped_column(sa.Integer, default=60)
    color: Mapped[str] = mapped_column(sa.String(7), default="#3B82F6")
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    shifts: Mapped[list[Shift]] = relationship(back_populates="template")


class Shift(TimestampMixin, Base):
    """One scheduled work window. ``employee_id`` is NULL for open shifts."""

    __tablename__ = "shifts"
    __table_args__ = (
        sa.Index("ix_shifts_employee_start", "employee_id", "start_time"),
        sa.Index("ix_shifts_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"),
    )
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("shift_templates.id"),
    )
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("locations.id"),
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    start_time: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    status: Mapped[ShiftStatus] = mapped_column(
        sa.Enum(ShiftStatus, name="shift_status", create_type=False),
        default=ShiftStatus.SCHEDULED,
        nullable=False,
    )
    is_open_shift: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    # Relationships
    employee: Mapped[Optional["Employee"]] = relationship(foreign_keys=[employee_id])
    template: Mapped[Optional[ShiftTemplate]] = relationship(back_populates="shifts")
    location: Mapped[Optional["Location"]] = relationship(foreign_keys=[location_id])

    def __repr__(self) -> str:
        return f"<Shift {self.date} {self.status.value} emp={self.employee_id}>"


class ShiftSwap(Base):
    __tablename__ = "shift_swaps"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    original_shift_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("shifts.id"), nullable=False,
    )
    target_shift_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("shifts.id"),
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    target_employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"),
    )
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[ApprovalStatus] = mapped_column(
        sa.Enum(ApprovalStatus, name="approval_status", create_type=False),
        default=ApprovalStatus.PENDING,
        nullable=False,
    )
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    # Relationships
    original_shift: Mapped[Shift] = relationship(foreign_keys=[original_shift_id])
    target_shift: Mapped[Optional[Shift]] = relationship(foreign_keys=[target_shift_id])
    requester: Mapped["Employee"] = relationship(foreign_keys=[requester_id])
    target_employee: Mapped[Optional["Employee"]] = relationship(
        foreign_keys=[target_employee_id],
    )
