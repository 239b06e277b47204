"""TimeEntry ORM model: clock punches and manual corrections."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import ApprovalStatus, TimeEntryType
from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class TimeEntry(TimestampMixin, Base):
    __tablename__ = "time_entries"
    __table_args__ = (
        sa.Index("ix_time_entries_employee_ts", "employee_id", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    type: Mapped[TimeEntryType] = mapped_column(
        sa.Enum(TimeEntryType, name="time_entry_type", create_type=False), nullable=False,
    )
    timestamp: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
    ip_address: Mapped[Optional[str]] = mapped_column(sa.String(64))
    latitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    longitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    is_manual: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    # Only manual corrections carry an approval status
    correction_status: Mapped[Optional[ApprovalStatus]] = mapped_column(
        sa.Enum(ApprovalStatus, name="approval_status", create_type=False),
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    employee: Mapped["Employee"] = relationship(foreign_keys=[employee_id])
