"""Leave ORM models: LeavePolicy, LeaveBalance, LeaveRequest, Approval."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import (
    ApprovalStatus,
    ContractType,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class LeavePolicy(TimestampMixin, Base):
    """Yearly entitlement per leave type, optionally narrowed to one contract type."""

    __tablename__ = "leave_policies"
    __table_args__ = (
        sa.UniqueConstraint("leave_type", "contract_type", name="uq_leave_policy_type_contract"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False), nullable=False,
    )
    contract_type: Mapped[Optional[ContractType]] = mapped_column(
        sa.Enum(ContractType, name="contract_type", create_type=False),
    )
    days_per_year: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), default=Decimal("0"))
    max_carry_over: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), default=Decimal("0"))
    requires_approval: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    min_notice_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)


class LeaveBalance(Base):
    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type", "year", name="uq_leave_balance"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False), nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_days: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), default=Decimal("0"))
    carried_over: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), default=Decimal("0"))
    used_days: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), default=Decimal("0"))
    pending_days: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow,
    )

    @property
    def available_days(self) -> Decimal:
        return (
            Decimal(self.total_days) + Decimal(self.carried_over)
            - Decimal(self.used_days) - Decimal(self.pending_days)
        )


class LeaveRequest(TimestampMixin, Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.Index("ix_leave_requests_employee_dates", "employee_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False), nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    attachment_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", create_type=False),
        default=LeaveStatus.PENDING,
        nullable=False,
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    # Relationships
    employee: Mapped["Employee"] = relationship(foreign_keys=[employee_id])
    approvals: Mapped[list[Approval]] = relationship(
        back_populates="leave_request",
        order_by="Approval.step",
        cascade="all, delete-orphan",
    )


class Approval(Base):
    """One ordered decision step of a leave request."""

    __tablename__ = "approvals"
    __table_args__ = (
        sa.UniqueConstraint("leave_request_id", "step", name="uq_approval_step"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    leave_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("leave_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    step: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    approver_role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role", create_type=False), nullable=False,
    )
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    status: Mapped[ApprovalStatus] = mapped_column(
        sa.Enum(ApprovalStatus, name="approval_status", create_type=False),
        default=ApprovalStatus.PENDING,
        nullable=False,
    )
    comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    decided_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    sla_hours: Mapped[int] = mapped_column(sa.Integer, default=48)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    leave_request: Mapped[LeaveRequest] = relationship(back_populates="approvals")
