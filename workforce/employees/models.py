"""Employee ORM models: Location, Department, Employee.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
Column names match the schema created in 001_initial_schema.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import ContractType, EmploymentStatus
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.auth.models import User


# ═════════════════════════════════════════════════════════════════════
# Location
# ═════════════════════════════════════════════════════════════════════


class Location(TimestampMixin, Base):
    """Office location / work-site."""

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)
    city: Mapped[Optional[str]] = mapped_column(sa.String(100))
    country: Mapped[Optional[str]] = mapped_column(sa.String(100))
    timezone: Mapped[str] = mapped_column(sa.String(50), default="UTC")
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    employees: Mapped[list[Employee]] = relationship(
        back_populates="location", foreign_keys="Employee.location_id",
    )

    def __repr__(self) -> str:
        return f"<Location {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(TimestampMixin, Base):
    """Organisational department."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    code: Mapped[Optional[str]] = mapped_column(sa.String(20), unique=True)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    head_employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", name="fk_dept_head", use_alter=True),
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    employees: Mapped[list[Employee]] = relationship(
        back_populates="department", foreign_keys="Employee.department_id",
    )

    def __repr__(self) -> str:
        return f"<Department {self.name!r} ({self.code})>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(TimestampMixin, Base):
    """Core employee record, 1:1 with a login User."""

    __tablename__ = "employees"

    # ── Primary key ─────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Identifiers ─────────────────────────────────────────────────
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        unique=True,
    )
    employee_number: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False,
    )

    # ── Name / Contact ──────────────────────────────────────────────
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    date_of_birth: Mapped[Optional[date]] = mapped_column(sa.Date)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)
    emergency_contact_name: Mapped[Optional[str]] = mapped_column(sa.String(200))
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(sa.String(30))

    # ── Org hierarchy ───────────────────────────────────────────────
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id"),
    )
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("locations.id"),
    )
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"),
    )
    job_title: Mapped[Optional[str]] = mapped_column(sa.String(200))

    # ── Employment ──────────────────────────────────────────────────
    employment_status: Mapped[EmploymentStatus] = mapped_column(
        sa.Enum(EmploymentStatus, name="employment_status", create_type=False),
        default=EmploymentStatus.ACTIVE,
    )
    contract_type: Mapped[ContractType] = mapped_column(
        sa.Enum(ContractType, name="contract_type", create_type=False),
        default=ContractType.FULL_TIME,
    )
    hire_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    termination_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    weekly_hours: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), default=Decimal("40"))

    # ── Profile ─────────────────────────────────────────────────────
    photo_url: Mapped[Optional[str]] = mapped_column(sa.Text)

    deleted_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    # ── Relationships ───────────────────────────────────────────────
    user: Mapped[Optional["User"]] = relationship(
        back_populates="employee", foreign_keys=[user_id],
    )
    department: Mapped[Optional[Department]] = relationship(
        back_populates="employees", foreign_keys=[department_id],
    )
    location: Mapped[Optional[Location]] = relationship(
        back_populates="employees", foreign_keys=[location_id],
    )
    manager: Mapped[Optional[Employee]] = relationship(
        remote_side=[id], foreign_keys=[manager_id], back_populates="direct_reports",
    )
    direct_reports: Mapped[list[Employee]] = relationship(
        back_populates="manager", foreign_keys=[manager_id],
    )

    # ── Helpers ─────────────────────────────────────────────────────

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Employee {self.employee_number} {self.first_name} {self.last_name}>"
