"""Auth ORM models: User, UserSession."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import UserRole, UserStatus
from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee
    from workforce.permissions.models import UserPermission


class User(TimestampMixin, Base):
    """Login identity. Carries the role and lockout state; HR data lives on Employee."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role", create_type=False),
        default=UserRole.EMPLOYEE,
        nullable=False,
    )
    status: Mapped[UserStatus] = mapped_column(
        sa.Enum(UserStatus, name="user_status", create_type=False),
        default=UserStatus.ACTIVE,
        nullable=False,
    )
    failed_login_attempts: Mapped[int] = mapped_column(sa.Integer, default=0)
    locked_until: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    last_login_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    last_login_ip: Mapped[Optional[str]] = mapped_column(sa.String(64))
    must_change_password: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )

    # Relationships
    employee: Mapped[Optional["Employee"]] = relationship(
        back_populates="user", foreign_keys="Employee.user_id", uselist=False,
    )
    sessions: Mapped[list[UserSession]] = relationship(
        back_populates="user", cascade="all, delete-orphan",
    )
    permission_overrides: Mapped[list["UserPermission"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="UserPermission.user_id",
    )

    def __repr__(self) -> str:
        return f"<User {self.email} {self.role.value}>"


class UserSession(Base):
    __tablename__ = "user_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(sa.String(128), nullable=False, index=True)
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(sa.String(128), index=True)
    ip_address: Mapped[Optional[str]] = mapped_column(sa.String(64))
    user_agent: Mapped[Optional[str]] = mapped_column(sa.Text)
    expires_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    refresh_expires_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    is_revoked: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now()
    )

    # Relationships
    user: Mapped[User] = relationship(back_populates="sessions")
