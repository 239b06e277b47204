"""Per-user permission override rows."""

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
    from workforce.auth.models import User


class UserPermission(Base):
    """``granted=True`` adds a permission to the role set, ``False`` removes it."""

    __tablename__ = "user_permissions"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "permission", name="uq_user_permission"),
    )

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
    permission: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    granted: Mapped[bool] = mapped_column(sa.Boolean, nullable=False)
    granted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    user: Mapped["User"] = relationship(
        back_populates="permission_overrides", foreign_keys=[user_id],
    )
