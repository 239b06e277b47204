"""ProfilePhoto: uploaded profile pictures awaiting or past review."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import PhotoStatus
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class ProfilePhoto(TimestampMixin, Base):
    __tablename__ = "profile_photos"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_url: Mapped[str] = mapped_column(sa.String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    file_size: Mapped[Optional[int]] = mapped_column(sa.Integer)
    mime_type: Mapped[Optional[str]] = mapped_column(sa.String(100))
    status: Mapped[PhotoStatus] = mapped_column(
        sa.Enum(PhotoStatus, name="photo_status", create_type=False),
        default=PhotoStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    review_comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=False, nullable=False)
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    employee: Mapped["Employee"] = relationship()
