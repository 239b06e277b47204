"""Announcement ORM models and per-user read receipts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from workforce.common.dates import utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base


class Announcement(TimestampMixin, Base):
    __tablename__ = "announcements"
    __table_args__ = (
        sa.Index("ix_announcements_published", "is_pinned", "published_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    priority: Mapped[str] = mapped_column(sa.String(20), default="normal", nullable=False)
    is_pinned: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    target_departments = mapped_column(JSONB, default=list)
    target_roles = mapped_column(JSONB, default=list)
    published_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    expires_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    attachment_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )


class AnnouncementRead(Base):
    __tablename__ = "announcement_reads"
    __table_args__ = (
        sa.UniqueConstraint("announcement_id", "user_id", name="uq_announcement_read"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    announcement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    read_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
