"""Document ORM models: stored files and reusable text templates."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import DocumentCategory
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class DocumentTemplate(TimestampMixin, Base):
    __tablename__ = "document_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    category: Mapped[DocumentCategory] = mapped_column(
        sa.Enum(DocumentCategory, name="document_category", create_type=False),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)


class Document(TimestampMixin, Base):
    __tablename__ = "documents"
    __table_args__ = (
        sa.Index("ix_documents_employee", "employee_id"),
        sa.Index("ix_documents_expires_at", "expires_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    category: Mapped[DocumentCategory] = mapped_column(
        sa.Enum(DocumentCategory, name="document_category", create_type=False),
        default=DocumentCategory.OTHER,
        nullable=False,
    )
    file_url: Mapped[str] = mapped_column(sa.String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    file_size: Mapped[Optional[int]] = mapped_column(sa.Integer)
    mime_type: Mapped[Optional[str]] = mapped_column(sa.String(100))
    version: Mapped[int] = mapped_column(sa.Integer, default=1)
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    template_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("document_templates.id", ondelete="SET NULL"),
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    is_confidential: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    deleted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    employee: Mapped[Optional["Employee"]] = relationship(foreign_keys=[employee_id])
    assigned_to: Mapped[Optional["Employee"]] = relationship(foreign_keys=[assigned_to_id])
    template: Mapped[Optional[DocumentTemplate]] = relationship()
