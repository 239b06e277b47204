"""Performance ORM models: reviews, competencies, competency scores, disciplinary records."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce.common.constants import DisciplinaryType, ReviewPeriod, ReviewStatus
from workforce.common.dates import as_utc, utcnow
from workforce.common.models import TimestampMixin
from workforce.database import Base

if TYPE_CHECKING:
    from workforce.employees.models import Employee


class Competency(TimestampMixin, Base):
    __tablename__ = "competencies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    category: Mapped[Optional[str]] = mapped_column(sa.String(100))
    max_score: Mapped[float] = mapped_column(sa.Float, default=5.0)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)


class PerformanceReview(TimestampMixin, Base):
    __tablename__ = "performance_reviews"
    __table_args__ = (
        sa.Index("ix_performance_reviews_employee", "employee_id", "year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False,
    )
    period: Mapped[ReviewPeriod] = mapped_column(
        sa.Enum(ReviewPeriod, name="review_period", create_type=False), nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    quarter: Mapped[Optional[int]] = mapped_column(sa.Integer)
    status: Mapped[ReviewStatus] = mapped_column(
        sa.Enum(ReviewStatus, name="review_status", create_type=False),
        default=ReviewStatus.DRAFT,
        nullable=False,
    )
    overall_score: Mapped[Optional[float]] = mapped_column(sa.Float)
    strengths: Mapped[Optional[str]] = mapped_column(sa.Text)
    improvements: Mapped[Optional[str]] = mapped_column(sa.Text)
    comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    employee_comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    employee: Mapped["Employee"] = relationship(foreign_keys=[employee_id])
    reviewer: Mapped["Employee"] = relationship(foreign_keys=[reviewer_id])
    competency_scores: Mapped[list[CompetencyScore]] = relationship(
        back_populates="review", cascade="all, delete-orphan",
    )


class CompetencyScore(Base):
    __tablename__ = "competency_scores"
    __table_args__ = (
        sa.UniqueConstraint("review_id", "competency_id", name="uq_competency_score"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    review_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("performance_reviews.id", ondelete="CASCADE"),
        nullable=False,
    )
    competency_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("competencies.id"), nullable=False,
    )
    score: Mapped[float] = mapped_column(sa.Float, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(sa.Text)

    review: Mapped[PerformanceReview] = relationship(back_populates="competency_scores")
    competency: Mapped[Competency] = relationship()


class DisciplinaryRecord(TimestampMixin, Base):
    """A warning on file; counts against the score until ``expires_at``."""

    __tablename__ = "disciplinary_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False, index=True,
    )
    type: Mapped[DisciplinaryType] = mapped_column(
        sa.Enum(DisciplinaryType, name="disciplinary_type", create_type=False),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    details: Mapped[Optional[str]] = mapped_column(sa.Text)
    issued_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    issued_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, nullable=False,
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))

    @property
    def is_active(self) -> bool:
        return self.expires_at is None or as_utc(self.expires_at) > utcnow()
