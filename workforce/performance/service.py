"""Performance service: reviews, competencies and disciplinary records.

Review status only moves forward: DRAFT → IN_PROGRESS → COMPLETED, then the
reviewed employee acknowledges (ACKNOWLEDGED).
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import Request
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.dependencies import require_employee
from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import NotificationType, ReviewStatus
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.employees.models import Employee
from workforce.notifications.service import NotificationService
from workforce.performance.models import (
    Competency,
    CompetencyScore,
    DisciplinaryRecord,
    PerformanceReview,
)
from workforce.performance.schemas import (
    CompetencyCreate,
    CompetencyOut,
    DisciplinaryCreate,
    DisciplinaryOut,
    ReviewAcknowledge,
    ReviewCreate,
    ReviewOut,
    ReviewUpdate,
)

logger = logging.getLogger(__name__)

REVIEW_ORDER = {
    ReviewStatus.DRAFT: 0,
    ReviewStatus.IN_PROGRESS: 1,
    ReviewStatus.COMPLETED: 2,
    ReviewStatus.ACKNOWLEDGED: 3,
}

_REVIEW_LOADS = (
    selectinload(PerformanceReview.employee),
    selectinload(PerformanceReview.reviewer),
    selectinload(PerformanceReview.competency_scores).selectinload(CompetencyScore.competency),
)


def can_move_review(current: ReviewStatus, target: ReviewStatus) -> bool:
    """Forward-only, and ACKNOWLEDGED is reserved for the acknowledge action."""
    if target == ReviewStatus.ACKNOWLEDGED:
        return False
    return REVIEW_ORDER[target] >= REVIEW_ORDER[current]


class PerformanceService:

    # ── Reviews ─────────────────────────────────────────────────────

    @staticmethod
    async def _get_review(
        db: AsyncSession,
        review_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> PerformanceReview:
        query = (
            select(PerformanceReview)
            .where(PerformanceReview.id == review_id)
            .options(*_REVIEW_LOADS)
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        review = (await db.execute(query)).scalars().first()
        if review is None:
            raise NotFoundException("PerformanceReview", review_id)
        return review

    @staticmethod
    async def list_reviews(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[ReviewStatus] = None,
        year: Optional[int] = None,
    ) -> PaginatedResponse:
        query = select(PerformanceReview).order_by(PerformanceReview.created_at.desc())
        if "performance:read_all" not in permissions:
            own_id = actor.employee.id if actor.employee else None
            query = query.where(or_(
                PerformanceReview.employee_id == own_id,
                PerformanceReview.reviewer_id == own_id,
            ))
        if employee_id is not None:
            query = query.where(PerformanceReview.employee_id == employee_id)
        if status is not None:
            query = query.where(PerformanceReview.status == status)
        if year is not None:
            query = query.where(PerformanceReview.year == year)
        return await paginate(
            db, query, pagination,
            model=PerformanceReview,
            options=_REVIEW_LOADS,
            transform=ReviewOut.model_validate,
        )

    @staticmethod
    async def get_review(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        review_id: uuid.UUID,
    ) -> ReviewOut:
        review = await PerformanceService._get_review(db, review_id)
        own_id = actor.employee.id if actor.employee else None
        if (
            "performance:read_all" not in permissions
            and own_id not in (review.employee_id, review.reviewer_id)
        ):
            raise ForbiddenException("You cannot view this review.")
        return ReviewOut.model_validate(review)

    @staticmethod
    async def create_review(
        db: AsyncSession,
        actor: User,
        data: ReviewCreate,
        request: Optional[Request] = None,
    ) -> ReviewOut:
        reviewer = require_employee(actor)
        employee = await db.get(Employee, data.employee_id)
        if employee is None or employee.deleted_at is not None:
            raise NotFoundException("Employee", data.employee_id)

        review = PerformanceReview(
            employee_id=employee.id,
            reviewer_id=reviewer.id,
            period=data.period,
            year=data.year,
            quarter=data.quarter,
            status=ReviewStatus.DRAFT,
        )
        db.add(review)
        await db.flush()

        await create_audit_entry(
            db,
            action="CREATE",
            object_type="performance_review",
            object_id=review.id,
            actor_id=actor.id,
            after=data.model_dump(),
            request=request,
        )
        await NotificationService.notify_employee(
            db,
            employee.id,
            type=NotificationType.PERFORMANCE_REVIEW,
            title="Performance review started",
            message=f"A {data.period.value.lower()} review for {data.year} has been opened.",
            link=f"/performance/reviews/{review.id}",
            entity_type="performance_review",
            entity_id=review.id,
        )
        return ReviewOut.model_validate(
            await PerformanceService._get_review(db, review.id, refresh=True)
        )

    @staticmethod
    async def update_review(
        db: AsyncSession,
        actor: User,
        review_id: uuid.UUID,
        data: ReviewUpdate,
        request: Optional[Request] = None,
    ) -> ReviewOut:
        review = await PerformanceService._get_review(db, review_id)
        if review.status == ReviewStatus.ACKNOWLEDGED:
            raise ValidationException("An acknowledged review can no longer be edited.")

        changes = data.model_dump(exclude_unset=True, exclude={"competency_scores"})
        target = changes.get("status")
        if target is not None and not can_move_review(review.status, target):
            raise ValidationException(
                f"Cannot move review from {review.status.value} to {target.value}.",
            )

        before = {field: getattr(review, field) for field in changes}
        for field, value in changes.items():
            setattr(review, field, value)

        if data.competency_scores:
            existing = {cs.competency_id: cs for cs in review.competency_scores}
            for item in data.competency_scores:
                competency = await db.get(Competency, item.competency_id)
                if competency is None:
                    raise NotFoundException("Competency", item.competency_id)
                if item.score > competency.max_score:
                    raise ValidationException(
                        f"Score for '{competency.name}' cannot exceed {competency.max_score}.",
                    )
                row = existing.get(item.competency_id)
                if row is None:
                    review.competency_scores.append(CompetencyScore(
                        competency_id=item.competency_id,
                        score=item.score,
                        comment=item.comment,
                    ))
                else:
                    row.score = item.score
                    row.comment = item.comment
        await db.flush()

        completed = target == ReviewStatus.COMPLETED
        await create_audit_entry(
            db,
            action="REVIEW_COMPLETED" if completed else "UPDATE",
            object_type="performance_review",
            object_id=review.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        if completed:
            await NotificationService.notify_employee(
                db,
                review.employee_id,
                type=NotificationType.PERFORMANCE_REVIEW,
                title="Performance review completed",
                message="Your performance review is ready for acknowledgement.",
                link=f"/performance/reviews/{review.id}",
                entity_type="performance_review",
                entity_id=review.id,
            )
        return ReviewOut.model_validate(
            await PerformanceService._get_review(db, review.id, refresh=True)
        )

    @staticmethod
    async def acknowledge_review(
        db: AsyncSession,
        actor: User,
        review_id: uuid.UUID,
        data: ReviewAcknowledge,
        request: Optional[Request] = None,
    ) -> ReviewOut:
        review = await PerformanceService._get_review(db, review_id)
        own_id = actor.employee.id if actor.employee else None
        if review.employee_id != own_id:
            raise ForbiddenException("Only the reviewed employee can acknowledge.")
        if review.status != ReviewStatus.COMPLETED:
            raise ValidationException("Only completed reviews can be acknowledged.")

        review.status = ReviewStatus.ACKNOWLEDGED
        review.acknowledged_at = utcnow()
        review.employee_comments = data.employee_comments
        await db.flush()

        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="performance_review",
            object_id=review.id,
            actor_id=actor.id,
            before={"status": ReviewStatus.COMPLETED},
            after={"status": ReviewStatus.ACKNOWLEDGED},
            request=request,
        )
        return ReviewOut.model_validate(
            await PerformanceService._get_review(db, review.id, refresh=True)
        )

    # ── Competencies ────────────────────────────────────────────────

    @staticmethod
    async def list_competencies(db: AsyncSession) -> list[CompetencyOut]:
        result = await db.execute(
            select(Competency).where(Competency.is_active.is_(True)).order_by(Competency.name)
        )
        return [CompetencyOut.model_validate(c) for c in result.scalars().all()]

    @staticmethod
    async def create_competency(db: AsyncSession, data: CompetencyCreate) -> CompetencyOut:
        existing = await db.execute(select(Competency.id).where(Competency.name == data.name))
        if existing.first() is not None:
            raise ConflictError("name", data.name)
        competency = Competency(**data.model_dump())
        db.add(competency)
        await db.flush()
        return CompetencyOut.model_validate(competency)

    # ── Disciplinary ────────────────────────────────────────────────

    @staticmethod
    async def list_disciplinary(
        db: AsyncSession,
        employee_id: uuid.UUID,
        active_only: bool = False,
    ) -> list[DisciplinaryOut]:
        result = await db.execute(
            select(DisciplinaryRecord)
            .where(DisciplinaryRecord.employee_id == employee_id)
            .order_by(DisciplinaryRecord.issued_at.desc())
        )
        records = result.scalars().all()
        if active_only:
            records = [r for r in records if r.is_active]
        return [DisciplinaryOut.model_validate(r) for r in records]

    @staticmethod
    async def create_disciplinary(
        db: AsyncSession,
        actor: User,
        data: DisciplinaryCreate,
        request: Optional[Request] = None,
    ) -> DisciplinaryOut:
        employee = await db.get(Employee, data.employee_id)
        if employee is None or employee.deleted_at is not None:
            raise NotFoundException("Employee", data.employee_id)

        record = DisciplinaryRecord(**data.model_dump(), issued_by=actor.id, issued_at=utcnow())
        db.add(record)
        await db.flush()

        await create_audit_entry(
            db,
            action="CREATE",
            object_type="disciplinary_record",
            object_id=record.id,
            actor_id=actor.id,
            after=data.model_dump(),
            request=request,
        )
        logger.info("Disciplinary record %s issued for employee %s", record.id, employee.id)
        return DisciplinaryOut.model_validate(record)
