"""Training service: catalogue, enrollments and the completion report."""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Iterable, Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import NotificationType, TrainingStatus
from workforce.common.dates import utcnow
from workforce.common.exceptions import ForbiddenException, NotFoundException
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.employees.models import Employee
from workforce.notifications.service import NotificationService
from workforce.training.models import EmployeeTraining, Training
from workforce.training.schemas import (
    EnrollmentOut,
    EnrollmentUpdate,
    EnrollRequest,
    EnrollResult,
    TrainingCreate,
    TrainingOut,
    TrainingReportRow,
    TrainingUpdate,
)

# Certificate validity uses 30-day months
DAYS_PER_MONTH = 30


def summarize_enrollments(training: Training, enrollments: Iterable[EmployeeTraining]) -> TrainingReportRow:
    enrollments = list(enrollments)
    scores = [e.score for e in enrollments if e.score is not None]
    return TrainingReportRow(
        id=training.id,
        title=training.title,
        is_mandatory=training.is_mandatory,
        total_enrolled=len(enrollments),
        completed=sum(1 for e in enrollments if e.status == TrainingStatus.COMPLETED),
        in_progress=sum(1 for e in enrollments if e.status == TrainingStatus.IN_PROGRESS),
        overdue=sum(1 for e in enrollments if e.status == TrainingStatus.OVERDUE),
        average_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
    )


class TrainingService:

    @staticmethod
    async def _get_training(db: AsyncSession, training_id: uuid.UUID) -> Training:
        training = await db.get(Training, training_id)
        if training is None:
            raise NotFoundException("Training", training_id)
        return training

    @staticmethod
    async def list_trainings(
        db: AsyncSession,
        pagination: PaginationParams,
        mandatory: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Training).where(Training.is_active.is_(True)).order_by(Training.created_at.desc())
        if mandatory is not None:
            query = query.where(Training.is_mandatory.is_(mandatory))
        return await paginate(
            db, query, pagination, model=Training, transform=TrainingOut.model_validate,
        )

    @staticmethod
    async def create_training(
        db: AsyncSession,
        actor: User,
        data: TrainingCreate,
        request: Optional[Request] = None,
    ) -> TrainingOut:
        training = Training(**data.model_dump())
        db.add(training)
        await db.flush()
        await create_audit_entry(
            db,
            action="CREATE",
            object_type="training",
            object_id=training.id,
            actor_id=actor.id,
            after=data.model_dump(),
            request=request,
        )
        return TrainingOut.model_validate(training)

    @staticmethod
    async def update_training(
        db: AsyncSession,
        actor: User,
        training_id: uuid.UUID,
        data: TrainingUpdate,
        request: Optional[Request] = None,
    ) -> TrainingOut:
        training = await TrainingService._get_training(db, training_id)
        changes = data.model_dump(exclude_unset=True)
        before = {field: getattr(training, field) for field in changes}
        for field, value in changes.items():
            setattr(training, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="training",
            object_id=training.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return TrainingOut.model_validate(training)

    # ── Enrollments ─────────────────────────────────────────────────

    @staticmethod
    async def my_enrollments(db: AsyncSession, actor: User) -> list[EnrollmentOut]:
        if actor.employee is None:
            return []
        result = await db.execute(
            select(EmployeeTraining)
            .where(EmployeeTraining.employee_id == actor.employee.id)
            .options(selectinload(EmployeeTraining.training))
            .order_by(EmployeeTraining.created_at.desc())
        )
        return [EnrollmentOut.model_validate(e) for e in result.scalars().all()]

    @staticmethod
    async def enroll(
        db: AsyncSession,
        actor: User,
        training_id: uuid.UUID,
        data: EnrollRequest,
        request: Optional[Request] = None,
    ) -> EnrollResult:
        """Enroll employees; those already enrolled or unknown are skipped."""
        training = await TrainingService._get_training(db, training_id)

        requested = list(dict.fromkeys(data.employee_ids))
        existing = set((await db.execute(
            select(EmployeeTraining.employee_id).where(
                EmployeeTraining.training_id == training.id,
                EmployeeTraining.employee_id.in_(requested),
            )
        )).scalars().all())
        valid = set((await db.execute(
            select(Employee.id).where(Employee.id.in_(requested), Employee.deleted_at.is_(None))
        )).scalars().all())

        expires_at = None
        if training.expiry_months:
            expires_at = utcnow() + timedelta(days=training.expiry_months * DAYS_PER_MONTH)

        enrolled = [eid for eid in requested if eid in valid and eid not in existing]
        for employee_id in enrolled:
            db.add(EmployeeTraining(
                employee_id=employee_id,
                training_id=training.id,
                due_date=data.due_date,
                expires_at=expires_at,
            ))
        await db.flush()

        for employee_id in enrolled:
            await NotificationService.notify_employee(
                db,
                employee_id,
                type=NotificationType.TRAINING_DUE,
                title="New training assigned",
                message=f"You have been enrolled in '{training.title}'.",
                link="/training",
                entity_type="training",
                entity_id=training.id,
            )
        await create_audit_entry(
            db,
            action="CREATE",
            object_type="employee_training",
            object_id=training.id,
            actor_id=actor.id,
            after={"enrolled": enrolled},
            request=request,
        )
        return EnrollResult(enrolled=len(enrolled), skipped=len(requested) - len(enrolled))

    @staticmethod
    async def update_enrollment(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        enrollment_id: uuid.UUID,
        data: EnrollmentUpdate,
    ) -> EnrollmentOut:
        enrollment = (await db.execute(
            select(EmployeeTraining)
            .where(EmployeeTraining.id == enrollment_id)
            .options(selectinload(EmployeeTraining.training))
        )).scalars().first()
        if enrollment is None:
            raise NotFoundException("EmployeeTraining", enrollment_id)
        own_id = actor.employee.id if actor.employee else None
        if enrollment.employee_id != own_id and "training:write" not in permissions:
            raise ForbiddenException("You can only update your own enrollments.")

        if data.status is not None:
            enrollment.status = data.status
            if data.status == TrainingStatus.IN_PROGRESS and enrollment.started_at is None:
                enrollment.started_at = utcnow()
            if data.status == TrainingStatus.COMPLETED:
                enrollment.completed_at = utcnow()
                enrollment.started_at = enrollment.started_at or enrollment.completed_at
        if data.score is not None:
            enrollment.score = data.score
        await db.flush()
        return EnrollmentOut.model_validate(enrollment)

    @staticmethod
    async def report(db: AsyncSession) -> list[TrainingReportRow]:
        result = await db.execute(
            select(Training)
            .where(Training.is_active.is_(True))
            .options(selectinload(Training.enrollments))
            .order_by(Training.title)
        )
        return [summarize_enrollments(t, t.enrollments) for t in result.scalars().all()]
