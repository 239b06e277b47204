"""Task service: assignment, status workflow, proof uploads and review."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import Request, UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.dependencies import require_employee
from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import (
    MAX_PROOFS_PER_UPLOAD,
    MIN_TASK_PROOFS,
    TASK_MANAGER_ROLES,
    TASK_TRANSITIONS,
    NotificationType,
    TaskPriority,
    TaskStatus,
)
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.common.storage import PROOF_TYPES, save_upload
from workforce.employees.models import Employee
from workforce.notifications.service import (
    NotificationService,
    notify_task_assigned,
    notify_task_reviewed,
)
from workforce.scores.service import ScoreService
from workforce.tasks.models import Task, TaskProof
from workforce.tasks.schemas import (
    TaskCreate,
    TaskOut,
    TaskReview,
    TaskStats,
    TaskStatusChange,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

PROOF_GATED = frozenset({TaskStatus.COMPLETED, TaskStatus.WAITING_FOR_REVIEW})
REVIEW_OUTCOMES = frozenset({TaskStatus.APPROVED, TaskStatus.REJECTED})

_TASK_LOADS = (
    selectinload(Task.assignee),
    selectinload(Task.proofs),
)


def is_task_manager(user: User) -> bool:
    return user.role in TASK_MANAGER_ROLES


def check_transition(
    current: TaskStatus,
    target: TaskStatus,
    proof_count: int,
) -> None:
    """Raise ValidationException unless *current* → *target* is a legal move.

    APPROVED and REJECTED are only reachable through a review.
    """
    if target in REVIEW_OUTCOMES:
        raise ValidationException("Use the review action to approve or reject a task.")
    allowed = TASK_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        names = ", ".join(sorted(s.value for s in allowed)) or "none"
        raise ValidationException(
            f"Cannot transition from {current.value} to {target.value}. Allowed: {names}",
        )
    if target in PROOF_GATED and proof_count < MIN_TASK_PROOFS:
        raise ValidationException(
            f"At least {MIN_TASK_PROOFS} proof files are required before completing a task. "
            f"Currently: {proof_count}",
        )


class TaskService:

    @staticmethod
    async def _get_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> Task:
        query = select(Task).where(Task.id == task_id).options(*_TASK_LOADS)
        if refresh:
            query = query.execution_options(populate_existing=True)
        task = (await db.execute(query)).scalars().first()
        if task is None:
            raise NotFoundException("Task", task_id)
        return task

    @staticmethod
    async def _ensure_assignee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None or employee.deleted_at is not None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def create_task(
        db: AsyncSession,
        actor: User,
        data: TaskCreate,
        request: Optional[Request] = None,
    ) -> TaskOut:
        creator = require_employee(actor)
        await TaskService._ensure_assignee(db, data.assignee_id)

        task = Task(**data.model_dump(), status=TaskStatus.OPEN, created_by=creator.id)
        db.add(task)
        await db.flush()

        await create_audit_entry(
            db,
            action="TASK_CREATED",
            object_type="task",
            object_id=task.id,
            actor_id=actor.id,
            after=data.model_dump(),
            request=request,
        )
        await notify_task_assigned(db, task)
        return TaskOut.model_validate(await TaskService._get_task(db, task.id, refresh=True))

    @staticmethod
    async def list_tasks(
        db: AsyncSession,
        actor: User,
        pagination: PaginationParams,
        *,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assignee_id: Optional[uuid.UUID] = None,
        created_by_me: bool = False,
    ) -> PaginatedResponse:
        own_id = actor.employee.id if actor.employee else None
        query = select(Task).order_by(Task.due_date.asc(), Task.created_at.desc())
        if not is_task_manager(actor):
            query = query.where(Task.assignee_id == own_id)
        elif assignee_id is not None:
            query = query.where(Task.assignee_id == assignee_id)
        if created_by_me:
            query = query.where(Task.created_by == own_id)
        if status is not None:
            query = query.where(Task.status == status)
        if priority is not None:
            query = query.where(Task.priority == priority)
        return await paginate(
            db, query, pagination,
            model=Task,
            options=_TASK_LOADS,
            transform=TaskOut.model_validate,
        )

    @staticmethod
    async def get_task(db: AsyncSession, actor: User, task_id: uuid.UUID) -> TaskOut:
        task = await TaskService._get_task(db, task_id)
        own_id = actor.employee.id if actor.employee else None
        if not is_task_manager(actor) and task.assignee_id != own_id:
            raise ForbiddenException("You can only view tasks assigned to you.")
        return TaskOut.model_validate(task)

    @staticmethod
    async def update_task(
        db: AsyncSession,
        actor: User,
        task_id: uuid.UUID,
        data: TaskUpdate,
        request: Optional[Request] = None,
    ) -> TaskOut:
        task = await TaskService._get_task(db, task_id)
        if task.status == TaskStatus.APPROVED:
            raise ValidationException("Cannot edit an approved task.")
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationException("No fields to update.")
        if changes.get("assignee_id") is not None:
            await TaskService._ensure_assignee(db, changes["assignee_id"])

        before = {field: getattr(task, field) for field in changes}
        for field, value in changes.items():
            setattr(task, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="task",
            object_id=task.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        if "assignee_id" in changes and before["assignee_id"] != task.assignee_id:
            await notify_task_assigned(db, task)
        return TaskOut.model_validate(await TaskService._get_task(db, task.id, refresh=True))

    @staticmethod
    async def change_status(
        db: AsyncSession,
        actor: User,
        task_id: uuid.UUID,
        data: TaskStatusChange,
        request: Optional[Request] = None,
    ) -> TaskOut:
        task = await TaskService._get_task(db, task_id)
        own_id = actor.employee.id if actor.employee else None
        if task.assignee_id != own_id and not is_task_manager(actor):
            raise ForbiddenException("Only the assignee can change this task's status.")

        check_transition(task.status, data.status, len(task.proofs))

        previous = task.status
        task.status = data.status
        if data.status in PROOF_GATED:
            task.completed_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="TASK_STATUS_CHANGED",
            object_type="task",
            object_id=task.id,
            actor_id=actor.id,
            before={"status": previous},
            after={"status": data.status},
            request=request,
        )
        if data.status == TaskStatus.WAITING_FOR_REVIEW:
            await NotificationService.notify_employee(
                db,
                task.created_by,
                type=NotificationType.APPROVAL_NEEDED,
                title="Task ready for review",
                message=f"'{task.title}' is waiting for your review.",
                link=f"/tasks/{task.id}",
                entity_type="task",
                entity_id=task.id,
            )
        return TaskOut.model_validate(await TaskService._get_task(db, task.id, refresh=True))

    @staticmethod
    async def upload_proofs(
        db: AsyncSession,
        actor: User,
        task_id: uuid.UUID,
        files: list[UploadFile],
        request: Optional[Request] = None,
    ) -> TaskOut:
        if not files:
            raise ValidationException("At least one proof file is required.")
        if len(files) > MAX_PROOFS_PER_UPLOAD:
            raise ValidationException(f"At most {MAX_PROOFS_PER_UPLOAD} files per upload.")

        task = await TaskService._get_task(db, task_id)
        own_id = actor.employee.id if actor.employee else None
        if task.assignee_id != own_id:
            raise ForbiddenException("Only the task assignee can upload proofs.")
        if task.status == TaskStatus.APPROVED:
            raise ValidationException("Cannot upload proofs for an approved task.")

        for upload in files:
            stored = await save_upload(upload, "task-proofs", allowed_types=PROOF_TYPES, max_size_mb=10)
            task.proofs.append(TaskProof(
                file_url=stored.url,
                file_name=stored.original_name,
                file_size=stored.size,
                mime_type=stored.mime_type,
                uploaded_by=own_id,
                uploaded_at=utcnow(),
            ))
        await db.flush()

        await create_audit_entry(
            db,
            action="TASK_PROOF_UPLOADED",
            object_type="task",
            object_id=task.id,
            actor_id=actor.id,
            after={"proof_count": len(task.proofs)},
            request=request,
            metadata={"uploaded": len(files)},
        )
        return TaskOut.model_validate(await TaskService._get_task(db, task.id, refresh=True))

    @staticmethod
    async def review_task(
        db: AsyncSession,
        actor: User,
        task_id: uuid.UUID,
        data: TaskReview,
        request: Optional[Request] = None,
    ) -> TaskOut:
        """Approve or reject a submitted task and refresh the assignee's score."""
        if data.status not in REVIEW_OUTCOMES:
            raise ValidationException("status must be APPROVED or REJECTED")
        task = await TaskService._get_task(db, task_id)
        if task.status != TaskStatus.WAITING_FOR_REVIEW:
            raise ValidationException("Task is not waiting for review.")

        task.status = data.status
        task.rating = data.rating
        task.review_comment = data.comment
        task.reviewed_by = actor.employee.id if actor.employee else None
        task.reviewed_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="TASK_REVIEWED",
            object_type="task",
            object_id=task.id,
            actor_id=actor.id,
            before={"status": TaskStatus.WAITING_FOR_REVIEW},
            after={"status": data.status, "rating": data.rating},
            request=request,
        )
        await notify_task_reviewed(db, task)
        await ScoreService.calculate(db, task.assignee_id, actor.id)
        return TaskOut.model_validate(await TaskService._get_task(db, task.id, refresh=True))

    @staticmethod
    async def stats(db: AsyncSession, actor: User) -> TaskStats:
        query = select(Task.status, func.count()).group_by(Task.status)
        if not is_task_manager(actor):
            own_id = actor.employee.id if actor.employee else None
            query = query.where(Task.assignee_id == own_id)
        counts = {row[0]: row[1] for row in (await db.execute(query)).all()}
        by_status = {status.value: counts.get(status, 0) for status in TaskStatus}
        return TaskStats(total=sum(by_status.values()), by_status=by_status)
