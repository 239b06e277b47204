"""Task router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_user, require_role
from workforce.auth.models import User
from workforce.common.constants import TASK_MANAGER_ROLES, TaskPriority, TaskStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.tasks.schemas import (
    TaskCreate,
    TaskOut,
    TaskReview,
    TaskStats,
    TaskStatusChange,
    TaskUpdate,
)
from workforce.tasks.service import TaskService

router = APIRouter(prefix="", tags=["tasks"])

_require_manager = require_role(*TASK_MANAGER_ROLES)


@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    body: TaskCreate,
    request: Request,
    user: User = Depends(_require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.create_task(db, user, body, request)


@router.get("", response_model=PaginatedResponse[TaskOut])
async def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    assignee_id: Optional[uuid.UUID] = Query(None),
    created_by_me: bool = Query(False),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.list_tasks(
        db, user, pagination,
        status=status,
        priority=priority,
        assignee_id=assignee_id,
        created_by_me=created_by_me,
    )


@router.get("/stats", response_model=TaskStats)
async def task_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.stats(db, user)


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.get_task(db, user, task_id)


@router.patch("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    request: Request,
    user: User = Depends(_require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.update_task(db, user, task_id, body, request)


@router.post("/{task_id}/status", response_model=TaskOut)
async def change_task_status(
    task_id: uuid.UUID,
    body: TaskStatusChange,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.change_status(db, user, task_id, body, request)


@router.post("/{task_id}/proofs", response_model=TaskOut, status_code=201)
async def upload_task_proofs(
    task_id: uuid.UUID,
    request: Request,
    files: list[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.upload_proofs(db, user, task_id, files, request)


@router.post("/{task_id}/review", response_model=TaskOut)
async def review_task(
    task_id: uuid.UUID,
    body: TaskReview,
    request: Request,
    user: User = Depends(_require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.review_task(db, user, task_id, body, request)
