"""Training router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
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
from workforce.training.service import TrainingService

router = APIRouter(prefix="", tags=["training"])


@router.get("", response_model=PaginatedResponse[TrainingOut])
async def list_trainings(
    mandatory: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("training:read")),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.list_trainings(db, pagination, mandatory)


@router.post("", response_model=TrainingOut, status_code=201)
async def create_training(
    body: TrainingCreate,
    request: Request,
    user: User = Depends(require_permission("training:write")),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.create_training(db, user, body, request)


@router.get("/my-enrollments", response_model=list[EnrollmentOut])
async def my_enrollments(
    user: User = Depends(require_permission("training:read")),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.my_enrollments(db, user)


@router.get("/report", response_model=list[TrainingReportRow])
async def training_report(
    user: User = Depends(require_permission("training:read_all")),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.report(db)


@router.patch("/enrollments/{enrollment_id}", response_model=EnrollmentOut)
async def update_enrollment(
    enrollment_id: uuid.UUID,
    body: EnrollmentUpdate,
    user: User = Depends(require_permission("training:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.update_enrollment(db, user, permissions, enrollment_id, body)


@router.patch("/{training_id}", response_model=TrainingOut)
async def update_training(
    training_id: uuid.UUID,
    body: TrainingUpdate,
    request: Request,
    user: User = Depends(require_permission("training:write")),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.update_training(db, user, training_id, body, request)


@router.post("/{training_id}/enroll", response_model=EnrollResult, status_code=201)
async def enroll_employees(
    training_id: uuid.UUID,
    body: EnrollRequest,
    request: Request,
    user: User = Depends(require_permission("training:write")),
    db: AsyncSession = Depends(get_db),
):
    return await TrainingService.enroll(db, user, training_id, body, request)
