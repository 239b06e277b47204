"""Performance router: reviews, competencies and disciplinary records."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import (
    get_current_permissions,
    require_any_permission,
    require_permission,
)
from workforce.auth.models import User
from workforce.common.constants import ReviewStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
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
from workforce.performance.service import PerformanceService

router = APIRouter(prefix="", tags=["performance"])


# ── Reviews ─────────────────────────────────────────────────────────

@router.get("/reviews", response_model=PaginatedResponse[ReviewOut])
async def list_reviews(
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[ReviewStatus] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("performance:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.list_reviews(
        db, user, permissions, pagination,
        employee_id=employee_id, status=status, year=year,
    )


@router.post("/reviews", response_model=ReviewOut, status_code=201)
async def create_review(
    body: ReviewCreate,
    request: Request,
    user: User = Depends(require_permission("performance:write")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.create_review(db, user, body, request)


@router.get("/reviews/{review_id}", response_model=ReviewOut)
async def get_review(
    review_id: uuid.UUID,
    user: User = Depends(require_permission("performance:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.get_review(db, user, permissions, review_id)


@router.patch("/reviews/{review_id}", response_model=ReviewOut)
async def update_review(
    review_id: uuid.UUID,
    body: ReviewUpdate,
    request: Request,
    user: User = Depends(require_permission("performance:write")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.update_review(db, user, review_id, body, request)


@router.post("/reviews/{review_id}/acknowledge", response_model=ReviewOut)
async def acknowledge_review(
    review_id: uuid.UUID,
    request: Request,
    body: ReviewAcknowledge = ReviewAcknowledge(),
    user: User = Depends(require_permission("performance:read")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.acknowledge_review(db, user, review_id, body, request)


# ── Competencies ────────────────────────────────────────────────────

@router.get("/competencies", response_model=list[CompetencyOut])
async def list_competencies(
    user: User = Depends(require_permission("performance:read")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.list_competencies(db)


@router.post("/competencies", response_model=CompetencyOut, status_code=201)
async def create_competency(
    body: CompetencyCreate,
    user: User = Depends(require_permission("performance:write")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.create_competency(db, body)


# ── Disciplinary ────────────────────────────────────────────────────

@router.get("/disciplinary/{employee_id}", response_model=list[DisciplinaryOut])
async def list_disciplinary(
    employee_id: uuid.UUID,
    active_only: bool = Query(False),
    user: User = Depends(require_any_permission("performance:read_all", "performance:write")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.list_disciplinary(db, employee_id, active_only)


@router.post("/disciplinary", response_model=DisciplinaryOut, status_code=201)
async def create_disciplinary(
    body: DisciplinaryCreate,
    request: Request,
    user: User = Depends(require_permission("performance:write")),
    db: AsyncSession = Depends(get_db),
):
    return await PerformanceService.create_disciplinary(db, user, body, request)
