"""Goal router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.common.constants import GoalStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.goals.schemas import CheckInCreate, CheckInOut, GoalCreate, GoalOut, GoalUpdate
from workforce.goals.service import GoalService

router = APIRouter(prefix="", tags=["goals"])


@router.get("", response_model=PaginatedResponse[GoalOut])
async def list_goals(
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[GoalStatus] = Query(None),
    company_only: bool = Query(False),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("goals:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await GoalService.list_goals(
        db, user, permissions, pagination,
        employee_id=employee_id, status=status, company_only=company_only,
    )


@router.post("", response_model=GoalOut, status_code=201)
async def create_goal(
    body: GoalCreate,
    request: Request,
    user: User = Depends(require_permission("goals:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await GoalService.create_goal(db, user, permissions, body, request)


@router.patch("/{goal_id}", response_model=GoalOut)
async def update_goal(
    goal_id: uuid.UUID,
    body: GoalUpdate,
    request: Request,
    user: User = Depends(require_permission("goals:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await GoalService.update_goal(db, user, permissions, goal_id, body, request)


@router.post("/{goal_id}/check-in", response_model=CheckInOut, status_code=201)
async def goal_check_in(
    goal_id: uuid.UUID,
    body: CheckInCreate,
    user: User = Depends(require_permission("goals:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await GoalService.check_in(db, user, permissions, goal_id, body)
