"""Break router."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.breaks.schemas import (
    BreakEndResponse,
    BreakLimits,
    BreakOut,
    BreakStart,
    BreakSummary,
)
from workforce.breaks.service import BreakService
from workforce.common.constants import BreakCategory
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db

router = APIRouter(prefix="", tags=["breaks"])


@router.post("/start", response_model=BreakOut, status_code=201)
async def start_break(
    body: BreakStart,
    request: Request,
    user: User = Depends(require_permission("breaks:write")),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.start_break(db, user, body, request)


@router.post("/end", response_model=BreakEndResponse)
async def end_break(
    request: Request,
    user: User = Depends(require_permission("breaks:write")),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.end_break(db, user, request)


@router.get("/active", response_model=Optional[BreakOut])
async def active_break(
    employee_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_permission("breaks:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.get_active(db, user, permissions, employee_id)


@router.get("", response_model=PaginatedResponse[BreakOut])
async def list_breaks(
    employee_id: Optional[uuid.UUID] = Query(None),
    category: Optional[BreakCategory] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("breaks:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.list_breaks(
        db,
        user,
        permissions,
        pagination,
        employee_id=employee_id,
        category=category,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/summary", response_model=BreakSummary)
async def break_summary(
    employee_id: Optional[uuid.UUID] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    user: User = Depends(require_permission("breaks:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.summary(
        db, user, permissions, employee_id=employee_id, date_from=date_from, date_to=date_to,
    )


@router.get("/limits", response_model=BreakLimits)
async def break_limits(
    employee_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_permission("breaks:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.limits(db, user, permissions, employee_id)
