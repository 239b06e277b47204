"""Time-clock router, mounted at ``/api/v1/time``."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.time_entries.schemas import (
    ClockRequest,
    CorrectionCreate,
    TimeEntryOut,
    Timesheet,
)
from workforce.time_entries.service import TimeEntryService

router = APIRouter(prefix="", tags=["time"])


@router.post("/clock-in", response_model=TimeEntryOut, status_code=201)
async def clock_in(
    request: Request,
    body: ClockRequest = ClockRequest(),
    user: User = Depends(require_permission("time:write")),
    db: AsyncSession = Depends(get_db),
):
    return await TimeEntryService.clock_in(db, user, body, request)


@router.post("/clock-out", response_model=TimeEntryOut, status_code=201)
async def clock_out(
    request: Request,
    body: ClockRequest = ClockRequest(),
    user: User = Depends(require_permission("time:write")),
    db: AsyncSession = Depends(get_db),
):
    return await TimeEntryService.clock_out(db, user, body, request)


@router.get("", response_model=PaginatedResponse[TimeEntryOut])
async def list_time_entries(
    employee_id: Optional[uuid.UUID] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    pending_only: bool = Query(False),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("time:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await TimeEntryService.list_entries(
        db,
        user,
        permissions,
        pagination,
        employee_id=employee_id,
        date_from=date_from,
        date_to=date_to,
        pending_only=pending_only,
    )


@router.get("/timesheet", response_model=Timesheet)
async def monthly_timesheet(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    employee_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_permission("time:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await TimeEntryService.timesheet(db, user, permissions, year, month, employee_id)


@router.post("/corrections", response_model=TimeEntryOut, status_code=201)
async def submit_correction(
    body: CorrectionCreate,
    request: Request,
    user: User = Depends(require_permission("time:write")),
    db: AsyncSession = Depends(get_db),
):
    return await TimeEntryService.submit_correction(db, user, body, request)


@router.post("/corrections/{entry_id}/approve", response_model=TimeEntryOut)
async def approve_correction(
    entry_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("time:read_all")),
    db: AsyncSession = Depends(get_db),
):
    return await TimeEntryService.approve_correction(db, user, entry_id, request)
