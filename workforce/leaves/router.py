"""Leave router: requests, the approval chain, balances and the absence calendar."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import (
    get_current_permissions,
    require_any_permission,
    require_permission,
)
from workforce.auth.models import User
from workforce.common.constants import LeaveStatus, LeaveType
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.leaves.schemas import (
    AbsenceCalendar,
    LeaveBalanceOut,
    LeaveCreateResponse,
    LeaveDecision,
    LeavePolicyOut,
    LeaveRequestCreate,
    LeaveRequestOut,
)
from workforce.leaves.service import LeaveService

router = APIRouter(prefix="", tags=["leaves"])

_require_approver = require_any_permission(
    "leaves:approve_lead", "leaves:approve_hr", "leaves:approve_final",
)


@router.post("", response_model=LeaveCreateResponse, status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    request: Request,
    user: User = Depends(require_permission("leaves:read")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.create_request(db, user, body, request)


@router.get("", response_model=PaginatedResponse[LeaveRequestOut])
async def list_leave_requests(
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[LeaveStatus] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("leaves:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_requests(
        db,
        user,
        permissions,
        pagination,
        employee_id=employee_id,
        status=status,
        leave_type=leave_type,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/balances", response_model=list[LeaveBalanceOut])
async def leave_balances(
    employee_id: Optional[uuid.UUID] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user: User = Depends(require_permission("leaves:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_balances(db, user, permissions, employee_id, year)


@router.get("/calendar", response_model=AbsenceCalendar)
async def absence_calendar(
    date_from: date = Query(...),
    date_to: date = Query(...),
    department_id: Optional[uuid.UUID] = Query(None),
    location_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_permission("leaves:read")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.absence_calendar(
        db, date_from, date_to, department_id=department_id, location_id=location_id,
    )


@router.get("/policies", response_model=list[LeavePolicyOut])
async def leave_policies(
    user: User = Depends(require_permission("leaves:read")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_policies(db)


@router.get("/{request_id}", response_model=LeaveRequestOut)
async def get_leave_request(
    request_id: uuid.UUID,
    user: User = Depends(require_permission("leaves:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_request(db, user, permissions, request_id)


@router.post("/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave_request(
    request_id: uuid.UUID,
    request: Request,
    body: LeaveDecision = LeaveDecision(),
    user: User = Depends(_require_approver),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.approve(db, user, request_id, body.comment, request)


@router.post("/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave_request(
    request_id: uuid.UUID,
    request: Request,
    body: LeaveDecision = LeaveDecision(),
    user: User = Depends(_require_approver),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.reject(db, user, request_id, body.comment, request)


@router.post("/{request_id}/cancel", response_model=LeaveRequestOut)
async def cancel_leave_request(
    request_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("leaves:read")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.cancel(db, user, request_id, request)
