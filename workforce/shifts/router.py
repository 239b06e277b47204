"""Shift router: schedule, open shifts, swaps and templates."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.common.constants import ApprovalStatus, ShiftStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.shifts.schemas import (
    ShiftCreate,
    ShiftOut,
    ShiftTemplateCreate,
    ShiftTemplateOut,
    ShiftTemplateUpdate,
    ShiftUpdate,
    SwapCreate,
    SwapOut,
    SwapResolve,
)
from workforce.shifts.service import ShiftService

router = APIRouter(prefix="", tags=["shifts"])


# ── Shifts ──────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[ShiftOut])
async def list_shifts(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    location_id: Optional[uuid.UUID] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[ShiftStatus] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("shifts:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.list_shifts(
        db,
        user,
        permissions,
        pagination,
        filters={
            "date__from": start_date,
            "date__to": end_date,
            "location_id": location_id,
            "department_id": department_id,
            "employee_id": employee_id,
            "status": status,
        },
    )


@router.post("", response_model=ShiftOut, status_code=201)
async def create_shift(
    body: ShiftCreate,
    request: Request,
    user: User = Depends(require_permission("shifts:write")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.create_shift(db, user, body, request)


@router.get("/open", response_model=PaginatedResponse[ShiftOut])
async def list_open_shifts(
    location_id: Optional[uuid.UUID] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("shifts:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.list_open_shifts(db, pagination, location_id=location_id)


# ── Swaps ───────────────────────────────────────────────────────────

@router.get("/swaps", response_model=list[SwapOut])
async def list_swaps(
    status: Optional[ApprovalStatus] = Query(None),
    user: User = Depends(require_permission("shifts:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.list_swaps(db, user, permissions, status)


@router.post("/swaps", response_model=SwapOut, status_code=201)
async def create_swap(
    body: SwapCreate,
    request: Request,
    user: User = Depends(require_permission("shifts:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.create_swap(db, user, body, request)


@router.post("/swaps/{swap_id}/resolve", response_model=SwapOut)
async def resolve_swap(
    swap_id: uuid.UUID,
    body: SwapResolve,
    request: Request,
    user: User = Depends(require_permission("shifts:write")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.resolve_swap(db, user, swap_id, body.decision, request)


# ── Templates ───────────────────────────────────────────────────────

@router.get("/templates", response_model=list[ShiftTemplateOut])
async def list_templates(
    active_only: bool = Query(True),
    user: User = Depends(require_permission("shifts:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.list_templates(db, active_only)


@router.post("/templates", response_model=ShiftTemplateOut, status_code=201)
async def create_template(
    body: ShiftTemplateCreate,
    user: User = Depends(require_permission("shifts:write")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.create_template(db, body)


@router.patch("/templates/{template_id}", response_model=ShiftTemplateOut)
async def update_template(
    template_id: uuid.UUID,
    body: ShiftTemplateUpdate,
    user: User = Depends(require_permission("shifts:write")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.update_template(db, template_id, body)


# ── Single shift ────────────────────────────────────────────────────

@router.get("/{shift_id}", response_model=ShiftOut)
async def get_shift(
    shift_id: uuid.UUID,
    user: User = Depends(require_permission("shifts:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.get_shift(db, shift_id)


@router.patch("/{shift_id}", response_model=ShiftOut)
async def update_shift(
    shift_id: uuid.UUID,
    body: ShiftUpdate,
    request: Request,
    user: User = Depends(require_permission("shifts:write")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.update_shift(db, user, shift_id, body, request)


@router.delete("/{shift_id}", status_code=204)
async def delete_shift(
    shift_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("shifts:write")),
    db: AsyncSession = Depends(get_db),
):
    await ShiftService.delete_shift(db, user, shift_id, request)


@router.post("/{shift_id}/apply", response_model=ShiftOut)
async def apply_to_open_shift(
    shift_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("shifts:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.apply_to_open_shift(db, user, shift_id, request)
