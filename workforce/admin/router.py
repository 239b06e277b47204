"""Admin router: reference data, settings, license, audit log and policies.

Writes need ``admin:settings``; the audit log needs ``admin:audit_logs``.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.admin.schemas import (
    AuditLogOut,
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
    LicenseUpdate,
    LocationCreate,
    LocationOut,
    LocationUpdate,
    SettingOut,
    SettingsUpdate,
)
from workforce.admin.service import AdminService
from workforce.auth.dependencies import get_current_user, require_permission, require_role
from workforce.auth.models import User
from workforce.breaks.schemas import BreakPolicyIn, BreakPolicyOut
from workforce.breaks.service import BreakService
from workforce.common.constants import UserRole
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.leaves.schemas import LeavePolicyIn, LeavePolicyOut
from workforce.leaves.service import LeaveService
from workforce.users.schemas import LicenseStatus
from workforce.users.service import UserService

router = APIRouter(prefix="", tags=["admin"])

_settings_dep = require_permission("admin:settings")


# ═══════════════════════════════════════════════════════════════════
# DEPARTMENTS
# ═══════════════════════════════════════════════════════════════════

@router.get("/departments", response_model=list[DepartmentOut])
async def list_departments(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_departments(db)


@router.post("/departments", response_model=DepartmentOut, status_code=201)
async def create_department(
    body: DepartmentCreate,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.create_department(db, user, body, request)


@router.patch("/departments/{department_id}", response_model=DepartmentOut)
async def update_department(
    department_id: uuid.UUID,
    body: DepartmentUpdate,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.update_department(db, user, department_id, body, request)


# ═══════════════════════════════════════════════════════════════════
# LOCATIONS
# ═══════════════════════════════════════════════════════════════════

@router.get("/locations", response_model=list[LocationOut])
async def list_locations(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_locations(db)


@router.post("/locations", response_model=LocationOut, status_code=201)
async def create_location(
    body: LocationCreate,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.create_location(db, user, body, request)


@router.patch("/locations/{location_id}", response_model=LocationOut)
async def update_location(
    location_id: uuid.UUID,
    body: LocationUpdate,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.update_location(db, user, location_id, body, request)


# ═══════════════════════════════════════════════════════════════════
# SETTINGS / LICENSE
# ═══════════════════════════════════════════════════════════════════

@router.get("/settings", response_model=list[SettingOut])
async def list_settings(
    _user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_settings(db)


@router.put("/settings", response_model=list[SettingOut])
async def update_settings(
    body: SettingsUpdate,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.update_settings(db, user, body.settings, request)


@router.get("/license", response_model=LicenseStatus)
async def license_status(
    _user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.license_status(db)


@router.put("/license", response_model=LicenseStatus)
async def update_license(
    body: LicenseUpdate,
    request: Request,
    user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    values = body.model_dump(exclude_none=True)
    if values:
        await AdminService.update_settings(db, user, values, request)
    return await UserService.license_status(db)


# ═══════════════════════════════════════════════════════════════════
# AUDIT LOG
# ═══════════════════════════════════════════════════════════════════

@router.get("/audit-logs", response_model=PaginatedResponse[AuditLogOut])
async def list_audit_logs(
    action: Optional[str] = Query(None, max_length=50),
    actor_id: Optional[uuid.UUID] = Query(None),
    object_type: Optional[str] = Query(None, max_length=50),
    object_id: Optional[str] = Query(None, max_length=64),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    _user: User = Depends(require_permission("admin:audit_logs")),
    db: AsyncSession = Depends(get_db),
):
    return await AdminService.list_audit_logs(
        db,
        pagination,
        action=action,
        actor_id=actor_id,
        object_type=object_type,
        object_id=object_id,
        date_from=date_from,
        date_to=date_to,
    )


# ═══════════════════════════════════════════════════════════════════
# POLICIES
# ═══════════════════════════════════════════════════════════════════

@router.get("/policies/leave", response_model=list[LeavePolicyOut])
async def list_leave_policies(
    _user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_policies(db, active_only=False)


@router.put("/policies/leave", response_model=LeavePolicyOut)
async def upsert_leave_policy(
    body: LeavePolicyIn,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.upsert_policy(db, user, body, request)


@router.get("/policies/break", response_model=BreakPolicyOut)
async def get_break_policy(
    _user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.get_policy(db)


@router.put("/policies/break", response_model=BreakPolicyOut)
async def put_break_policy(
    body: BreakPolicyIn,
    request: Request,
    user: User = Depends(_settings_dep),
    db: AsyncSession = Depends(get_db),
):
    return await BreakService.put_policy(db, user, body, request)
