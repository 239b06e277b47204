"""Employee router: scoped directory, profile updates, org chart, timeline."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import (
    get_current_permissions,
    get_current_user,
    require_permission,
)
from workforce.auth.models import User
from workforce.common.constants import EmploymentStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.employees.schemas import (
    EmployeeOut,
    EmployeeUpdate,
    OrgChartNode,
    TimelineEntry,
)
from workforce.employees.service import EmployeeService

router = APIRouter(prefix="", tags=["employees"])


@router.get("", response_model=PaginatedResponse[EmployeeOut])
async def list_employees(
    search: Optional[str] = Query(None, max_length=100),
    department_id: Optional[uuid.UUID] = Query(None),
    location_id: Optional[uuid.UUID] = Query(None),
    employment_status: Optional[EmploymentStatus] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("employees:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.list_employees(
        db,
        user,
        permissions,
        pagination,
        search=search,
        department_id=department_id,
        location_id=location_id,
        employment_status=employment_status,
    )


@router.get("/org-chart", response_model=list[OrgChartNode])
async def org_chart(
    user: User = Depends(require_permission("employees:read")),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.org_chart(db)


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_visible(db, user, permissions, employee_id)


@router.patch("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.update_employee(
        db, user, permissions, employee_id, body, request,
    )


@router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("employees:delete")),
    db: AsyncSession = Depends(get_db),
):
    await EmployeeService.delete_employee(db, user, employee_id, request)


@router.get("/{employee_id}/timeline", response_model=list[TimelineEntry])
async def employee_timeline(
    employee_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(require_permission("employees:read_all")),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.timeline(db, employee_id, limit)
