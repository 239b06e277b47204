"""User-management router. Reads need ``users:read``; writes need ``users:write``
and an ADMIN or SUPER_ADMIN role."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import require_permission, require_role
from workforce.auth.models import User
from workforce.common.constants import UserRole, UserStatus
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.users.schemas import SessionOut, UserCreate, UserOut, UserUpdate
from workforce.users.service import UserService

router = APIRouter(prefix="", tags=["users"])

_require_admin = require_role(UserRole.ADMIN, UserRole.SUPER_ADMIN)


@router.get("", response_model=PaginatedResponse[UserOut])
async def list_users(
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[UserRole] = Query(None),
    status: Optional[UserStatus] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("users:read")),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_users(
        db, pagination, search=search, role=role, status=status,
    )


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreate,
    request: Request,
    user: User = Depends(require_permission("users:write")),
    _admin: User = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.create_user(db, user, body, request)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("users:read")),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    request: Request,
    user: User = Depends(require_permission("users:write")),
    _admin: User = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.update_user(db, user, user_id, body, request)


@router.post("/{user_id}/deactivate", response_model=UserOut)
async def deactivate_user(
    user_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("users:write")),
    _admin: User = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.set_status(db, user, user_id, UserStatus.INACTIVE, request)


@router.post("/{user_id}/activate", response_model=UserOut)
async def activate_user(
    user_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("users:write")),
    _admin: User = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.set_status(db, user, user_id, UserStatus.ACTIVE, request)


@router.get("/{user_id}/sessions", response_model=list[SessionOut])
async def user_sessions(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("users:read")),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_sessions(db, user_id)
