"""Permission router: catalog, per-user effective permissions, override replacement."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.database import get_db
from workforce.permissions.schemas import (
    PermissionCatalogOut,
    PermissionOverridesReplace,
    UserPermissionsOut,
)
from workforce.permissions.service import PermissionService

router = APIRouter(prefix="", tags=["permissions"])


@router.get("/catalog", response_model=PermissionCatalogOut)
async def catalog(user: User = Depends(require_permission("users:read"))):
    return PermissionService.catalog()


@router.get("/me", response_model=list[str])
async def my_permissions(permissions: set[str] = Depends(get_current_permissions)):
    return sorted(permissions)


@router.get("/users/{user_id}", response_model=UserPermissionsOut)
async def get_user_permissions(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("users:read")),
    db: AsyncSession = Depends(get_db),
):
    return await PermissionService.get_user_permissions(db, user_id)


@router.put("/users/{user_id}", response_model=UserPermissionsOut)
async def replace_user_permissions(
    user_id: uuid.UUID,
    body: PermissionOverridesReplace,
    request: Request,
    user: User = Depends(require_permission("users:write")),
    db: AsyncSession = Depends(get_db),
):
    """Replace every override of the user in one transaction."""
    return await PermissionService.replace_overrides(
        db,
        actor=user,
        user_id=user_id,
        overrides=body.overrides,
        request=request,
    )
