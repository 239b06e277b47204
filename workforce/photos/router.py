"""Profile photo router."""

import uuid

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import (
    get_current_permissions,
    get_current_user,
    require_any_permission,
)
from workforce.auth.models import User
from workforce.database import get_db
from workforce.photos.schemas import PendingPhotoOut, PhotoOut, PhotoReject
from workforce.photos.service import PhotoService

router = APIRouter(prefix="", tags=["photos"])

_moderators = require_any_permission("employees:write", "employees:write_all")


@router.post("/upload/{employee_id}", response_model=PhotoOut, status_code=201)
async def upload_photo(
    employee_id: uuid.UUID,
    request: Request,
    photo: UploadFile = File(...),
    user: User = Depends(get_current_user),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await PhotoService.upload(db, user, permissions, employee_id, photo, request)


@router.get("/pending", response_model=list[PendingPhotoOut])
async def pending_photos(
    user: User = Depends(_moderators),
    db: AsyncSession = Depends(get_db),
):
    return await PhotoService.pending(db)


@router.post("/{photo_id}/approve", response_model=PhotoOut)
async def approve_photo(
    photo_id: uuid.UUID,
    request: Request,
    user: User = Depends(_moderators),
    db: AsyncSession = Depends(get_db),
):
    return await PhotoService.approve(db, user, photo_id, request)


@router.post("/{photo_id}/reject", response_model=PhotoOut)
async def reject_photo(
    photo_id: uuid.UUID,
    body: PhotoReject,
    request: Request,
    user: User = Depends(_moderators),
    db: AsyncSession = Depends(get_db),
):
    return await PhotoService.reject(db, user, photo_id, body.comment, request)


@router.get("/history/{employee_id}", response_model=list[PhotoOut])
async def photo_history(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await PhotoService.history(db, user, permissions, employee_id)
