"""Announcement router."""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.announcements.schemas import (
    AnnouncementCreate,
    AnnouncementOut,
    AnnouncementUpdate,
)
from workforce.announcements.service import AnnouncementService
from workforce.auth.dependencies import require_permission
from workforce.auth.models import User
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db

router = APIRouter(prefix="", tags=["announcements"])


@router.get("", response_model=PaginatedResponse[AnnouncementOut])
async def list_announcements(
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("announcements:read")),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.list_announcements(db, user, pagination)


@router.post("", response_model=AnnouncementOut, status_code=201)
async def create_announcement(
    body: AnnouncementCreate,
    request: Request,
    user: User = Depends(require_permission("announcements:write")),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.create_announcement(db, user, body, request)


@router.patch("/{announcement_id}", response_model=AnnouncementOut)
async def update_announcement(
    announcement_id: uuid.UUID,
    body: AnnouncementUpdate,
    request: Request,
    user: User = Depends(require_permission("announcements:write")),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.update_announcement(db, user, announcement_id, body, request)


@router.delete("/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("announcements:write")),
    db: AsyncSession = Depends(get_db),
):
    await AnnouncementService.delete_announcement(db, user, announcement_id, request)


@router.post("/{announcement_id}/read", status_code=204)
async def mark_announcement_read(
    announcement_id: uuid.UUID,
    user: User = Depends(require_permission("announcements:read")),
    db: AsyncSession = Depends(get_db),
):
    await AnnouncementService.mark_read(db, user, announcement_id)
