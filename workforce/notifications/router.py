"""Notification inbox endpoints. Notifications are created by other modules."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_user
from workforce.auth.models import User
from workforce.common.constants import NotificationType
from workforce.common.pagination import PaginationParams
from workforce.database import get_db
from workforce.notifications.schemas import (
    NotificationListResponse,
    NotificationResponse,
    ReadAllResult,
    UnreadCountOut,
)
from workforce.notifications.service import NotificationService

router = APIRouter(prefix="", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: Optional[bool] = Query(default=None),
    type: Optional[NotificationType] = Query(default=None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest first. ``meta.unread`` ignores the filters."""
    return await NotificationService.get_notifications(
        db,
        user_id=user.id,
        pagination=pagination,
        is_read=is_read,
        notification_type=type,
    )


@router.get("/unread-count", response_model=UnreadCountOut)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    by_type = await NotificationService.get_unread_by_type(db, user.id)
    return UnreadCountOut(count=sum(by_type.values()), by_type=by_type)


@router.put("/read-all", response_model=ReadAllResult)
async def mark_all_read(
    type: Optional[NotificationType] = Query(default=None, description="Only clear this type"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    marked = await NotificationService.mark_all_read(db, user.id, type)
    return ReadAllResult(marked=marked, type=type)


# Declared after the literal paths above
@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService.mark_read(db, notification_id, user.id)
