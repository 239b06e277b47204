"""Notification Pydantic schemas for request / response validation."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from workforce.common.constants import NotificationType
from workforce.common.pagination import PaginationMeta


# ── Responses ───────────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    """Single notification in API responses."""

    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[uuid.UUID] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListMeta(PaginationMeta):
    """Extends standard pagination meta with unread count."""

    unread: int


class NotificationListResponse(BaseModel):
    """Paginated list of notifications with unread count in meta."""

    data: list[NotificationResponse]
    meta: NotificationListMeta


class UnreadCountOut(BaseModel):
    """Badge counts: the total plus a per-type breakdown of unread items."""

    count: int
    by_type: dict[NotificationType, int]


class ReadAllResult(BaseModel):
    marked: int
    type: Optional[NotificationType] = None
