"""Announcement Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import UserRole

Priority = Literal["low", "normal", "high", "urgent"]


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    priority: Priority = "normal"
    is_pinned: bool = False
    target_departments: list[uuid.UUID] = []
    target_roles: list[UserRole] = []
    expires_at: Optional[datetime] = None
    attachment_url: Optional[str] = Field(None, max_length=500)


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    priority: Optional[Priority] = None
    is_pinned: Optional[bool] = None
    expires_at: Optional[datetime] = None


class AnnouncementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    content: str
    priority: str
    is_pinned: bool
    target_departments: list[uuid.UUID] = []
    target_roles: list[UserRole] = []
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    attachment_url: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
