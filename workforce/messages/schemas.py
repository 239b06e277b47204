"""Messaging Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import UserRole


class ParticipantOut(BaseModel):
    user_id: uuid.UUID
    name: str
    photo_url: Optional[str] = None
    job_title: Optional[str] = None
    last_read_at: Optional[datetime] = None


class ConversationCreate(BaseModel):
    participant_ids: list[uuid.UUID] = Field(..., min_length=1)
    title: Optional[str] = Field(None, max_length=255)


class ConversationCreated(BaseModel):
    id: uuid.UUID
    is_group: bool
    existing: bool


class ConversationOut(BaseModel):
    id: uuid.UUID
    title: Optional[str] = None
    is_group: bool
    last_message_at: Optional[datetime] = None
    last_message_text: Optional[str] = None
    unread: bool
    is_muted: bool
    participants: list[ParticipantOut]


class AttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    file_url: str
    file_name: str
    file_size: int
    mime_type: str


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: Optional[uuid.UUID] = None
    content: Optional[str] = None
    created_at: datetime
    attachments: list[AttachmentOut] = []


class MuteRequest(BaseModel):
    muted: bool


class UnreadCount(BaseModel):
    unread_count: int


class DirectoryEntry(BaseModel):
    user_id: uuid.UUID
    email: str
    role: UserRole
    employee_id: uuid.UUID
    name: str
    job_title: Optional[str] = None
    photo_url: Optional[str] = None
    department: Optional[str] = None
