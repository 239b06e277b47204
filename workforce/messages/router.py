"""Messaging router."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import require_permission
from workforce.auth.models import User
from workforce.database import get_db
from workforce.messages.schemas import (
    ConversationCreate,
    ConversationCreated,
    ConversationOut,
    DirectoryEntry,
    MessageOut,
    MuteRequest,
    ParticipantOut,
    UnreadCount,
)
from workforce.messages.service import MessageService

router = APIRouter(prefix="", tags=["messages"])


@router.get("/conversations", response_model=list[ConversationOut])
async def list_conversations(
    user: User = Depends(require_permission("messages:read")),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.list_conversations(db, user)


@router.post("/conversations", response_model=ConversationCreated, status_code=201)
async def create_conversation(
    body: ConversationCreate,
    request: Request,
    user: User = Depends(require_permission("messages:send")),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.create_conversation(db, user, body, request)


@router.get("/conversations/{conversation_id}/messages", response_model=list[MessageOut])
async def list_messages(
    conversation_id: uuid.UUID,
    before: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    user: User = Depends(require_permission("messages:read")),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.list_messages(
        db, user, conversation_id, before=before, limit=limit,
    )


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageOut,
    status_code=201,
)
async def send_message(
    conversation_id: uuid.UUID,
    request: Request,
    content: Optional[str] = Form(None),
    attachments: list[UploadFile] = File(default=[]),
    user: User = Depends(require_permission("messages:send")),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.send_message(
        db, user, conversation_id, content, attachments, request,
    )


@router.post("/conversations/{conversation_id}/read", status_code=204)
async def mark_conversation_read(
    conversation_id: uuid.UUID,
    user: User = Depends(require_permission("messages:read")),
    db: AsyncSession = Depends(get_db),
):
    await MessageService.mark_read(db, user, conversation_id)


@router.patch("/conversations/{conversation_id}/mute", status_code=204)
async def mute_conversation(
    conversation_id: uuid.UUID,
    body: MuteRequest,
    user: User = Depends(require_permission("messages:read")),
    db: AsyncSession = Depends(get_db),
):
    await MessageService.set_muted(db, user, conversation_id, body.muted)


@router.get("/conversations/{conversation_id}/seen", response_model=list[ParticipantOut])
async def conversation_seen(
    conversation_id: uuid.UUID,
    user: User = Depends(require_permission("messages:read")),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.seen(db, user, conversation_id)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    user: User = Depends(require_permission("messages:read")),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCount(unread_count=await MessageService.unread_count(db, user))


@router.get("/directory", response_model=list[DirectoryEntry])
async def directory(
    search: Optional[str] = Query(None, max_length=100),
    user: User = Depends(require_permission("messages:send")),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.directory(db, user, search)
