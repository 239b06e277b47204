"""Messaging service: direct and group conversations between users."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import Request, UploadFile
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import UserStatus
from workforce.common.dates import as_utc, utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.storage import DOCUMENT_TYPES, save_upload
from workforce.employees.models import Employee
from workforce.messages.models import (
    Conversation,
    ConversationParticipant,
    Message,
    MessageAttachment,
)
from workforce.messages.schemas import (
    ConversationCreate,
    ConversationCreated,
    ConversationOut,
    DirectoryEntry,
    MessageOut,
    ParticipantOut,
)
from workforce.notifications.service import notify_new_message

logger = logging.getLogger(__name__)

MAX_ATTACHMENTS = 5
PREVIEW_LENGTH = 100


def is_unread(last_message_at: Optional[datetime], last_read_at: Optional[datetime]) -> bool:
    if last_message_at is None:
        return False
    if last_read_at is None:
        return True
    return as_utc(last_message_at) > as_utc(last_read_at)


def display_name(user: User) -> str:
    return user.employee.full_name if user.employee else user.email


def _participant_out(participant: ConversationParticipant) -> ParticipantOut:
    employee = participant.user.employee
    return ParticipantOut(
        user_id=participant.user_id,
        name=display_name(participant.user),
        photo_url=employee.photo_url if employee else None,
        job_title=employee.job_title if employee else None,
        last_read_at=participant.last_read_at,
    )


_PARTICIPANT_LOADS = (
    selectinload(ConversationParticipant.conversation)
    .selectinload(Conversation.participants)
    .selectinload(ConversationParticipant.user)
    .selectinload(User.employee),
)


class MessageService:

    @staticmethod
    async def _participation(
        db: AsyncSession,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> ConversationParticipant:
        result = await db.execute(
            select(ConversationParticipant).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
        )
        participant = result.scalars().first()
        if participant is None:
            if await db.get(Conversation, conversation_id) is None:
                raise NotFoundException("Conversation", conversation_id)
            raise ForbiddenException("Not a participant of this conversation.")
        return participant

    @staticmethod
    async def list_conversations(db: AsyncSession, actor: User) -> list[ConversationOut]:
        result = await db.execute(
            select(ConversationParticipant)
            .where(ConversationParticipant.user_id == actor.id)
            .options(*_PARTICIPANT_LOADS)
        )
        conversations = []
        for participation in result.scalars().all():
            conv = participation.conversation
            conversations.append(ConversationOut(
                id=conv.id,
                title=conv.title,
                is_group=conv.is_group,
                last_message_at=conv.last_message_at,
                last_message_text=conv.last_message_text,
                unread=is_unread(conv.last_message_at, participation.last_read_at),
                is_muted=participation.is_muted,
                participants=[_participant_out(p) for p in conv.participants],
            ))
        # Most recent activity first, silent conversations last
        conversations.sort(
            key=lambda c: (c.last_message_at is not None, as_utc(c.last_message_at) or datetime.min),
            reverse=True,
        )
        return conversations

    @staticmethod
    async def _find_direct(
        db: AsyncSession,
        user_a: uuid.UUID,
        user_b: uuid.UUID,
    ) -> Optional[Conversation]:
        def member_of(user_id: uuid.UUID):
            return select(ConversationParticipant.conversation_id).where(
                ConversationParticipant.user_id == user_id,
            )

        result = await db.execute(
            select(Conversation)
            .where(
                Conversation.is_group.is_(False),
                Conversation.id.in_(member_of(user_a)),
                Conversation.id.in_(member_of(user_b)),
            )
            .options(selectinload(Conversation.participants))
        )
        for conversation in result.scalars().all():
            if len(conversation.participants) == 2:
                return conversation
        return None

    @staticmethod
    async def create_conversation(
        db: AsyncSession,
        actor: User,
        data: ConversationCreate,
        request: Optional[Request] = None,
    ) -> ConversationCreated:
        """Open a conversation; a two-person one reuses the existing thread."""
        member_ids = list(dict.fromkeys([actor.id, *data.participant_ids]))
        if len(member_ids) < 2:
            raise ValidationException("A conversation needs at least one other participant.")

        found = (await db.execute(
            select(User.id).where(User.id.in_(member_ids))
        )).scalars().all()
        missing = set(member_ids) - set(found)
        if missing:
            raise NotFoundException("User", sorted(str(m) for m in missing)[0])

        is_group = len(member_ids) > 2
        if not is_group:
            existing = await MessageService._find_direct(db, member_ids[0], member_ids[1])
            if existing is not None:
                return ConversationCreated(id=existing.id, is_group=False, existing=True)

        conversation = Conversation(
            title=(data.title or "Group Chat") if is_group else None,
            is_group=is_group,
            created_by=actor.id,
            participants=[ConversationParticipant(user_id=uid) for uid in member_ids],
        )
        db.add(conversation)
        await db.flush()

        await create_audit_entry(
            db,
            action="CONVERSATION_CREATED",
            object_type="conversation",
            object_id=conversation.id,
            actor_id=actor.id,
            after={"participant_count": len(member_ids), "is_group": is_group},
            request=request,
        )
        return ConversationCreated(id=conversation.id, is_group=is_group, existing=False)

    @staticmethod
    async def list_messages(
        db: AsyncSession,
        actor: User,
        conversation_id: uuid.UUID,
        *,
        before: Optional[datetime] = None,
        limit: int = 50,
    ) -> list[MessageOut]:
        await MessageService._participation(db, conversation_id, actor.id)
        query = (
            select(Message)
            .where(Message.conversation_id == conversation_id, Message.deleted_at.is_(None))
            .options(selectinload(Message.attachments))
            .order_by(Message.created_at.desc())
            .limit(limit)
        )
        if before is not None:
            query = query.where(Message.created_at < before)
        messages = (await db.execute(query)).scalars().all()
        # Oldest first for display
        return [MessageOut.model_validate(m) for m in reversed(messages)]

    @staticmethod
    async def send_message(
        db: AsyncSession,
        actor: User,
        conversation_id: uuid.UUID,
        content: Optional[str],
        files: list[UploadFile],
        request: Optional[Request] = None,
    ) -> MessageOut:
        content = (content or "").strip() or None
        if content is None and not files:
            raise ValidationException("Message content or attachment required.")
        if len(files) > MAX_ATTACHMENTS:
            raise ValidationException(f"At most {MAX_ATTACHMENTS} attachments per message.")

        participation = await MessageService._participation(db, conversation_id, actor.id)

        now = utcnow()
        message = Message(
            conversation_id=conversation_id,
            sender_id=actor.id,
            content=content,
            created_at=now,
            attachments=[],
        )
        for upload in files:
            stored = await save_upload(upload, "attachments", allowed_types=DOCUMENT_TYPES, max_size_mb=10)
            message.attachments.append(MessageAttachment(
                file_url=stored.url,
                file_name=stored.original_name,
                file_size=stored.size,
                mime_type=stored.mime_type,
            ))
        db.add(message)

        if content:
            preview = content[:PREVIEW_LENGTH]
        else:
            preview = f"[{len(files)} attachment{'s' if len(files) > 1 else ''}]"
        conversation = await db.get(Conversation, conversation_id)
        conversation.last_message_at = now
        conversation.last_message_text = preview
        participation.last_read_at = now
        await db.flush()

        recipients = (await db.execute(
            select(ConversationParticipant.user_id).where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id != actor.id,
                ConversationParticipant.is_muted.is_(False),
            )
        )).scalars().all()
        await notify_new_message(
            db,
            conversation_id=conversation_id,
            recipient_user_ids=recipients,
            sender_name=display_name(actor),
            preview=preview,
        )
        if files:
            await create_audit_entry(
                db,
                action="MESSAGE_ATTACHMENT_UPLOADED",
                object_type="message",
                object_id=message.id,
                actor_id=actor.id,
                after={
                    "conversation_id": conversation_id,
                    "file_names": [a.file_name for a in message.attachments],
                },
                request=request,
            )
        return MessageOut.model_validate(message)

    @staticmethod
    async def mark_read(db: AsyncSession, actor: User, conversation_id: uuid.UUID) -> None:
        participation = await MessageService._participation(db, conversation_id, actor.id)
        participation.last_read_at = utcnow()
        await db.flush()

    @staticmethod
    async def set_muted(
        db: AsyncSession,
        actor: User,
        conversation_id: uuid.UUID,
        muted: bool,
    ) -> None:
        participation = await MessageService._participation(db, conversation_id, actor.id)
        participation.is_muted = muted
        await db.flush()

    @staticmethod
    async def seen(db: AsyncSession, actor: User, conversation_id: uuid.UUID) -> list[ParticipantOut]:
        await MessageService._participation(db, conversation_id, actor.id)
        result = await db.execute(
            select(ConversationParticipant)
            .where(ConversationParticipant.conversation_id == conversation_id)
            .options(selectinload(ConversationParticipant.user).selectinload(User.employee))
        )
        return [_participant_out(p) for p in result.scalars().all()]

    @staticmethod
    async def unread_count(db: AsyncSession, actor: User) -> int:
        result = await db.execute(
            select(Conversation.last_message_at, ConversationParticipant.last_read_at)
            .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
            .where(
                ConversationParticipant.user_id == actor.id,
                ConversationParticipant.is_muted.is_(False),
            )
        )
        return sum(1 for last_message, last_read in result.all() if is_unread(last_message, last_read))

    @staticmethod
    async def directory(
        db: AsyncSession,
        actor: User,
        search: Optional[str] = None,
        limit: int = 50,
    ) -> list[DirectoryEntry]:
        """Active users with an employee profile, for starting a chat."""
        query = (
            select(User)
            .join(Employee, Employee.user_id == User.id)
            .where(
                User.id != actor.id,
                User.status == UserStatus.ACTIVE,
                Employee.deleted_at.is_(None),
            )
            .options(selectinload(User.employee).selectinload(Employee.department))
            .order_by(Employee.first_name, Employee.last_name)
            .limit(limit)
        )
        if search and search.strip():
            term = f"%{search.strip()}%"
            query = query.where(or_(
                User.email.ilike(term),
                Employee.first_name.ilike(term),
                Employee.last_name.ilike(term),
            ))
        users = (await db.execute(query)).scalars().all()
        return [
            DirectoryEntry(
                user_id=u.id,
                email=u.email,
                role=u.role,
                employee_id=u.employee.id,
                name=u.employee.full_name,
                job_title=u.employee.job_title,
                photo_url=u.employee.photo_url,
                department=u.employee.department.name if u.employee.department else None,
            )
            for u in users
        ]
