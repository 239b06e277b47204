"""Announcement service: publishing, listing with read state, read receipts."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Request
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.announcements.models import Announcement, AnnouncementRead
from workforce.announcements.schemas import (
    AnnouncementCreate,
    AnnouncementOut,
    AnnouncementUpdate,
)
from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.dates import utcnow
from workforce.common.exceptions import NotFoundException
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate


class AnnouncementService:

    @staticmethod
    async def _get(db: AsyncSession, announcement_id: uuid.UUID) -> Announcement:
        announcement = await db.get(Announcement, announcement_id)
        if announcement is None:
            raise NotFoundException("Announcement", announcement_id)
        return announcement

    @staticmethod
    async def list_announcements(
        db: AsyncSession,
        actor: User,
        pagination: PaginationParams,
    ) -> PaginatedResponse:
        """Published, unexpired announcements, pinned first, with the caller's read state."""
        now = utcnow()
        query = (
            select(Announcement)
            .where(
                Announcement.published_at <= now,
                or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
            )
            .order_by(Announcement.is_pinned.desc(), Announcement.published_at.desc())
        )
        page = await paginate(db, query, pagination)

        ids = [a.id for a in page.data]
        reads = {}
        if ids:
            result = await db.execute(
                select(AnnouncementRead).where(
                    AnnouncementRead.user_id == actor.id,
                    AnnouncementRead.announcement_id.in_(ids),
                )
            )
            reads = {r.announcement_id: r.read_at for r in result.scalars().all()}

        items = []
        for announcement in page.data:
            item = AnnouncementOut.model_validate(announcement)
            item.read_at = reads.get(announcement.id)
            item.is_read = item.read_at is not None
            items.append(item)
        page.data = items
        return page

    @staticmethod
    async def create_announcement(
        db: AsyncSession,
        actor: User,
        data: AnnouncementCreate,
        request: Optional[Request] = None,
    ) -> AnnouncementOut:
        values = data.model_dump()
        # JSON columns hold plain strings
        values["target_departments"] = [str(d) for d in data.target_departments]
        values["target_roles"] = [r.value for r in data.target_roles]
        announcement = Announcement(**values, published_at=utcnow(), created_by=actor.id)
        db.add(announcement)
        await db.flush()

        await create_audit_entry(
            db,
            action="ANNOUNCEMENT_CREATED",
            object_type="announcement",
            object_id=announcement.id,
            actor_id=actor.id,
            after={"title": data.title, "is_pinned": data.is_pinned},
            request=request,
        )
        return AnnouncementOut.model_validate(announcement)

    @staticmethod
    async def update_announcement(
        db: AsyncSession,
        actor: User,
        announcement_id: uuid.UUID,
        data: AnnouncementUpdate,
        request: Optional[Request] = None,
    ) -> AnnouncementOut:
        announcement = await AnnouncementService._get(db, announcement_id)
        changes = data.model_dump(exclude_unset=True)
        before = {field: getattr(announcement, field) for field in changes}
        for field, value in changes.items():
            setattr(announcement, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="announcement",
            object_id=announcement.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return AnnouncementOut.model_validate(announcement)

    @staticmethod
    async def delete_announcement(
        db: AsyncSession,
        actor: User,
        announcement_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> None:
        announcement = await AnnouncementService._get(db, announcement_id)
        title = announcement.title
        await db.delete(announcement)
        await db.flush()
        await create_audit_entry(
            db,
            action="DELETE",
            object_type="announcement",
            object_id=announcement_id,
            actor_id=actor.id,
            before={"title": title},
            request=request,
        )

    @staticmethod
    async def mark_read(db: AsyncSession, actor: User, announcement_id: uuid.UUID) -> None:
        await AnnouncementService._get(db, announcement_id)
        result = await db.execute(
            select(AnnouncementRead).where(
                AnnouncementRead.announcement_id == announcement_id,
                AnnouncementRead.user_id == actor.id,
            )
        )
        receipt = result.scalars().first()
        if receipt is None:
            db.add(AnnouncementRead(
                announcement_id=announcement_id, user_id=actor.id, read_at=utcnow(),
            ))
        else:
            receipt.read_at = utcnow()
        await db.flush()
