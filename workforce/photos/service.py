"""Profile photo workflow: upload, moderation queue, approve/reject, history."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import Request, UploadFile
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import PhotoStatus
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.storage import IMAGE_TYPES, save_upload
from workforce.employees.models import Employee
from workforce.employees.service import EmployeeService
from workforce.notifications.service import notify_photo_reviewed
from workforce.photos.models import ProfilePhoto

logger = logging.getLogger(__name__)

MAX_PHOTO_SIZE_MB = 5


class PhotoService:

    @staticmethod
    async def _get_photo(db: AsyncSession, photo_id: uuid.UUID) -> ProfilePhoto:
        photo = await db.get(ProfilePhoto, photo_id)
        if photo is None:
            raise NotFoundException("ProfilePhoto", photo_id)
        return photo

    # ── Upload ──────────────────────────────────────────────────────

    @staticmethod
    async def upload(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: uuid.UUID,
        file: UploadFile,
        request: Optional[Request] = None,
    ) -> ProfilePhoto:
        """Store a new photo in PENDING state for *employee_id*."""
        own_id = actor.employee.id if actor.employee else None
        if own_id != employee_id and "employees:write_all" not in permissions:
            raise ForbiddenException("You can only upload your own profile photo.")
        await EmployeeService.get_employee(db, employee_id)

        stored = await save_upload(
            file, "photos", allowed_types=IMAGE_TYPES, max_size_mb=MAX_PHOTO_SIZE_MB,
        )
        photo = ProfilePhoto(
            employee_id=employee_id,
            file_url=stored.url,
            file_name=stored.original_name,
            file_size=stored.size,
            mime_type=stored.mime_type,
            status=PhotoStatus.PENDING,
            uploaded_by=actor.id,
        )
        db.add(photo)
        await db.flush()

        await create_audit_entry(
            db,
            action="PHOTO_UPLOADED",
            object_type="profile_photo",
            object_id=photo.id,
            actor_id=actor.id,
            after={"employee_id": employee_id, "file_name": photo.file_name},
            request=request,
        )
        await db.refresh(photo)
        return photo

    # ── Moderation ──────────────────────────────────────────────────

    @staticmethod
    async def pending(db: AsyncSession) -> list[ProfilePhoto]:
        result = await db.execute(
            select(ProfilePhoto)
            .where(ProfilePhoto.status == PhotoStatus.PENDING)
            .options(selectinload(ProfilePhoto.employee))
            .order_by(ProfilePhoto.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def approve(
        db: AsyncSession,
        actor: User,
        photo_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> ProfilePhoto:
        """Approve a pending photo and make it the employee's active picture."""
        photo = await PhotoService._get_photo(db, photo_id)
        if photo.status != PhotoStatus.PENDING:
            raise ValidationException(f"Photo is already {photo.status.value.lower()}.")

        # One active photo per employee
        await db.execute(
            update(ProfilePhoto)
            .where(
                ProfilePhoto.employee_id == photo.employee_id,
                ProfilePhoto.is_active.is_(True),
            )
            .values(is_active=False)
        )
        photo.status = PhotoStatus.APPROVED
        photo.is_active = True
        photo.reviewed_by = actor.id
        photo.reviewed_at = utcnow()

        employee = await db.get(Employee, photo.employee_id)
        previous_url = employee.photo_url
        employee.photo_url = photo.file_url
        await db.flush()

        await create_audit_entry(
            db,
            action="PHOTO_APPROVED",
            object_type="profile_photo",
            object_id=photo.id,
            actor_id=actor.id,
            before={"photo_url": previous_url},
            after={"photo_url": photo.file_url, "employee_id": photo.employee_id},
            request=request,
        )
        await notify_photo_reviewed(db, photo, approved=True)
        logger.info("Photo %s approved for employee %s", photo.id, photo.employee_id)
        await db.refresh(photo)
        return photo

    @staticmethod
    async def reject(
        db: AsyncSession,
        actor: User,
        photo_id: uuid.UUID,
        comment: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> ProfilePhoto:
        photo = await PhotoService._get_photo(db, photo_id)
        if photo.status != PhotoStatus.PENDING:
            raise ValidationException(f"Photo is already {photo.status.value.lower()}.")

        photo.status = PhotoStatus.REJECTED
        photo.reviewed_by = actor.id
        photo.reviewed_at = utcnow()
        photo.review_comment = comment
        await db.flush()

        await create_audit_entry(
            db,
            action="PHOTO_REJECTED",
            object_type="profile_photo",
            object_id=photo.id,
            actor_id=actor.id,
            after={"employee_id": photo.employee_id, "comment": comment},
            request=request,
        )
        await notify_photo_reviewed(db, photo, approved=False)
        await db.refresh(photo)
        return photo

    # ── History ─────────────────────────────────────────────────────

    @staticmethod
    async def history(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: uuid.UUID,
    ) -> list[ProfilePhoto]:
        if not await EmployeeService.can_view(db, actor, permissions, employee_id):
            raise ForbiddenException("You cannot view this employee's photos.")
        result = await db.execute(
            select(ProfilePhoto)
            .where(ProfilePhoto.employee_id == employee_id)
            .order_by(ProfilePhoto.created_at.desc())
        )
        return list(result.scalars().all())
