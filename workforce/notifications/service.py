"""Notification service: CRUD operations and cross-module helper dispatchers."""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.constants import NotificationType
from workforce.common.dates import utcnow
from workforce.common.exceptions import ForbiddenException, NotFoundException
from workforce.common.pagination import PaginationParams, build_meta
from workforce.employees.models import Employee
from workforce.notifications.models import Notification
from workforce.notifications.schemas import (
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        recipient_id: uuid.UUID,
        type: NotificationType = NotificationType.GENERAL,
        title: str,
        message: str,
        link: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Create a new notification for a user and flush to DB."""
        notification = Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            link=link,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def user_id_for_employee(
        db: AsyncSession,
        employee_id: Optional[uuid.UUID],
    ) -> Optional[uuid.UUID]:
        if employee_id is None:
            return None
        result = await db.execute(
            select(Employee.user_id).where(Employee.id == employee_id)
        )
        return result.scalar()

    @staticmethod
    async def notify_employee(
        db: AsyncSession,
        employee_id: Optional[uuid.UUID],
        **kwargs,
    ) -> Optional[Notification]:
        """Notify the login account behind *employee_id*, if it has one."""
        user_id = await NotificationService.user_id_for_employee(db, employee_id)
        if user_id is None:
            return None
        return await NotificationService.create_notification(
            db, recipient_id=user_id, **kwargs,
        )

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for a user, newest first."""
        query = (
            select(Notification)
            .where(Notification.recipient_id == user_id)
            .order_by(Notification.created_at.desc())
        )

        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if notification_type is not None:
            query = query.where(Notification.type == notification_type)

        count_q = select(func.count()).select_from(query.order_by(None).subquery())
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.limit)
            )
        ).scalars().all()

        # Unread count is always unfiltered, it drives the badge
        unread = await NotificationService.get_unread_count(db, user_id)
        meta = build_meta(pagination, total)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        notification = await db.get(Notification, notification_id)
        if notification is None:
            raise NotFoundException("Notification", notification_id)

        if notification.recipient_id != user_id:
            raise ForbiddenException("You can only mark your own notifications as read.")

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(
        db: AsyncSession,
        user_id: uuid.UUID,
        notification_type: Optional[NotificationType] = None,
    ) -> int:
        """Bulk-mark unread notifications as read, optionally one type only.

        Returns the number of rows updated.
        """
        stmt = update(Notification).where(
            Notification.recipient_id == user_id,
            Notification.is_read.is_(False),
        )
        if notification_type is not None:
            stmt = stmt.where(Notification.type == notification_type)
        result = await db.execute(stmt.values(is_read=True, read_at=utcnow()))
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()

    @staticmethod
    async def get_unread_by_type(
        db: AsyncSession, user_id: uuid.UUID,
    ) -> dict[NotificationType, int]:
        rows = await db.execute(
            select(Notification.type, func.count())
            .where(
                Notification.recipient_id == user_id,
                Notification.is_read.is_(False),
            )
            .group_by(Notification.type)
        )
        return {ntype: count for ntype, count in rows.all()}


# ── Cross-module helper dispatchers ─────────────────────────────────
# They accept the ORM object directly to avoid tight schema coupling.


async def notify_leave_submitted(
    db: AsyncSession,
    leave_request,  # workforce.leaves.models.LeaveRequest
    approver_employee_id: Optional[uuid.UUID],
) -> Optional[Notification]:
    """Tell the first approver a request is waiting."""
    return await NotificationService.notify_employee(
        db,
        approver_employee_id,
        type=NotificationType.APPROVAL_NEEDED,
        title="New Leave Request",
        message=(
            f"A {leave_request.leave_type.value} leave request from "
            f"{leave_request.start_date} to {leave_request.end_date} "
            f"({leave_request.days} day(s)) requires your approval."
        ),
        link=f"/leaves/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )


async def notify_leave_decision(
    db: AsyncSession,
    leave_request,  # workforce.leaves.models.LeaveRequest
    *,
    approved: bool,
    comment: Optional[str] = None,
) -> Optional[Notification]:
    """Tell the requester about a step decision or the final outcome."""
    status = leave_request.status.value.replace("_", " ").lower()
    message = (
        f"Your leave request from {leave_request.start_date} to "
        f"{leave_request.end_date} is now {status}."
    )
    if comment:
        message += f" Comment: {comment}"
    return await NotificationService.notify_employee(
        db,
        leave_request.employee_id,
        type=NotificationType.LEAVE_APPROVED if approved else NotificationType.LEAVE_REJECTED,
        title="Leave Request Approved" if approved else "Leave Request Rejected",
        message=message,
        link=f"/leaves/{leave_request.id}",
        entity_type="leave_request",
        entity_id=leave_request.id,
    )


async def notify_swap_resolved(
    db: AsyncSession,
    swap,  # workforce.shifts.models.ShiftSwap
    *,
    approved: bool,
) -> Optional[Notification]:
    return await NotificationService.notify_employee(
        db,
        swap.requester_id,
        type=NotificationType.SHIFT_CHANGE,
        title="Shift Swap Approved" if approved else "Shift Swap Rejected",
        message=(
            "Your shift swap request was approved."
            if approved
            else "Your shift swap request was rejected."
        ),
        link=f"/shifts/swaps/{swap.id}",
        entity_type="shift_swap",
        entity_id=swap.id,
    )


async def notify_break_exceeded(
    db: AsyncSession,
    brk,  # workforce.breaks.models.Break
    manager_employee_id: Optional[uuid.UUID],
    employee_name: str,
    limit_minutes: int,
) -> Optional[Notification]:
    return await NotificationService.notify_employee(
        db,
        manager_employee_id,
        type=NotificationType.BREAK_EXCEEDED,
        title="Break limit exceeded",
        message=(
            f"{employee_name} took a {brk.duration_minutes}-minute "
            f"{brk.category.value.lower()} break (limit {limit_minutes} minutes)."
        ),
        entity_type="break",
        entity_id=brk.id,
    )


async def notify_task_assigned(
    db: AsyncSession,
    task,  # workforce.tasks.models.Task
) -> Optional[Notification]:
    return await NotificationService.notify_employee(
        db,
        task.assignee_id,
        type=NotificationType.TASK_ASSIGNED,
        title="New task assigned",
        message=f"You have been assigned: {task.title}",
        link=f"/tasks/{task.id}",
        entity_type="task",
        entity_id=task.id,
    )


async def notify_task_reviewed(
    db: AsyncSession,
    task,  # workforce.tasks.models.Task
) -> Optional[Notification]:
    return await NotificationService.notify_employee(
        db,
        task.assignee_id,
        type=NotificationType.TASK_REVIEWED,
        title=f"Task {task.status.value.lower()}",
        message=f"'{task.title}' was {task.status.value.lower()} with rating {task.rating}/5.",
        link=f"/tasks/{task.id}",
        entity_type="task",
        entity_id=task.id,
    )


async def notify_photo_reviewed(
    db: AsyncSession,
    photo,  # workforce.photos.models.ProfilePhoto
    *,
    approved: bool,
) -> Optional[Notification]:
    message = "Your profile photo was approved."
    if not approved:
        message = "Your profile photo was rejected."
        if photo.review_comment:
            message += f" Comment: {photo.review_comment}"
    return await NotificationService.notify_employee(
        db,
        photo.employee_id,
        type=NotificationType.PHOTO_REVIEWED,
        title="Profile photo reviewed",
        message=message,
        entity_type="profile_photo",
        entity_id=photo.id,
    )


async def notify_new_message(
    db: AsyncSession,
    *,
    conversation_id: uuid.UUID,
    recipient_user_ids: Iterable[uuid.UUID],
    sender_name: str,
    preview: str,
) -> list[Notification]:
    created = []
    for user_id in recipient_user_ids:
        created.append(
            await NotificationService.create_notification(
                db,
                recipient_id=user_id,
                type=NotificationType.NEW_MESSAGE,
                title=f"New message from {sender_name}",
                message=preview,
                link=f"/messages/{conversation_id}",
                entity_type="conversation",
                entity_id=conversation_id,
            )
        )
    return created
