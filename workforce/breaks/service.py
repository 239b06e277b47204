"""Break tracking against the active BreakPolicy."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.dependencies import require_employee
from workforce.auth.models import User
from workforce.breaks.models import (
    DEFAULT_MAX_BREAKS_PER_DAY,
    DEFAULT_MAX_MINUTES_PER_BREAK,
    DEFAULT_MAX_TOTAL_MINUTES,
    Break,
    BreakPolicy,
)
from workforce.breaks.schemas import (
    BreakEndResponse,
    BreakLimitFlags,
    BreakLimits,
    BreakOut,
    BreakPolicyIn,
    BreakPolicyOut,
    BreakStart,
    BreakSummary,
    BreakUsage,
    CategorySummary,
)
from workforce.common.audit import create_audit_entry
from workforce.common.constants import BreakCategory, BreakStatus
from workforce.common.dates import as_utc, utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.employees.models import Employee
from workforce.notifications.service import notify_break_exceeded

logger = logging.getLogger(__name__)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC ``[start, next_start)`` of *day*."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    return int(round((as_utc(end) - as_utc(start)).total_seconds() / 60))


class BreakService:

    # ── Policy ──────────────────────────────────────────────────────

    @staticmethod
    async def _active_policy(db: AsyncSession) -> Optional[BreakPolicy]:
        result = await db.execute(
            select(BreakPolicy)
            .where(BreakPolicy.is_active.is_(True))
            .order_by(BreakPolicy.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def get_policy(db: AsyncSession) -> BreakPolicyOut:
        """Active policy, or the built-in defaults when none is stored."""
        policy = await BreakService._active_policy(db)
        if policy is None:
            return BreakPolicyOut(
                max_breaks_per_day=DEFAULT_MAX_BREAKS_PER_DAY,
                max_minutes_per_break=DEFAULT_MAX_MINUTES_PER_BREAK,
                max_total_minutes=DEFAULT_MAX_TOTAL_MINUTES,
            )
        return BreakPolicyOut.model_validate(policy)

    @staticmethod
    async def put_policy(
        db: AsyncSession,
        actor: User,
        data: BreakPolicyIn,
        request: Optional[Request] = None,
    ) -> BreakPolicyOut:
        policy = await BreakService._active_policy(db)
        before = None
        if policy is None:
            policy = BreakPolicy(**data.model_dump(), is_active=True)
            db.add(policy)
        else:
            before = BreakPolicyIn.model_validate(policy, from_attributes=True).model_dump()
            for field, value in data.model_dump().items():
                setattr(policy, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="SETTINGS_CHANGED",
            object_type="break_policy",
            object_id=policy.id,
            actor_id=actor.id,
            before=before,
            after=data.model_dump(),
            request=request,
        )
        return BreakPolicyOut.model_validate(policy)

    # ── Start / end ─────────────────────────────────────────────────

    @staticmethod
    async def _active_break(db: AsyncSession, employee_id: uuid.UUID) -> Optional[Break]:
        result = await db.execute(
            select(Break)
            .where(Break.employee_id == employee_id, Break.status == BreakStatus.ACTIVE)
            .options(selectinload(Break.employee))
        )
        return result.scalars().first()

    @staticmethod
    async def start_break(
        db: AsyncSession,
        actor: User,
        data: BreakStart,
        request: Optional[Request] = None,
    ) -> BreakOut:
        employee = require_employee(actor)
        if await BreakService._active_break(db, employee.id) is not None:
            raise ValidationException(
                "An active break is already in progress. Please end the current break first.",
            )

        policy = await BreakService.get_policy(db)
        start, end = day_bounds(utcnow().date())
        taken = (await db.execute(
            select(func.count()).select_from(Break).where(
                Break.employee_id == employee.id,
                Break.start_time >= start,
                Break.start_time < end,
            )
        )).scalar_one()
        if taken >= policy.max_breaks_per_day:
            raise ValidationException(
                f"Maximum breaks per day ({policy.max_breaks_per_day}) exceeded. "
                f"Cannot start another break.",
            )

        brk = Break(
            employee_id=employee.id,
            category=data.category,
            start_time=utcnow(),
            status=BreakStatus.ACTIVE,
            notes=data.notes,
        )
        db.add(brk)
        await db.flush()

        await create_audit_entry(
            db,
            action="BREAK_STARTED",
            object_type="break",
            object_id=brk.id,
            actor_id=actor.id,
            after={"category": brk.category, "start_time": brk.start_time},
            request=request,
        )
        brk = await BreakService._active_break(db, employee.id)
        return BreakOut.model_validate(brk)

    @staticmethod
    async def end_break(
        db: AsyncSession,
        actor: User,
        request: Optional[Request] = None,
    ) -> BreakEndResponse:
        """Close the caller's active break and grade it against the per-break limit."""
        employee = require_employee(actor)
        brk = await BreakService._active_break(db, employee.id)
        if brk is None:
            raise NotFoundException("Break", "active")

        policy = await BreakService.get_policy(db)
        now = utcnow()
        duration = elapsed_minutes(brk.start_time, now)
        exceeded = duration > policy.max_minutes_per_break

        brk.end_time = now
        brk.duration_minutes = duration
        brk.status = BreakStatus.EXCEEDED if exceeded else BreakStatus.COMPLETED
        brk.exceeded_at = now if exceeded else None
        await db.flush()

        await create_audit_entry(
            db,
            action="BREAK_EXCEEDED" if exceeded else "BREAK_ENDED",
            object_type="break",
            object_id=brk.id,
            actor_id=actor.id,
            before={"status": BreakStatus.ACTIVE},
            after={"status": brk.status, "duration_minutes": duration},
            request=request,
            metadata={"duration_minutes": duration, "exceeded": exceeded},
        )
        if exceeded and policy.alert_on_exceed and employee.manager_id is not None:
            await notify_break_exceeded(
                db, brk, employee.manager_id, employee.full_name, policy.max_minutes_per_break,
            )

        return BreakEndResponse(
            break_=BreakOut.model_validate(brk),
            exceeded=exceeded,
            duration_minutes=duration,
        )

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    def _resolve_target(
        actor: User,
        permissions: set[str],
        employee_id: Optional[uuid.UUID],
    ) -> uuid.UUID:
        own_id = actor.employee.id if actor.employee else None
        target = employee_id or own_id
        if target is None:
            raise ValidationException("No employee profile linked to this user.")
        if target != own_id and "breaks:read_all" not in permissions:
            raise ForbiddenException("You can only view your own breaks.")
        return target

    @staticmethod
    async def get_active(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: Optional[uuid.UUID] = None,
    ) -> Optional[BreakOut]:
        target = BreakService._resolve_target(actor, permissions, employee_id)
        brk = await BreakService._active_break(db, target)
        return BreakOut.model_validate(brk) if brk else None

    @staticmethod
    async def list_breaks(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        category: Optional[BreakCategory] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PaginatedResponse:
        query = select(Break).order_by(Break.start_time.desc())
        if "breaks:read_all" in permissions:
            if employee_id is not None:
                query = query.where(Break.employee_id == employee_id)
        else:
            query = query.where(
                Break.employee_id == BreakService._resolve_target(actor, permissions, None)
            )
        if category is not None:
            query = query.where(Break.category == category)
        if date_from is not None:
            query = query.where(Break.start_time >= day_bounds(date_from)[0])
        if date_to is not None:
            query = query.where(Break.start_time < day_bounds(date_to)[1])
        return await paginate(
            db, query, pagination,
            model=Break,
            options=[selectinload(Break.employee)],
            transform=BreakOut.model_validate,
        )

    @staticmethod
    async def summary(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        *,
        employee_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> BreakSummary:
        """Finished breaks grouped by category."""
        target = BreakService._resolve_target(actor, permissions, employee_id)
        if await db.get(Employee, target) is None:
            raise NotFoundException("Employee", target)

        conditions = [Break.employee_id == target, Break.status != BreakStatus.ACTIVE]
        if date_from is not None:
            conditions.append(Break.start_time >= day_bounds(date_from)[0])
        if date_to is not None:
            conditions.append(Break.start_time < day_bounds(date_to)[1])

        rows = (await db.execute(
            select(
                Break.category,
                func.count(Break.id),
                func.coalesce(func.sum(Break.duration_minutes), 0),
                func.coalesce(func.avg(Break.duration_minutes), 0),
                func.coalesce(func.max(Break.duration_minutes), 0),
            )
            .where(*conditions)
            .group_by(Break.category)
        )).all()
        exceeded = (await db.execute(
            select(func.count()).select_from(Break).where(
                *conditions, Break.status == BreakStatus.EXCEEDED,
            )
        )).scalar_one()

        by_category = [
            CategorySummary(
                category=category,
                count=count,
                total_minutes=int(total),
                average_minutes=round(float(avg), 2),
                max_minutes=int(longest),
            )
            for category, count, total, avg, longest in rows
        ]
        return BreakSummary(
            employee_id=target,
            date_from=date_from,
            date_to=date_to,
            total_breaks=sum(c.count for c in by_category),
            total_minutes=sum(c.total_minutes for c in by_category),
            exceeded_count=exceeded,
            by_category=by_category,
        )

    @staticmethod
    async def limits(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: Optional[uuid.UUID] = None,
    ) -> BreakLimits:
        """Today's usage against the policy, counting the running break too."""
        target = BreakService._resolve_target(actor, permissions, employee_id)
        policy = await BreakService.get_policy(db)
        today = utcnow().date()
        start, end = day_bounds(today)
        breaks = (await db.execute(
            select(Break)
            .where(Break.employee_id == target, Break.start_time >= start, Break.start_time < end)
            .order_by(Break.start_time)
        )).scalars().all()

        used = sum(b.duration_minutes or 0 for b in breaks if b.status != BreakStatus.ACTIVE)
        active = next((b for b in breaks if b.status == BreakStatus.ACTIVE), None)
        running = elapsed_minutes(active.start_time, utcnow()) if active else 0
        total_used = used + running
        taken = len(breaks)

        return BreakLimits(
            employee_id=target,
            date=today,
            policy=policy,
            usage=BreakUsage(
                breaks_taken=taken,
                breaks_remaining=max(0, policy.max_breaks_per_day - taken),
                total_minutes_used=total_used,
                total_minutes_remaining=max(0, policy.max_total_minutes - total_used),
                exceeded_count=sum(1 for b in breaks if b.status == BreakStatus.EXCEEDED),
                has_active_break=active is not None,
                active_break_duration=running,
            ),
            limits=BreakLimitFlags(
                breaks_exceeded=taken >= policy.max_breaks_per_day,
                total_time_exceeded=total_used >= policy.max_total_minutes,
                current_break_exceeded=running > policy.max_minutes_per_break,
            ),
        )
