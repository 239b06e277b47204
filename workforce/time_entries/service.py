"""Time clock: punches, monthly timesheets and manual corrections."""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import require_employee
from workforce.auth.models import User
from workforce.common.audit import client_ip, create_audit_entry
from workforce.common.constants import (
    STANDARD_DAILY_HOURS,
    STANDARD_MONTHLY_HOURS,
    ApprovalStatus,
    TimeEntryType,
)
from workforce.common.dates import as_utc, hours_between, utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.employees.models import Employee
from workforce.time_entries.models import TimeEntry
from workforce.time_entries.schemas import (
    ClockRequest,
    CorrectionCreate,
    TimeEntryOut,
    Timesheet,
    TimesheetDay,
    TimesheetSummary,
)

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        return start, datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return start, datetime(year, month + 1, 1, tzinfo=timezone.utc)


def build_timesheet_days(entries: Iterable[TimeEntry]) -> list[TimesheetDay]:
    """Group punches by UTC day and sum CLOCK_IN → CLOCK_OUT pairs.

    An unmatched CLOCK_IN contributes nothing; a second CLOCK_IN replaces
    the first. Overtime is the excess over the standard day.
    """
    grouped: "OrderedDict[date, list[TimeEntry]]" = OrderedDict()
    for entry in sorted(entries, key=lambda e: as_utc(e.timestamp)):
        grouped.setdefault(as_utc(entry.timestamp).date(), []).append(entry)

    days = []
    for day, day_entries in grouped.items():
        hours = 0.0
        opened: Optional[datetime] = None
        for entry in day_entries:
            if entry.type == TimeEntryType.CLOCK_IN:
                opened = entry.timestamp
            elif entry.type == TimeEntryType.CLOCK_OUT and opened is not None:
                hours += hours_between(opened, entry.timestamp)
                opened = None
        days.append(TimesheetDay(
            date=day,
            total_hours=round(hours, 2),
            overtime=max(0.0, round(hours - STANDARD_DAILY_HOURS, 2)),
            entries=[TimeEntryOut.model_validate(e) for e in day_entries],
        ))
    return days


class TimeEntryService:

    @staticmethod
    async def _last_entry(db: AsyncSession, employee_id: uuid.UUID) -> Optional[TimeEntry]:
        result = await db.execute(
            select(TimeEntry)
            .where(TimeEntry.employee_id == employee_id)
            .order_by(TimeEntry.timestamp.desc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def _punch(
        db: AsyncSession,
        actor: User,
        entry_type: TimeEntryType,
        data: ClockRequest,
        request: Optional[Request],
    ) -> TimeEntryOut:
        employee = require_employee(actor)
        last = await TimeEntryService._last_entry(db, employee.id)
        last_is_in = last is not None and last.type == TimeEntryType.CLOCK_IN

        if entry_type == TimeEntryType.CLOCK_IN and last_is_in:
            raise ValidationException(
                "Already clocked in. Please clock out before clocking in again.",
            )
        if entry_type == TimeEntryType.CLOCK_OUT and not last_is_in:
            raise ValidationException(
                "No active clock-in found. Please clock in before clocking out.",
            )

        entry = TimeEntry(
            employee_id=employee.id,
            type=entry_type,
            timestamp=utcnow(),
            ip_address=client_ip(request),
            latitude=data.latitude,
            longitude=data.longitude,
            is_manual=False,
            notes=data.notes,
        )
        db.add(entry)
        await db.flush()

        await create_audit_entry(
            db,
            action=entry_type.value,
            object_type="time_entry",
            object_id=entry.id,
            actor_id=actor.id,
            after={"type": entry_type, "timestamp": entry.timestamp},
            request=request,
        )
        return TimeEntryOut.model_validate(entry)

    @staticmethod
    async def clock_in(
        db: AsyncSession,
        actor: User,
        data: ClockRequest,
        request: Optional[Request] = None,
    ) -> TimeEntryOut:
        return await TimeEntryService._punch(db, actor, TimeEntryType.CLOCK_IN, data, request)

    @staticmethod
    async def clock_out(
        db: AsyncSession,
        actor: User,
        data: ClockRequest,
        request: Optional[Request] = None,
    ) -> TimeEntryOut:
        return await TimeEntryService._punch(db, actor, TimeEntryType.CLOCK_OUT, data, request)

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
        if target != own_id and "time:read_all" not in permissions:
            raise ForbiddenException("You can only view your own time entries.")
        return target

    @staticmethod
    async def list_entries(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        pending_only: bool = False,
    ) -> PaginatedResponse:
        query = select(TimeEntry).order_by(TimeEntry.timestamp.desc())
        # Reviewers list pending corrections across everyone
        reviewing = pending_only and employee_id is None and "time:read_all" in permissions
        if not reviewing:
            target = TimeEntryService._resolve_target(actor, permissions, employee_id)
            query = query.where(TimeEntry.employee_id == target)
        if pending_only:
            query = query.where(TimeEntry.correction_status == ApprovalStatus.PENDING)
        if date_from is not None:
            query = query.where(
                TimeEntry.timestamp >= datetime.combine(date_from, time.min, tzinfo=timezone.utc)
            )
        if date_to is not None:
            query = query.where(
                TimeEntry.timestamp <= datetime.combine(date_to, time.max, tzinfo=timezone.utc)
            )
        return await paginate(
            db, query, pagination, model=TimeEntry, transform=TimeEntryOut.model_validate,
        )

    @staticmethod
    async def timesheet(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        year: int,
        month: int,
        employee_id: Optional[uuid.UUID] = None,
    ) -> Timesheet:
        target = TimeEntryService._resolve_target(actor, permissions, employee_id)
        employee = await db.get(Employee, target)
        if employee is None or employee.deleted_at is not None:
            raise NotFoundException("Employee", target)

        start, end = month_bounds(year, month)
        result = await db.execute(
            select(TimeEntry)
            .where(
                TimeEntry.employee_id == target,
                TimeEntry.timestamp >= start,
                TimeEntry.timestamp < end,
            )
            .order_by(TimeEntry.timestamp)
        )
        days = build_timesheet_days(result.scalars().all())
        return Timesheet(
            employee_id=target,
            year=year,
            month=month,
            summary=TimesheetSummary(
                total_hours=round(sum(d.total_hours for d in days), 2),
                total_overtime=round(sum(d.overtime for d in days), 2),
                standard_hours=STANDARD_MONTHLY_HOURS,
                working_days=len(days),
            ),
            days=days,
        )

    # ── Corrections ─────────────────────────────────────────────────

    @staticmethod
    async def submit_correction(
        db: AsyncSession,
        actor: User,
        data: CorrectionCreate,
        request: Optional[Request] = None,
    ) -> TimeEntryOut:
        """File a manual punch; it stays PENDING until someone with ``time:read_all`` approves it."""
        employee = require_employee(actor)
        if data.type not in (TimeEntryType.CLOCK_IN, TimeEntryType.CLOCK_OUT):
            raise ValidationException("type must be CLOCK_IN or CLOCK_OUT")
        timestamp = as_utc(data.timestamp)
        if timestamp > utcnow():
            raise ValidationException("Correction timestamp cannot be in the future")

        entry = TimeEntry(
            employee_id=employee.id,
            type=data.type,
            timestamp=timestamp,
            is_manual=True,
            correction_status=ApprovalStatus.PENDING,
            ip_address=client_ip(request),
            notes=data.notes,
        )
        db.add(entry)
        await db.flush()

        await create_audit_entry(
            db,
            action="CREATE",
            object_type="time_entry",
            object_id=entry.id,
            actor_id=actor.id,
            after={"type": data.type, "timestamp": timestamp, "is_manual": True},
            request=request,
            metadata={"action": "correction_submitted"},
        )
        return TimeEntryOut.model_validate(entry)

    @staticmethod
    async def approve_correction(
        db: AsyncSession,
        actor: User,
        entry_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> TimeEntryOut:
        entry = await db.get(TimeEntry, entry_id)
        if entry is None:
            raise NotFoundException("TimeEntry", entry_id)
        if not entry.is_manual:
            raise ValidationException("Only manual corrections can be approved")
        if entry.correction_status == ApprovalStatus.APPROVED:
            raise ValidationException("This correction has already been approved")

        entry.correction_status = ApprovalStatus.APPROVED
        entry.approved_by = actor.id
        entry.approved_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="APPROVAL_GIVEN",
            object_type="time_entry",
            object_id=entry.id,
            actor_id=actor.id,
            before={"correction_status": ApprovalStatus.PENDING},
            after={"correction_status": ApprovalStatus.APPROVED},
            request=request,
            metadata={"action": "correction_approved"},
        )
        return TimeEntryOut.model_validate(entry)
