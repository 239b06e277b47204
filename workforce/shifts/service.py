"""Shift service: scheduling, open shifts, swaps, templates and the rest-period checker.

Every path that puts an employee on a shift (create, update, apply, swap)
goes through ``ShiftService.check_rest`` so the minimum-rest rule holds
everywhere.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional

from fastapi import Request
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.dependencies import require_employee
from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import ApprovalStatus, ShiftStatus
from workforce.common.dates import as_utc, utcnow
from workforce.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.filters import apply_filters
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.config import settings
from workforce.employees.models import Employee, Location
from workforce.notifications.service import notify_swap_resolved
from workforce.shifts.models import Shift, ShiftSwap, ShiftTemplate
from workforce.shifts.schemas import (
    ShiftCreate,
    ShiftOut,
    ShiftTemplateCreate,
    ShiftTemplateOut,
    ShiftTemplateUpdate,
    ShiftUpdate,
    SwapCreate,
    SwapOut,
)

logger = logging.getLogger(__name__)

_SHIFT_LOADS = (
    selectinload(Shift.employee),
    selectinload(Shift.template),
    selectinload(Shift.location),
)


# ═════════════════════════════════════════════════════════════════════
# Rest-period rule
# ═════════════════════════════════════════════════════════════════════


def describe_rest_conflict(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime,
) -> str:
    """Human message for a shift that sits inside the rest window of ``[start, end)``."""
    start, end = as_utc(start), as_utc(end)
    other_start, other_end = as_utc(other_start), as_utc(other_end)
    if other_end <= start:
        gap = (start - other_end).total_seconds() / 3600
        return (
            f"Only {gap:.1f}h rest before shift "
            f"(conflicting shift ends at {other_end.isoformat()})"
        )
    if other_start >= end:
        gap = (other_start - end).total_seconds() / 3600
        return (
            f"Only {gap:.1f}h rest after shift "
            f"(conflicting shift starts at {other_start.isoformat()})"
        )
    return (
        f"Overlaps an existing shift "
        f"({other_start.isoformat()} to {other_end.isoformat()})"
    )


class ShiftService:
    """Async shift operations."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def find_rest_conflict(
        db: AsyncSession,
        employee_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_ids: Iterable[uuid.UUID] = (),
    ) -> Optional[Shift]:
        """First active shift of *employee_id* that intersects ``[start - rest, end + rest]``."""
        rest = timedelta(hours=settings.MIN_REST_HOURS)
        window_start = as_utc(start) - rest
        window_end = as_utc(end) + rest
        query = (
            select(Shift)
            .where(
                Shift.employee_id == employee_id,
                Shift.deleted_at.is_(None),
                Shift.status != ShiftStatus.CANCELLED,
                and_(Shift.start_time < window_end, Shift.end_time > window_start),
            )
            .order_by(Shift.start_time)
            .limit(1)
        )
        excluded = [i for i in exclude_ids if i is not None]
        if excluded:
            query = query.where(Shift.id.not_in(excluded))
        return (await db.execute(query)).scalars().first()

    @staticmethod
    async def check_rest(
        db: AsyncSession,
        employee_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_ids: Iterable[uuid.UUID] = (),
        *,
        prefix: str = "Minimum rest period violation",
    ) -> None:
        conflict = await ShiftService.find_rest_conflict(db, employee_id, start, end, exclude_ids)
        if conflict is not None:
            raise ValidationException(
                f"{prefix}: employee must have at least {settings.MIN_REST_HOURS} hours "
                f"rest between shifts. "
                f"{describe_rest_conflict(start, end, conflict.start_time, conflict.end_time)}",
            )

    @staticmethod
    def _query():
        return select(Shift).options(*_SHIFT_LOADS)

    @staticmethod
    async def _get_shift(db: AsyncSession, shift_id: uuid.UUID) -> Shift:
        result = await db.execute(
            ShiftService._query().where(Shift.id == shift_id, Shift.deleted_at.is_(None))
        )
        shift = result.scalars().first()
        if shift is None:
            raise NotFoundException("Shift", shift_id)
        return shift

    @staticmethod
    async def _reload(db: AsyncSession, shift_id: uuid.UUID) -> ShiftOut:
        result = await db.execute(
            ShiftService._query()
            .where(Shift.id == shift_id)
            .execution_options(populate_existing=True)
        )
        return ShiftOut.model_validate(result.scalars().one())

    @staticmethod
    async def _validate_refs(
        db: AsyncSession,
        *,
        employee_id: Optional[uuid.UUID] = None,
        template_id: Optional[uuid.UUID] = None,
        location_id: Optional[uuid.UUID] = None,
    ) -> None:
        if employee_id is not None:
            employee = await db.get(Employee, employee_id)
            if employee is None or employee.deleted_at is not None:
                raise NotFoundException("Employee", employee_id)
        if template_id is not None and await db.get(ShiftTemplate, template_id) is None:
            raise NotFoundException("ShiftTemplate", template_id)
        if location_id is not None and await db.get(Location, location_id) is None:
            raise NotFoundException("Location", location_id)

    @staticmethod
    def _snapshot(shift: Shift) -> dict:
        return {
            "employee_id": shift.employee_id,
            "date": shift.date,
            "start_time": shift.start_time,
            "end_time": shift.end_time,
            "status": shift.status,
        }

    # ─────────────────────────────────────────────────────────────────
    # List / Get
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_shifts(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        filters: dict,
    ) -> PaginatedResponse:
        """Shifts in a date range. Without ``shifts:read_all`` only own and open shifts."""
        query = select(Shift).where(Shift.deleted_at.is_(None))
        if "shifts:read_all" not in permissions:
            own_id = actor.employee.id if actor.employee else None
            query = query.where(
                (Shift.employee_id == own_id) | (Shift.status == ShiftStatus.OPEN)
            )
        department_id = filters.pop("department_id", None)
        if department_id is not None:
            query = query.where(Shift.employee_id.in_(
                select(Employee.id).where(Employee.department_id == department_id)
            ))
        query = apply_filters(query, Shift, filters)
        if not pagination.sort_by:
            query = query.order_by(Shift.date, Shift.start_time)
        return await paginate(
            db, query, pagination,
            model=Shift, options=_SHIFT_LOADS, transform=ShiftOut.model_validate,
        )

    @staticmethod
    async def get_shift(db: AsyncSession, shift_id: uuid.UUID) -> ShiftOut:
        return ShiftOut.model_validate(await ShiftService._get_shift(db, shift_id))

    @staticmethod
    async def list_open_shifts(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        location_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = (
            select(Shift)
            .where(
                Shift.deleted_at.is_(None),
                Shift.is_open_shift.is_(True),
                Shift.status == ShiftStatus.OPEN,
                Shift.start_time >= utcnow(),
            )
            .order_by(Shift.start_time)
        )
        if location_id is not None:
            query = query.where(Shift.location_id == location_id)
        return await paginate(
            db, query, pagination, options=_SHIFT_LOADS, transform=ShiftOut.model_validate,
        )

    # ─────────────────────────────────────────────────────────────────
    # Create / Update / Delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_shift(
        db: AsyncSession,
        actor: User,
        data: ShiftCreate,
        request: Optional[Request] = None,
    ) -> ShiftOut:
        await ShiftService._validate_refs(
            db,
            employee_id=data.employee_id,
            template_id=data.template_id,
            location_id=data.location_id,
        )
        if data.employee_id is not None:
            await ShiftService.check_rest(db, data.employee_id, data.start_time, data.end_time)

        is_open = data.is_open_shift if data.is_open_shift is not None else data.employee_id is None
        shift = Shift(
            employee_id=data.employee_id,
            template_id=data.template_id,
            location_id=data.location_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            is_open_shift=is_open,
            status=ShiftStatus.OPEN if is_open or data.employee_id is None else ShiftStatus.SCHEDULED,
            notes=data.notes,
            created_by=actor.id,
        )
        db.add(shift)
        await db.flush()

        await create_audit_entry(
            db,
            action="SHIFT_CREATED",
            object_type="shift",
            object_id=shift.id,
            actor_id=actor.id,
            after=ShiftService._snapshot(shift),
            request=request,
        )
        return await ShiftService._reload(db, shift.id)

    @staticmethod
    async def update_shift(
        db: AsyncSession,
        actor: User,
        shift_id: uuid.UUID,
        data: ShiftUpdate,
        request: Optional[Request] = None,
    ) -> ShiftOut:
        shift = await ShiftService._get_shift(db, shift_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationException("No fields to update.")

        start = changes.get("start_time") or shift.start_time
        end = changes.get("end_time") or shift.end_time
        if as_utc(end) <= as_utc(start):
            raise ValidationException("end_time must be after start_time")

        employee_id = changes["employee_id"] if "employee_id" in changes else shift.employee_id
        await ShiftService._validate_refs(
            db,
            employee_id=changes.get("employee_id"),
            template_id=changes.get("template_id"),
            location_id=changes.get("location_id"),
        )
        if employee_id is not None:
            await ShiftService.check_rest(db, employee_id, start, end, [shift.id])

        before = ShiftService._snapshot(shift)
        for field, value in changes.items():
            setattr(shift, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="SHIFT_UPDATED",
            object_type="shift",
            object_id=shift.id,
            actor_id=actor.id,
            before=before,
            after=ShiftService._snapshot(shift),
            request=request,
        )
        return await ShiftService._reload(db, shift.id)

    @staticmethod
    async def delete_shift(
        db: AsyncSession,
        actor: User,
        shift_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> None:
        shift = await ShiftService._get_shift(db, shift_id)
        before = ShiftService._snapshot(shift)
        shift.deleted_at = utcnow()
        shift.status = ShiftStatus.CANCELLED
        await db.flush()
        await create_audit_entry(
            db,
            action="SHIFT_DELETED",
            object_type="shift",
            object_id=shift.id,
            actor_id=actor.id,
            before=before,
            request=request,
        )

    # ─────────────────────────────────────────────────────────────────
    # Open shifts
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_to_open_shift(
        db: AsyncSession,
        actor: User,
        shift_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> ShiftOut:
        employee = require_employee(actor)
        shift = await ShiftService._get_shift(db, shift_id)
        if not shift.is_open_shift or shift.status != ShiftStatus.OPEN:
            raise ValidationException("This shift is not open for applications.")
        if shift.employee_id is not None:
            raise ConflictError("employee_id", shift.employee_id)

        await ShiftService.check_rest(
            db, employee.id, shift.start_time, shift.end_time,
            prefix="Cannot apply: minimum rest period violation",
        )

        before = ShiftService._snapshot(shift)
        shift.employee_id = employee.id
        shift.is_open_shift = False
        shift.status = ShiftStatus.SCHEDULED
        await db.flush()

        await create_audit_entry(
            db,
            action="SHIFT_UPDATED",
            object_type="shift",
            object_id=shift.id,
            actor_id=actor.id,
            before=before,
            after=ShiftService._snapshot(shift),
            request=request,
            metadata={"action": "applied_to_open_shift"},
        )
        return await ShiftService._reload(db, shift.id)

    # ─────────────────────────────────────────────────────────────────
    # Swaps
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_swap(
        db: AsyncSession,
        actor: User,
        data: SwapCreate,
        request: Optional[Request] = None,
    ) -> SwapOut:
        employee = require_employee(actor)
        original = await ShiftService._get_shift(db, data.original_shift_id)
        if original.employee_id != employee.id:
            raise ForbiddenException("You can only request swaps for your own shifts.")
        if original.status in (ShiftStatus.CANCELLED, ShiftStatus.COMPLETED):
            raise ValidationException("Cannot swap a cancelled or completed shift.")

        if data.target_shift_id is not None:
            target = await ShiftService._get_shift(db, data.target_shift_id)
            if target.employee_id == employee.id:
                raise ValidationException("Cannot swap with your own shift.")
        if data.target_employee_id is not None:
            await ShiftService._validate_refs(db, employee_id=data.target_employee_id)

        pending = await db.execute(
            select(ShiftSwap.id).where(
                ShiftSwap.original_shift_id == original.id,
                ShiftSwap.status == ApprovalStatus.PENDING,
            )
        )
        if pending.scalar() is not None:
            raise ValidationException("A pending swap request already exists for this shift.")

        swap = ShiftSwap(
            original_shift_id=original.id,
            target_shift_id=data.target_shift_id,
            requester_id=employee.id,
            target_employee_id=data.target_employee_id,
            reason=data.reason,
            status=ApprovalStatus.PENDING,
        )
        db.add(swap)
        original.status = ShiftStatus.SWAP_PENDING
        await db.flush()

        await create_audit_entry(
            db,
            action="SHIFT_UPDATED",
            object_type="shift_swap",
            object_id=swap.id,
            actor_id=actor.id,
            after={"original_shift_id": original.id, "target_shift_id": data.target_shift_id},
            request=request,
            metadata={"action": "swap_requested"},
        )
        return SwapOut.model_validate(swap)

    @staticmethod
    async def list_swaps(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        status: Optional[ApprovalStatus] = None,
    ) -> list[SwapOut]:
        query = select(ShiftSwap).order_by(ShiftSwap.created_at.desc())
        if status is not None:
            query = query.where(ShiftSwap.status == status)
        if "shifts:read_all" not in permissions:
            own_id = actor.employee.id if actor.employee else None
            query = query.where(
                (ShiftSwap.requester_id == own_id) | (ShiftSwap.target_employee_id == own_id)
            )
        result = await db.execute(query)
        return [SwapOut.model_validate(s) for s in result.scalars().all()]

    @staticmethod
    async def resolve_swap(
        db: AsyncSession,
        actor: User,
        swap_id: uuid.UUID,
        decision: str,
        request: Optional[Request] = None,
    ) -> SwapOut:
        """Approve or reject a pending swap.

        Approval with a target shift exchanges the two employees after checking
        rest for both of them; with only a target employee the original shift
        is handed over; otherwise the original shift simply returns to SCHEDULED.
        """
        result = await db.execute(
            select(ShiftSwap)
            .where(ShiftSwap.id == swap_id)
            .options(selectinload(ShiftSwap.original_shift), selectinload(ShiftSwap.target_shift))
        )
        swap = result.scalars().first()
        if swap is None:
            raise NotFoundException("ShiftSwap", swap_id)
        if swap.status != ApprovalStatus.PENDING:
            raise ValidationException("Swap request is no longer pending.")

        original = swap.original_shift
        target = swap.target_shift
        approved = decision == ApprovalStatus.APPROVED.value

        if approved:
            swapped_ids = [original.id, target.id if target else None]
            if target is not None:
                original_employee = original.employee_id
                target_employee = target.employee_id
                if target_employee is not None:
                    await ShiftService.check_rest(
                        db, target_employee, original.start_time, original.end_time, swapped_ids,
                        prefix="Rest violation for target employee",
                    )
                if original_employee is not None:
                    await ShiftService.check_rest(
                        db, original_employee, target.start_time, target.end_time, swapped_ids,
                        prefix="Rest violation for original employee",
                    )
                original.employee_id = target_employee
                target.employee_id = original_employee
                target.status = ShiftStatus.SCHEDULED
            elif swap.target_employee_id is not None:
                await ShiftService.check_rest(
                    db, swap.target_employee_id, original.start_time, original.end_time,
                    swapped_ids, prefix="Rest violation for target employee",
                )
                original.employee_id = swap.target_employee_id
            swap.status = ApprovalStatus.APPROVED
        else:
            swap.status = ApprovalStatus.REJECTED

        original.status = ShiftStatus.SCHEDULED
        swap.approver_id = actor.id
        swap.approved_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="APPROVAL_GIVEN" if approved else "APPROVAL_REJECTED",
            object_type="shift_swap",
            object_id=swap.id,
            actor_id=actor.id,
            after={"status": swap.status},
            request=request,
            metadata={"decision": decision},
        )
        await notify_swap_resolved(db, swap, approved=approved)
        return SwapOut.model_validate(swap)

    # ─────────────────────────────────────────────────────────────────
    # Templates
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_templates(db: AsyncSession, active_only: bool = True) -> list[ShiftTemplateOut]:
        query = select(ShiftTemplate).order_by(ShiftTemplate.name)
        if active_only:
            query = query.where(ShiftTemplate.is_active.is_(True))
        result = await db.execute(query)
        return [ShiftTemplateOut.model_validate(t) for t in result.scalars().all()]

    @staticmethod
    async def _ensure_unique_name(
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(ShiftTemplate.id).where(ShiftTemplate.name == name)
        if exclude_id is not None:
            query = query.where(ShiftTemplate.id != exclude_id)
        if (await db.execute(query)).scalar() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def create_template(db: AsyncSession, data: ShiftTemplateCreate) -> ShiftTemplateOut:
        await ShiftService._ensure_unique_name(db, data.name)
        template = ShiftTemplate(**data.model_dump())
        db.add(template)
        await db.flush()
        return ShiftTemplateOut.model_validate(template)

    @staticmethod
    async def update_template(
        db: AsyncSession,
        template_id: uuid.UUID,
        data: ShiftTemplateUpdate,
    ) -> ShiftTemplateOut:
        template = await db.get(ShiftTemplate, template_id)
        if template is None:
            raise NotFoundException("ShiftTemplate", template_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != template.name:
            await ShiftService._ensure_unique_name(db, changes["name"], template.id)
        for field, value in changes.items():
            setattr(template, field, value)
        await db.flush()
        return ShiftTemplateOut.model_validate(template)
