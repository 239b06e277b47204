"""Leave service: requests, two-step approval chain, balances, calendar, policies.

Status flow::

    PENDING ─(step 1)→ APPROVED_BY_LEAD ─(step 2)→ APPROVED
       └──────────── REJECTED / CANCELLED ────────────┘

Balance accounting: a request holds its days in ``pending_days`` while in
flight; final approval moves them to ``used_days``; rejection and
cancellation give them back.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from fastapi import Request
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.dependencies import require_employee
from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import (
    LEAVE_APPROVAL_STEPS,
    LEAVE_IN_FLIGHT_STATUSES,
    ApprovalStatus,
    LeaveStatus,
    LeaveType,
    ShiftStatus,
    UserRole,
)
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.config import settings
from workforce.employees.models import Employee
from workforce.leaves.models import Approval, LeaveBalance, LeavePolicy, LeaveRequest
from workforce.leaves.schemas import (
    AbsenceCalendar,
    CalendarEntry,
    LeaveBalanceOut,
    LeaveCreateResponse,
    LeavePolicyIn,
    LeavePolicyOut,
    LeaveRequestCreate,
    LeaveRequestOut,
)
from workforce.notifications.service import notify_leave_decision, notify_leave_submitted
from workforce.shifts.models import Shift

logger = logging.getLogger(__name__)

_STEP_STATUS = {
    UserRole.TEAM_LEAD: LeaveStatus.APPROVED_BY_LEAD,
    UserRole.HR: LeaveStatus.APPROVED_BY_HR,
}
_STEP_DECIDERS = {step: deciders for step, _role, deciders in LEAVE_APPROVAL_STEPS}
_STEP_LABEL = {1: "team leads or higher roles", 2: "HR or higher roles"}


# ═════════════════════════════════════════════════════════════════════
# Pure helpers
# ═════════════════════════════════════════════════════════════════════


def business_days(start: date, end: date) -> int:
    """Inclusive count of Monday–Friday dates in ``[start, end]``."""
    if end < start:
        return 0
    count = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def status_after_step(step: int, approver_role: UserRole, total_steps: int) -> LeaveStatus:
    if step >= total_steps:
        return LeaveStatus.APPROVED
    return _STEP_STATUS.get(approver_role, LeaveStatus.APPROVED_BY_LEAD)


def _decrement(value: Decimal, amount: Decimal) -> Decimal:
    return max(Decimal("0"), Decimal(value) - Decimal(amount))


class LeaveService:
    """Async leave operations."""

    # ─────────────────────────────────────────────────────────────────
    # Loading helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> LeaveRequest:
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.id == request_id, LeaveRequest.deleted_at.is_(None))
            .options(selectinload(LeaveRequest.approvals), selectinload(LeaveRequest.employee))
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        leave = (await db.execute(query)).scalars().first()
        if leave is None:
            raise NotFoundException("LeaveRequest", request_id)
        return leave

    @staticmethod
    async def _get_balance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: int,
    ) -> Optional[LeaveBalance]:
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type == leave_type,
                LeaveBalance.year == year,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def find_policy(
        db: AsyncSession,
        leave_type: LeaveType,
        employee: Employee,
    ) -> Optional[LeavePolicy]:
        """Active policy for the employee's contract type, else the generic one."""
        result = await db.execute(
            select(LeavePolicy).where(
                LeavePolicy.leave_type == leave_type,
                LeavePolicy.is_active.is_(True),
                or_(
                    LeavePolicy.contract_type == employee.contract_type,
                    LeavePolicy.contract_type.is_(None),
                ),
            )
        )
        policies = result.scalars().all()
        specific = [p for p in policies if p.contract_type is not None]
        return (specific or list(policies) or [None])[0]

    @staticmethod
    async def _release_days(
        db: AsyncSession,
        leave: LeaveRequest,
        *,
        from_used: bool,
    ) -> None:
        balance = await LeaveService._get_balance(
            db, leave.employee_id, leave.leave_type, leave.start_date.year,
        )
        if balance is None:
            return
        if from_used:
            balance.used_days = _decrement(balance.used_days, leave.days)
        else:
            balance.pending_days = _decrement(balance.pending_days, leave.days)

    @staticmethod
    def _can_view(actor: User, permissions: set[str], leave: LeaveRequest) -> bool:
        if "leaves:read_all" in permissions:
            return True
        own_id = actor.employee.id if actor.employee else None
        if own_id is None:
            return False
        return leave.employee_id == own_id or leave.employee.manager_id == own_id

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_request(
        db: AsyncSession,
        actor: User,
        data: LeaveRequestCreate,
        request: Optional[Request] = None,
    ) -> LeaveCreateResponse:
        """Validate and file a leave request with its two approval steps.

        Refuses ranges without business days, overlaps with any live request
        and requests the balance cannot cover. Scheduled shifts inside the
        range come back as warnings only.
        """
        employee = require_employee(actor)
        days = business_days(data.start_date, data.end_date)
        if days <= 0:
            raise ValidationException("Leave request must include at least one business day.")
        total = Decimal(days)

        policy = await LeaveService.find_policy(db, data.leave_type, employee)
        if policy is not None and policy.min_notice_days:
            notice = (data.start_date - utcnow().date()).days
            if notice < policy.min_notice_days:
                raise ValidationException(
                    f"{data.leave_type.value} leave requires at least "
                    f"{policy.min_notice_days} days advance notice.",
                )

        balance = None
        if data.leave_type != LeaveType.UNPAID:
            year = data.start_date.year
            balance = await LeaveService._get_balance(db, employee.id, data.leave_type, year)
            if balance is None:
                if policy is None:
                    raise ValidationException(
                        f"No leave policy found for leave type: {data.leave_type.value}",
                    )
                balance = LeaveBalance(
                    employee_id=employee.id,
                    leave_type=data.leave_type,
                    year=year,
                    total_days=Decimal(policy.days_per_year),
                    carried_over=Decimal("0"),
                    used_days=Decimal("0"),
                    pending_days=Decimal("0"),
                )
                db.add(balance)
                await db.flush()
            available = balance.available_days
            if total > available:
                raise ValidationException(
                    f"Insufficient leave balance. Available: {available} days, "
                    f"Requested: {total} days",
                )

        overlap = await db.execute(
            select(LeaveRequest).where(
                LeaveRequest.employee_id == employee.id,
                LeaveRequest.deleted_at.is_(None),
                LeaveRequest.status.not_in([LeaveStatus.CANCELLED, LeaveStatus.REJECTED]),
                LeaveRequest.start_date <= data.end_date,
                LeaveRequest.end_date >= data.start_date,
            ).limit(1)
        )
        existing = overlap.scalars().first()
        if existing is not None:
            raise ValidationException(
                f"Overlapping leave request exists ({existing.start_date} to {existing.end_date}).",
            )

        shifts = await db.execute(
            select(Shift.id).where(
                Shift.employee_id == employee.id,
                Shift.deleted_at.is_(None),
                Shift.status != ShiftStatus.CANCELLED,
                Shift.date >= data.start_date,
                Shift.date <= data.end_date,
            )
        )
        conflicting_shift_ids = list(shifts.scalars().all())

        leave = LeaveRequest(
            employee_id=employee.id,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            days=total,
            reason=data.reason,
            attachment_url=data.attachment_url,
            status=LeaveStatus.PENDING,
        )
        db.add(leave)
        await db.flush()

        manager_user_id = None
        if employee.manager_id is not None:
            manager_user_id = (
                await db.execute(select(Employee.user_id).where(Employee.id == employee.manager_id))
            ).scalar()
        for step, role, _deciders in LEAVE_APPROVAL_STEPS:
            db.add(Approval(
                leave_request_id=leave.id,
                step=step,
                approver_role=role,
                approver_id=manager_user_id if role == UserRole.TEAM_LEAD else None,
                status=ApprovalStatus.PENDING,
                sla_hours=settings.LEAVE_APPROVAL_SLA_HOURS,
                created_by=actor.id,
            ))
        if balance is not None:
            balance.pending_days = Decimal(balance.pending_days) + total
        await db.flush()

        await create_audit_entry(
            db,
            action="LEAVE_REQUESTED",
            object_type="leave_request",
            object_id=leave.id,
            actor_id=actor.id,
            after={
                "leave_type": leave.leave_type,
                "start_date": leave.start_date,
                "end_date": leave.end_date,
                "days": total,
            },
            request=request,
            metadata={
                "conflicting_shift_count": len(conflicting_shift_ids),
                "conflicting_shift_ids": conflicting_shift_ids,
            },
        )
        if employee.manager_id is not None:
            await notify_leave_submitted(db, leave, employee.manager_id)

        warnings = []
        if conflicting_shift_ids:
            warnings.append(
                f"Employee has {len(conflicting_shift_ids)} scheduled shift(s) "
                f"during the requested leave period",
            )
        leave = await LeaveService._get_request(db, leave.id, refresh=True)
        return LeaveCreateResponse(
            leave_request=LeaveRequestOut.model_validate(leave),
            warnings=warnings,
            conflicting_shift_ids=conflicting_shift_ids,
        )

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PaginatedResponse:
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.deleted_at.is_(None))
            .order_by(LeaveRequest.created_at.desc())
        )
        if "leaves:read_all" not in permissions:
            own_id = actor.employee.id if actor.employee else None
            query = query.where(LeaveRequest.employee_id == own_id)
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        if leave_type is not None:
            query = query.where(LeaveRequest.leave_type == leave_type)
        if date_from is not None:
            query = query.where(LeaveRequest.end_date >= date_from)
        if date_to is not None:
            query = query.where(LeaveRequest.start_date <= date_to)
        return await paginate(
            db, query, pagination,
            model=LeaveRequest,
            options=[selectinload(LeaveRequest.approvals), selectinload(LeaveRequest.employee)],
            transform=LeaveRequestOut.model_validate,
        )

    @staticmethod
    async def get_request(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        request_id: uuid.UUID,
    ) -> LeaveRequestOut:
        leave = await LeaveService._get_request(db, request_id)
        if not LeaveService._can_view(actor, permissions, leave):
            raise ForbiddenException("You cannot view this leave request.")
        return LeaveRequestOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Decisions
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _current_step(leave: LeaveRequest, verb: str, actor: User) -> Approval:
        pending = next((a for a in leave.approvals if a.status == ApprovalStatus.PENDING), None)
        if pending is None:
            raise ValidationException("No pending approval step found.")
        deciders = _STEP_DECIDERS.get(pending.step, frozenset())
        if actor.role not in deciders:
            label = _STEP_LABEL.get(pending.step, "authorised roles")
            raise ForbiddenException(f"Only {label} can {verb} step {pending.step}.")
        return pending

    @staticmethod
    async def approve(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        comment: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> LeaveRequestOut:
        """Approve the first pending step; the last step moves pending days to used."""
        leave = await LeaveService._get_request(db, request_id)
        if leave.status == LeaveStatus.APPROVED:
            raise ValidationException("Leave request is already fully approved.")
        if leave.status in (LeaveStatus.CANCELLED, LeaveStatus.REJECTED):
            raise ValidationException("Cannot approve a cancelled or rejected leave request.")

        step = LeaveService._current_step(leave, "approve", actor)
        new_status = status_after_step(step.step, step.approver_role, len(leave.approvals))

        step.status = ApprovalStatus.APPROVED
        step.approver_id = actor.id
        step.comment = comment
        step.decided_at = utcnow()
        before = leave.status
        leave.status = new_status

        if new_status == LeaveStatus.APPROVED:
            balance = await LeaveService._get_balance(
                db, leave.employee_id, leave.leave_type, leave.start_date.year,
            )
            if balance is not None:
                balance.pending_days = _decrement(balance.pending_days, leave.days)
                balance.used_days = Decimal(balance.used_days) + Decimal(leave.days)
        await db.flush()

        await create_audit_entry(
            db,
            action="LEAVE_APPROVED",
            object_type="leave_request",
            object_id=leave.id,
            actor_id=actor.id,
            before={"status": before},
            after={"status": new_status, "approval_step": step.step},
            request=request,
            metadata={"comment": comment, "step": step.step},
        )
        await notify_leave_decision(db, leave, approved=True, comment=comment)
        return LeaveRequestOut.model_validate(
            await LeaveService._get_request(db, leave.id, refresh=True)
        )

    @staticmethod
    async def reject(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        comment: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> LeaveRequestOut:
        """Reject at the current step; every remaining step is closed as REJECTED."""
        leave = await LeaveService._get_request(db, request_id)
        if leave.status in (LeaveStatus.CANCELLED, LeaveStatus.REJECTED):
            raise ValidationException("Leave request is already cancelled or rejected.")
        if leave.status == LeaveStatus.APPROVED:
            raise ValidationException(
                "Cannot reject an already approved leave request. Cancel it instead.",
            )

        step = LeaveService._current_step(leave, "reject", actor)
        now = utcnow()
        step.approver_id = actor.id
        step.comment = comment
        for approval in leave.approvals:
            if approval.status == ApprovalStatus.PENDING:
                approval.status = ApprovalStatus.REJECTED
                approval.decided_at = now

        before = leave.status
        leave.status = LeaveStatus.REJECTED
        await LeaveService._release_days(db, leave, from_used=False)
        await db.flush()

        await create_audit_entry(
            db,
            action="LEAVE_REJECTED",
            object_type="leave_request",
            object_id=leave.id,
            actor_id=actor.id,
            before={"status": before},
            after={"status": LeaveStatus.REJECTED, "approval_step": step.step},
            request=request,
            metadata={"comment": comment, "step": step.step},
        )
        await notify_leave_decision(db, leave, approved=False, comment=comment)
        return LeaveRequestOut.model_validate(
            await LeaveService._get_request(db, leave.id, refresh=True)
        )

    @staticmethod
    async def cancel(
        db: AsyncSession,
        actor: User,
        request_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> LeaveRequestOut:
        """Owner-only. Returns pending days, or used days if already approved."""
        leave = await LeaveService._get_request(db, request_id)
        own_id = actor.employee.id if actor.employee else None
        if leave.employee_id != own_id:
            raise ForbiddenException("You can only cancel your own leave requests.")
        if leave.status == LeaveStatus.CANCELLED:
            raise ValidationException("Leave request is already cancelled.")
        if leave.status == LeaveStatus.REJECTED:
            raise ValidationException("Cannot cancel a rejected leave request.")

        before = leave.status
        now = utcnow()
        for approval in leave.approvals:
            if approval.status == ApprovalStatus.PENDING:
                approval.status = ApprovalStatus.REJECTED
                approval.comment = "Cancelled by employee"
                approval.decided_at = now

        if before in LEAVE_IN_FLIGHT_STATUSES:
            await LeaveService._release_days(db, leave, from_used=False)
        elif before == LeaveStatus.APPROVED:
            await LeaveService._release_days(db, leave, from_used=True)
        leave.status = LeaveStatus.CANCELLED
        await db.flush()

        await create_audit_entry(
            db,
            action="LEAVE_CANCELLED",
            object_type="leave_request",
            object_id=leave.id,
            actor_id=actor.id,
            before={"status": before},
            after={"status": LeaveStatus.CANCELLED},
            request=request,
        )
        return LeaveRequestOut.model_validate(
            await LeaveService._get_request(db, leave.id, refresh=True)
        )

    # ─────────────────────────────────────────────────────────────────
    # Balances / calendar / policies
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_balances(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: Optional[uuid.UUID] = None,
        year: Optional[int] = None,
    ) -> list[LeaveBalanceOut]:
        own_id = actor.employee.id if actor.employee else None
        target = employee_id or own_id
        if target is None:
            raise ValidationException("No employee profile linked to this user.")
        if target != own_id and "leaves:read_all" not in permissions:
            raise ForbiddenException("You can only view your own leave balances.")
        employee = await db.get(Employee, target)
        if employee is None:
            raise NotFoundException("Employee", target)

        result = await db.execute(
            select(LeaveBalance)
            .where(
                LeaveBalance.employee_id == target,
                LeaveBalance.year == (year or utcnow().year),
            )
            .order_by(LeaveBalance.leave_type)
        )
        return [LeaveBalanceOut.model_validate(b) for b in result.scalars().all()]

    @staticmethod
    async def absence_calendar(
        db: AsyncSession,
        date_from: date,
        date_to: date,
        *,
        department_id: Optional[uuid.UUID] = None,
        location_id: Optional[uuid.UUID] = None,
    ) -> AbsenceCalendar:
        """Approved or partly approved absences, keyed by business day."""
        if date_to < date_from:
            raise ValidationException("date_to must be on or after date_from")
        query = (
            select(LeaveRequest)
            .where(
                LeaveRequest.deleted_at.is_(None),
                LeaveRequest.status.in_([
                    LeaveStatus.APPROVED,
                    LeaveStatus.APPROVED_BY_LEAD,
                    LeaveStatus.APPROVED_BY_HR,
                ]),
                LeaveRequest.start_date <= date_to,
                LeaveRequest.end_date >= date_from,
            )
            .options(selectinload(LeaveRequest.employee).selectinload(Employee.department))
            .order_by(LeaveRequest.start_date)
        )
        if department_id is not None or location_id is not None:
            employees = select(Employee.id)
            if department_id is not None:
                employees = employees.where(Employee.department_id == department_id)
            if location_id is not None:
                employees = employees.where(Employee.location_id == location_id)
            query = query.where(LeaveRequest.employee_id.in_(employees))

        leaves = (await db.execute(query)).scalars().all()
        calendar: dict[str, list[CalendarEntry]] = defaultdict(list)
        for leave in leaves:
            current = max(leave.start_date, date_from)
            last = min(leave.end_date, date_to)
            while current <= last:
                if current.weekday() < 5:
                    calendar[current.isoformat()].append(CalendarEntry(
                        employee_id=leave.employee_id,
                        employee_name=leave.employee.full_name,
                        department=leave.employee.department.name if leave.employee.department else None,
                        leave_type=leave.leave_type,
                        status=leave.status,
                        leave_request_id=leave.id,
                    ))
                current += timedelta(days=1)

        return AbsenceCalendar(
            date_from=date_from,
            date_to=date_to,
            total_absences=len(leaves),
            calendar=dict(calendar),
        )

    @staticmethod
    async def list_policies(db: AsyncSession, active_only: bool = True) -> list[LeavePolicyOut]:
        query = select(LeavePolicy).order_by(LeavePolicy.leave_type)
        if active_only:
            query = query.where(LeavePolicy.is_active.is_(True))
        result = await db.execute(query)
        return [LeavePolicyOut.model_validate(p) for p in result.scalars().all()]

    @staticmethod
    async def upsert_policy(
        db: AsyncSession,
        actor: User,
        data: LeavePolicyIn,
        request: Optional[Request] = None,
    ) -> LeavePolicyOut:
        """Create or replace the policy for (leave_type, contract_type)."""
        query = select(LeavePolicy).where(LeavePolicy.leave_type == data.leave_type)
        if data.contract_type is None:
            query = query.where(LeavePolicy.contract_type.is_(None))
        else:
            query = query.where(LeavePolicy.contract_type == data.contract_type)
        policy = (await db.execute(query)).scalars().first()

        before = None
        if policy is None:
            policy = LeavePolicy(**data.model_dump())
            db.add(policy)
        else:
            before = LeavePolicyIn.model_validate(policy, from_attributes=True).model_dump()
            for field, value in data.model_dump().items():
                setattr(policy, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="SETTINGS_CHANGED",
            object_type="leave_policy",
            object_id=policy.id,
            actor_id=actor.id,
            before=before,
            after=data.model_dump(),
            request=request,
        )
        return LeavePolicyOut.model_validate(policy)

    @staticmethod
    async def pending_approval_count(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count()).select_from(LeaveRequest).where(
                LeaveRequest.deleted_at.is_(None),
                LeaveRequest.status.in_(LEAVE_IN_FLIGHT_STATUSES),
            )
        )
        return result.scalar_one()
