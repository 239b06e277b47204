"""Employee service: scoped listing, profile updates, soft delete, org chart, timeline.

Visibility rules:
  - ``employees:read_all``  → everyone
  - ``employees:read_team`` → self + direct reports
  - otherwise               → self only
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import AuditLog, create_audit_entry
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.filters import apply_filters, apply_search
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.employees.models import Department, Employee, Location
from workforce.employees.schemas import (
    SELF_EDITABLE_FIELDS,
    EmployeeOut,
    EmployeeUpdate,
    OrgChartNode,
    TimelineEntry,
)


def _snapshot(emp: Employee, fields: list[str]) -> dict[str, Any]:
    return {f: getattr(emp, f) for f in fields}


class EmployeeService:
    """Async employee operations."""

    # ─────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        with_relations: bool = False,
    ) -> Employee:
        """Return a non-deleted employee or raise 404."""
        query = select(Employee).where(
            Employee.id == employee_id, Employee.deleted_at.is_(None),
        )
        if with_relations:
            query = query.options(
                selectinload(Employee.department),
                selectinload(Employee.location),
            )
        employee = (await db.execute(query)).scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def is_direct_report(
        db: AsyncSession,
        manager_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> bool:
        result = await db.execute(
            select(Employee.id).where(
                Employee.id == employee_id, Employee.manager_id == manager_id,
            )
        )
        return result.scalar() is not None

    @staticmethod
    async def team_ids(db: AsyncSession, manager_id: uuid.UUID) -> list[uuid.UUID]:
        result = await db.execute(
            select(Employee.id).where(
                Employee.manager_id == manager_id, Employee.deleted_at.is_(None),
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def can_view(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: uuid.UUID,
    ) -> bool:
        if "employees:read_all" in permissions:
            return True
        own = actor.employee.id if actor.employee else None
        if own == employee_id:
            return True
        if "employees:read_team" in permissions and own is not None:
            return await EmployeeService.is_direct_report(db, own, employee_id)
        return False

    # ─────────────────────────────────────────────────────────────────
    # List / Get
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        department_id: Optional[uuid.UUID] = None,
        location_id: Optional[uuid.UUID] = None,
        employment_status: Optional[str] = None,
    ) -> PaginatedResponse:
        query = (
            select(Employee)
            .where(Employee.deleted_at.is_(None))
            .order_by(Employee.last_name, Employee.first_name)
        )

        own_id = actor.employee.id if actor.employee else None
        if "employees:read_all" not in permissions:
            if "employees:read_team" in permissions and own_id is not None:
                query = query.where(
                    or_(Employee.id == own_id, Employee.manager_id == own_id)
                )
            else:
                query = query.where(Employee.id == own_id)

        query = apply_filters(query, Employee, {
            "department_id": department_id,
            "location_id": location_id,
            "employment_status": employment_status,
        })
        query = apply_search(
            query, Employee, search,
            ["first_name", "last_name", "email", "employee_number", "job_title"],
        )
        return await paginate(
            db, query, pagination,
            model=Employee,
            options=[selectinload(Employee.department), selectinload(Employee.location)],
            transform=EmployeeOut.model_validate,
        )

    @staticmethod
    async def get_visible(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: uuid.UUID,
    ) -> EmployeeOut:
        employee = await EmployeeService.get_employee(db, employee_id, with_relations=True)
        if not await EmployeeService.can_view(db, actor, permissions, employee_id):
            raise ForbiddenException("You cannot view this employee.")
        return EmployeeOut.model_validate(employee)

    # ─────────────────────────────────────────────────────────────────
    # Update / Delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        request: Optional[Request] = None,
    ) -> EmployeeOut:
        """Apply a partial update.

        Anyone may edit their own contact fields; ``employees:write_all``
        edits anyone; ``employees:write`` edits direct reports.
        """
        employee = await EmployeeService.get_employee(db, employee_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationException("No fields to update.")

        own_id = actor.employee.id if actor.employee else None
        if "employees:write_all" in permissions:
            pass
        elif (
            "employees:write" in permissions
            and own_id is not None
            and own_id != employee_id
            and await EmployeeService.is_direct_report(db, own_id, employee_id)
        ):
            pass
        elif own_id == employee_id and set(changes) <= SELF_EDITABLE_FIELDS:
            pass
        else:
            raise ForbiddenException("You cannot edit these fields for this employee.")

        if changes.get("manager_id") == employee_id:
            raise ValidationException("An employee cannot be their own manager.")
        if changes.get("manager_id"):
            await EmployeeService.get_employee(db, changes["manager_id"])
        if changes.get("department_id") and await db.get(Department, changes["department_id"]) is None:
            raise NotFoundException("Department", changes["department_id"])
        if changes.get("location_id") and await db.get(Location, changes["location_id"]) is None:
            raise NotFoundException("Location", changes["location_id"])
        if "email" in changes and changes["email"] != employee.email:
            dup = await db.execute(
                select(Employee.id).where(Employee.email == changes["email"])
            )
            if dup.scalar() is not None:
                raise ConflictError("email", changes["email"])

        before = _snapshot(employee, list(changes))
        for field, value in changes.items():
            setattr(employee, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="employee",
            object_id=employee.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        employee = await EmployeeService.get_employee(db, employee_id, with_relations=True)
        return EmployeeOut.model_validate(employee)

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        actor: User,
        employee_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> None:
        employee = await EmployeeService.get_employee(db, employee_id)
        if actor.employee is not None and actor.employee.id == employee_id:
            raise ValidationException("You cannot delete your own employee record.")
        employee.deleted_at = utcnow()
        await db.flush()
        await create_audit_entry(
            db,
            action="DELETE",
            object_type="employee",
            object_id=employee.id,
            actor_id=actor.id,
            request=request,
        )

    # ─────────────────────────────────────────────────────────────────
    # Org chart / timeline
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def org_chart(db: AsyncSession) -> list[OrgChartNode]:
        """Build the reporting tree; employees without a manager are roots."""
        result = await db.execute(
            select(Employee)
            .where(Employee.deleted_at.is_(None))
            .options(selectinload(Employee.department))
            .order_by(Employee.last_name)
        )
        employees = result.scalars().all()
        nodes = {
            e.id: OrgChartNode(
                id=e.id,
                employee_number=e.employee_number,
                name=e.full_name,
                job_title=e.job_title,
                photo_url=e.photo_url,
                department=e.department.name if e.department else None,
            )
            for e in employees
        }
        roots: list[OrgChartNode] = []
        for e in employees:
            parent = nodes.get(e.manager_id) if e.manager_id else None
            if parent is not None:
                parent.reports.append(nodes[e.id])
            else:
                roots.append(nodes[e.id])
        return roots

    @staticmethod
    async def timeline(
        db: AsyncSession,
        employee_id: uuid.UUID,
        limit: int = 50,
    ) -> list[TimelineEntry]:
        employee = await EmployeeService.get_employee(db, employee_id)
        object_ids = [str(employee.id)]
        if employee.user_id:
            object_ids.append(str(employee.user_id))
        result = await db.execute(
            select(AuditLog)
            .where(AuditLog.object_id.in_(object_ids))
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return [TimelineEntry.model_validate(row) for row in result.scalars().all()]
