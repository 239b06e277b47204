"""Goal service: personal/team/company goals with progress check-ins."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Request
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import GoalStatus
from workforce.common.dates import utcnow
from workforce.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.goals.models import Goal, GoalCheckIn
from workforce.goals.schemas import CheckInCreate, CheckInOut, GoalCreate, GoalOut, GoalUpdate

_GOAL_LOADS = (
    selectinload(Goal.employee),
    selectinload(Goal.check_ins),
)


class GoalService:

    @staticmethod
    async def _get_goal(db: AsyncSession, goal_id: uuid.UUID, *, refresh: bool = False) -> Goal:
        query = select(Goal).where(Goal.id == goal_id).options(*_GOAL_LOADS)
        if refresh:
            query = query.execution_options(populate_existing=True)
        goal = (await db.execute(query)).scalars().first()
        if goal is None:
            raise NotFoundException("Goal", goal_id)
        return goal

    @staticmethod
    def _check_can_edit(goal: Goal, actor: User, permissions: set[str]) -> None:
        own_id = actor.employee.id if actor.employee else None
        if "goals:write" in permissions:
            return
        if goal.employee_id is not None and goal.employee_id == own_id:
            return
        if goal.created_by == actor.id:
            return
        raise ForbiddenException("You cannot modify this goal.")

    @staticmethod
    async def list_goals(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[GoalStatus] = None,
        company_only: bool = False,
    ) -> PaginatedResponse:
        query = select(Goal).order_by(Goal.created_at.desc())
        if "goals:read_all" not in permissions:
            if actor.employee is None:
                query = query.where(Goal.is_company_goal.is_(True))
            else:
                query = query.where(or_(
                    Goal.employee_id == actor.employee.id,
                    Goal.is_company_goal.is_(True),
                ))
        elif employee_id is not None:
            query = query.where(Goal.employee_id == employee_id)
        if status is not None:
            query = query.where(Goal.status == status)
        if company_only:
            query = query.where(Goal.is_company_goal.is_(True))
        return await paginate(
            db, query, pagination,
            model=Goal,
            options=_GOAL_LOADS,
            transform=GoalOut.model_validate,
        )

    @staticmethod
    async def create_goal(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        data: GoalCreate,
        request: Optional[Request] = None,
    ) -> GoalOut:
        own_id = actor.employee.id if actor.employee else None
        values = data.model_dump()
        if values["employee_id"] is None and not data.is_company_goal:
            values["employee_id"] = own_id
        if values["employee_id"] is None and not data.is_company_goal:
            raise ValidationException("A personal goal needs an employee.")
        if (
            (data.is_company_goal or values["employee_id"] != own_id)
            and "goals:write" not in permissions
        ):
            raise ForbiddenException("You can only create goals for yourself.")

        goal = Goal(**values, created_by=actor.id)
        db.add(goal)
        await db.flush()

        await create_audit_entry(
            db,
            action="GOAL_CREATED",
            object_type="goal",
            object_id=goal.id,
            actor_id=actor.id,
            after=values,
            request=request,
        )
        return GoalOut.model_validate(await GoalService._get_goal(db, goal.id, refresh=True))

    @staticmethod
    async def update_goal(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        goal_id: uuid.UUID,
        data: GoalUpdate,
        request: Optional[Request] = None,
    ) -> GoalOut:
        goal = await GoalService._get_goal(db, goal_id)
        GoalService._check_can_edit(goal, actor, permissions)

        changes = data.model_dump(exclude_unset=True)
        before = {field: getattr(goal, field) for field in changes}
        for field, value in changes.items():
            setattr(goal, field, value)
        if changes.get("status") == GoalStatus.COMPLETED and goal.completed_at is None:
            goal.completed_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="GOAL_UPDATED",
            object_type="goal",
            object_id=goal.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return GoalOut.model_validate(await GoalService._get_goal(db, goal.id, refresh=True))

    @staticmethod
    async def check_in(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        goal_id: uuid.UUID,
        data: CheckInCreate,
    ) -> CheckInOut:
        """Record progress; reaching 100 completes the goal."""
        goal = await GoalService._get_goal(db, goal_id)
        GoalService._check_can_edit(goal, actor, permissions)

        check_in = GoalCheckIn(
            goal_id=goal.id,
            progress=data.progress,
            comment=data.comment,
            created_by=actor.id,
            created_at=utcnow(),
        )
        db.add(check_in)

        goal.progress = data.progress
        if data.progress >= 100:
            goal.status = GoalStatus.COMPLETED
            goal.completed_at = goal.completed_at or utcnow()
        elif goal.status == GoalStatus.NOT_STARTED and data.progress > 0:
            goal.status = GoalStatus.ON_TRACK
        await db.flush()
        return CheckInOut.model_validate(check_in)
