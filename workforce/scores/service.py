"""Employee performance score.

The total (0-100) is the sum of four components:

    rating       (0-40)  average review rating 1-5, normalised
    completion   (0-25)  approved / reviewed tasks
    consistency  (0-20)  on-time completion rate
    discipline   (0-15)  15, minus 5 per active disciplinary record

Only APPROVED/REJECTED tasks reviewed within the lookback window count.
"""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import datetime
from typing import Iterable, Optional

from fastapi import Request
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import TASK_MANAGER_ROLES, EmploymentStatus, TaskStatus
from workforce.common.dates import as_utc, utcnow
from workforce.common.exceptions import ForbiddenException, NotFoundException
from workforce.config import settings
from workforce.employees.models import Employee
from workforce.performance.models import DisciplinaryRecord
from workforce.scores.models import EmployeeScore
from workforce.scores.schemas import LeaderboardEntry, ScoreBreakdown, ScoreOut
from workforce.tasks.models import Task

logger = logging.getLogger(__name__)

WEIGHT_RATING = 40
WEIGHT_COMPLETION = 25
WEIGHT_CONSISTENCY = 20
WEIGHT_DISCIPLINE = 15
PENALTY_PER_WARNING = 5


def grade_for(total: float) -> str:
    if total >= 90:
        return "A"
    if total >= 75:
        return "B"
    if total >= 60:
        return "C"
    if total >= 40:
        return "D"
    return "F"


def months_ago(moment: datetime, months: int) -> datetime:
    """Same day-of-month *months* earlier, clamped to the month's last day."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def compute_score(tasks: Iterable[Task], active_warnings: int) -> ScoreBreakdown:
    """Pure score calculation over reviewed tasks and active warnings."""
    tasks = list(tasks)
    total = len(tasks)
    approved = sum(1 for t in tasks if t.status == TaskStatus.APPROVED)
    rejected = sum(1 for t in tasks if t.status == TaskStatus.REJECTED)

    ratings = [t.rating for t in tasks if t.rating is not None]
    avg_rating = sum(ratings) / len(ratings) if ratings else 0.0
    rating_score = ((avg_rating - 1) / 4) * WEIGHT_RATING if avg_rating > 0 else 0.0

    completion_score = (approved / total) * WEIGHT_COMPLETION if total else 0.0

    dated = [t for t in tasks if t.due_date is not None and t.completed_at is not None]
    if dated:
        on_time = sum(1 for t in dated if as_utc(t.completed_at) <= as_utc(t.due_date))
        on_time_rate = on_time / len(dated)
    else:
        # No deadlines to judge by: neutral
        on_time_rate = 0.5 if total else 0.0
    consistency_score = on_time_rate * WEIGHT_CONSISTENCY

    disciplinary_score = max(0, WEIGHT_DISCIPLINE - PENALTY_PER_WARNING * active_warnings)

    rating_score = round(rating_score, 2)
    completion_score = round(completion_score, 2)
    consistency_score = round(consistency_score, 2)
    disciplinary_score = round(float(disciplinary_score), 2)
    # Each component is already bounded by its weight
    total_score = round(rating_score + completion_score + consistency_score + disciplinary_score, 2)

    return ScoreBreakdown(
        total_score=total_score,
        grade=grade_for(total_score),
        task_rating_score=rating_score,
        task_completion_score=completion_score,
        consistency_score=consistency_score,
        disciplinary_score=disciplinary_score,
        total_tasks=total,
        approved_tasks=approved,
        rejected_tasks=rejected,
        avg_rating=round(avg_rating, 2),
        on_time_rate=round(on_time_rate, 2),
        warning_count=active_warnings,
    )


class ScoreService:

    @staticmethod
    def _check_access(actor: User, employee_id: uuid.UUID) -> None:
        own_id = actor.employee.id if actor.employee else None
        if own_id != employee_id and actor.role not in TASK_MANAGER_ROLES:
            raise ForbiddenException("You can only view your own score.")

    @staticmethod
    async def _ensure_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None or employee.deleted_at is not None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def _active_warning_count(db: AsyncSession, employee_id: uuid.UUID) -> int:
        result = await db.execute(
            select(DisciplinaryRecord).where(
                DisciplinaryRecord.employee_id == employee_id,
                or_(
                    DisciplinaryRecord.expires_at.is_(None),
                    DisciplinaryRecord.expires_at > utcnow(),
                ),
            )
        )
        return len(result.scalars().all())

    @staticmethod
    async def evaluate(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> tuple[ScoreBreakdown, datetime, datetime]:
        """Compute the score over the lookback window without saving it."""
        period_end = utcnow()
        period_start = months_ago(period_end, settings.SCORE_LOOKBACK_MONTHS)
        result = await db.execute(
            select(Task).where(
                Task.assignee_id == employee_id,
                Task.status.in_((TaskStatus.APPROVED, TaskStatus.REJECTED)),
                Task.reviewed_at >= period_start,
                Task.reviewed_at <= period_end,
            )
        )
        warnings = await ScoreService._active_warning_count(db, employee_id)
        return compute_score(result.scalars().all(), warnings), period_start, period_end

    @staticmethod
    async def calculate(
        db: AsyncSession,
        employee_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> EmployeeScore:
        """Compute and store a snapshot; earlier snapshots lose ``is_latest``."""
        breakdown, period_start, period_end = await ScoreService.evaluate(db, employee_id)
        await db.execute(
            update(EmployeeScore)
            .where(EmployeeScore.employee_id == employee_id, EmployeeScore.is_latest.is_(True))
            .values(is_latest=False)
        )
        score = EmployeeScore(
            employee_id=employee_id,
            **breakdown.model_dump(),
            period_start=period_start,
            period_end=period_end,
            calculated_at=utcnow(),
            calculated_by=actor_id,
            is_latest=True,
        )
        db.add(score)
        await db.flush()
        logger.info(
            "Score recalculated for employee %s: %.2f (%s)",
            employee_id, score.total_score, score.grade,
        )
        return score

    # ── Endpoints ───────────────────────────────────────────────────

    @staticmethod
    async def latest(db: AsyncSession, employee_id: uuid.UUID) -> Optional[ScoreOut]:
        result = await db.execute(
            select(EmployeeScore).where(
                EmployeeScore.employee_id == employee_id,
                EmployeeScore.is_latest.is_(True),
            )
        )
        score = result.scalars().first()
        return ScoreOut.model_validate(score) if score else None

    @staticmethod
    async def my_score(db: AsyncSession, actor: User) -> Optional[ScoreOut]:
        if actor.employee is None:
            return None
        return await ScoreService.latest(db, actor.employee.id)

    @staticmethod
    async def employee_score(
        db: AsyncSession,
        actor: User,
        employee_id: uuid.UUID,
    ) -> Optional[ScoreOut]:
        ScoreService._check_access(actor, employee_id)
        return await ScoreService.latest(db, employee_id)

    @staticmethod
    async def history(
        db: AsyncSession,
        actor: User,
        employee_id: uuid.UUID,
        limit: int = 20,
    ) -> list[ScoreOut]:
        ScoreService._check_access(actor, employee_id)
        result = await db.execute(
            select(EmployeeScore)
            .where(EmployeeScore.employee_id == employee_id)
            .order_by(EmployeeScore.calculated_at.desc())
            .limit(limit)
        )
        return [ScoreOut.model_validate(s) for s in result.scalars().all()]

    @staticmethod
    async def live(db: AsyncSession, actor: User, employee_id: uuid.UUID) -> ScoreBreakdown:
        ScoreService._check_access(actor, employee_id)
        await ScoreService._ensure_employee(db, employee_id)
        breakdown, _, _ = await ScoreService.evaluate(db, employee_id)
        return breakdown

    @staticmethod
    async def calculate_one(
        db: AsyncSession,
        actor: User,
        employee_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> ScoreOut:
        await ScoreService._ensure_employee(db, employee_id)
        score = await ScoreService.calculate(db, employee_id, actor.id)
        await create_audit_entry(
            db,
            action="SCORE_RECALCULATED",
            object_type="employee_score",
            object_id=score.id,
            actor_id=actor.id,
            after={"employee_id": employee_id, "total_score": score.total_score, "grade": score.grade},
            request=request,
        )
        return ScoreOut.model_validate(score)

    @staticmethod
    async def calculate_all(
        db: AsyncSession,
        actor: User,
        request: Optional[Request] = None,
    ) -> int:
        result = await db.execute(
            select(Employee.id).where(
                Employee.deleted_at.is_(None),
                Employee.employment_status.in_((
                    EmploymentStatus.ACTIVE,
                    EmploymentStatus.ON_PROBATION,
                    EmploymentStatus.ON_LEAVE,
                )),
            )
        )
        employee_ids = result.scalars().all()
        for employee_id in employee_ids:
            await ScoreService.calculate(db, employee_id, actor.id)

        await create_audit_entry(
            db,
            action="SCORE_CALCULATED",
            object_type="employee_score",
            object_id="bulk",
            actor_id=actor.id,
            after={"employee_count": len(employee_ids)},
            request=request,
        )
        logger.info("Scores calculated for %d employees", len(employee_ids))
        return len(employee_ids)

    @staticmethod
    async def leaderboard(
        db: AsyncSession,
        limit: int = 20,
        department_id: Optional[uuid.UUID] = None,
    ) -> list[LeaderboardEntry]:
        query = (
            select(EmployeeScore)
            .where(EmployeeScore.is_latest.is_(True))
            .options(selectinload(EmployeeScore.employee))
            .order_by(EmployeeScore.total_score.desc())
            .limit(limit)
        )
        if department_id is not None:
            query = query.where(
                EmployeeScore.employee_id.in_(
                    select(Employee.id).where(Employee.department_id == department_id)
                )
            )
        result = await db.execute(query)
        return [LeaderboardEntry.model_validate(s) for s in result.scalars().all()]
