"""Report service: read-only aggregations across HR modules plus XLSX export.

Counts are pushed down to GROUP BY queries; only the absence and break
reports walk rows in Python because they return per-row detail.
"""

from __future__ import annotations

import enum
import io
import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from fastapi import Request
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.breaks.models import Break
from workforce.common.audit import create_audit_entry
from workforce.common.constants import (
    ApprovalStatus,
    BreakStatus,
    EmploymentStatus,
    LeaveStatus,
    TrainingStatus,
)
from workforce.common.dates import utcnow
from workforce.employees.models import Department, Employee, Location
from workforce.leaves.models import Approval, LeaveRequest
from workforce.notifications.models import Notification
from workforce.reports.schemas import (
    AbsenceReport,
    AbsenceRow,
    BreakReport,
    ContractCount,
    DashboardSummary,
    GroupCount,
    HeadcountReport,
    StatusCount,
    TrainingCompletionReport,
    TrainingCompletionRow,
)
from workforce.shifts.models import ShiftSwap
from workforce.time_entries.models import TimeEntry
from workforce.training.models import EmployeeTraining, Training

logger = logging.getLogger(__name__)

BREAK_REPORT_DEFAULT_DAYS = 30
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")


def completion_rate(completed: int, enrolled: int) -> int:
    return round(completed / enrolled * 100) if enrolled else 0


def summarize_absence(rows: Iterable[AbsenceRow]) -> tuple[float, dict[str, float]]:
    """Total days off and days off per leave type."""
    total = 0.0
    by_type: dict[str, float] = defaultdict(float)
    for row in rows:
        total += row.days
        by_type[row.leave_type.value] += row.days
    return total, dict(by_type)


def summarize_breaks(breaks: Sequence[Break]) -> dict[str, Any]:
    total_minutes = sum(b.duration_minutes or 0 for b in breaks)
    by_category: dict[str, int] = defaultdict(int)
    for b in breaks:
        by_category[b.category.value] += 1
    return {
        "total_breaks": len(breaks),
        "exceeded_breaks": sum(1 for b in breaks if b.status == BreakStatus.EXCEEDED),
        "total_minutes": total_minutes,
        "average_minutes": round(total_minutes / len(breaks)) if breaks else 0,
        "by_category": dict(by_category),
    }


def build_workbook(title: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> bytes:
    """Render a single-sheet XLSX workbook and return its bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = HEADER_FILL
    for row in rows:
        ws.append([_cell(v) for v in row])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _cell(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime) and value.tzinfo is not None:
        # openpyxl rejects tz-aware datetimes
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


def _break_window(date_from: Optional[date], date_to: Optional[date]) -> tuple[datetime, datetime]:
    now = utcnow()
    if date_from is None and date_to is None:
        return now - timedelta(days=BREAK_REPORT_DEFAULT_DAYS), now
    return _day_bounds(
        date_from or (now - timedelta(days=BREAK_REPORT_DEFAULT_DAYS)).date(),
        date_to or now.date(),
    )


class ReportService:

    # ═════════════════════════════════════════════════════════════════
    # Headcount
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def headcount(db: AsyncSession) -> HeadcountReport:
        """Current headcount, excluding terminated and deleted employees."""
        current = (
            Employee.deleted_at.is_(None),
            Employee.employment_status != EmploymentStatus.TERMINATED,
        )

        total = (await db.execute(
            select(func.count(Employee.id)).where(*current)
        )).scalar() or 0

        dept_rows = (await db.execute(
            select(Employee.department_id, Department.name, func.count(Employee.id))
            .outerjoin(Department, Department.id == Employee.department_id)
            .where(*current)
            .group_by(Employee.department_id, Department.name)
        )).all()
        loc_rows = (await db.execute(
            select(Employee.location_id, Location.name, func.count(Employee.id))
            .outerjoin(Location, Location.id == Employee.location_id)
            .where(*current)
            .group_by(Employee.location_id, Location.name)
        )).all()
        # Status breakdown includes terminated employees
        status_rows = (await db.execute(
            select(Employee.employment_status, func.count(Employee.id))
            .where(Employee.deleted_at.is_(None))
            .group_by(Employee.employment_status)
        )).all()
        contract_rows = (await db.execute(
            select(Employee.contract_type, func.count(Employee.id))
            .where(*current)
            .group_by(Employee.contract_type)
        )).all()

        return HeadcountReport(
            total=total,
            by_department=[
                GroupCount(id=i, name=name or "Unassigned", count=c) for i, name, c in dept_rows
            ],
            by_location=[
                GroupCount(id=i, name=name or "Unassigned", count=c) for i, name, c in loc_rows
            ],
            by_status=[StatusCount(status=s, count=c) for s, c in status_rows],
            by_contract_type=[ContractCount(contract_type=t, count=c) for t, c in contract_rows],
        )

    # ═════════════════════════════════════════════════════════════════
    # Absence
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def absence(
        db: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> AbsenceReport:
        """Approved leaves falling entirely inside the window.

        Defaults to the current calendar year up to today.
        """
        today = utcnow().date()
        date_from = date_from or today.replace(month=1, day=1)
        date_to = date_to or today

        result = await db.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.status == LeaveStatus.APPROVED,
                LeaveRequest.deleted_at.is_(None),
                LeaveRequest.start_date >= date_from,
                LeaveRequest.end_date <= date_to,
            )
            .options(selectinload(LeaveRequest.employee).selectinload(Employee.department))
            .order_by(LeaveRequest.start_date)
        )
        rows = [
            AbsenceRow(
                leave_id=leave.id,
                employee_id=leave.employee_id,
                employee_name=leave.employee.full_name,
                department=leave.employee.department.name if leave.employee.department else None,
                leave_type=leave.leave_type,
                start_date=leave.start_date,
                end_date=leave.end_date,
                days=float(leave.days),
            )
            for leave in result.scalars().all()
        ]
        total, by_type = summarize_absence(rows)
        return AbsenceReport(
            date_from=date_from,
            date_to=date_to,
            total_leaves=len(rows),
            total_days_off=total,
            by_type=by_type,
            leaves=rows,
        )

    # ═════════════════════════════════════════════════════════════════
    # Breaks
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def _breaks_between(db: AsyncSession, start: datetime, end: datetime) -> list[Break]:
        result = await db.execute(
            select(Break)
            .where(Break.start_time >= start, Break.start_time <= end)
            .options(selectinload(Break.employee))
            .order_by(Break.start_time)
        )
        return list(result.scalars().all())

    @staticmethod
    async def breaks(
        db: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> BreakReport:
        """Break totals for the window, defaulting to the last 30 days."""
        start, end = _break_window(date_from, date_to)
        rows = await ReportService._breaks_between(db, start, end)
        return BreakReport(date_from=start, date_to=end, **summarize_breaks(rows))

    # ═════════════════════════════════════════════════════════════════
    # Training completion
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def training_completion(db: AsyncSession) -> TrainingCompletionReport:
        """Completion of active mandatory trainings against the active workforce."""
        total_employees = (await db.execute(
            select(func.count(Employee.id)).where(
                Employee.deleted_at.is_(None),
                Employee.employment_status == EmploymentStatus.ACTIVE,
            )
        )).scalar() or 0

        trainings = (await db.execute(
            select(Training)
            .where(Training.is_active.is_(True), Training.is_mandatory.is_(True))
            .order_by(Training.title)
        )).scalars().all()

        counts: dict[Any, dict[TrainingStatus, int]] = defaultdict(dict)
        if trainings:
            rows = await db.execute(
                select(EmployeeTraining.training_id, EmployeeTraining.status, func.count(EmployeeTraining.id))
                .where(EmployeeTraining.training_id.in_([t.id for t in trainings]))
                .group_by(EmployeeTraining.training_id, EmployeeTraining.status)
            )
            for training_id, status, count in rows.all():
                counts[training_id][status] = count

        report = []
        for training in trainings:
            by_status = counts.get(training.id, {})
            enrolled = sum(by_status.values())
            completed = by_status.get(TrainingStatus.COMPLETED, 0)
            report.append(TrainingCompletionRow(
                id=training.id,
                title=training.title,
                enrolled=enrolled,
                completed=completed,
                completion_rate=completion_rate(completed, enrolled),
                not_enrolled=max(total_employees - enrolled, 0),
            ))
        return TrainingCompletionReport(total_employees=total_employees, trainings=report)

    # ═════════════════════════════════════════════════════════════════
    # Dashboard
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def dashboard(db: AsyncSession, user: User) -> DashboardSummary:
        now = utcnow()
        today = now.date()
        day_start, _ = _day_bounds(today, today)

        queries = [
            select(func.count(Employee.id)).where(
                Employee.deleted_at.is_(None),
                Employee.employment_status == EmploymentStatus.ACTIVE,
            ),
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.status == LeaveStatus.APPROVED,
                LeaveRequest.deleted_at.is_(None),
                LeaveRequest.start_date <= today,
                LeaveRequest.end_date >= today,
            ),
            select(func.count(Approval.id)).where(Approval.status == ApprovalStatus.PENDING),
            select(func.count(TimeEntry.id)).where(
                TimeEntry.correction_status == ApprovalStatus.PENDING,
            ),
            select(func.count(ShiftSwap.id)).where(ShiftSwap.status == ApprovalStatus.PENDING),
            select(func.count(Break.id)).where(Break.start_time >= day_start),
            select(func.count(Notification.id)).where(
                Notification.recipient_id == user.id, Notification.is_read.is_(False),
            ),
        ]
        results = []
        for stmt in queries:
            results.append((await db.execute(stmt)).scalar() or 0)

        return DashboardSummary(
            total_employees=results[0],
            on_leave_today=results[1],
            pending_approvals=results[2] + results[3] + results[4],
            today_breaks=results[5],
            unread_notifications=results[6],
        )

    # ═════════════════════════════════════════════════════════════════
    # Export
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def export(
        db: AsyncSession,
        actor: User,
        report_type: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        request: Optional[Request] = None,
    ) -> tuple[str, bytes]:
        """Build an XLSX workbook for *report_type*; returns (filename, bytes)."""
        if report_type == "headcount":
            report = await ReportService.headcount(db)
            headers = ["Group", "Name", "Count"]
            rows = (
                [("Department", g.name, g.count) for g in report.by_department]
                + [("Location", g.name, g.count) for g in report.by_location]
                + [("Status", s.status, s.count) for s in report.by_status]
                + [("Contract", c.contract_type, c.count) for c in report.by_contract_type]
                + [("Total", "", report.total)]
            )
        elif report_type == "absence":
            report = await ReportService.absence(db, date_from, date_to)
            headers = ["Employee", "Department", "Leave type", "Start", "End", "Days"]
            rows = [
                (r.employee_name, r.department or "", r.leave_type, r.start_date, r.end_date, r.days)
                for r in report.leaves
            ]
        elif report_type == "breaks":
            items = await ReportService._breaks_between(db, *_break_window(date_from, date_to))
            headers = ["Employee", "Category", "Start", "End", "Minutes", "Status"]
            rows = [
                (b.employee.full_name, b.category, b.start_time, b.end_time, b.duration_minutes, b.status)
                for b in items
            ]
        else:
            report = await ReportService.training_completion(db)
            headers = ["Training", "Enrolled", "Completed", "Completion %", "Not enrolled"]
            rows = [
                (t.title, t.enrolled, t.completed, t.completion_rate, t.not_enrolled)
                for t in report.trainings
            ]

        content = build_workbook(report_type, headers, rows)
        await create_audit_entry(
            db,
            action="EXPORT_GENERATED",
            object_type="report",
            object_id=report_type,
            actor_id=actor.id,
            metadata={
                "report_type": report_type,
                "format": "xlsx",
                "date_from": date_from,
                "date_to": date_to,
                "rows": len(rows),
            },
            request=request,
        )
        logger.info("Export %s generated by %s (%d rows)", report_type, actor.id, len(rows))
        filename = f"{report_type}-{utcnow():%Y%m%d-%H%M%S}.xlsx"
        return filename, content
