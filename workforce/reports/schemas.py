"""Report response schemas."""

import datetime as dt
import uuid
from typing import Literal, Optional

from pydantic import BaseModel

from workforce.common.constants import ContractType, EmploymentStatus, LeaveType

ReportType = Literal["headcount", "absence", "breaks", "training_completion"]


# ── Headcount ───────────────────────────────────────────────────────

class GroupCount(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    count: int


class StatusCount(BaseModel):
    status: EmploymentStatus
    count: int


class ContractCount(BaseModel):
    contract_type: ContractType
    count: int


class HeadcountReport(BaseModel):
    total: int
    by_department: list[GroupCount]
    by_location: list[GroupCount]
    by_status: list[StatusCount]
    by_contract_type: list[ContractCount]


# ── Absence ─────────────────────────────────────────────────────────

class AbsenceRow(BaseModel):
    leave_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    department: Optional[str] = None
    leave_type: LeaveType
    start_date: dt.date
    end_date: dt.date
    days: float


class AbsenceReport(BaseModel):
    date_from: dt.date
    date_to: dt.date
    total_leaves: int
    total_days_off: float
    by_type: dict[str, float]
    leaves: list[AbsenceRow]


# ── Breaks ──────────────────────────────────────────────────────────

class BreakReport(BaseModel):
    date_from: dt.datetime
    date_to: dt.datetime
    total_breaks: int
    exceeded_breaks: int
    total_minutes: int
    average_minutes: int
    by_category: dict[str, int]


# ── Training ────────────────────────────────────────────────────────

class TrainingCompletionRow(BaseModel):
    id: uuid.UUID
    title: str
    enrolled: int
    completed: int
    completion_rate: int
    not_enrolled: int


class TrainingCompletionReport(BaseModel):
    total_employees: int
    trainings: list[TrainingCompletionRow]


# ── Dashboard ───────────────────────────────────────────────────────

class DashboardSummary(BaseModel):
    total_employees: int = 0
    on_leave_today: int = 0
    pending_approvals: int = 0
    today_breaks: int = 0
    unread_notifications: int = 0


class ExportRequest(BaseModel):
    report_type: ReportType
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
